# /*
# Copyright 2026 The Grove Authors.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
# */

"""Label keys, component layout, kinds, and operator defaults."""

from __future__ import annotations

# -- Node labels --
COMMON_GPU_LABEL_KEY = "nvidia.com/gpu.present"
COMMON_GPU_LABEL_VALUE = "true"
COMMON_GPU_LABEL_RESET_VALUE = "false"

# Node Feature Discovery labels for NVIDIA PCI devices (vendor 10de).
GPU_NODE_LABELS = {
    "feature.node.kubernetes.io/pci-10de.present": "true",
    "feature.node.kubernetes.io/pci-0302_10de.present": "true",
    "feature.node.kubernetes.io/pci-0300_10de.present": "true",
}

# -- ClusterPolicy resource --
POLICY_GROUP = "nvidia.com"
POLICY_VERSION = "v1"
POLICY_KIND = "ClusterPolicy"
POLICY_RESOURCE = "clusterpolicies.nvidia.com"
POLICY_API_VERSION = f"{POLICY_GROUP}/{POLICY_VERSION}"

# -- Components, installed in this order --
COMPONENT_DRIVER = "state-driver"
COMPONENT_TOOLKIT = "state-container-toolkit"
COMPONENT_DEVICE_PLUGIN = "state-device-plugin"
COMPONENT_DEVICE_PLUGIN_VALIDATION = "state-device-plugin-validation"
COMPONENT_MONITORING = "state-monitoring"
COMPONENT_FEATURE_DISCOVERY = "gpu-feature-discovery"

COMPONENT_ORDER = (
    COMPONENT_DRIVER,
    COMPONENT_TOOLKIT,
    COMPONENT_DEVICE_PLUGIN,
    COMPONENT_DEVICE_PLUGIN_VALIDATION,
    COMPONENT_MONITORING,
    COMPONENT_FEATURE_DISCOVERY,
)

# -- Manifests --
OPENSHIFT_PATH_MARKER = "openshift"

KIND_SERVICE_ACCOUNT = "ServiceAccount"
KIND_ROLE = "Role"
KIND_ROLE_BINDING = "RoleBinding"
KIND_CLUSTER_ROLE = "ClusterRole"
KIND_CLUSTER_ROLE_BINDING = "ClusterRoleBinding"
KIND_CONFIG_MAP = "ConfigMap"
KIND_DAEMON_SET = "DaemonSet"
KIND_DEPLOYMENT = "Deployment"
KIND_POD = "Pod"
KIND_SERVICE = "Service"
KIND_SERVICE_MONITOR = "ServiceMonitor"
KIND_SECURITY_CONTEXT_CONSTRAINTS = "SecurityContextConstraints"

# -- OpenShift platform discovery --
CLUSTER_VERSION_RESOURCE = "clusterversions.config.openshift.io"
CLUSTER_VERSION_NAME = "version"
CLUSTER_VERSION_COMPLETED = "Completed"
CLUSTER_PROXY_RESOURCE = "proxies.config.openshift.io"
CLUSTER_PROXY_NAME = "cluster"

# -- kubectl stderr markers --
KUBECTL_NOT_FOUND_MARKERS = ("NotFound", "doesn't have a resource type", "no matches for kind")
KUBECTL_CONFLICT_MARKERS = ("Conflict", "the object has been modified")

# -- Operator defaults --
DEFAULT_ASSETS_DIR = "/opt/gpu-operator"
DEFAULT_NAMESPACE = "gpu-operator-resources"
DEFAULT_REQUEUE_DELAY_SECONDS = 5
DEFAULT_RESYNC_PERIOD_SECONDS = 30
DEFAULT_POLL_INTERVAL_SECONDS = 2
DEFAULT_KUBECTL_TIMEOUT_SECONDS = 30
DEFAULT_APPLY_MAX_RETRIES = 3
DEFAULT_APPLY_RETRY_WAIT_SECONDS = 1
DEFAULT_LOG_LEVEL = "INFO"
FIELD_MANAGER = "gpu-operator"
