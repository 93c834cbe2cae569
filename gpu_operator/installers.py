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

"""Installer invocations: apply one decoded object and report its readiness."""

from __future__ import annotations

import copy
from typing import TYPE_CHECKING, Any

from tenacity import retry, retry_if_exception_type, retry_if_not_exception_type, stop_after_attempt, wait_fixed

from gpu_operator import logger
from gpu_operator.cluster import ClusterClient
from gpu_operator.constants import (
    COMPONENT_DRIVER,
    DEFAULT_APPLY_RETRY_WAIT_SECONDS,
    KIND_CLUSTER_ROLE,
    KIND_CLUSTER_ROLE_BINDING,
    KIND_SECURITY_CONTEXT_CONSTRAINTS,
)
from gpu_operator.errors import ClusterError, ConflictError, InstallError, NotFoundError
from gpu_operator.models import KubeObject, State

if TYPE_CHECKING:
    from gpu_operator.state_manager import ClusterPolicyController

CLUSTER_SCOPED_KINDS = frozenset({KIND_CLUSTER_ROLE, KIND_CLUSTER_ROLE_BINDING, KIND_SECURITY_CONTEXT_CONSTRAINTS})

PROXY_ENV_FIELDS = (
    ("HTTP_PROXY", "httpProxy"),
    ("HTTPS_PROXY", "httpsProxy"),
    ("NO_PROXY", "noProxy"),
)


def apply_object(client: ClusterClient, obj: dict[str, Any], max_retries: int) -> dict[str, Any]:
    """Apply an object, retrying transient failures.

    Conflicts are not retried here; the next reconcile re-reads and re-applies.

    Args:
        client: Cluster client to apply through.
        obj: Object in Kubernetes JSON shape.
        max_retries: Maximum apply attempts.

    Returns:
        The object as stored by the API server.

    Raises:
        ClusterError: If every attempt failed.
    """

    @retry(
        stop=stop_after_attempt(max_retries),
        wait=wait_fixed(DEFAULT_APPLY_RETRY_WAIT_SECONDS),
        retry=retry_if_exception_type(ClusterError) & retry_if_not_exception_type(ConflictError),
        reraise=True,
    )
    def _attempt() -> dict[str, Any]:
        return client.apply(obj)

    return _attempt()


class Installer:
    """Ensure one decoded object exists in the cluster and report its readiness.

    Subclasses override :meth:`readiness` (and optionally :meth:`render`).
    ``apply`` returns the component state for this object or raises
    :class:`InstallError` carrying the state to report.
    """

    def __init__(self, obj: KubeObject) -> None:
        self.obj = obj

    @property
    def kind(self) -> str:
        return self.obj.kind

    @property
    def name(self) -> str:
        return self.obj.name

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind}/{self.name})"

    def render(self, ctrl: ClusterPolicyController) -> dict[str, Any]:
        """Build the object to apply: namespace defaulted and owner set."""
        obj = copy.deepcopy(self.obj.to_dict())
        metadata = obj.setdefault("metadata", {})
        if self.kind not in CLUSTER_SCOPED_KINDS and not metadata.get("namespace"):
            metadata["namespace"] = ctrl.namespace
        policy = ctrl.singleton
        if policy is not None and policy.uid:
            metadata["ownerReferences"] = [policy.owner_reference()]
        return obj

    def readiness(self, live: dict[str, Any]) -> State:
        return State.READY

    def apply(self, ctrl: ClusterPolicyController) -> State:
        obj = self.render(ctrl)
        try:
            live = apply_object(ctrl.client, obj, ctrl.apply_max_retries)
        except ClusterError as err:
            raise InstallError(f"Failed to apply {self.kind} {self.name}: {err}", State.NOT_READY) from err
        return self.readiness(live)


class DaemonSetInstaller(Installer):
    """DaemonSet is ready once its controller has observed the current spec
    and every scheduled pod is available.

    A freshly created DaemonSet has no status (or an all-zero one without
    ``observedGeneration``) and is not ready yet.
    """

    def render(self, ctrl: ClusterPolicyController) -> dict[str, Any]:
        obj = super().render(ctrl)
        component = ctrl.current_component
        if ctrl.openshift and component is not None and component.name == COMPONENT_DRIVER:
            _inject_proxy_env(obj, ctrl.client)
        return obj

    def readiness(self, live: dict[str, Any]) -> State:
        status = live.get("status") or {}
        generation = (live.get("metadata") or {}).get("generation", 0)
        observed = status.get("observedGeneration")
        if observed is None or observed < generation:
            logger.info("DaemonSet %s not ready: rollout not observed yet", self.name)
            return State.NOT_READY

        desired = status.get("desiredNumberScheduled", 0)
        available = status.get("numberAvailable", 0)
        unavailable = status.get("numberUnavailable", 0)
        if unavailable or available < desired:
            logger.info("DaemonSet %s not ready: %d/%d pod(s) available", self.name, available, desired)
            return State.NOT_READY
        return State.READY


class DeploymentInstaller(Installer):
    """Deployment is ready once every desired replica is available."""

    def readiness(self, live: dict[str, Any]) -> State:
        desired = (live.get("spec") or {}).get("replicas", 1)
        available = (live.get("status") or {}).get("availableReplicas", 0)
        if available < desired:
            logger.info("Deployment %s not ready: %d/%d replicas available", self.name, available, desired)
            return State.NOT_READY
        return State.READY


class PodInstaller(Installer):
    """Pods here are validation workloads: ready once they have succeeded."""

    def readiness(self, live: dict[str, Any]) -> State:
        phase = (live.get("status") or {}).get("phase", "")
        if phase == "Succeeded":
            return State.READY
        if phase == "Failed":
            raise InstallError(f"Pod {self.name} failed", State.NOT_READY)
        logger.info("Pod %s not ready: phase %s", self.name, phase or "Unknown")
        return State.NOT_READY


def _inject_proxy_env(obj: dict[str, Any], client: ClusterClient) -> None:
    """Copy the OpenShift cluster-wide proxy settings into every container's env."""
    try:
        proxy = client.cluster_wide_proxy()
    except NotFoundError:
        return
    except ClusterError as err:
        raise InstallError(f"Failed to read cluster-wide proxy: {err}", State.NOT_READY) from err

    status = proxy.get("status") or {}
    env = [{"name": name, "value": status[key]} for name, key in PROXY_ENV_FIELDS if status.get(key)]
    if not env:
        return
    names = {item["name"] for item in env}
    pod_spec = (((obj.get("spec") or {}).get("template") or {}).get("spec")) or {}
    for container in pod_spec.get("containers", []):
        kept = [item for item in container.get("env", []) if item.get("name") not in names]
        container["env"] = kept + env
