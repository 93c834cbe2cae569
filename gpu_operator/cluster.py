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

"""Cluster object store: the ClusterClient protocol and its kubectl implementation."""

from __future__ import annotations

import json
from typing import Any, Protocol

from gpu_operator import logger
from gpu_operator.constants import (
    CLUSTER_PROXY_NAME,
    CLUSTER_PROXY_RESOURCE,
    CLUSTER_VERSION_COMPLETED,
    CLUSTER_VERSION_NAME,
    CLUSTER_VERSION_RESOURCE,
    DEFAULT_KUBECTL_TIMEOUT_SECONDS,
    FIELD_MANAGER,
    KUBECTL_CONFLICT_MARKERS,
    KUBECTL_NOT_FOUND_MARKERS,
    POLICY_RESOURCE,
)
from gpu_operator.errors import ClusterError, ConflictError, NotFoundError
from gpu_operator.models import ClusterPolicy, NamespacedName, Node
from gpu_operator.utils import major_minor, run_kubectl


class ClusterClient(Protocol):
    """Reads and writes the controller performs against the cluster."""

    def get_policy(self, key: NamespacedName) -> ClusterPolicy: ...

    def list_policies(self) -> list[ClusterPolicy]: ...

    def update_policy_status(self, policy: ClusterPolicy) -> None: ...

    def list_nodes(self) -> list[Node]: ...

    def update_node(self, node: Node) -> None: ...

    def apply(self, obj: dict[str, Any]) -> dict[str, Any]: ...

    def openshift_version(self) -> str: ...

    def cluster_wide_proxy(self) -> dict[str, Any]: ...


def _raise_for(stderr: str, what: str) -> None:
    """Translate kubectl stderr into the matching ClusterError subclass.

    Args:
        stderr: Error output of the failed kubectl call.
        what: Short description of the attempted operation.

    Raises:
        NotFoundError: If the object or resource type does not exist.
        ConflictError: If the write lost an optimistic-concurrency race.
        ClusterError: For every other failure.
    """
    message = f"{what}: {stderr.strip()[:300]}"
    if any(marker in stderr for marker in KUBECTL_NOT_FOUND_MARKERS):
        raise NotFoundError(message)
    if any(marker in stderr for marker in KUBECTL_CONFLICT_MARKERS):
        raise ConflictError(message)
    raise ClusterError(message)


def _namespace_args(namespace: str | None) -> list[str]:
    return ["-n", namespace] if namespace else []


class KubectlClient:
    """ClusterClient backed by the kubectl binary on PATH.

    Every write carries the object's resourceVersion, so the API server
    rejects writes based on stale reads.
    """

    def __init__(self, timeout: int = DEFAULT_KUBECTL_TIMEOUT_SECONDS) -> None:
        self.timeout = timeout

    def _kubectl_json(self, args: list[str], what: str, stdin: str | None = None) -> dict[str, Any]:
        ok, stdout, stderr = run_kubectl([*args, "-o", "json"], timeout=self.timeout, stdin=stdin)
        if not ok:
            _raise_for(stderr, what)
        try:
            return json.loads(stdout) if stdout.strip() else {}
        except json.JSONDecodeError as err:
            raise ClusterError(f"{what}: unparseable kubectl output") from err

    # -- ClusterPolicy --

    def get_policy(self, key: NamespacedName) -> ClusterPolicy:
        obj = self._kubectl_json(
            ["get", POLICY_RESOURCE, key.name, *_namespace_args(key.namespace)],
            f"get ClusterPolicy {key}",
        )
        return ClusterPolicy.from_dict(obj)

    def list_policies(self) -> list[ClusterPolicy]:
        obj = self._kubectl_json(["get", POLICY_RESOURCE], "list ClusterPolicies")
        return [ClusterPolicy.from_dict(item) for item in obj.get("items", [])]

    def update_policy_status(self, policy: ClusterPolicy) -> None:
        state = policy.state.value if policy.state is not None else None
        patch = {"status": {"state": state}}
        if policy.resource_version:
            patch["metadata"] = {"resourceVersion": policy.resource_version}
        obj = self._kubectl_json(
            [
                "patch", POLICY_RESOURCE, policy.name, *_namespace_args(policy.namespace),
                "--subresource=status", "--type=merge", "-p", json.dumps(patch),
            ],
            f"update ClusterPolicy {policy.key} status",
        )
        policy.resource_version = (obj.get("metadata") or {}).get("resourceVersion", policy.resource_version)

    # -- Nodes --

    def list_nodes(self) -> list[Node]:
        obj = self._kubectl_json(["get", "nodes"], "list nodes")
        return [Node.from_dict(item) for item in obj.get("items", [])]

    def update_node(self, node: Node) -> None:
        patch: dict[str, Any] = {"metadata": {"labels": node.labels}}
        if node.resource_version:
            patch["metadata"]["resourceVersion"] = node.resource_version
        obj = self._kubectl_json(
            ["patch", "node", node.name, "--type=merge", "-p", json.dumps(patch)],
            f"update node {node.name}",
        )
        node.resource_version = (obj.get("metadata") or {}).get("resourceVersion", node.resource_version)

    # -- Generic objects --

    def apply(self, obj: dict[str, Any]) -> dict[str, Any]:
        metadata = obj.get("metadata") or {}
        logger.debug("Applying %s %s", obj.get("kind"), metadata.get("name"))
        return self._kubectl_json(
            ["apply", f"--field-manager={FIELD_MANAGER}", "-f", "-"],
            f"apply {obj.get('kind')} {metadata.get('name')}",
            stdin=json.dumps(obj),
        )

    # -- OpenShift --

    def openshift_version(self) -> str:
        """Return the OpenShift ``major.minor`` of the newest completed update.

        Raises:
            NotFoundError: If the cluster is not OpenShift.
            ClusterError: If no completed cluster version is recorded.
        """
        obj = self._kubectl_json(
            ["get", CLUSTER_VERSION_RESOURCE, CLUSTER_VERSION_NAME],
            "get OpenShift ClusterVersion",
        )
        for entry in (obj.get("status") or {}).get("history") or []:
            if entry.get("state") != CLUSTER_VERSION_COMPLETED:
                continue
            return major_minor(entry.get("version", ""))
        raise ClusterError("Failed to find Completed Cluster Version")

    def cluster_wide_proxy(self) -> dict[str, Any]:
        """Return the OpenShift cluster-wide Proxy object."""
        return self._kubectl_json(
            ["get", CLUSTER_PROXY_RESOURCE, CLUSTER_PROXY_NAME],
            "get OpenShift cluster-wide proxy",
        )
