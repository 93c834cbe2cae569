"""Pytest configuration and shared fixtures for gpu_operator tests."""

from __future__ import annotations

import copy
import dataclasses
import textwrap
from pathlib import Path
from typing import Any

import pytest

from gpu_operator.errors import ConflictError, NotFoundError
from gpu_operator.manifests import ComponentResources
from gpu_operator.models import ClusterPolicy, NamespacedName, Node, State


class FakeClusterClient:
    """In-memory ClusterClient with failure injection."""

    def __init__(self) -> None:
        self.policies: dict[NamespacedName, ClusterPolicy] = {}
        self.nodes: dict[str, Node] = {}
        self.applied: list[dict[str, Any]] = []
        self.statuses: dict[tuple[str, str], dict[str, Any]] = {}
        self.status_updates: list[tuple[str, State | None]] = []
        self.node_updates: list[tuple[str, dict[str, str]]] = []
        self.openshift: str | Exception = NotFoundError("clusterversions.config.openshift.io not found")
        self.proxy: dict[str, Any] | Exception = NotFoundError("proxy not found")

        self.get_policy_errors: list[Exception] = []
        self.get_policy_calls = 0
        self.fail_get_policy_on_call: dict[int, Exception] = {}
        self.update_status_error: Exception | None = None
        self.list_policies_error: Exception | None = None
        self.list_nodes_error: Exception | None = None
        self.update_node_errors: dict[str, Exception] = {}
        self.apply_errors: list[Exception] = []

    # -- Seeding --

    def add_policy(self, name: str, state: State | None = None, uid: str = "") -> ClusterPolicy:
        policy = ClusterPolicy(name=name, state=state, resource_version="1", uid=uid)
        self.policies[policy.key] = policy
        return policy

    def add_node(self, name: str, labels: dict[str, str] | None = None) -> Node:
        node = Node(name=name, labels=dict(labels or {}), resource_version="1")
        self.nodes[name] = node
        return node

    # -- ClusterClient --

    def get_policy(self, key: NamespacedName) -> ClusterPolicy:
        self.get_policy_calls += 1
        if self.get_policy_calls in self.fail_get_policy_on_call:
            raise self.fail_get_policy_on_call[self.get_policy_calls]
        if self.get_policy_errors:
            raise self.get_policy_errors.pop(0)
        if key not in self.policies:
            raise NotFoundError(f"clusterpolicy {key} not found")
        return dataclasses.replace(self.policies[key])

    def list_policies(self) -> list[ClusterPolicy]:
        if self.list_policies_error is not None:
            raise self.list_policies_error
        return [dataclasses.replace(p) for p in self.policies.values()]

    def update_policy_status(self, policy: ClusterPolicy) -> None:
        if self.update_status_error is not None:
            raise self.update_status_error
        stored = self.policies.get(policy.key)
        if stored is None:
            raise NotFoundError(f"clusterpolicy {policy.key} not found")
        if policy.resource_version and policy.resource_version != stored.resource_version:
            raise ConflictError("the object has been modified")
        stored.state = policy.state
        stored.resource_version = str(int(stored.resource_version or "0") + 1)
        policy.resource_version = stored.resource_version
        self.status_updates.append((policy.name, policy.state))

    def list_nodes(self) -> list[Node]:
        if self.list_nodes_error is not None:
            raise self.list_nodes_error
        return [Node(n.name, dict(n.labels), n.resource_version) for n in self.nodes.values()]

    def update_node(self, node: Node) -> None:
        if node.name in self.update_node_errors:
            raise self.update_node_errors[node.name]
        stored = self.nodes[node.name]
        stored.labels = dict(node.labels)
        stored.resource_version = str(int(stored.resource_version or "0") + 1)
        self.node_updates.append((node.name, dict(node.labels)))

    def apply(self, obj: dict[str, Any]) -> dict[str, Any]:
        if self.apply_errors:
            raise self.apply_errors.pop(0)
        self.applied.append(copy.deepcopy(obj))
        live = copy.deepcopy(obj)
        status = self.statuses.get((obj["kind"], obj["metadata"]["name"]))
        if status is not None:
            live["status"] = status
        return live

    def openshift_version(self) -> str:
        if isinstance(self.openshift, Exception):
            raise self.openshift
        return self.openshift

    def cluster_wide_proxy(self) -> dict[str, Any]:
        if isinstance(self.proxy, Exception):
            raise self.proxy
        return self.proxy


class ScriptedInstaller:
    """Installer stand-in returning (or raising) a scripted outcome per call."""

    kind = "Scripted"

    def __init__(self, name: str, *outcomes: State | Exception) -> None:
        self.name = name
        self.outcomes = list(outcomes) or [State.READY]
        self.calls = 0

    def apply(self, ctrl) -> State:
        outcome = self.outcomes[min(self.calls, len(self.outcomes) - 1)]
        self.calls += 1
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


class ScriptedLoader:
    """Manifest loader stand-in keyed by component directory name."""

    def __init__(self, installers: dict[str, list[ScriptedInstaller]] | None = None) -> None:
        self.installers = installers or {}
        self.calls: list[tuple[Path, str]] = []

    def __call__(self, path: Path, openshift: str):
        self.calls.append((path, openshift))
        return list(self.installers.get(path.name, [])), ComponentResources()


@pytest.fixture
def fake_client() -> FakeClusterClient:
    """Provide an empty in-memory cluster."""
    return FakeClusterClient()


@pytest.fixture
def write_manifest(tmp_path: Path):
    """Write a dedented manifest file under tmp_path and return its path."""

    def _write(rel_path: str, content: str) -> Path:
        path = tmp_path / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(textwrap.dedent(content).lstrip())
        return path

    return _write


SERVICE_ACCOUNT_YAML = """
apiVersion: v1
kind: ServiceAccount
metadata:
  name: nvidia-driver
"""

DAEMON_SET_YAML = """
apiVersion: apps/v1
kind: DaemonSet
metadata:
  name: nvidia-driver-daemonset
spec:
  selector:
    matchLabels:
      app: nvidia-driver-daemonset
  template:
    spec:
      containers:
        - name: nvidia-driver-ctr
          image: nvidia/driver
"""
