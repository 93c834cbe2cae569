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

"""ClusterPolicy, node, and decoded manifest object models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from gpu_operator.constants import POLICY_API_VERSION, POLICY_KIND


class State(str, Enum):
    """Persisted ClusterPolicy state. Errors are never stored as a state."""

    IGNORED = "ignored"
    READY = "ready"
    NOT_READY = "notReady"


@dataclass(frozen=True)
class NamespacedName:
    """Identity of a cluster object. ClusterPolicy is cluster scoped."""

    name: str
    namespace: str = ""

    def __str__(self) -> str:
        return f"{self.namespace}/{self.name}" if self.namespace else self.name


@dataclass
class ClusterPolicy:
    """The singleton desired-state object for the GPU stack.

    Attributes:
        name: Object name.
        namespace: Object namespace, empty for the cluster-scoped resource.
        state: Last persisted ``status.state``, or None if never set.
        resource_version: Version used to reject stale status writes.
        uid: Object UID, used for owner references on installed objects.
    """

    name: str
    namespace: str = ""
    state: State | None = None
    resource_version: str = ""
    uid: str = ""

    @property
    def key(self) -> NamespacedName:
        return NamespacedName(self.name, self.namespace)

    def set_state(self, state: State) -> None:
        self.state = state

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> ClusterPolicy:
        """Build a ClusterPolicy from its JSON representation."""
        metadata = obj.get("metadata") or {}
        raw_state = (obj.get("status") or {}).get("state")
        try:
            state = State(raw_state) if raw_state else None
        except ValueError:
            state = None
        return cls(
            name=metadata.get("name", ""),
            namespace=metadata.get("namespace", "") or "",
            state=state,
            resource_version=metadata.get("resourceVersion", "") or "",
            uid=metadata.get("uid", "") or "",
        )

    def owner_reference(self) -> dict[str, Any]:
        return {
            "apiVersion": POLICY_API_VERSION,
            "kind": POLICY_KIND,
            "name": self.name,
            "uid": self.uid,
            "controller": True,
            "blockOwnerDeletion": True,
        }


@dataclass
class Node:
    """The subset of a Node the labeler reads and writes."""

    name: str
    labels: dict[str, str] = field(default_factory=dict)
    resource_version: str = ""

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> Node:
        metadata = obj.get("metadata") or {}
        return cls(
            name=metadata.get("name", ""),
            labels=dict(metadata.get("labels") or {}),
            resource_version=metadata.get("resourceVersion", "") or "",
        )


# ============================================================================
# Decoded manifest objects
# ============================================================================

class ObjectMeta(BaseModel):
    """Object metadata; unknown keys are kept as-is."""

    model_config = ConfigDict(extra="allow")

    name: str = Field(min_length=1)
    namespace: str | None = None
    labels: dict[str, str] | None = None
    annotations: dict[str, str] | None = None
    owner_references: list[dict[str, Any]] | None = Field(default=None, alias="ownerReferences")


class KubeObject(BaseModel):
    """A decoded manifest object; ``spec``, ``data``, ``rules`` and the like are extras."""

    model_config = ConfigDict(extra="allow", populate_by_name=True)

    api_version: str = Field(alias="apiVersion", min_length=1)
    kind: str = Field(min_length=1)
    metadata: ObjectMeta

    @property
    def name(self) -> str:
        return self.metadata.name

    @property
    def namespace(self) -> str | None:
        return self.metadata.namespace

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the Kubernetes JSON shape."""
        return self.model_dump(by_alias=True, exclude_none=True)


class WorkloadObject(KubeObject):
    """Objects that are meaningless without a spec (workloads and services)."""

    spec: dict[str, Any]
