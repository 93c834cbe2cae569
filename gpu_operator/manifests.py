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

"""Component manifest loading and kind-based installer dispatch."""

from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from gpu_operator import logger
from gpu_operator.constants import (
    KIND_CLUSTER_ROLE,
    KIND_CLUSTER_ROLE_BINDING,
    KIND_CONFIG_MAP,
    KIND_DAEMON_SET,
    KIND_DEPLOYMENT,
    KIND_POD,
    KIND_ROLE,
    KIND_ROLE_BINDING,
    KIND_SECURITY_CONTEXT_CONSTRAINTS,
    KIND_SERVICE,
    KIND_SERVICE_ACCOUNT,
    KIND_SERVICE_MONITOR,
    OPENSHIFT_PATH_MARKER,
)
from gpu_operator.errors import ManifestError
from gpu_operator.installers import (
    DaemonSetInstaller,
    DeploymentInstaller,
    Installer,
    PodInstaller,
)
from gpu_operator.models import KubeObject, WorkloadObject

# Top-level "kind:" only; nested kinds (roleRef, subjects) are indented.
KIND_PATTERN = re.compile(r"^kind:\s*[\"']?([A-Za-z0-9]+)", re.MULTILINE)


@dataclass(frozen=True)
class KindHandler:
    """How to decode one kind and which installer drives it."""

    model: type[KubeObject]
    installer: Callable[[KubeObject], Installer]

    def decode(self, document: Any) -> KubeObject:
        return self.model.model_validate(document)


KIND_HANDLERS: dict[str, KindHandler] = {
    KIND_SERVICE_ACCOUNT: KindHandler(KubeObject, Installer),
    KIND_ROLE: KindHandler(KubeObject, Installer),
    KIND_ROLE_BINDING: KindHandler(KubeObject, Installer),
    KIND_CLUSTER_ROLE: KindHandler(KubeObject, Installer),
    KIND_CLUSTER_ROLE_BINDING: KindHandler(KubeObject, Installer),
    KIND_CONFIG_MAP: KindHandler(KubeObject, Installer),
    KIND_DAEMON_SET: KindHandler(WorkloadObject, DaemonSetInstaller),
    KIND_DEPLOYMENT: KindHandler(WorkloadObject, DeploymentInstaller),
    KIND_POD: KindHandler(WorkloadObject, PodInstaller),
    KIND_SERVICE: KindHandler(WorkloadObject, Installer),
    KIND_SERVICE_MONITOR: KindHandler(WorkloadObject, Installer),
    KIND_SECURITY_CONTEXT_CONSTRAINTS: KindHandler(KubeObject, Installer),
}


@dataclass
class ComponentResources:
    """Decoded objects of one component, grouped by kind in load order."""

    objects: dict[str, list[KubeObject]] = field(default_factory=dict)

    def add(self, obj: KubeObject) -> None:
        self.objects.setdefault(obj.kind, []).append(obj)

    def get(self, kind: str) -> KubeObject | None:
        """Return the last decoded object of *kind*, or None."""
        items = self.objects.get(kind)
        return items[-1] if items else None

    def __len__(self) -> int:
        return sum(len(items) for items in self.objects.values())


def detect_kind(text: str) -> str:
    """Return the top-level ``kind`` of a manifest without parsing it, or ``""``."""
    match = KIND_PATTERN.search(text)
    return match.group(1) if match else ""


def list_manifest_files(root: Path, openshift: str) -> list[Path]:
    """List manifest files under *root* in lexicographic path order.

    Args:
        root: Component manifest directory.
        openshift: OpenShift version, or empty when not running on OpenShift.

    Returns:
        Regular files, OpenShift-only files dropped when *openshift* is empty.
        A file is OpenShift-only when its path relative to *root* contains
        ``openshift``; directories above *root* are not considered.

    Raises:
        ManifestError: If *root* is not a readable directory.
    """
    if not root.is_dir():
        raise ManifestError(f"Manifest directory {root} does not exist")
    try:
        files = sorted((p for p in root.rglob("*") if p.is_file()), key=str)
    except OSError as err:
        raise ManifestError(f"Unable to walk manifest directory {root}: {err}") from err
    return [p for p in files if openshift or OPENSHIFT_PATH_MARKER not in str(p.relative_to(root))]


def load_manifests(root: Path, openshift: str = "") -> tuple[list[Installer], ComponentResources]:
    """Decode a component directory into ordered installers and a resource snapshot.

    Unknown kinds are logged and skipped. A known kind that fails to decode
    is a packaging defect and aborts the whole load.

    Args:
        root: Component manifest directory.
        openshift: OpenShift version, or empty when not running on OpenShift.

    Returns:
        Tuple of (installers in file order, decoded resources).

    Raises:
        ManifestError: If the directory or a known-kind manifest is invalid.
    """
    logger.info("Getting assets from %s", root)
    installers: list[Installer] = []
    resources = ComponentResources()

    for path in list_manifest_files(root, openshift):
        try:
            data = path.read_bytes()
        except OSError as err:
            raise ManifestError(f"Unable to read manifest {path}: {err}") from err

        kind = detect_kind(data.decode("utf-8", errors="replace"))
        handler = KIND_HANDLERS.get(kind)
        if handler is None:
            logger.info("Unknown resource kind %r in %s, skipping", kind, path)
            continue

        try:
            text = data.decode("utf-8")
        except UnicodeDecodeError as err:
            raise ManifestError(f"Invalid {kind} manifest {path}: {err}") from err

        logger.debug("Decoding %s from %s", kind, path)
        try:
            obj = handler.decode(yaml.safe_load(text))
        except (yaml.YAMLError, ValidationError) as err:
            raise ManifestError(f"Invalid {kind} manifest {path}: {err}") from err
        if obj.kind != kind:
            raise ManifestError(f"Manifest {path} declares kind {obj.kind!r}, detected {kind!r}")

        resources.add(obj)
        installers.append(handler.installer(obj))

    return installers, resources
