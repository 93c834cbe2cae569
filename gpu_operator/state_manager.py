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

"""Component registry and the step-wise install state machine."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from gpu_operator import logger
from gpu_operator.cluster import ClusterClient
from gpu_operator.constants import (
    COMPONENT_ORDER,
    DEFAULT_APPLY_MAX_RETRIES,
    DEFAULT_ASSETS_DIR,
    DEFAULT_NAMESPACE,
)
from gpu_operator.errors import InstallError, NotFoundError
from gpu_operator.installers import Installer
from gpu_operator.manifests import ComponentResources, load_manifests
from gpu_operator.models import ClusterPolicy, State
from gpu_operator.nodes import label_gpu_nodes

ManifestLoader = Callable[[Path, str], tuple[list[Installer], ComponentResources]]


@dataclass(frozen=True)
class Component:
    """One named install stage: its installers run in order as a readiness unit."""

    name: str
    installers: tuple[Installer, ...]
    resources: ComponentResources = field(default_factory=ComponentResources, compare=False)


class ClusterPolicyController:
    """Ordered components plus a cursor into them.

    ``init`` is called on every reconcile pass; the component list is built on
    the first call only. ``step`` drives the component under the cursor and
    advances it once every installer reports Ready.

    Attributes:
        client: Cluster client installers and the node labeler use.
        singleton: The ClusterPolicy this controller is acting for.
        components: Components in install order, immutable once built.
        idx: Cursor into ``components``; ``idx == len(components)`` means done.
        openshift: OpenShift ``major.minor``, or empty on other platforms.
    """

    def __init__(
        self,
        client: ClusterClient,
        assets_dir: Path = Path(DEFAULT_ASSETS_DIR),
        namespace: str = DEFAULT_NAMESPACE,
        component_names: Sequence[str] = COMPONENT_ORDER,
        apply_max_retries: int = DEFAULT_APPLY_MAX_RETRIES,
        loader: ManifestLoader = load_manifests,
    ) -> None:
        self.client = client
        self.assets_dir = Path(assets_dir)
        self.namespace = namespace
        self.component_names = tuple(component_names)
        self.apply_max_retries = apply_max_retries
        self.loader = loader

        self.singleton: ClusterPolicy | None = None
        self.components: tuple[Component, ...] = ()
        self.idx = 0
        self.openshift = ""

    # -- Registry --

    def _add_state(self, name: str) -> Component:
        installers, resources = self.loader(self.assets_dir / name, self.openshift)
        logger.info("Registered component %s with %d installer(s)", name, len(installers))
        return Component(name=name, installers=tuple(installers), resources=resources)

    def _resolve_platform(self) -> str:
        try:
            version = self.client.openshift_version()
        except NotFoundError:
            return ""
        logger.info("Running on OpenShift %s", version)
        return version

    def init(self, policy: ClusterPolicy) -> None:
        """Prepare a reconcile pass for *policy*.

        Args:
            policy: The ClusterPolicy being reconciled.

        Raises:
            ClusterError: If platform discovery fails for a reason other than
                not being on OpenShift, or the node list cannot be read.
            ManifestError: If a component manifest directory is invalid.
            NodeLabelError: If any GPU node could not be relabelled.
        """
        self.openshift = self._resolve_platform()
        self.singleton = policy
        self.idx = 0

        if not self.components:
            self.components = tuple(self._add_state(name) for name in self.component_names)

        label_gpu_nodes(self.client)

    # -- Stepping --

    @property
    def current_component(self) -> Component | None:
        if self.idx < len(self.components):
            return self.components[self.idx]
        return None

    def step(self) -> tuple[State, InstallError | None]:
        """Drive the component under the cursor.

        Returns:
            ``(state, error)``: the first error or non-Ready state stops the
            component; ``(READY, None)`` after every installer is Ready, in
            which case the cursor has moved to the next component.
        """
        component = self.current_component
        if component is None:
            return State.READY, None

        for installer in component.installers:
            try:
                state = installer.apply(self)
            except InstallError as err:
                logger.error("Component %s: %s", component.name, err)
                return err.state, err
            if state != State.READY:
                logger.info("Component %s: %r is %s", component.name, installer, state.value)
                return state, None

        self.idx += 1
        logger.info("Component %s is ready (%d/%d)", component.name, self.idx, len(self.components))
        return State.READY, None

    def validate(self) -> None:
        """Semantic validation hook for the ClusterPolicy; nothing to check yet."""

    def last(self) -> bool:
        return self.idx == len(self.components)
