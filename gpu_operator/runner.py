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

"""Polling work queue that feeds ClusterPolicy requests to the Reconciler."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable

from gpu_operator import logger
from gpu_operator.cluster import ClusterClient
from gpu_operator.config import OperatorConfig
from gpu_operator.controller import Reconciler
from gpu_operator.errors import ClusterError, ManifestError
from gpu_operator.models import NamespacedName
from gpu_operator.nodes import node_create_needs_update, node_update_needs_update


class Runner:
    """Single-threaded driver: one reconcile pass at a time.

    Each poll lists ClusterPolicies and nodes, turns changes into requests
    (node events go through the GPU label predicates and fan out to every
    ClusterPolicy), then runs every request whose requeue time has come.
    """

    def __init__(
        self,
        client: ClusterClient,
        reconciler: Reconciler,
        cfg: OperatorConfig,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.client = client
        self.reconciler = reconciler
        self.cfg = cfg
        self.clock = clock

        self._due: dict[NamespacedName, float] = {}
        self._policy_versions: dict[NamespacedName, str] = {}
        self._node_labels: dict[str, dict[str, str]] | None = None
        self._last_resync: float | None = None

    # -- Queue --

    def enqueue(self, key: NamespacedName, delay: float = 0.0) -> None:
        """Schedule *key*; an earlier pending schedule wins."""
        due = self.clock() + delay
        if key not in self._due or due < self._due[key]:
            self._due[key] = due

    @property
    def pending(self) -> dict[NamespacedName, float]:
        return dict(self._due)

    # -- Event sources --

    def _watch_policies(self) -> None:
        policies = self.client.list_policies()
        now = self.clock()
        resync = self._last_resync is None or now - self._last_resync >= self.cfg.resync_period_seconds
        seen: dict[NamespacedName, str] = {}
        for policy in policies:
            seen[policy.key] = policy.resource_version
            if resync or self._policy_versions.get(policy.key) != policy.resource_version:
                self.enqueue(policy.key)
        self._policy_versions = seen
        if resync:
            self._last_resync = now

    def _watch_nodes(self) -> None:
        nodes = self.client.list_nodes()
        current = {node.name: dict(node.labels) for node in nodes}
        previous = self._node_labels
        self._node_labels = current
        if previous is None:
            return

        triggered = False
        for name, labels in current.items():
            if name not in previous:
                triggered |= node_create_needs_update(name, labels)
            elif previous[name] != labels:
                triggered |= node_update_needs_update(name, labels)
        if triggered:
            logger.info("Reconciling %d ClusterPolicies after node label update", len(self._policy_versions))
            for key in self._policy_versions:
                self.enqueue(key)

    # -- Processing --

    def _process(self, key: NamespacedName) -> None:
        try:
            result = self.reconciler.reconcile(key)
        except ManifestError:
            raise
        except Exception as err:
            logger.error("Reconcile of %s failed, requeueing: %s", key, err)
            self.enqueue(key)
            return
        if result.error is not None:
            logger.error("Reconcile of %s failed: %s", key, result.error)
        if result.requeue_after is not None:
            logger.debug("Requeueing %s after %.1fs", key, result.requeue_after)
            self.enqueue(key, result.requeue_after)

    def poll_once(self) -> None:
        """Refresh event sources, then run every request that is due.

        Raises:
            ManifestError: If component manifests are invalid; not recoverable.
        """
        for watch, what in ((self._watch_policies, "ClusterPolicies"), (self._watch_nodes, "nodes")):
            try:
                watch()
            except ClusterError as err:
                logger.error("Unable to refresh %s: %s", what, err)

        now = self.clock()
        ready = sorted((key for key, due in self._due.items() if due <= now), key=self._due.__getitem__)
        for key in ready:
            del self._due[key]
            self._process(key)

    def run(self, stop: threading.Event | None = None) -> None:
        """Poll until *stop* is set."""
        stop = stop or threading.Event()
        logger.info("Starting ClusterPolicy controller (poll every %.1fs)", self.cfg.poll_interval_seconds)
        while not stop.is_set():
            self.poll_once()
            stop.wait(self.cfg.poll_interval_seconds)
