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

"""ClusterPolicy reconcile pass: fetch, guard, init, step, persist status."""

from __future__ import annotations

from dataclasses import dataclass

from gpu_operator import logger
from gpu_operator.cluster import ClusterClient
from gpu_operator.config import OperatorConfig
from gpu_operator.constants import DEFAULT_REQUEUE_DELAY_SECONDS
from gpu_operator.errors import ClusterError, NotFoundError
from gpu_operator.models import ClusterPolicy, NamespacedName, State
from gpu_operator.state_manager import ClusterPolicyController


@dataclass(frozen=True)
class ReconcileResult:
    """What the caller should do after a pass.

    Attributes:
        requeue_after: Seconds to wait before the next pass, or None for no requeue.
        error: Error that ended the pass, reported alongside the delayed requeue.
    """

    requeue_after: float | None = None
    error: Exception | None = None

    @property
    def requeue(self) -> bool:
        return self.requeue_after is not None


class Reconciler:
    """Reconciles ClusterPolicy objects through one owned ClusterPolicyController.

    ``reconcile`` returns a ReconcileResult for clean exits and bounded-delay
    retries, and raises for failures the caller should retry immediately
    (reading the ClusterPolicy, controller init).
    """

    def __init__(
        self,
        client: ClusterClient,
        controller: ClusterPolicyController,
        requeue_delay: float = DEFAULT_REQUEUE_DELAY_SECONDS,
    ) -> None:
        self.client = client
        self.controller = controller
        self.requeue_delay = requeue_delay

    @classmethod
    def from_config(cls, client: ClusterClient, cfg: OperatorConfig) -> Reconciler:
        controller = ClusterPolicyController(
            client,
            assets_dir=cfg.assets_dir,
            namespace=cfg.namespace,
            apply_max_retries=cfg.apply_max_retries,
        )
        return cls(client, controller, requeue_delay=cfg.requeue_delay_seconds)

    def _retry_later(self, error: Exception | None = None) -> ReconcileResult:
        return ReconcileResult(requeue_after=self.requeue_delay, error=error)

    def _persist_state(self, instance: ClusterPolicy, state: State) -> None:
        if instance.state == state:
            return
        instance.set_state(state)
        self.client.update_policy_status(instance)

    def reconcile(self, request: NamespacedName) -> ReconcileResult:
        """Run one reconcile pass for *request*.

        Args:
            request: Identity of the ClusterPolicy to reconcile.

        Returns:
            The requeue decision for the pass.

        Raises:
            ClusterError: If the ClusterPolicy cannot be read.
            OperatorError: If controller init fails.
        """
        logger.info("Reconciling ClusterPolicy %s", request)
        ctrl = self.controller

        try:
            instance = self.client.get_policy(request)
        except NotFoundError:
            logger.info("ClusterPolicy %s not found, assuming deleted", request)
            return ReconcileResult()

        if ctrl.singleton is not None and ctrl.singleton.key != instance.key:
            logger.info("ClusterPolicy %s ignored, %s is already active", instance.key, ctrl.singleton.key)
            try:
                self._persist_state(instance, State.IGNORED)
            except ClusterError as err:
                logger.error("Failed to update ClusterPolicy %s status: %s", instance.key, err)
                return self._retry_later(err)
            return ReconcileResult()

        try:
            ctrl.init(instance)
        except Exception as err:
            logger.error("Failed to initialize ClusterPolicy controller: %s", err)
            raise

        while True:
            status, step_error = ctrl.step()

            # A failed re-read drops this step's status; the next pass re-derives it.
            try:
                instance = self.client.get_policy(request)
            except ClusterError as err:
                logger.error("Failed to get ClusterPolicy %s for status update: %s", request, err)
                return self._retry_later(err)

            try:
                self._persist_state(instance, status)
            except ClusterError as err:
                logger.error("Failed to update ClusterPolicy %s status: %s", request, err)
                return self._retry_later(err)

            if step_error is not None:
                return self._retry_later(step_error)

            if status != State.READY:
                logger.info("ClusterPolicy step wasn't ready, state: %s", status.value)
                return self._retry_later()

            if ctrl.last():
                break

        try:
            self._persist_state(instance, State.READY)
        except ClusterError as err:
            logger.error("Failed to update ClusterPolicy %s status: %s", request, err)
            return self._retry_later(err)
        logger.info("ClusterPolicy %s is ready", request)
        return ReconcileResult()
