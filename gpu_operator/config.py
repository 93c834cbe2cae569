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

"""Operator configuration, auto-loaded from GPU_OPERATOR_* env vars."""

from __future__ import annotations

from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from gpu_operator.constants import (
    DEFAULT_APPLY_MAX_RETRIES,
    DEFAULT_ASSETS_DIR,
    DEFAULT_KUBECTL_TIMEOUT_SECONDS,
    DEFAULT_LOG_LEVEL,
    DEFAULT_NAMESPACE,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_REQUEUE_DELAY_SECONDS,
    DEFAULT_RESYNC_PERIOD_SECONDS,
)


class OperatorConfig(BaseSettings):
    """ClusterPolicy controller configuration.

    Attributes:
        assets_dir: Root directory holding one manifest directory per component.
        namespace: Namespace namespaced operands are installed into.
        requeue_delay_seconds: Fixed delay for bounded-delay retries.
        resync_period_seconds: Interval at which every ClusterPolicy is re-queued.
        poll_interval_seconds: Interval between runner polls of nodes and policies.
        kubectl_timeout_seconds: Maximum seconds a single kubectl call may take.
        apply_max_retries: Attempts for a single object apply before giving up.
        log_level: Root log level for the CLI.
    """

    model_config = SettingsConfigDict(env_prefix="GPU_OPERATOR_", extra="ignore")

    assets_dir: Path = Path(DEFAULT_ASSETS_DIR)
    namespace: str = DEFAULT_NAMESPACE
    requeue_delay_seconds: float = Field(default=DEFAULT_REQUEUE_DELAY_SECONDS, ge=1)
    resync_period_seconds: float = Field(default=DEFAULT_RESYNC_PERIOD_SECONDS, ge=1)
    poll_interval_seconds: float = Field(default=DEFAULT_POLL_INTERVAL_SECONDS, gt=0)
    kubectl_timeout_seconds: int = Field(default=DEFAULT_KUBECTL_TIMEOUT_SECONDS, ge=1)
    apply_max_retries: int = Field(default=DEFAULT_APPLY_MAX_RETRIES, ge=1, le=10)
    log_level: str = Field(default=DEFAULT_LOG_LEVEL, pattern=r"^(DEBUG|INFO|WARNING|ERROR)$")
