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

"""Exception hierarchy for the ClusterPolicy controller."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from gpu_operator.models import State


class OperatorError(Exception):
    """Base class for every error raised by gpu_operator."""


class ManifestError(OperatorError):
    """A component manifest directory could not be read or decoded."""


class ClusterError(OperatorError):
    """A read or write against the cluster object store failed."""


class NotFoundError(ClusterError):
    """The requested object does not exist."""


class ConflictError(ClusterError):
    """A write was rejected because the object changed since it was read."""


class NodeLabelError(OperatorError):
    """One or more nodes could not be relabelled.

    Attributes:
        failures: Mapping of node name to the error raised while updating it.
    """

    def __init__(self, failures: dict[str, Exception]) -> None:
        self.failures = failures
        details = ", ".join(f"{name}: {err}" for name, err in failures.items())
        super().__init__(f"Unable to update GPU label on {len(failures)} node(s): {details}")


class InstallError(OperatorError):
    """An installer invocation failed.

    Attributes:
        state: State to report for the component while the failure persists.
    """

    def __init__(self, message: str, state: State) -> None:
        super().__init__(message)
        self.state = state
