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

"""Utility functions for kubectl and command checks."""

from __future__ import annotations

import subprocess

import sh


def require_command(cmd: str) -> None:
    """Check if a command exists on the system PATH.

    Args:
        cmd: Name of the CLI command to check.

    Raises:
        RuntimeError: If the command is not found.
    """
    try:
        sh.which(cmd)
    except sh.ErrorReturnCode as err:
        raise RuntimeError(f"Required command '{cmd}' not found. Please install it first.") from err


def run_kubectl(args: list[str], timeout: int = 30, stdin: str | None = None) -> tuple[bool, str, str]:
    """Run a kubectl command via subprocess and return (success, stdout, stderr).

    Uses subprocess instead of sh because error classification (NotFound,
    Conflict) needs stderr kept apart from the JSON printed on stdout.

    Args:
        args: kubectl arguments (e.g. ``["get", "nodes", "-o", "json"]``).
        timeout: Maximum seconds to wait for the command to complete.
        stdin: Optional text piped to kubectl (for ``-f -``).

    Returns:
        Tuple of (success, stdout, stderr).
    """
    try:
        result = subprocess.run(
            ["kubectl", *args],
            input=stdin,
            capture_output=True,
            text=True,
            timeout=timeout,
        )
        return result.returncode == 0, result.stdout, result.stderr
    except (subprocess.SubprocessError, OSError) as exc:
        return False, "", str(exc)


def major_minor(version: str) -> str:
    """Trim a dotted version string to ``major.minor``.

    Args:
        version: Version such as ``4.6.12``.

    Returns:
        ``4.6`` for the example above, or the single component if there is no dot.
    """
    parts = version.split(".")
    if len(parts) > 1:
        return f"{parts[0]}.{parts[1]}"
    return parts[0]
