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

"""
cli.py - Command line entry point for the GPU operator ClusterPolicy controller.

Subcommands:
    controller  Run the controller loop or a single reconcile pass
    nodes       Inspect and fix the nvidia.com/gpu.present node label
    manifests   Load component manifests and show what would be installed

Environment Variables:
    Configuration can be overridden via GPU_OPERATOR_* environment variables:
    - GPU_OPERATOR_ASSETS_DIR (default: /opt/gpu-operator)
    - GPU_OPERATOR_NAMESPACE (default: gpu-operator-resources)
    - GPU_OPERATOR_REQUEUE_DELAY_SECONDS (default: 5)
    - GPU_OPERATOR_LOG_LEVEL (default: INFO)

Examples:
    # Run the controller against the current kubeconfig context
    gpu-operator controller run

    # Reconcile one ClusterPolicy once and exit
    gpu-operator controller reconcile --name cluster-policy

    # Show which nodes need their GPU label fixed, without writing
    gpu-operator nodes check
"""

from __future__ import annotations

import logging
import sys

import typer

from gpu_operator import console
from gpu_operator.commands import controller_cmd, manifests_cmd, nodes_cmd
from gpu_operator.config import OperatorConfig

app = typer.Typer(
    help="GPU operator ClusterPolicy controller.",
    no_args_is_help=True,
)


@app.callback()
def _main_callback() -> None:
    """Initialize logging for all subcommands."""
    logging.basicConfig(
        level=OperatorConfig().log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


app.add_typer(controller_cmd.app, name="controller")
app.add_typer(nodes_cmd.app, name="nodes")
app.add_typer(manifests_cmd.app, name="manifests")


def main() -> None:
    try:
        app()
    except Exception as e:
        console.print(f"[red]❌ {e}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
