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

"""Node label subcommands (check, label)."""

from __future__ import annotations

import typer
from rich.panel import Panel
from rich.table import Table

from gpu_operator import console
from gpu_operator.cluster import KubectlClient
from gpu_operator.config import OperatorConfig
from gpu_operator.constants import COMMON_GPU_LABEL_KEY
from gpu_operator.nodes import (
    gpu_common_label_missing,
    gpu_common_label_outdated,
    has_gpu_labels,
    label_gpu_nodes,
)
from gpu_operator.utils import require_command

app = typer.Typer(help="Inspect and fix GPU node labels.")


@app.command()
def check() -> None:
    """Show each node's GPU evidence and the label action it needs."""
    require_command("kubectl")
    client = KubectlClient(timeout=OperatorConfig().kubectl_timeout_seconds)

    table = Table(title="GPU node labels")
    table.add_column("Node")
    table.add_column("NFD GPU")
    table.add_column(COMMON_GPU_LABEL_KEY)
    table.add_column("Action")
    for node in client.list_nodes():
        if gpu_common_label_missing(node.labels):
            action = "[yellow]set true[/yellow]"
        elif gpu_common_label_outdated(node.labels):
            action = "[yellow]reset false[/yellow]"
        else:
            action = "[green]none[/green]"
        table.add_row(
            node.name,
            "yes" if has_gpu_labels(node.labels) else "no",
            node.labels.get(COMMON_GPU_LABEL_KEY, "-"),
            action,
        )
    console.print(table)


@app.command()
def label() -> None:
    """Set or reset nvidia.com/gpu.present on every node that needs it."""
    require_command("kubectl")
    client = KubectlClient(timeout=OperatorConfig().kubectl_timeout_seconds)

    console.print(Panel.fit("Labelling GPU nodes", style="bold blue"))
    result = label_gpu_nodes(client)
    for name in result.labelled:
        console.print(f"[green]✓ {name}: {COMMON_GPU_LABEL_KEY}=true[/green]")
    for name in result.reset:
        console.print(f"[yellow]✓ {name}: {COMMON_GPU_LABEL_KEY}=false[/yellow]")
    console.print(f"[green]✅ {len(result.labelled) + len(result.reset)} node(s) updated[/green]")
