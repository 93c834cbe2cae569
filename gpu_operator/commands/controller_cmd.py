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

"""Controller subcommands (run, reconcile)."""

from __future__ import annotations

import typer
from rich.panel import Panel

from gpu_operator import console
from gpu_operator.cluster import KubectlClient
from gpu_operator.config import OperatorConfig
from gpu_operator.controller import Reconciler
from gpu_operator.models import NamespacedName
from gpu_operator.runner import Runner
from gpu_operator.utils import require_command

app = typer.Typer(help="Run the ClusterPolicy controller.")


def _resolve_config(assets_dir: str | None, namespace: str | None) -> OperatorConfig:
    cfg = OperatorConfig()
    overrides: dict = {}
    if assets_dir is not None:
        overrides["assets_dir"] = assets_dir
    if namespace is not None:
        overrides["namespace"] = namespace
    if overrides:
        cfg = cfg.model_copy(update=overrides)
    return cfg


@app.command()
def run(
    assets_dir: str | None = typer.Option(None, "--assets-dir", help="Component manifest root directory"),
    namespace: str | None = typer.Option(None, "--namespace", help="Namespace for operands"),
) -> None:
    """Watch ClusterPolicies and nodes, reconciling until interrupted."""
    require_command("kubectl")
    cfg = _resolve_config(assets_dir, namespace)
    client = KubectlClient(timeout=cfg.kubectl_timeout_seconds)

    console.print(Panel.fit("Starting ClusterPolicy controller", style="bold blue"))
    console.print(f"[yellow]Assets: {cfg.assets_dir}  Namespace: {cfg.namespace}[/yellow]")
    runner = Runner(client, Reconciler.from_config(client, cfg), cfg)
    try:
        runner.run()
    except KeyboardInterrupt:
        console.print("[yellow]Controller stopped[/yellow]")


@app.command()
def reconcile(
    name: str = typer.Option(..., "--name", help="ClusterPolicy name"),
    assets_dir: str | None = typer.Option(None, "--assets-dir", help="Component manifest root directory"),
    namespace: str | None = typer.Option(None, "--namespace", help="Namespace for operands"),
) -> None:
    """Run a single reconcile pass for one ClusterPolicy."""
    require_command("kubectl")
    cfg = _resolve_config(assets_dir, namespace)
    client = KubectlClient(timeout=cfg.kubectl_timeout_seconds)

    console.print(Panel.fit(f"Reconciling ClusterPolicy {name}", style="bold blue"))
    result = Reconciler.from_config(client, cfg).reconcile(NamespacedName(name))
    if result.error is not None:
        console.print(f"[red]✗ {result.error}[/red]")
    if result.requeue:
        console.print(f"[yellow]⚠️  Not ready yet, retry in {result.requeue_after:.0f}s[/yellow]")
        raise typer.Exit(code=2)
    console.print("[green]✅ ClusterPolicy reconciled[/green]")
