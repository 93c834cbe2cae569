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

"""Manifest subcommands (list)."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.table import Table

from gpu_operator import console
from gpu_operator.config import OperatorConfig
from gpu_operator.constants import COMPONENT_ORDER
from gpu_operator.manifests import load_manifests

app = typer.Typer(help="Inspect component manifests.")


@app.command("list")
def list_components(
    assets_dir: str | None = typer.Option(None, "--assets-dir", help="Component manifest root directory"),
    openshift: str = typer.Option("", "--openshift", help="Pretend to run on this OpenShift version"),
) -> None:
    """Load every component in install order and list its installers."""
    root = Path(assets_dir) if assets_dir is not None else OperatorConfig().assets_dir

    table = Table(title=f"Components in {root}")
    table.add_column("#", justify="right")
    table.add_column("Component")
    table.add_column("Installers")
    for idx, name in enumerate(COMPONENT_ORDER):
        installers, _ = load_manifests(root / name, openshift)
        table.add_row(str(idx), name, ", ".join(f"{i.kind}/{i.name}" for i in installers) or "-")
    console.print(table)
