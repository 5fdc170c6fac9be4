"""``binrelay plan``: show whether the next release builds or reuses.

CI runs this before compiling: when every platform is reused there is
nothing to build.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from binrelay.cli.context import load_config
from binrelay.cli.render import ReleaseRenderer
from binrelay.core.publisher import ReleasePublisher
from binrelay.errors import BinrelayError

console = Console()


def plan_cmd(
    force_reuse: bool = typer.Option(
        False,
        "--force-reuse",
        help="Reuse the latest release's binaries (no build inputs changed).",
    ),
    json_output: bool = typer.Option(
        False,
        "--json",
        help="Print the plan as JSON.",
    ),
    root: Path = typer.Option(
        None,
        "--root",
        "-r",
        help="Project root.",
    ),
    local_store: Path = typer.Option(
        None,
        "--local-store",
        help="Use a local directory as the object store.",
    ),
) -> None:
    """Resolve the release plan without writing anything."""
    try:
        config = load_config(project_root=root, local_store=local_store)
        plan = ReleasePublisher.from_config(config).plan(force_reuse=force_reuse)
    except BinrelayError as exc:
        console.print(f"[bold red]Plan failed:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    if json_output:
        typer.echo(plan.model_dump_json(indent=2))
    else:
        ReleaseRenderer(console).print_plan(plan)
