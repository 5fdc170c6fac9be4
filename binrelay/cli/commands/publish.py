"""``binrelay publish VERSION``: publish a release to the object store.

Uploads fresh binaries from ``bin/`` when the build inputs changed,
otherwise reuses the previous release's objects, then writes the release
metadata, the binary map and the latest-version marker.
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


def publish_cmd(
    version: str = typer.Argument(
        ...,
        help="Version to publish, without the leading 'v'.",
    ),
    summary: str = typer.Option(
        None,
        "--summary",
        "-s",
        help="One-line release summary.",
    ),
    description: str = typer.Option(
        None,
        "--description",
        "-d",
        help="Longer release description.",
    ),
    force_reuse: bool = typer.Option(
        False,
        "--force-reuse",
        help="Reuse the latest release's binaries (no build inputs changed).",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        help="Resolve everything but write nothing.",
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
    """Publish VERSION, reusing unchanged binaries."""
    version = version.removeprefix("v")
    try:
        config = load_config(project_root=root, local_store=local_store)
        publisher = ReleasePublisher.from_config(config)
        report = publisher.publish(
            version,
            release_summary=summary,
            release_description=description,
            force_reuse=force_reuse,
            dry_run=dry_run,
        )
    except BinrelayError as exc:
        console.print(f"[bold red]Publish failed:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    console.print()
    ReleaseRenderer(console).print_report(report)
