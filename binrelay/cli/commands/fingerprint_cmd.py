"""``binrelay fingerprint``: print the content hash of the build inputs."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from binrelay.cli.context import load_config
from binrelay.core.fingerprint import Fingerprinter

console = Console()


def fingerprint_cmd(
    root: Path = typer.Option(
        None,
        "--root",
        "-r",
        help="Project root (defaults to BINRELAY_PROJECT_ROOT or the current directory).",
    ),
    list_files: bool = typer.Option(
        False,
        "--list",
        help="Also list every file that contributes to the hash.",
    ),
) -> None:
    """Compute the content fingerprint of the build-relevant files."""
    config = load_config(project_root=root)
    fingerprinter = Fingerprinter.from_config(config)

    if list_files:
        for rel_path in fingerprinter.files():
            console.print(f"[dim]{rel_path}[/dim]")
    typer.echo(fingerprinter.compute())
