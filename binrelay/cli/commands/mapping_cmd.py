"""``binrelay mapping``: show the stored binary map, optionally verified."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.markup import escape

from binrelay.cli.context import load_config
from binrelay.cli.render import ReleaseRenderer
from binrelay.core.binary_map import GlobalBinaryMap
from binrelay.core.object_store import build_object_store
from binrelay.errors import BinrelayError
from binrelay.models.platforms import PlatformTarget

console = Console()


def mapping_cmd(
    verify: bool = typer.Option(
        False,
        "--verify",
        help="Check that every mapped object exists.",
    ),
    local_store: Path = typer.Option(
        None,
        "--local-store",
        help="Use a local directory as the object store.",
    ),
) -> None:
    """Show which version folder serves each platform."""
    try:
        config = load_config(local_store=local_store)
        binary_map = GlobalBinaryMap(build_object_store(config), config.artifact_prefix)
        mapping = binary_map.load()
        verified = None
        if verify:
            verified = {}
            for key, version in mapping.binary_sources.items():
                try:
                    platform = PlatformTarget(key)
                except ValueError:
                    verified[key] = False
                    continue
                verified[key] = binary_map.verify(platform, version)
    except BinrelayError as exc:
        console.print(f"[bold red]Mapping lookup failed:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)

    ReleaseRenderer(console).print_mapping(mapping, verified)
    if verified is not None and not all(verified.values()):
        raise typer.Exit(code=1)
