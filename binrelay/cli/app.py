"""Main Typer application: imports and registers all CLI commands.

Entry point: ``binrelay`` (configured via pyproject.toml project.scripts).
"""

from __future__ import annotations

import typer
from rich.console import Console
from rich.markup import escape

from binrelay.cli.commands.fingerprint_cmd import fingerprint_cmd
from binrelay.cli.commands.mapping_cmd import mapping_cmd
from binrelay.cli.commands.plan_cmd import plan_cmd
from binrelay.cli.commands.publish import publish_cmd
from binrelay.cli.context import configure_logging, load_config
from binrelay.errors import ConfigurationError

app = typer.Typer(
    name="binrelay",
    help="binrelay: publish multi-platform binaries, reusing unchanged builds.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

console = Console()


@app.callback()
def main_callback(
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-v",
        help="Log at DEBUG level.",
    ),
) -> None:
    """Configure logging before any command runs."""
    try:
        config = load_config()
    except ConfigurationError as exc:
        console.print(f"[bold red]Configuration error:[/bold red] {escape(str(exc))}")
        raise typer.Exit(code=1)
    configure_logging("DEBUG" if verbose else config.log_level)


# Register subcommands
app.command(name="fingerprint", help="Print the content hash of the build inputs.")(fingerprint_cmd)
app.command(name="plan", help="Show whether the next release builds or reuses.")(plan_cmd)
app.command(name="publish", help="Publish a release to the object store.")(publish_cmd)
app.command(name="mapping", help="Show the binary map.")(mapping_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
