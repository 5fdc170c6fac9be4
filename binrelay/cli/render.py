"""Rich terminal rendering for plans, publish reports and the binary map.

Color scheme
------------
- green   : newly uploaded / verified
- cyan    : reused
- yellow  : repaired from history
- red     : fallback (unverified)
"""

from __future__ import annotations

from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from binrelay.models.plan import (
    AuthoritySource,
    PlanAction,
    PublishReport,
    ResolutionPlan,
)
from binrelay.models.release import GlobalBinaryMapping

_ACTION_LABELS: dict[PlanAction, str] = {
    PlanAction.BUILD: "[green]build[/green]",
    PlanAction.REUSE: "[cyan]reuse[/cyan]",
}

_SOURCE_LABELS: dict[AuthoritySource, str] = {
    AuthoritySource.UPLOADED: "[green]uploaded[/green]",
    AuthoritySource.VERIFIED_CLAIM: "[green]verified[/green]",
    AuthoritySource.REPAIRED: "[yellow]repaired[/yellow]",
    AuthoritySource.FALLBACK: "[bold red]fallback[/bold red]",
}


class ReleaseRenderer:
    """Prints pipeline results to a Rich console."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def print_plan(self, plan: ResolutionPlan) -> None:
        table = Table(title="Release Plan")
        table.add_column("Platform", style="cyan")
        table.add_column("Action", justify="center")
        table.add_column("Reuse From")
        for decision in plan.decisions:
            table.add_row(
                decision.platform.value,
                _ACTION_LABELS[decision.action],
                f"v{decision.reuse_from}" if decision.reuse_from else "-",
            )
        self.console.print(table)
        reason = plan.reuse_reason.value if plan.reuse_reason else "content changed"
        self.console.print(
            f"[bold]Content hash:[/bold] {plan.content_hash}  |  [bold]Reason:[/bold] {reason}"
        )

    def print_report(self, report: PublishReport) -> None:
        table = Table(title=f"Release v{report.version}")
        table.add_column("Platform", style="cyan")
        table.add_column("Source Version", style="green")
        table.add_column("Resolution", justify="center")
        table.add_column("URL", overflow="fold")
        binaries = report.outcome.metadata.binaries
        for resolution in report.outcome.resolutions:
            ref = binaries[resolution.platform.value]
            table.add_row(
                resolution.platform.value,
                f"v{resolution.version}",
                _SOURCE_LABELS[resolution.source],
                ref.url,
            )
        self.console.print(table)

        if report.dry_run:
            status = "[bold yellow]Dry run: nothing was written.[/bold yellow]"
        elif report.plan.requires_build:
            status = f"[bold green]Uploaded {len(report.uploaded_keys)} new binaries.[/bold green]"
        else:
            status = "[bold green]All binaries reused.[/bold green]"

        lines = [
            status,
            "",
            f"[bold]Content hash:[/bold] {report.plan.content_hash[:8]}...",
            f"[bold]Repaired:[/bold]     {len(report.outcome.repaired)}",
            f"[bold]Fallbacks:[/bold]    {len(report.outcome.fallbacks)}",
        ]
        if not report.dry_run:
            mirrored = "yes" if report.install_script_mirrored else "no"
            lines.append(f"[bold]install.sh:[/bold]   {mirrored}")
        border = "yellow" if report.outcome.fallbacks else "green"
        self.console.print(
            Panel("\n".join(lines), title="[bold]Publish[/bold]", border_style=border, padding=(1, 2))
        )

    def print_mapping(
        self,
        mapping: GlobalBinaryMapping,
        verified: dict[str, bool] | None = None,
    ) -> None:
        if mapping.is_empty:
            self.console.print("[dim]Binary map is empty.[/dim]")
            return
        table = Table(title="Binary Map")
        table.add_column("Platform", style="cyan")
        table.add_column("Version", style="green")
        if verified is not None:
            table.add_column("Exists", justify="center")
        for platform, version in sorted(mapping.binary_sources.items()):
            row = [platform, f"v{version}"]
            if verified is not None:
                row.append("[green]Yes[/green]" if verified.get(platform) else "[red]No[/red]")
            table.add_row(*row)
        self.console.print(table)
        updated = mapping.last_updated.isoformat() if mapping.last_updated else "never"
        self.console.print(
            f"[bold]Latest:[/bold] v{mapping.latest_version}  |  [bold]Updated:[/bold] {updated}"
        )
