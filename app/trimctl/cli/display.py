"""Rendering helpers for trimctl CLI output."""

from rich.table import Table

from trimctl.core.runner import TrimPlan
from trimctl.core.trim import TrimSummary
from trimctl.providers.online import OnlineFreeSpaceProvider


def create_plan_table(plan: TrimPlan) -> Table:
    """Create a table describing a TRIM plan.

    Args:
        plan: The validated plan.

    Returns:
        Rich Table with one row per plan attribute.
    """
    table = Table(
        title="TRIM Plan",
        show_header=False,
        header_style="bold header",
        border_style="border",
    )
    table.add_column("Key", style="muted", no_wrap=True)
    table.add_column("Value", style="text")

    table.add_row("Target", plan.target.path)
    table.add_row("Mode", plan.mode.value)
    table.add_row("Filesystem", plan.mount_status)
    table.add_row("Filesystem device", plan.device.fs_device)
    table.add_row("Raw device", plan.device.raw_device)
    table.add_row("Free space from", plan.provider.describe())
    table.add_row("Offset", f"{plan.device.offset} sectors")
    table.add_row("TRIM supported", "yes" if plan.device.trim_supported else "[warning]no[/]")

    provider = plan.provider
    if isinstance(provider, OnlineFreeSpaceProvider) and provider.plan is not None:
        table.add_row("Free space", f"{provider.plan.free_kb} KB")
        table.add_row("Reserved", f"{provider.plan.reserved_kb} KB")
        table.add_row("Temporary file", f"{provider.tmpfile} ({provider.plan.allocate_kb} KB)")

    table.add_row(
        "Run",
        "[destructive]commit[/]" if plan.commit else "[dry_run]dry-run[/]",
    )
    return table


def format_summary(summary: TrimSummary) -> str:
    """Format the totals of a TRIM phase as one line."""
    prefix = "(DRY-RUN) " if summary.dry_run else ""
    return (
        f"{prefix}{summary.batches} TRIM command(s), {summary.ranges} ranges, "
        f"{summary.sectors} sectors ({summary.megabytes} MB)"
    )
