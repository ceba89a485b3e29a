from __future__ import annotations

from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.table import Table

from offline_sync.domain.models import Donation, SyncStatus


def _status_style(status: SyncStatus | str) -> str:
    return "green" if SyncStatus(status) is SyncStatus.SYNCED else "yellow"


def print_status(status: Dict[str, Any], console: Optional[Console] = None) -> None:
    """Render local sync counts and reachability."""
    console = console or Console()
    table = Table(title="Offline Sync Status", box=box.ROUNDED, show_header=False)
    table.add_column("Key", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")

    online = status.get("online")
    table.add_row("Pending", f"[yellow]{status.get('pending', 0):,}[/yellow]")
    table.add_row("Synced", f"[green]{status.get('synced', 0):,}[/green]")
    table.add_row("Total", f"{status.get('total', 0):,}")
    table.add_row("Remote", "[green]reachable[/green]" if online else "[red]offline[/red]")
    if status.get("sync_in_progress"):
        table.add_row("Sync", "[blue]in progress[/blue]")
    console.print(table)


def print_records(records: List[Donation], console: Optional[Console] = None) -> None:
    """
    Render local donations, newest first as returned by the store.
    """
    console = console or Console()

    if not records:
        console.print("[yellow]No donations recorded.[/yellow]")
        return

    table = Table(
        title="Donations",
        box=box.ROUNDED,
        caption=f"{len(records)} records",
    )
    table.add_column("ID", justify="right", style="dim")
    table.add_column("Date", no_wrap=True)
    table.add_column("Donor", style="cyan")
    table.add_column("Amount", justify="right", style="magenta")
    table.add_column("Type")
    table.add_column("Book")
    table.add_column("Receipt")
    table.add_column("Status")

    for record in records:
        table.add_row(
            str(record.id),
            record.date,
            record.donor_name,
            f"{record.amount:,.2f}",
            record.type,
            "" if record.denomination is None else str(record.denomination),
            record.receipt_no,
            f"[{_status_style(record.sync_status)}]"
            f"{SyncStatus(record.sync_status).value}[/]",
        )

    console.print(table)


def print_report(title: str, report: Dict[str, Any], console: Optional[Console] = None) -> None:
    """Render a push or restore report as a two-column table."""
    console = console or Console()
    table = Table(title=title, box=box.ROUNDED, show_header=False)
    table.add_column("Field", style="cyan", no_wrap=True)
    table.add_column("Value", justify="right")

    for key, value in report.items():
        if key == "profile" or value is None:
            continue
        if key == "peak_rss_bytes":
            table.add_row("peak memory (MB)", f"{value / (1024 * 1024):.2f}")
            continue
        if isinstance(value, bool):
            rendered = "[green]yes[/green]" if value else "[red]no[/red]"
        elif isinstance(value, float):
            rendered = f"{value:.3f}"
        else:
            rendered = str(value)
        table.add_row(key.replace("_", " "), rendered)

    console.print(table)
