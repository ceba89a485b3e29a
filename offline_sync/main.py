from __future__ import annotations

import sys
from datetime import date
from typing import Optional

import typer

from offline_sync.config import get_settings
from offline_sync.domain.models import NewDonation
from offline_sync.infrastructure.local_store import LocalStore
from offline_sync.orchestrator import PushScheduler, SyncService
from offline_sync.reporter import print_records, print_report, print_status
from offline_sync.utils.logging import configure_logging

app = typer.Typer(help="Offline-first donation sync CLI.")


def _service() -> SyncService:
    settings = get_settings()
    configure_logging()
    return SyncService.from_settings(settings)


def _local() -> LocalStore:
    """Local store only, for commands that never touch the network."""
    settings = get_settings()
    configure_logging()
    return LocalStore(settings.local_db_path, timeout=settings.local_db_timeout_seconds)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    settings = get_settings()
    typer.echo(
        f"local={settings.local_db_path} | "
        f"remote={settings.remote_db_user}@{settings.remote_db_host}:{settings.remote_db_port}"
        f"/{settings.remote_db_name}.{settings.remote_table} | "
        f"page_size={settings.restore_page_size} push_interval={settings.push_interval_seconds}s"
    )


@app.command()
def init(
    remote: bool = typer.Option(
        False, "--remote", help="Also create the remote table if it does not exist."
    ),
) -> None:
    """
    Create (or migrate) the local schema.
    """
    with _local() as local:
        typer.echo(f"Local store ready at {local.db_path}")
    if remote:
        with _service() as service:
            service.remote.ensure_schema()
        typer.echo("Remote table ready.")


@app.command()
def add(
    donor_name: str = typer.Argument(..., help="Donor name."),
    amount: float = typer.Argument(..., help="Donated amount."),
    on: Optional[str] = typer.Option(
        None, "--date", "-d", help="Business date (YYYY-MM-DD); defaults to today."
    ),
    kind: str = typer.Option("CREDIT", "--type", "-t", help="Donation type."),
    denomination: Optional[int] = typer.Option(None, "--book", "-b", help="Book type."),
    sl_no: str = typer.Option("", "--sl-no", help="Serial number."),
    receipt_no: str = typer.Option("", "--receipt-no", help="Receipt number."),
    phone: str = typer.Option("", "--phone", help="Contact number."),
) -> None:
    """
    Record a donation locally; it stays pending until pushed.
    """
    with _local() as local:
        created = local.create(
            NewDonation(
                date=on or date.today().isoformat(),
                donor_name=donor_name,
                amount=amount,
                type=kind,
                denomination=denomination,
                sl_no=sl_no,
                receipt_no=receipt_no,
                phone=phone,
            )
        )
    typer.echo(f"Recorded donation #{created.id} ({created.uuid}), pending sync.")


@app.command("list")
def list_records() -> None:
    """
    List local donations, newest first.
    """
    with _local() as local:
        print_records(local.list_all())


@app.command()
def delete(local_id: int = typer.Argument(..., help="Local record id.")) -> None:
    """
    Delete a donation locally (not propagated to the remote store).
    """
    with _local() as local:
        removed = local.delete(local_id)
    if not removed:
        typer.echo(f"No donation #{local_id}.", err=True)
        raise typer.Exit(code=1)
    typer.echo(f"Deleted donation #{local_id}.")


@app.command()
def status() -> None:
    """
    Show pending/synced counts and remote reachability.
    """
    with _service() as service:
        print_status(service.status())


@app.command()
def push() -> None:
    """
    Push pending donations to the remote store.
    """
    with _service() as service:
        report = service.run_push()
    print_report("Push", report)
    if report["error"]:
        raise typer.Exit(code=1)


@app.command()
def restore() -> None:
    """
    Restore donations missing locally from the remote store.
    """
    with _service() as service:
        report = service.run_restore()
    print_report("Restore", report)
    typer.echo(report["message"])
    if not report["success"]:
        raise typer.Exit(code=1)


@app.command()
def watch(
    interval: Optional[float] = typer.Option(
        None, "--interval", "-i", help="Seconds between pushes (default from settings)."
    ),
) -> None:
    """
    Keep pushing pending donations until interrupted.
    """
    with _service() as service:
        scheduler = PushScheduler(service, interval=interval)
        scheduler.start()
        typer.echo(f"Watching (interval={scheduler.interval}s). Press Ctrl+C to stop.")
        try:
            scheduler.wait()
        finally:
            scheduler.stop()


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
