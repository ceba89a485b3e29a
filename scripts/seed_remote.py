"""
Seed the remote store with synthetic donations.

Generates deterministic pseudo-random rows in the remote shape and upserts
them in batches, so restore can be exercised against a realistic data set
(e.g. several pages of `RESTORE_PAGE_SIZE`). Re-running with the same seed
upserts the same uuids and adds nothing.
"""

from __future__ import annotations

import random
import sys
import time
import uuid
from datetime import date, timedelta
from typing import Iterator, List

import typer

from offline_sync.config import get_settings
from offline_sync.domain.models import RemoteDonation
from offline_sync.infrastructure.remote_store import PostgresRemoteStore
from offline_sync.utils.logging import configure_logging

app = typer.Typer(help="Generate synthetic donations and upsert them into the remote store.")

DONORS = ["Anand", "Bhavana", "Chitra", "Devi", "Eshwar", "Farida", "Gopal", "Hema"]
TYPES = ["CREDIT", "CASH", "UPI", "CHEQUE"]
BOOK_TYPES = ["1", "2", "5", "10", "100"]


def _generate_rows(rows: int, seed: int, start: date) -> Iterator[RemoteDonation]:
    rng = random.Random(seed)
    for i in range(rows):
        yield RemoteDonation(
            uuid=str(uuid.UUID(int=rng.getrandbits(128), version=4)),
            donation_date=(start - timedelta(days=rng.randint(0, 365))).isoformat(),
            narration=rng.choice(DONORS),
            amount=round(rng.uniform(10, 10_000), 2),
            type=rng.choice(TYPES),
            book_type=rng.choice(BOOK_TYPES),
            sl_no=f"SL-{i + 1:06d}",
            receipt_no=f"R-{rng.randint(1, 999_999):06d}" if rng.random() > 0.1 else None,
            phone=f"9{rng.randint(100_000_000, 999_999_999)}" if rng.random() > 0.5 else None,
        )


def _batched(items: Iterator[RemoteDonation], batch_size: int) -> Iterator[List[RemoteDonation]]:
    buffer: List[RemoteDonation] = []
    for item in items:
        buffer.append(item)
        if len(buffer) >= batch_size:
            yield buffer
            buffer = []
    if buffer:
        yield buffer


@app.command()
def main(
    rows: int = typer.Option(2_500, "--rows", "-r", help="Number of donations to generate."),
    batch_size: int = typer.Option(500, "--batch-size", "-b", help="Rows per upsert batch."),
    seed: int = typer.Option(42, "--seed", help="Deterministic RNG seed."),
    dsn: str | None = typer.Option(None, "--dsn", help="Optional DSN override for Postgres."),
) -> None:
    """
    Generate synthetic donations and upsert them into the remote table.
    """
    settings = get_settings()
    configure_logging()
    start = time.perf_counter()

    typer.echo(f"Seeding {rows:,} donations (batch={batch_size}, seed={seed})")
    loaded = 0
    with PostgresRemoteStore(dsn=dsn, settings=settings) as remote:
        remote.ensure_schema()
        for batch in _batched(_generate_rows(rows, seed, date.today()), batch_size):
            remote.upsert(batch)
            loaded += len(batch)
        total = remote.count()

    duration = time.perf_counter() - start
    typer.echo(
        f"Upserted {loaded:,} rows in {duration:.2f}s; remote table now holds {total:,} rows."
    )


if __name__ == "__main__":
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)
