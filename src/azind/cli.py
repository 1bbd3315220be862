import logging
from pathlib import Path

import click
from eth_utils import to_checksum_address
from rich.console import Console
from rich.progress import (
    BarColumn,
    MofNCompleteColumn,
    Progress,
    SpinnerColumn,
    TextColumn,
    TimeElapsedColumn,
    TimeRemainingColumn,
)
from rich.table import Table

from azind.core.config import ReplayConfig
from azind.core.errors import ReplayError
from azind.core.models import ZERO_ADDRESS

console = Console()

DEFAULT_DB = ReplayConfig().db_path


@click.group()
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
)
def cli(log_level: str) -> None:
    """azind: Azimuth point snapshot built by replaying captured contract logs."""
    logging.basicConfig(
        level=getattr(logging, log_level.upper()),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


db_option = click.option(
    "--db",
    "db_path",
    type=click.Path(dir_okay=False, path_type=Path),
    default=DEFAULT_DB,
    show_default=True,
    help="DuckDB database file",
)


@cli.command("init-db")
@db_option
def init_db_cmd(db_path: Path) -> None:
    """Create the event_logs and points tables."""
    from azind.storage.database import open_database

    try:
        with open_database(db_path):
            pass
    except ReplayError as e:
        raise click.ClickException(str(e)) from e
    console.print(f"[bold]initialized[/]: {db_path}")


@cli.command("import-logs")
@db_option
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False, path_type=Path))
def import_logs_cmd(db_path: Path, paths: tuple[Path, ...]) -> None:
    """Append eth_getLogs dumps (.jsonl or .parquet) to event_logs."""
    from azind.adapters.rpc_logs import load_rpc_logs
    from azind.storage.database import open_database
    from azind.storage.event_logs import EventLogRepository

    total = 0
    try:
        with open_database(db_path) as db:
            repo = EventLogRepository(db)
            for p in paths:
                entries = load_rpc_logs(p)
                # Keep the store's causal order independent of file order
                entries.sort(key=lambda e: e.key)
                n = repo.save_many(entries)
                total += n
                console.print(f"{p}: [green]{n}[/] logs")
    except (ValueError, ReplayError) as e:
        raise click.ClickException(str(e)) from e
    console.print(f"[bold]imported[/]: {total} logs")


@cli.command("replay")
@db_option
@click.option("--batch-size", type=int, default=500, show_default=True, help="Logs per transaction")
@click.option("--retries", type=int, default=3, show_default=True, help="Attempts on storage errors")
@click.option("--backoff", type=float, default=0.8, show_default=True, help="Seconds, multiplied by attempt")
@click.option("--threads", type=int, default=4, show_default=True)
@click.option("--memory-limit", type=str, default="2GB", show_default=True)
def replay_cmd(
    db_path: Path,
    batch_size: int,
    retries: int,
    backoff: float,
    threads: int,
    memory_limit: str,
) -> None:
    """Apply every unprocessed log to the point snapshot."""
    from azind.orchestration.orchestrator import replay_all
    from azind.storage.database import open_database
    from azind.storage.event_logs import EventLogRepository

    try:
        config = ReplayConfig(
            db_path=db_path,
            batch_size=batch_size,
            max_storage_retries=retries,
            retry_backoff_s=backoff,
            threads=threads,
            memory_limit=memory_limit,
        )
    except ValueError as e:
        raise click.BadParameter(str(e)) from e

    try:
        with open_database(db_path, threads=threads, memory_limit=memory_limit) as db:
            pending = EventLogRepository(db).count_unprocessed()
    except ReplayError as e:
        raise click.ClickException(str(e)) from e

    if pending == 0:
        console.print("[bold]nothing to replay[/]")
        return

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold]replaying logs[/]"),
        BarColumn(),
        MofNCompleteColumn(),
        TextColumn("•"),
        TimeElapsedColumn(),
        TextColumn("→"),
        TimeRemainingColumn(),
        transient=False,
        expand=True,
        console=console,
    )
    with progress:
        task = progress.add_task(description=str(db_path), total=pending)
        try:
            out = replay_all(config, on_batch=lambda n: progress.advance(task, n))
        except ReplayError as e:
            raise click.ClickException(f"replay halted: {e}") from e

    stats = out.stats
    console.print(
        f"[bold]summary[/]: "
        f"batches={stats.batches}  entries={stats.entries}  "
        f"[green]effects[/]={stats.effects_applied}  "
        f"[yellow]noops[/]={stats.noops}  attempts={out.attempts}"
    )
    for name, n in sorted(stats.rows_by_event.items()):
        console.print(f"  {name}: {n}")


def _fmt_address(addr: str) -> str:
    return "-" if addr == ZERO_ADDRESS else to_checksum_address(addr)


@cli.command("point")
@db_option
@click.argument("number")
def point_cmd(db_path: Path, number: str) -> None:
    """Show one point (decimal or 0x-hex number)."""
    from azind.storage.database import open_database
    from azind.storage.points import PointStore

    try:
        n = int(number, 0)
    except ValueError as e:
        raise click.BadParameter(f"not a number: {number}") from e

    try:
        with open_database(db_path) as db:
            p = PointStore(db).get(n)
    except ReplayError as e:
        raise click.ClickException(str(e)) from e
    if p is None:
        raise click.ClickException(f"point {n} not found")

    table = Table(title=f"point {p.azimuth_number} ({p.tier})", show_header=False)
    table.add_row("owner", _fmt_address(p.owner_address))
    table.add_row("spawn proxy", _fmt_address(p.spawn_address))
    table.add_row("transfer proxy", _fmt_address(p.transfer_address))
    table.add_row("management proxy", _fmt_address(p.management_address))
    table.add_row("voting proxy", _fmt_address(p.voting_address))
    table.add_row("active", str(p.is_active))
    table.add_row("sponsor", str(p.sponsor) if p.has_sponsor else "-")
    table.add_row("escape requested to", str(p.escape_requested_to) if p.is_escape_requested else "-")
    table.add_row("rift", str(p.rift))
    table.add_row("life", str(p.life))
    table.add_row("crypto suite", str(p.crypto_suite_version))
    table.add_row("encryption key", p.encryption_key)
    table.add_row("auth key", p.auth_key)
    console.print(table)


@cli.command("export-points")
@db_option
@click.argument("out", type=click.Path(dir_okay=False, path_type=Path))
def export_points_cmd(db_path: Path, out: Path) -> None:
    """Write the point snapshot to a Parquet file."""
    from azind.storage.database import open_database
    from azind.storage.points import PointStore

    try:
        with open_database(db_path) as db:
            df = PointStore(db).to_frame()
    except ReplayError as e:
        raise click.ClickException(str(e)) from e
    out.parent.mkdir(parents=True, exist_ok=True)
    df.to_parquet(out, engine="pyarrow", index=False)
    console.print(f"[bold]wrote[/] {len(df)} points → {out}")


@cli.command("catalog")
def catalog_cmd() -> None:
    """List cataloged events and their topic0 fingerprints."""
    from azind.decoding.catalog import build_catalog

    table = Table("event", "signature", "topic0")
    for entry in build_catalog().values():
        table.add_row(entry.name, entry.signature, entry.topic0)
    console.print(table)


if __name__ == "__main__":
    cli()
