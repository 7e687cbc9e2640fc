"""
Rent Reclaimer CLI
==================
Typer + Rich front end for the reclaim engine.

Commands:
    reclaimer cycle [--dry-run/--live]
    reclaimer sync
    reclaimer run
    reclaimer loop [--interval 60]
    reclaimer stats
    reclaimer accounts [--status PROBATION]
    reclaimer logs [--limit 20]
    reclaimer track <ADDRESS>
"""

import time
from dataclasses import dataclass
from typing import Optional

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from config.settings import Settings, load_reclaim_config
from reclaimer.modules.reclaim.config import ReclaimConfig
from reclaimer.modules.reclaim.errors import ReclaimError
from reclaimer.modules.reclaim.runner import ReclaimCycleRunner, run_scheduled
from reclaimer.modules.reclaim.summary import LAMPORTS_PER_SOL
from reclaimer.modules.sync.core import AccountSyncJob
from reclaimer.shared.execution.wallet import load_operator_keypair
from reclaimer.shared.infrastructure.rpc_client import ChainRpcClient
from reclaimer.shared.models.account import AccountStatus
from reclaimer.shared.system.database.core import DatabaseCore
from reclaimer.shared.system.database.repositories.account_repo import AccountRepository
from reclaimer.shared.system.database.repositories.event_log_repo import EventLogRepository
from reclaimer.utils.notifications import build_notifier

app = typer.Typer(
    name="reclaimer",
    help="Rent Reclaimer - close abandoned token accounts and recover their rent",
    add_completion=False,
    rich_markup_mode="rich",
)

console = Console()


@dataclass
class AppContext:
    config: ReclaimConfig
    accounts: AccountRepository
    events: EventLogRepository
    rpc: ChainRpcClient


def _build_context(dry_run: Optional[bool] = None) -> AppContext:
    """Validate config and open the store; exits on bad config."""
    try:
        config = load_reclaim_config()
    except ValidationError as e:
        console.print(f"[bold red]❌ Invalid configuration:[/bold red]\n{e}")
        raise typer.Exit(2)

    if dry_run is not None:
        config = config.model_copy(update={"dry_run": dry_run})

    db = DatabaseCore(Settings.DB_PATH)
    if not db.wait_for_connection():
        console.print(f"[bold red]❌ Database unavailable: {Settings.DB_PATH}[/bold red]")
        raise typer.Exit(1)
    accounts = AccountRepository(db)
    accounts.init_table()
    events = EventLogRepository(db)
    events.init_table()

    return AppContext(config=config, accounts=accounts, events=events, rpc=ChainRpcClient(Settings.RPC_URL))


def _load_operator():
    try:
        return load_operator_keypair()
    except ReclaimError as e:
        console.print(f"[bold red]❌ {e}[/bold red]")
        raise typer.Exit(1)


def _runner(ctx: AppContext) -> ReclaimCycleRunner:
    return ReclaimCycleRunner(
        ctx.accounts,
        ctx.rpc,
        ctx.config,
        notifier=build_notifier(ctx.config),
        event_log=ctx.events,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: CYCLE
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def cycle(
    dry_run: Optional[bool] = typer.Option(
        None,
        "--dry-run/--live",
        help="Override the configured dry-run mode",
    ),
):
    """
    Run one reclaim cycle over the due accounts.

    \b
    Examples:
        reclaimer cycle --dry-run
        reclaimer cycle --live
    """
    ctx = _build_context(dry_run)
    operator = _load_operator()

    mode = "[green]DRY RUN[/green]" if ctx.config.dry_run else "[bold red]LIVE[/bold red]"
    console.print(Panel.fit(
        f"[bold cyan]🧹 Reclaim Cycle[/bold cyan]\nMode: {mode} | Batch: {ctx.config.batch_size}",
        border_style="cyan",
    ))

    summary = _runner(ctx).run_cycle(operator)

    for line in summary.logs:
        console.print(f"  • {line}")
    console.print(
        f"\n[bold]Reclaimed:[/bold] {summary.reclaimed}  "
        f"[bold]Probation:[/bold] {summary.probation}  "
        f"[bold]Flagged:[/bold] {summary.flagged}  "
        f"[bold]Errors:[/bold] {summary.errors}  "
        f"[bold]Recovered:[/bold] {summary.recovered_sol:.4f} SOL\n"
    )


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: SYNC / RUN / LOOP
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def sync(
    limit: int = typer.Option(10, "--limit", help="Recent operator transactions to scan", min=1, max=1000),
):
    """Discover accounts created by the operator and start tracking them."""
    ctx = _build_context()
    operator = _load_operator()

    result = AccountSyncJob(ctx.accounts, ctx.rpc, history_limit=limit).sync(str(operator.pubkey()))
    console.print(
        f"[bold green]✅ Sync complete[/bold green]\n"
        f"Transactions scanned: {result['scanned']}\n"
        f"New accounts found: {result['added']}\n"
        f"Total accounts tracked: {ctx.accounts.count_all()}"
    )


def _heartbeat(ctx: AppContext, operator, runner: ReclaimCycleRunner, sync_job: AccountSyncJob, period: float):
    console.print(f"[cyan]⏰ Heartbeat every {period:.0f}s (Ctrl+C to stop)[/cyan]")
    try:
        while True:
            run_scheduled(runner, sync_job, operator, ctx.events)
            time.sleep(period)
    except KeyboardInterrupt:
        console.print("\n[yellow]Shutdown requested.[/yellow]")


@app.command()
def run():
    """
    One scheduled tick: sync, then a reclaim cycle.

    With RECLAIM_RUN_LOCAL=true the tick repeats on the heartbeat interval.
    """
    ctx = _build_context()
    operator = _load_operator()
    runner = _runner(ctx)
    sync_job = AccountSyncJob(ctx.accounts, ctx.rpc)

    if ctx.config.run_local:
        _heartbeat(ctx, operator, runner, sync_job, ctx.config.heartbeat_interval_s)
        return

    result = run_scheduled(runner, sync_job, operator, ctx.events)
    if result is None:
        raise typer.Exit(1)
    console.print(f"[bold green]✅ Run complete[/bold green] {result['sync']} | "
                  f"reclaimed {result['reclaim']['reclaimed']}")


@app.command()
def loop(
    interval: Optional[float] = typer.Option(
        None,
        "--interval",
        help="Seconds between ticks (default: configured heartbeat)",
        min=1.0,
    ),
):
    """Local heartbeat: repeat the scheduled tick until interrupted."""
    ctx = _build_context()
    operator = _load_operator()
    _heartbeat(
        ctx,
        operator,
        _runner(ctx),
        AccountSyncJob(ctx.accounts, ctx.rpc),
        interval or ctx.config.heartbeat_interval_s,
    )


# ═══════════════════════════════════════════════════════════════════════════════
# COMMAND: REPORTING
# ═══════════════════════════════════════════════════════════════════════════════

@app.command()
def stats():
    """Status breakdown and total recovered rent."""
    ctx = _build_context()
    s = ctx.accounts.get_statistics()

    console.print(Panel.fit(
        f"[bold]📊 Rent Reclaimer Statistics[/bold]\n"
        f"Total Accounts Tracked: {s['total']}\n\n"
        f"✅ Reclaimed: {s['reclaimed']}\n"
        f"⏳ Probation: {s['probation']}\n"
        f"🔍 Monitoring: {s['monitoring']}\n"
        f"💀 Marked for death: {s['marked_for_death']}\n"
        f"❌ Errors: {s['errors']}\n\n"
        f"💰 Total Recovered: {s['recovered_lamports'] / LAMPORTS_PER_SOL:.4f} SOL",
        border_style="green",
    ))


@app.command()
def accounts(
    status: Optional[AccountStatus] = typer.Option(None, "--status", help="Filter by status"),
    limit: int = typer.Option(50, "--limit", min=1, max=1000),
):
    """List tracked accounts."""
    ctx = _build_context()

    table = Table(title="Tracked Accounts")
    table.add_column("Address")
    table.add_column("Status")
    table.add_column("Balance (SOL)", justify="right")
    table.add_column("Signature / Error")

    for acc in ctx.accounts.list_accounts(status=status, limit=limit):
        table.add_row(
            acc.address,
            acc.status.value,
            f"{acc.balance_lamports / LAMPORTS_PER_SOL:.6f}",
            acc.reclaim_tx_signature or acc.error_log or "",
        )
    console.print(table)


@app.command()
def logs(limit: int = typer.Option(20, "--limit", min=1, max=500)):
    """Recent durable event log entries."""
    ctx = _build_context()
    for entry in ctx.events.recent(limit):
        ts = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime(entry["timestamp"] / 1000))
        console.print(f"[dim]{ts}[/dim] [{entry['level']}] {entry['message']} {entry['meta'] or ''}")


@app.command()
def track(address: str = typer.Argument(..., help="Account address to start monitoring")):
    """Manually add an address in MONITORING."""
    from solders.pubkey import Pubkey

    try:
        Pubkey.from_string(address)
    except ValueError:
        console.print(f"[bold red]❌ Not a valid address: {address}[/bold red]")
        raise typer.Exit(1)

    ctx = _build_context()
    if ctx.accounts.add_account(address, owner_program="manual"):
        console.print(f"[green]Tracking {address}[/green]")
    else:
        console.print(f"[yellow]{address} is already tracked[/yellow]")


def main():
    """Entry point for CLI."""
    app()


if __name__ == "__main__":
    main()
