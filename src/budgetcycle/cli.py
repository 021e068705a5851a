"""Command-line entry points for BudgetCycle."""

from __future__ import annotations

import signal
import time
from datetime import date

import click

from .config import resolve_config
from .context import AppContext, create_app_context
from .errors import RecordNotFoundError
from .logging_config import setup_logging
from .scheduler import create_scheduler
from .services import budgeting, carried_debt, contributions, history, ledger_service, settlement
from .services.markers import strip_markers
from .services.period import Cadence


def _money(amount: float) -> str:
    sign = "-" if amount < 0 else ""
    return f"{sign}${abs(amount):,.2f}"


@click.group()
@click.option("--user", "username", default="local", show_default=True, help="Profile to act as")
@click.option(
    "--env",
    "env_name",
    envvar="BUDGETCYCLE_ENV",
    default="default",
    show_default=True,
    help="Configuration to load: default, development or test",
)
@click.pass_context
def cli(ctx: click.Context, username: str, env_name: str) -> None:
    """Budget envelopes, carried debt, goals, and group settle-up."""

    if isinstance(ctx.obj, AppContext):
        return
    config = resolve_config(env_name)()
    setup_logging(config)
    ctx.obj = create_app_context(config, username=username)


@cli.command("init-db")
@click.pass_obj
def init_db(app: AppContext) -> None:
    """Create the database schema (idempotent)."""

    click.echo(f"Database ready: {app.config.DATABASE_URL}")


@cli.command("catch-up")
@click.pass_obj
def catch_up(app: AppContext) -> None:
    """Collect leftovers and apply goal contributions due this cycle."""

    report = contributions.run_recurring(
        budget_repo=app.budget_repo,
        transaction_repo=app.transaction_repo,
        goal_repo=app.goal_repo,
        user_id=app.require_user_id(),
    )
    if report.leftovers.goal_id is None:
        click.echo("No goal collects leftovers.")
    else:
        click.echo(
            f"Leftovers collected: {_money(report.leftovers.collected)} "
            f"from {len(report.leftovers.budgets_advanced)} budget(s)"
        )
    click.echo(f"Goals credited: {len(report.contributed_goal_ids)}")


@cli.command("debt")
@click.argument("budget_id", type=int)
@click.pass_obj
def debt(app: AppContext, budget_id: int) -> None:
    """Show the debt carried into a budget's current cycle."""

    budget = app.budget_repo.get_by_id(budget_id, user_id=app.require_user_id())
    if budget is None:
        raise click.ClickException(f"Budget {budget_id} not found")
    if budget.is_fixed_commitment:
        click.echo(f"{budget.name}: fixed commitment, no carried debt")
        return
    rows = app.transaction_repo.list_for_budget(budget_id)
    click.echo(f"{budget.name}: carried debt {_money(carried_debt.carried_debt(budget, rows))}")


@cli.command("transfer")
@click.argument("from_budget_id", type=int)
@click.argument("to_budget_id", type=int)
@click.argument("amount", type=float)
@click.option("--note", default="", help="Note for both legs")
@click.pass_obj
def transfer(app: AppContext, from_budget_id: int, to_budget_id: int, amount: float, note: str) -> None:
    """Move spending room from one budget to another."""

    try:
        result = ledger_service.transfer_between_budgets(
            budget_repo=app.budget_repo,
            transaction_repo=app.transaction_repo,
            from_budget_id=from_budget_id,
            to_budget_id=to_budget_id,
            amount=amount,
            user_id=app.require_user_id(),
            note=note,
            write_note_markers=app.config.WRITE_NOTE_MARKERS,
        )
    except (RecordNotFoundError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(f"Transferred {_money(result.outgoing.amount)} (ref {result.token})")


@cli.command("reset")
@click.argument("budget_id", type=int)
@click.option("--note", default="Debt cleared", show_default=True)
@click.pass_obj
def reset(app: AppContext, budget_id: int, note: str) -> None:
    """Forgive all debt a budget has carried so far."""

    budget = app.budget_repo.get_by_id(budget_id, user_id=app.require_user_id())
    if budget is None:
        raise click.ClickException(f"Budget {budget_id} not found")
    ledger_service.reset_debt(
        app.transaction_repo,
        budget_id=budget_id,
        user_id=app.require_user_id(),
        note=note,
        write_note_markers=app.config.WRITE_NOTE_MARKERS,
    )
    click.echo(f"{budget.name}: debt reset")


@cli.command("history")
@click.option(
    "--cadence",
    type=click.Choice([c.value for c in Cadence]),
    default=Cadence.FORTNIGHTLY.value,
    show_default=True,
)
@click.option(
    "--ref", "reference", type=click.DateTime(formats=["%Y-%m-%d"]), help="Day inside the cycle (default today)"
)
@click.option("--anchor", type=click.DateTime(formats=["%Y-%m-%d"]), help="Day the cycles renew on")
@click.option("--back", type=click.IntRange(min=0), default=0, show_default=True, help="Cycles to step back")
@click.pass_obj
def history_cmd(app: AppContext, cadence: str, reference, anchor, back: int) -> None:
    """Spend and transactions of one cycle, past or present."""

    ref_day = reference.date() if reference else date.today()
    anchor_day = anchor.date() if anchor else None
    if back:
        ref_day = history.shift_reference(cadence, ref_day, -back, anchor=anchor_day)

    report = history.cycle_history(
        budget_repo=app.budget_repo,
        transaction_repo=app.transaction_repo,
        user_id=app.require_user_id(),
        cadence=cadence,
        reference=ref_day,
        anchor=anchor_day,
    )
    click.echo(
        f"{report.cadence} cycle {report.window.start.date().isoformat()} "
        f"to {report.window.end.date().isoformat()}"
    )
    names = {b.id: b.name for b in report.budgets}
    for budget in report.budgets:
        spent = report.spent_by_budget.get(budget.id, 0.0)
        if budget.is_fixed_commitment:
            click.echo(f"  {budget.name}: committed {_money(budget.goal_amount)}, spent {_money(spent)}")
        else:
            click.echo(f"  {budget.name}: spent {_money(spent)} of {_money(budget.goal_amount)}")
    if not report.transactions:
        click.echo("No transactions in this cycle.")
    for txn in report.transactions:
        click.echo(
            f"  {txn.occurred_at:%Y-%m-%d %H:%M} {names.get(txn.budget_id, '?')} "
            f"{_money(txn.amount)} {strip_markers(txn.note)}".rstrip()
        )
    click.echo(
        f"Budgeted {_money(report.total_budget)}, spent {_money(report.total_spent)}, "
        f"remaining {_money(report.total_remaining)}, fixed {_money(report.total_fixed)}"
    )


@cli.command("snapshot")
@click.pass_obj
def snapshot(app: AppContext) -> None:
    """Remaining balance of every budget this cycle."""

    snapshots = budgeting.load_snapshots(
        budget_repo=app.budget_repo,
        transaction_repo=app.transaction_repo,
        user_id=app.require_user_id(),
    )
    if not snapshots:
        click.echo("No budgets yet.")
        return
    for snap in snapshots:
        if snap.fixed_commitment:
            click.echo(f"{snap.name} [{snap.cadence}] committed {_money(snap.goal_amount)}")
            continue
        line = (
            f"{snap.name} [{snap.label}] spent {_money(snap.spent)} "
            f"of {_money(snap.goal_amount)}, remaining {_money(snap.remaining)}"
        )
        if snap.in_debt:
            line += f" (debt {_money(snap.carried_debt)})"
        click.echo(line)


@cli.command("settle-plan")
@click.argument("group_id", type=int)
@click.pass_obj
def settle_plan(app: AppContext, group_id: int) -> None:
    """Balances and suggested transfers for a group."""

    try:
        summary = settlement.summarize_group(
            group_repo=app.group_repo, group_id=group_id, tolerance=app.config.SHARE_TOLERANCE
        )
    except RecordNotFoundError as exc:
        raise click.ClickException(str(exc)) from exc

    names = {b.member_id: b.name for b in summary.balances}
    for balance in summary.balances:
        click.echo(f"{balance.name}: {_money(balance.balance)}")
    for warning in summary.warnings:
        click.echo(
            f"Warning: expense {warning.expense_id} shares total {_money(warning.share_total)} "
            f"of {_money(warning.expense_amount)}",
            err=True,
        )
    if not summary.transfers:
        click.echo("All settled up.")
        return
    for transfer in summary.transfers:
        click.echo(
            f"{names[transfer.from_member_id]} -> {names[transfer.to_member_id]}: "
            f"{_money(transfer.amount)}"
        )


def _interrupt(signum, frame) -> None:
    raise KeyboardInterrupt


@cli.command("schedule")
@click.pass_obj
def schedule(app: AppContext) -> None:
    """Run the recurring catch-up in the background until interrupted."""

    scheduler = create_scheduler(app, auto_start=True)
    click.echo(f"Catch-up every {app.config.CATCH_UP_MINUTES} minute(s). Ctrl+C to stop.")
    signal.signal(signal.SIGTERM, _interrupt)
    try:
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        pass
    finally:
        scheduler.stop()


def main() -> None:
    cli(prog_name="budgetcycle")


if __name__ == "__main__":  # pragma: no cover
    main()
