"""Read-only commands: summary, performance, rankings, institutions.

USER may be omitted once ``demofolio seed USER --sign-in`` has stored one.
"""

from __future__ import annotations

import click

_TIMEFRAMES = ["D", "W", "M", "Y", "ALL", "day", "week", "month", "year", "all"]


@click.command()
@click.argument("user", required=False)
@click.pass_context
def summary(ctx: click.Context, user: str | None) -> None:
    """Portfolio summary for USER."""
    from demofolio.core.cli.common import echo_json, load_store, resolve_now, resolve_user

    store = load_store(ctx)
    echo_json(store.portfolio_summary(resolve_user(store, user), now=resolve_now(ctx)))


@click.command()
@click.argument("user", required=False)
@click.option("--timeframe", "-t", type=click.Choice(_TIMEFRAMES, case_sensitive=False), default="W")
@click.option("--account", "account_id", default=None, help="Account id or stable UUID (default: whole portfolio).")
@click.pass_context
def performance(ctx: click.Context, user: str | None, timeframe: str, account_id: str | None) -> None:
    """Performance series and key movers for USER."""
    from demofolio.core.cli.common import echo_json, load_store, resolve_now, resolve_user

    store = load_store(ctx)
    result = store.performance_summary(
        resolve_user(store, user), timeframe, account_id=account_id, now=resolve_now(ctx)
    )
    echo_json(result)


@click.command()
@click.argument("user", required=False)
@click.option("--timeframe", "-t", type=click.Choice(_TIMEFRAMES, case_sensitive=False), default="W")
@click.option("--metric", type=click.Choice(["percentage", "currency"]), default="percentage", show_default=True)
@click.pass_context
def rankings(ctx: click.Context, user: str | None, timeframe: str, metric: str) -> None:
    """Accounts ranked best-first by gain over the timeframe."""
    from demofolio.core.cli.common import echo_json, load_store, resolve_now, resolve_user, to_jsonable
    from demofolio.financial.aggregation import rank_accounts, ranking_state
    from demofolio.financial.models import PerformanceMetric

    store = load_store(ctx)
    accounts = store.ranked_accounts(resolve_user(store, user), timeframe, now=resolve_now(ctx))
    ranked, insufficient = rank_accounts(accounts, PerformanceMetric(metric))
    echo_json(
        {
            "state": ranking_state(accounts).value,
            "ranked": [to_jsonable(a) for a in ranked],
            "insufficient_data": [to_jsonable(a) for a in insufficient],
        }
    )


@click.command()
@click.argument("user", required=False)
@click.pass_context
def institutions(ctx: click.Context, user: str | None) -> None:
    """Synchronized institutions and their accounts for USER."""
    from demofolio.core.cli.common import echo_json, load_store, resolve_now, resolve_user

    store = load_store(ctx)
    echo_json(store.synchronized_institutions(resolve_user(store, user), now=resolve_now(ctx)))
