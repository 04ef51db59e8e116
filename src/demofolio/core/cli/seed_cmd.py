"""demofolio seed: create a user's demo bundle."""

from __future__ import annotations

import click


@click.command()
@click.argument("user")
@click.option("--sign-in", is_flag=True, help="Remember USER as the signed-in user for later commands.")
@click.pass_context
def seed(ctx: click.Context, user: str, sign_in: bool) -> None:
    """Seed the demo portfolio for USER (no-op if it already exists)."""
    from demofolio.core.cli.common import echo_json, load_store

    store = load_store(ctx)
    store.ensure_seeded(user)
    if sign_in:
        store.set_current_user(user)
    bundle = store.bundle(user)
    echo_json(
        {
            "user_key": bundle.user_key if bundle else user,
            "accounts": bundle.account_ids if bundle else [],
            "linked_account_ids": store.linked_account_ids(),
            "signed_in": store.current_user_key(),
        }
    )
