"""demofolio link: simulate the bank-linking flow."""

from __future__ import annotations

import click


def _parse_account(value: str):
    """Parse ``ID:NAME:KIND[:BALANCE[:MASK]]``."""
    from demofolio.core.exceptions import InvalidInputError
    from demofolio.financial.models import AccountDescriptor, AccountKind

    parts = value.split(":")
    if len(parts) < 3 or not parts[0] or not parts[1]:
        raise click.BadParameter(f"expected ID:NAME:KIND[:BALANCE[:MASK]], got {value!r}", param_hint="--account")
    try:
        kind = AccountKind.parse(parts[2])
    except InvalidInputError as e:
        raise click.BadParameter(str(e), param_hint="--account") from e

    balance = None
    if len(parts) > 3 and parts[3]:
        from decimal import Decimal, InvalidOperation

        try:
            balance = Decimal(parts[3])
        except InvalidOperation as e:
            raise click.BadParameter(f"bad balance {parts[3]!r}", param_hint="--account") from e

    mask = parts[4] if len(parts) > 4 and parts[4] else "••••"
    return AccountDescriptor(id=parts[0], name=parts[1], kind=kind, masked_number=mask, available_balance=balance)


@click.command()
@click.argument("user")
@click.option("--bank-id", required=True, help="External institution id.")
@click.option("--bank-name", required=True, help="Institution display name.")
@click.option("--logo", default="building.columns.fill", show_default=True)
@click.option("--color", default="#007AFF", show_default=True, help="Brand colour hex.")
@click.option(
    "--account",
    "account_specs",
    multiple=True,
    required=True,
    help="ID:NAME:KIND[:BALANCE[:MASK]]; repeat for several accounts.",
)
@click.pass_context
def link(ctx: click.Context, user, bank_id, bank_name, logo, color, account_specs) -> None:
    """Link accounts at a bank for USER. Already-linked ids are skipped."""
    from demofolio.core.cli.common import echo_json, load_store
    from demofolio.financial.models import InstitutionDescriptor

    accounts = [_parse_account(text) for text in account_specs]
    store = load_store(ctx)
    added = store.upsert_linked_accounts(
        user,
        InstitutionDescriptor(id=bank_id, name=bank_name, logo_ref=logo, brand_color_hex=color),
        accounts,
    )
    bundle = store.bundle(user)
    echo_json({"added": added, "account_count": len(bundle.accounts) if bundle else 0})
