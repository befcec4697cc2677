"""
ConcertDesk CLI — drive the concert wizard and the purchase engine from a shell.

Usage:
    concertdesk date check <DD-MM-YYYY>                — validate a concert date
    concertdesk quote --price P --quantity Q [--discount D]
    concertdesk concert create <draft.yaml>            — create a concert through the wizard
    concertdesk tickets buy <concert-id> <zone> --buyer <id> [--quantity Q] [--referral CODE]
"""

from __future__ import annotations

import asyncio
import logging
from decimal import Decimal

import click

from concertdesk.config import get_settings

logger = logging.getLogger(__name__)


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
def cli(verbose: bool):
    """ConcertDesk — concert marketplace workflow CLI."""
    settings = get_settings()
    level = logging.DEBUG if verbose else getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")


@cli.group()
def date():
    """Concert dates."""


@date.command("check")
@click.argument("display")
def date_check(display: str):
    """Check a DD-MM-YYYY date (must exist and not be in the past)."""
    from concertdesk.core.dates import normalize_date

    canonical = normalize_date(display)
    if canonical is None:
        click.echo(f"Error: '{display}' is not a valid upcoming DD-MM-YYYY date", err=True)
        raise SystemExit(1)
    click.echo(canonical.key)


@cli.command()
@click.option("--price", "-p", required=True, help="Price per ticket")
@click.option("--quantity", "-q", type=int, default=1, show_default=True, help="Number of tickets")
@click.option("--discount", "-d", default="0", show_default=True, help="Referral discount, percent")
def quote(price: str, quantity: int, discount: str):
    """Show subtotal, discount and total for a ticket order."""
    from concertdesk.core.errors import PricingError
    from concertdesk.core.pricing import quote as price_quote

    settings = get_settings()
    try:
        q = price_quote(price, quantity, discount, max_quantity=settings.max_tickets_per_purchase)
    except PricingError as e:
        click.echo(f"Error: {e.message}", err=True)
        raise SystemExit(1)

    _echo_quote(q)


@cli.group()
def concert():
    """Organizer concerts."""


@concert.command("create")
@click.argument("draft_path", type=click.Path(dir_okay=False))
@click.option("--organizer", "-o", default=None, help="Organizer id (server assigns one if omitted)")
def concert_create(draft_path: str, organizer: str | None):
    """Create a concert from a YAML draft file."""
    concert_id = asyncio.run(_concert_create(draft_path, organizer))
    if not concert_id:
        raise SystemExit(1)


async def _concert_create(draft_path: str, organizer: str | None) -> str | None:
    from concertdesk.core.draft_loader import load_concert_draft
    from concertdesk.core.wizard import ConcertWizard
    from concertdesk.integrations.marketplace import HttpMarketplaceApi

    try:
        draft = load_concert_draft(draft_path)
    except FileNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        return None

    api = HttpMarketplaceApi.from_settings(get_settings(), user_id=organizer)
    wizard = ConcertWizard(api, organizer_id=organizer)

    # Step 0: details.
    wizard.set_title(draft.title)
    wizard.set_description(draft.description)
    await wizard.set_date(draft.date)
    wizard.set_time(draft.time)
    if not wizard.advance():
        click.echo("Error: description, an upcoming DD-MM-YYYY date and an HH:MM time are required", err=True)
        return None
    if wizard.loader.failed:
        click.echo(f"Error: could not load options: {wizard.venues.error or wizard.performers.error}", err=True)
        return None
    click.echo(f"✓ {wizard.current_step.label}: {len(wizard.venues.items)} venue(s) available on {draft.date}")

    # Step 1: venue.
    if not wizard.select_venue(draft.venue) or not wizard.advance():
        click.echo(f"Error: venue '{draft.venue}' is not available on {draft.date}", err=True)
        return None

    # Step 2: zone prices.
    for zone_name, price in draft.prices.items():
        wizard.set_zone_price(str(zone_name), str(price))
    if not wizard.advance():
        unpriced = [e.zone_name for e in wizard.draft.zone_prices if not e.is_priced]
        click.echo(f"Error: zones need a positive price: {', '.join(unpriced)}", err=True)
        return None

    # Step 3: performers.
    for performer_id in draft.performers:
        if not wizard.toggle_performer(performer_id):
            click.echo(f"Error: performer '{performer_id}' is not available on {draft.date}", err=True)
            return None
    for a, b in draft.collaborations:
        if not wizard.add_collaboration(a, b):
            click.echo(f"Error: collaboration {a} + {b} needs two distinct selected performers", err=True)
            return None
    if not wizard.advance():
        click.echo("Error: select at least one performer", err=True)
        return None

    # Step 4: review.
    concert_id = await wizard.submit()
    if not concert_id:
        click.echo(f"Error: {wizard.error}", err=True)
        return None

    click.echo(f"✓ Created concert {concert_id}")
    return concert_id


@cli.group()
def tickets():
    """Ticket purchases."""


@tickets.command("buy")
@click.argument("concert_id")
@click.argument("zone")
@click.option("--buyer", "-b", required=True, help="Buyer (fan) id")
@click.option("--quantity", "-q", type=int, default=1, show_default=True)
@click.option("--referral", "-r", default="", help="Referral code")
@click.option("--yes", "-y", is_flag=True, help="Do not ask for confirmation")
def tickets_buy(concert_id: str, zone: str, buyer: str, quantity: int, referral: str, yes: bool):
    """Buy tickets for a concert zone."""
    ok = asyncio.run(_tickets_buy(concert_id, zone, buyer, quantity, referral, yes))
    if not ok:
        raise SystemExit(1)


async def _tickets_buy(
    concert_id: str,
    zone: str,
    buyer: str,
    quantity: int,
    referral: str,
    yes: bool,
) -> bool:
    from concertdesk.core.errors import ApiError
    from concertdesk.core.purchase import PurchaseSession
    from concertdesk.integrations.marketplace import HttpMarketplaceApi

    settings = get_settings()
    api = HttpMarketplaceApi.from_settings(settings, user_id=buyer)

    try:
        concert_obj = await api.fetch_concert(concert_id)
    except ApiError as e:
        click.echo(f"Error: {e.message}", err=True)
        return False

    session = PurchaseSession(api, concert_obj, buyer, max_quantity=settings.max_tickets_per_purchase)
    if not session.select_zone(zone):
        available = ", ".join(z.name for z in concert_obj.zones) or "(none)"
        click.echo(f"Error: unknown zone '{zone}'. Available: {available}", err=True)
        return False
    if not session.set_quantity(quantity):
        click.echo(f"Error: quantity must be between 1 and {session.max_quantity}", err=True)
        return False

    if referral:
        session.set_referral_code(referral)
        await session.commit_referral_code()
        verdict = session.referral.verdict
        if verdict is not None:
            mark = "✓" if verdict.valid else "✗"
            click.echo(f"{mark} Referral code: {verdict.message or ('accepted' if verdict.valid else 'rejected')}")

    _echo_quote(session.quote)

    if not yes and not click.confirm("Confirm purchase?", default=True):
        click.echo("Cancelled.")
        return False

    result = await session.purchase()
    if result is None:
        click.echo(f"Error: {session.error}", err=True)
        return False

    total = result.total_price if result.total_price is not None else session.computed_total
    click.echo(f"✓ Purchased {quantity} ticket(s). Total: ${total:.2f}")
    return True


def _echo_quote(q) -> None:
    click.echo(f"{'Subtotal:':<12} ${q.subtotal:.2f}")
    if q.discount_percent > Decimal("0"):
        click.echo(f"{'Discount:':<12} -{q.discount_percent.normalize():f}% (-${q.discount_amount:.2f})")
    click.echo(f"{'Total:':<12} ${q.total:.2f}")


if __name__ == "__main__":
    cli()
