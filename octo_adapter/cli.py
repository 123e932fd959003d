"""
OCTO Adapter CLI: run adapter operations against a supplier from the shell.

Usage:
    octo-adapter template  # show the credential template
    octo-adapter -c creds.yaml validate  # check the API key
    octo-adapter -c creds.yaml products --name "*bus*"  # search products
    octo-adapter -c creds.yaml availability -p P -o O --units adult:2 --start 2026-05-01 --end 2026-05-03
    octo-adapter -c creds.yaml calendar ...  # same options, per-day summary
    octo-adapter -c creds.yaml book <key> --name Ann --surname Lee --email ann@example.com
    octo-adapter -c creds.yaml cancel <booking-id> --reason "customer request"
    octo-adapter -c creds.yaml bookings --id <booking-id>
    octo-adapter -c creds.yaml pickups  # list pickup points
    octo-adapter -c creds.yaml fields  # list custom booking questions

The signing secret comes from OCTO_JWT_KEY (or .env).
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any

import click

from octo_adapter.config import PluginConfig
from octo_adapter.core.errors import OctoAdapterError

logger = logging.getLogger(__name__)


def _echo_json(data: Any) -> None:
    click.echo(json.dumps(data, indent=2, ensure_ascii=False, default=str))


def _run(ctx: click.Context, operation: str, *args) -> Any:
    from octo_adapter.integrations.octo import OctoAdapter

    adapter = OctoAdapter(PluginConfig.from_settings())
    try:
        return asyncio.run(getattr(adapter, operation)(ctx.obj["token"], *args))
    except OctoAdapterError as e:
        click.echo(f"Error [{e.error_code}]: {e.message}", err=True)
        raise SystemExit(1)


def _parse_units(value: str) -> list[dict]:
    """'adult:2,child' -> [{"unitId": "adult", "quantity": 2}, {"unitId": "child", "quantity": 1}]"""
    units = []
    for part in filter(None, (p.strip() for p in value.split(","))):
        unit_id, _, qty = part.partition(":")
        try:
            quantity = int(qty) if qty else 1
        except ValueError:
            raise click.BadParameter(f"invalid quantity in '{part}'")
        units.append({"unitId": unit_id, "quantity": quantity})
    return units


def _parse_ages(value: str) -> list[dict]:
    try:
        return [{"age": int(a)} for a in value.split(",") if a.strip()]
    except ValueError:
        raise click.BadParameter(f"invalid ages '{value}'")


def _availability_payload(
    product: tuple[str, ...],
    option: tuple[str, ...],
    units: tuple[str, ...],
    ages: tuple[str, ...],
    start: str,
    end: str,
    date_format: str,
    currency: str | None,
) -> dict:
    payload: dict[str, Any] = {
        "productIds": list(product),
        "optionIds": list(option),
        "startDate": start,
        "endDate": end,
        "dateFormat": date_format,
    }
    if units:
        payload["units"] = [_parse_units(u) for u in units]
    if ages:
        payload["occupancies"] = [_parse_ages(a) for a in ages]
    if currency:
        payload["currency"] = currency
    return payload


_availability_options = [
    click.option("--product", "-p", multiple=True, required=True, help="Product id (repeatable)"),
    click.option("--option", "-o", multiple=True, required=True, help="Option id, one per product"),
    click.option("--units", "-u", multiple=True, help="unitId:qty[,unitId:qty], one per product"),
    click.option("--ages", "-a", multiple=True, help="Traveller ages '40,12', one per product"),
    click.option("--start", required=True, help="First date"),
    click.option("--end", required=True, help="Last date"),
    click.option("--date-format", default="YYYY-MM-DD", show_default=True),
    click.option("--currency", default=None),
]


def availability_options(fn):
    for decorator in reversed(_availability_options):
        fn = decorator(fn)
    return fn


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output")
@click.option("--credentials", "-c", "credentials_path", type=click.Path(dir_okay=False), default=None,
              help="YAML file with supplier credentials")
@click.option("--profile", default=None, help="Profile name inside the credentials file")
@click.option("--api-key", envvar="OCTO_API_KEY", default=None, help="Supplier API key (overrides the file)")
@click.option("--endpoint", default=None, help="Supplier OCTO endpoint (overrides the file)")
@click.option("--octo-env", type=click.Choice(["live", "test"]), default=None)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, credentials_path: str | None, profile: str | None,
        api_key: str | None, endpoint: str | None, octo_env: str | None):
    """OCTO Adapter: supplier operations for reseller platforms."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    token: dict[str, Any] = {}
    if credentials_path:
        from octo_adapter.core.credentials import load_credentials

        try:
            token = load_credentials(credentials_path, profile).to_dict(exclude_none=True)
        except (FileNotFoundError, OctoAdapterError) as e:
            click.echo(f"Error: {e}", err=True)
            raise SystemExit(1)
    overrides = {"apiKey": api_key, "endpoint": endpoint, "octoEnv": octo_env}
    token.update({k: v for k, v in overrides.items() if v})
    ctx.obj = {"token": token}


@cli.command()
def template():
    """Show the credential fields a supplier connection needs."""
    from octo_adapter.core.credentials import token_template

    _echo_json({key: {**rule, "regExp": rule["regExp"].pattern} for key, rule in token_template().items()})


@cli.command()
@click.pass_context
def validate(ctx: click.Context):
    """Check the credentials against the template, then the API key against the supplier."""
    from octo_adapter.core.credentials import validate_credentials_against_template
    from octo_adapter.core.schemas import Credentials, parse_request

    try:
        errors = validate_credentials_against_template(parse_request(Credentials, ctx.obj["token"]))
    except OctoAdapterError as e:
        errors = [e.message]
    if errors:
        for err in errors:
            click.echo(f"✗ {err}", err=True)
        raise SystemExit(1)

    ok = _run(ctx, "validate_token")
    if not ok:
        click.echo("✗ Credentials rejected", err=True)
        raise SystemExit(1)
    click.echo("✓ Credentials valid")


@cli.command()
@click.option("--product-id", default=None)
@click.option("--name", default=None, help="Wildcard product name filter, e.g. '*bus*'")
@click.option("--currency", "default_currency", default=None, help="Default currency filter")
@click.pass_context
def products(ctx: click.Context, product_id: str | None, name: str | None, default_currency: str | None):
    """Search products."""
    payload = {"productId": product_id, "productName": name, "defaultCurrency": default_currency}
    _echo_json(_run(ctx, "search_products", {k: v for k, v in payload.items() if v}))


@cli.command()
@availability_options
@click.pass_context
def availability(ctx: click.Context, product, option, units, ages, start, end, date_format, currency):
    """Search bookable availability (prints availability keys)."""
    payload = _availability_payload(product, option, units, ages, start, end, date_format, currency)
    _echo_json(_run(ctx, "search_availability", payload))


@cli.command()
@availability_options
@click.pass_context
def calendar(ctx: click.Context, product, option, units, ages, start, end, date_format, currency):
    """Per-day availability summary (not bookable)."""
    payload = _availability_payload(product, option, units, ages, start, end, date_format, currency)
    _echo_json(_run(ctx, "availability_calendar", payload))


@cli.command()
@click.argument("availability_key")
@click.option("--name", required=True, help="Holder first name")
@click.option("--surname", required=True, help="Holder last name")
@click.option("--email", default=None)
@click.option("--phone", default=None)
@click.option("--country", default=None, help="ISO 3166 alpha-2 code")
@click.option("--reference", default=None, help="Reseller reference")
@click.option("--notes", default=None)
@click.option("--settlement-method", default=None)
@click.option("--pickup-point", default=None)
@click.option("--rebooking-id", default=None)
@click.option("--partial", is_flag=True, help="Leave unconfirmed (cart order confirmed later)")
@click.pass_context
def book(ctx: click.Context, availability_key: str, name: str, surname: str, email: str | None,
         phone: str | None, country: str | None, reference: str | None, notes: str | None,
         settlement_method: str | None, pickup_point: str | None, rebooking_id: str | None, partial: bool):
    """Create and confirm a booking from an availability key."""
    holder = {"name": name, "surname": surname, "emailAddress": email, "phoneNumber": phone, "country": country}
    payload = {
        "availabilityKey": availability_key,
        "holder": {k: v for k, v in holder.items() if v},
        "reference": reference,
        "notes": notes,
        "settlementMethod": settlement_method,
        "pickupPoint": pickup_point,
        "rebookingId": rebooking_id,
        "partial": partial,
    }
    _echo_json(_run(ctx, "create_booking", payload))


@cli.command()
@click.argument("booking_id")
@click.option("--reason", default=None)
@click.pass_context
def cancel(ctx: click.Context, booking_id: str, reason: str | None):
    """Cancel a booking."""
    _echo_json(_run(ctx, "cancel_booking", {"bookingId": booking_id, "reason": reason}))


@cli.command()
@click.option("--id", "booking_id", default=None, help="Booking id, reseller or supplier reference")
@click.option("--reference", default=None, help="Reseller reference")
@click.option("--supplier-id", default=None, help="Supplier booking reference")
@click.option("--from", "date_from", default=None, help="Travel date start")
@click.option("--to", "date_to", default=None, help="Travel date end")
@click.option("--date-format", default="YYYY-MM-DD", show_default=True)
@click.pass_context
def bookings(ctx: click.Context, booking_id, reference, supplier_id, date_from, date_to, date_format):
    """Search bookings."""
    payload = {
        "bookingId": booking_id,
        "resellerReference": reference,
        "supplierBookingId": supplier_id,
        "travelDateStart": date_from,
        "travelDateEnd": date_to,
        "dateFormat": date_format,
    }
    _echo_json(_run(ctx, "search_booking", payload))


@cli.command()
@click.pass_context
def pickups(ctx: click.Context):
    """List pickup points of all products."""
    _echo_json(_run(ctx, "get_pickup_points"))


@cli.command()
@click.option("--product-id", default=None)
@click.pass_context
def fields(ctx: click.Context, product_id: str | None):
    """List custom booking questions."""
    _echo_json(_run(ctx, "get_create_booking_fields", {"productId": product_id} if product_id else {}))


if __name__ == "__main__":
    cli()
