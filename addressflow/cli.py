#!/usr/bin/env python3
"""CLI commands for address verification."""

import asyncio
import json

import click

from addressflow.core.config import settings
from addressflow.core.errors import ConfigurationError
from addressflow.core.logging import configure_logging


def address_options(func):
    """Shared options describing one address."""
    options = [
        click.option("--street", default=None, help="Street name"),
        click.option("--house-number", default=None, help="House number"),
        click.option("--postal-code", default=None, help="Postal code"),
        click.option("--city", default=None, help="City"),
        click.option("--country", default=None, help="ISO country code"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _fragment(street, house_number, postal_code, city, country):
    return {
        "street": street,
        "house_number": house_number,
        "postal_code": postal_code,
        "city": city,
        "country": country,
    }


@click.group()
@click.option("--log-level", default=None, help="Override LOG_LEVEL")
def cli(log_level):
    """Address normalization, validation and verification commands."""
    configure_logging(
        testing=not settings.JSON_LOGS, level=log_level or settings.LOG_LEVEL
    )


@cli.command()
@address_options
def normalize(street, house_number, postal_code, city, country):
    """Print the canonical form of an address."""
    from addressflow.address.normalizer import AddressNormalizer

    normalizer = AddressNormalizer(settings.DEFAULT_COUNTRY)
    address = normalizer.normalize(
        _fragment(street, house_number, postal_code, city, country)
    )
    click.echo(json.dumps(address.model_dump(by_alias=True), indent=2))


@cli.command()
@address_options
def validate(street, house_number, postal_code, city, country):
    """Validate an address; exits with status 1 when it is invalid."""
    from addressflow.address.normalizer import AddressNormalizer
    from addressflow.address.validator import AddressValidator

    address = AddressNormalizer(settings.DEFAULT_COUNTRY).normalize(
        _fragment(street, house_number, postal_code, city, country)
    )
    result = AddressValidator(default_country=settings.DEFAULT_COUNTRY).validate(address)
    click.echo(json.dumps(result.model_dump(), indent=2))
    if not result.valid:
        raise SystemExit(1)


@cli.command()
@address_options
@click.option(
    "--timeout",
    default=None,
    type=float,
    help="Per-provider latency budget in seconds (defaults to LATENCY_BUDGET_SECONDS)",
)
def verify(street, house_number, postal_code, city, country, timeout):
    """Geocode an address and print ranked suggestions."""
    from addressflow.geocoding.runtime import ProviderRuntime
    from addressflow.orchestrator import build_orchestrator

    fragment = _fragment(street, house_number, postal_code, city, country)

    async def run():
        runtime = ProviderRuntime(settings)
        try:
            orchestrator = build_orchestrator(settings, runtime)
            return await orchestrator.verify_within(fragment, timeout=timeout)
        finally:
            await runtime.aclose()

    try:
        result = asyncio.run(run())
    except ConfigurationError as e:
        raise click.ClickException(str(e)) from e
    if result is None:
        click.echo("Verification was superseded")
        return

    output = {
        "address": result.address.model_dump(by_alias=True),
        "validation": result.validation.model_dump(),
        "instant": result.instant.model_dump(by_alias=True, mode="json")
        if result.instant
        else None,
        "suggestions": [
            s.model_dump(by_alias=True, mode="json") for s in result.suggestions
        ],
        "conflicts": {
            "hasPostalConflict": result.conflicts.has_postal_conflict,
            "hasCityConflict": result.conflicts.has_city_conflict,
        },
        "elapsedMs": result.elapsed_ms,
        "timings": result.timings,
        "timedOut": sorted(result.timed_out),
    }
    click.echo(json.dumps(output, indent=2))
    if not result.valid:
        raise SystemExit(1)


if __name__ == "__main__":
    cli()
