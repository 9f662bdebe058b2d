# app/cli/catalog.py
"""
Command line entry points for catalog maintenance.

The in-memory backend starts empty in every process, so these commands are
mostly useful with STORAGE_BACKEND=database.
"""
import asyncio
import logging
from datetime import datetime

import click

from app.core.config import get_settings
from app.core.enums import ApiType, StorageBackend
from app.core.exceptions import BaseServiceError
from app.core.logging_config import configure_logging
from app.dependencies import Services, build_services
from app.schemas import BrandCreate

logger = logging.getLogger(__name__)


async def _with_services(action):
    settings = get_settings()
    services = build_services(settings)
    try:
        return await action(services)
    finally:
        await services.storage.close()
        if str(settings.STORAGE_BACKEND).lower() == StorageBackend.DATABASE.value:
            from app.database import dispose_engine
            await dispose_engine()


@click.group()
def cli():
    """Brand catalog maintenance commands"""
    configure_logging()


@cli.command("create-tables")
def create_tables_command():
    """Create all database tables directly using SQLAlchemy"""
    from app.database import create_tables, dispose_engine

    async def _create_tables():
        try:
            await create_tables()
        finally:
            await dispose_engine()

    asyncio.run(_create_tables())
    click.echo("All tables created successfully!")


@cli.command("add-brand")
@click.option("--name", required=True)
@click.option("--website", default=None)
@click.option("--logo", default=None)
@click.option("--api-type", type=click.Choice([t.value for t in ApiType], case_sensitive=False), default=None)
@click.option("--api-endpoint", default=None)
@click.option("--api-key", default=None)
def add_brand(name, website, logo, api_type, api_endpoint, api_key):
    """Register a brand and its upstream API"""
    brand = BrandCreate(
        name=name,
        website=website,
        logo=logo,
        api_type=api_type.lower() if api_type else None,
        api_endpoint=api_endpoint,
        api_key=api_key
    )

    async def _add(services: Services):
        return await services.storage.create_brand(brand)

    created = asyncio.run(_with_services(_add))
    click.echo(f"Created brand {created.name} (ID: {created.id})")


@cli.command("sync-brand")
@click.argument("brand_id", type=int)
def sync_brand(brand_id):
    """Sync one brand's catalog from its upstream API"""
    start_time = datetime.now()

    async def _sync(services: Services):
        return await services.sync_service.sync_brand_products(brand_id)

    try:
        result = asyncio.run(_with_services(_sync))
    except BaseServiceError as e:
        raise click.ClickException(f"Sync failed: {str(e)}")

    click.echo(
        f"Brand {brand_id}: {result.products_added} added, {result.products_updated} updated, "
        f"{len(result.errors)} errors in {datetime.now() - start_time}"
    )
    for error in result.errors:
        click.echo(f"  - {error}")


@cli.command("sync-all")
def sync_all():
    """Sync every brand with a complete API configuration"""

    async def _sync_all(services: Services):
        return await services.sync_service.sync_all_brands()

    results = asyncio.run(_with_services(_sync_all))
    if not results:
        click.echo("No brands with API configuration found")
    for brand_id, result in results.items():
        click.echo(
            f"Brand {brand_id}: {result.products_added} added, {result.products_updated} updated, "
            f"{len(result.errors)} errors"
        )


@cli.command("check-alerts")
def check_alerts():
    """Evaluate active price alerts once"""

    async def _check(services: Services):
        return await services.alert_service.check_price_alerts()

    result = asyncio.run(_with_services(_check))
    click.echo(f"{result.alerts_triggered} alerts triggered, {len(result.errors)} errors")
    for error in result.errors:
        click.echo(f"  - {error}")


if __name__ == "__main__":
    cli()
