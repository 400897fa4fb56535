"""Command line interface for the Gitec product sync."""

import sys
import json
import logging
from typing import Optional

import click

from .config import setup_logging, load_settings
from .bootstrap import bootstrap
from ..exceptions import ConfigurationError, GitecSyncError
from ..integrations.gitec.client import GitecClient
from ..models.sync import SyncType
from ..services.recorders import InMemoryOperationalLog


@click.group()
@click.option('--log-level', default='INFO', type=click.Choice(['DEBUG', 'INFO', 'WARNING', 'ERROR']),
              help='Set the logging level')
@click.option('--env-file', type=click.Path(exists=True), help='Path to .env file')
@click.pass_context
def cli(ctx: click.Context, log_level: str, env_file: Optional[str]) -> None:
    """Gitec catalog to local store product sync tool."""
    setup_logging(log_level)
    ctx.ensure_object(dict)
    ctx.obj['env_file'] = env_file


@cli.command()
@click.option('--auto', 'auto', is_flag=True, help='Tag the run as an automatic sync')
@click.option('--output', type=click.Choice(['text', 'json']), default='text',
              help='Output format')
@click.pass_context
def sync(ctx: click.Context, auto: bool, output: str) -> None:
    """Run one sync in the foreground."""
    try:
        settings = load_settings(ctx.obj.get('env_file'))
        services = bootstrap(settings)
        sync_type = SyncType.AUTO if auto else SyncType.MANUAL

        try:
            click.echo(f"🔄 Running {sync_type.value} sync against {settings.products_url}...")
            result = services.engine.run(sync_type)
        finally:
            services.shutdown()

        if output == 'json':
            click.echo(result.model_dump_json(indent=2))
        else:
            click.echo("-" * 60)
            click.echo(f"Total records: {result.total}")
            click.echo(f"  ✅ Updated:   {result.updated} (price: {result.price_changes}, stock: {result.stock_changes})")
            click.echo(f"  🆕 Created:   {result.created}")
            click.echo(f"  ⏭️ Unchanged: {result.unchanged}")
            click.echo(f"  ❌ Failed:    {result.failed}")
            click.echo(result.message)

        if not result.succeeded:
            sys.exit(1)

    except ConfigurationError as e:
        click.echo(f"❌ Configuration Error: {e}", err=True)
        sys.exit(1)
    except GitecSyncError as e:
        click.echo(f"❌ Sync Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logging.exception("Unexpected error occurred")
        click.echo(f"❌ Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--output', type=click.Choice(['text', 'json']), default='text',
              help='Output format')
@click.pass_context
def fetch(ctx: click.Context, output: str) -> None:
    """Fetch the Gitec catalog once without touching the store."""
    try:
        settings = load_settings(ctx.obj.get('env_file'))
        client = GitecClient.from_settings(settings, InMemoryOperationalLog())
        result = client.test_connection()

        if output == 'json':
            click.echo(json.dumps(result, indent=2))
        elif result["status"] == "success":
            click.echo("✅ Successfully fetched the Gitec catalog!")
            click.echo(f"Message: {result['message']}")
        else:
            click.echo(f"❌ Gitec API Error ({result['kind']}): {result['message']}", err=True)

        if result["status"] != "success":
            sys.exit(1)

    except ConfigurationError as e:
        click.echo(f"❌ Configuration Error: {e}", err=True)
        sys.exit(1)
    except Exception as e:
        logging.exception("Unexpected error occurred")
        click.echo(f"❌ Unexpected error: {e}", err=True)
        sys.exit(1)


@cli.command()
@click.option('--host', default='0.0.0.0', help='Interface to bind')
@click.option('--port', default=8000, type=int, help='Port to listen on')
@click.pass_context
def serve(ctx: click.Context, host: str, port: int) -> None:
    """Serve the sync HTTP API."""
    import uvicorn
    from ..api.app import create_app

    try:
        services = bootstrap(load_settings(ctx.obj.get('env_file')))
    except ConfigurationError as e:
        click.echo(f"❌ Configuration Error: {e}", err=True)
        sys.exit(1)

    try:
        uvicorn.run(create_app(services), host=host, port=port)
    finally:
        services.shutdown(wait=False)


if __name__ == '__main__':
    cli()
