"""Flask CLI commands for operators."""
import asyncio

import click
import httpx
from flask import current_app


def _context():
    from app.services.api_client import ClientContext

    return ClientContext.from_config(
        current_app.config, current_app.config["CLI_API_TOKEN"] or None
    )


def register_cli(app):
    @app.cli.command("check-backends")
    def check_backends():
        """Check that both backend base URLs answer."""
        config = current_app.config
        ok = True
        for label, url in (
            ("api", config["API_BASE_URL"]),
            ("products", config["API_PRODUCT_BASE_URL"]),
        ):
            try:
                resp = httpx.get(url, timeout=config["API_TIMEOUT"])
                click.echo(f"{label}: {url} -> HTTP {resp.status_code}")
            except httpx.TransportError as e:
                ok = False
                click.echo(f"{label}: {url} -> unreachable ({e})")
        if not ok:
            raise SystemExit(1)

    @app.cli.command("validate-token")
    def validate_token():
        """Check CLI_API_TOKEN against the auth backend."""
        from app.services import auth_service

        valid = asyncio.run(auth_service.validate_token(_context()))
        click.echo("Token is valid." if valid else "Token is missing or expired.")
        if not valid:
            raise SystemExit(1)

    @app.cli.command("metrics")
    @click.option(
        "--period",
        type=click.Choice(["hour", "day", "month", "year"]),
        default="day",
        show_default=True,
    )
    def metrics(period):
        """Print dashboard metrics for a period."""
        from app.models.dashboard import DASHBOARD_METRICS, DashboardState
        from app.services import metrics_service
        from app.services.api_client import ApiClient

        async def run():
            state = DashboardState()
            async with ApiClient(_context()) as client:
                await metrics_service.refresh_dashboard(client, state, period)
            return state

        state = asyncio.run(run())
        if state.session_expired:
            click.echo("Session expired, set a fresh CLI_API_TOKEN.")
            raise SystemExit(1)

        click.echo(f"Period: {period}")
        for name, (_path, _field, unit) in DASHBOARD_METRICS.items():
            metric = state.metrics[name]
            if metric.error:
                click.echo(f"  {name}: error ({metric.error})")
            else:
                value = metrics_service.format_metric(name, metric.value)
                click.echo(f"  {name}: {value}{unit}")

    @app.cli.command("products")
    @click.option("--page", default=1, type=int)
    @click.option("--query", default="")
    def products(page, query):
        """List one page of products."""
        from app.services import product_service
        from app.services.api_client import ApiClient

        per_page = current_app.config["PRODUCTS_PER_PAGE"]

        async def run():
            async with ApiClient(_context()) as client:
                return await product_service.list_products(client, page, per_page, query)

        result = asyncio.run(run())
        click.echo(f"Page {result['page']}/{result['total_pages']} ({result['total']} products)")
        for product in result["products"]:
            click.echo(f"  #{product.get('id')}: {product.get('name', '')}")
