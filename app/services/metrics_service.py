"""Dashboard metrics.

Each metric is fetched on its own so one slow or failing endpoint never
blocks the others. A 401 from any of them flags the whole dashboard as
session-expired but leaves the values already on screen alone.
"""
import asyncio
from dataclasses import asdict
import logging

from app.exceptions import ApiError, SessionExpiredError
from app.models.dashboard import DASHBOARD_METRICS
from app.services import customer_service
from app.services.api_client import check_period

logger = logging.getLogger(__name__)


async def fetch_metric(client, name, period):
    """Fetch one dashboard metric. Automation rate is returned as a percentage."""
    path, field, _unit = DASHBOARD_METRICS[name]
    data = await client.get(
        client.context.api_url(f"/main-dashboard{path}"),
        params={"period": check_period(period)},
    )
    value = data.get(field) or 0
    if name == "automation_rate":
        return value * 100
    return value


async def refresh_dashboard(client, state, period=None):
    """Refresh every metric and the customer list of ``state`` in place.

    Does nothing while the session is flagged expired.
    """
    if state.session_expired:
        logger.info("Session expired, skipping dashboard refresh")
        return state

    if period:
        state.period = check_period(period)

    for metric in state.metrics.values():
        metric.loading = True
        metric.error = None
    state.customers_loading = True
    state.customers_error = None

    async def load_metric(name):
        metric = state.metrics[name]
        try:
            metric.value = await fetch_metric(client, name, state.period)
        except SessionExpiredError as e:
            state.session_expired = True
            metric.error = e.message
        except ApiError as e:
            logger.warning("Failed to fetch metric %s: %s", name, e.message)
            metric.error = e.message
        finally:
            metric.loading = False

    async def load_customers():
        try:
            customers = await customer_service.list_customers(client)
            state.customers = [asdict(c) for c in customers]
        except SessionExpiredError as e:
            state.session_expired = True
            state.customers_error = e.message
        except ApiError as e:
            logger.warning("Failed to fetch customers: %s", e.message)
            state.customers_error = e.message
        finally:
            state.customers_loading = False

    await asyncio.gather(
        *(load_metric(name) for name in state.metrics),
        load_customers(),
    )
    return state


def format_metric(name, value):
    """Render a metric value the way the dashboard cards show it."""
    if name in ("new_appointments", "returning_customers", "new_customers"):
        return str(int(value))
    return f"{value:.1f}"
