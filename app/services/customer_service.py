import asyncio
import logging

from app.exceptions import ApiError, SessionExpiredError
from app.models.customer import ChatMessage, Customer, Session
from app.services.api_client import check_period

logger = logging.getLogger(__name__)


def _customer_url(client, path):
    return client.context.api_url(f"/customer{path}")


async def list_customers(client):
    data = await client.get(_customer_url(client, "/all"))
    return [Customer.from_api(c) for c in data.get("customers") or []]


async def list_sessions(client, customer_id):
    data = await client.get(_customer_url(client, f"/{customer_id}/sessions"))
    return [Session.from_api(s) for s in data.get("sessions") or []]


async def get_chat_history(client, session_id):
    """Messages of one chat session, oldest first."""
    data = await client.get(
        client.context.api_url(f"/session/{session_id}/chat-histories")
    )
    return [ChatMessage.from_api(m) for m in data.get("chat_histories") or []]


async def _period_metric(client, customer_id, path, field, period):
    data = await client.get(
        _customer_url(client, f"/{customer_id}{path}"),
        params={"period": check_period(period)},
    )
    return data.get(field) or 0


async def get_customer_metrics(client, customer_id, period):
    """All per-customer metrics. Fails as a group if any single call fails."""
    count, completion, agent, customer, automation = await asyncio.gather(
        client.get(_customer_url(client, f"/{customer_id}/appointment-completions/count")),
        _period_metric(
            client, customer_id, "/appointment-completion-avg-time",
            "avg_completion_time", period,
        ),
        _period_metric(
            client, customer_id, "/agent-avg-response-time",
            "avg_agent_response_time", period,
        ),
        _period_metric(
            client, customer_id, "/customer-avg-response-time",
            "avg_customer_response_time", period,
        ),
        _period_metric(
            client, customer_id, "/avg-automation-rate",
            "avg_automation_rate", period,
        ),
    )
    return {
        "appointment_completions": count.get("appointment_completions") or 0,
        "avg_completion_time": completion,
        "avg_agent_response_time": agent,
        "avg_customer_response_time": customer,
        "avg_automation_rate": automation * 100,
    }


async def load_customer_detail(client, customer_id, period):
    """Sessions and metrics for the customer page.

    The two halves fail independently; each error lands in its own key.
    SessionExpiredError propagates so the caller can prompt for login.
    """
    detail = {"sessions": [], "metrics": None, "errors": {"sessions": None, "metrics": None}}

    async def load_sessions():
        try:
            detail["sessions"] = await list_sessions(client, customer_id)
        except SessionExpiredError:
            raise
        except ApiError as e:
            logger.warning("Failed to load sessions for customer %s: %s", customer_id, e)
            detail["errors"]["sessions"] = e.message

    async def load_metrics():
        try:
            detail["metrics"] = await get_customer_metrics(client, customer_id, period)
        except SessionExpiredError:
            raise
        except ApiError as e:
            logger.warning("Failed to load metrics for customer %s: %s", customer_id, e)
            detail["errors"]["metrics"] = e.message

    await asyncio.gather(load_sessions(), load_metrics())
    return detail
