"""Metrics overview, customer detail and chat history."""
import json
import logging

from flask import abort, current_app, flash, render_template, request, session

from app.blueprints.auth.session import (
    DASHBOARD_KEY,
    api_client,
    login_required,
    search_scope,
)
from app.blueprints.dashboard import dashboard_bp
from app.exceptions import ApiError, SessionExpiredError
from app.models.customer import Customer
from app.models.dashboard import DASHBOARD_METRICS, DEFAULT_PERIOD, PERIODS, DashboardState
from app.services import customer_service, metrics_service
from app.services.draft_service import get_backend

logger = logging.getLogger(__name__)

CUSTOMERS_KEY_PREFIX = "dashboard-customers:"


def _customers_key():
    return CUSTOMERS_KEY_PREFIX + search_scope()


def _load_state():
    state = DashboardState.from_dict(session.get(DASHBOARD_KEY))
    raw = get_backend().get(_customers_key())
    if raw:
        state.customers = json.loads(raw)
    return state


def _save_state(state):
    data = state.to_dict()
    # the customer list goes to the draft backend; keep the cookie small
    data.pop("customers", None)
    session[DASHBOARD_KEY] = data
    if state.customers:
        get_backend().set(
            _customers_key(),
            json.dumps(state.customers),
            ex=current_app.config["DRAFT_TTL_SECONDS"],
        )


def _render_overview(state, status=200):
    return render_template(
        "dashboard/overview.html",
        state=state,
        customers=[Customer(**c) for c in state.customers],
        metrics=DASHBOARD_METRICS,
        periods=PERIODS,
        format_metric=metrics_service.format_metric,
    ), status


def _mark_session_expired():
    state = _load_state()
    state.session_expired = True
    _save_state(state)
    return state


def _period_arg(default=DEFAULT_PERIOD):
    period = request.args.get("period", default)
    return period if period in PERIODS else default


@dashboard_bp.route("/dashboard")
@login_required
async def overview():
    state = _load_state()
    period = _period_arg(state.period)

    if state.session_expired:
        # keep showing the last metrics and customers behind the prompt
        return _render_overview(state, 401)

    async with api_client() as client:
        await metrics_service.refresh_dashboard(client, state, period)
    _save_state(state)
    return _render_overview(state, 401 if state.session_expired else 200)


@dashboard_bp.route("/dashboard/customers/<int:customer_id>")
@login_required
async def customer_detail(customer_id):
    period = _period_arg()
    if _load_state().session_expired:
        return render_template("dashboard/session_expired.html"), 401

    try:
        async with api_client() as client:
            customers = await customer_service.list_customers(client)
            customer = next((c for c in customers if c.id == customer_id), None)
            if customer is None:
                abort(404)
            detail = await customer_service.load_customer_detail(
                client, customer_id, period
            )
    except SessionExpiredError:
        _mark_session_expired()
        return render_template("dashboard/session_expired.html"), 401
    except ApiError as e:
        logger.exception("Failed to load customer %s", customer_id)
        flash(e.message, "error")
        return render_template(
            "dashboard/customer.html",
            customer=None,
            customer_id=customer_id,
            detail=None,
            period=period,
            periods=PERIODS,
        ), 502

    return render_template(
        "dashboard/customer.html",
        customer=customer,
        customer_id=customer_id,
        detail=detail,
        period=period,
        periods=PERIODS,
    )


@dashboard_bp.route("/dashboard/sessions/<int:session_id>/history")
@login_required
async def chat_history(session_id):
    """HTML fragment with one session's messages."""
    error = None
    messages = []
    try:
        async with api_client() as client:
            messages = await customer_service.get_chat_history(client, session_id)
    except SessionExpiredError:
        _mark_session_expired()
        return render_template("dashboard/session_expired.html"), 401
    except ApiError as e:
        logger.warning("Chat history for session %s failed: %s", session_id, e.message)
        error = e.message

    return render_template(
        "dashboard/_chat_history.html",
        session_id=session_id,
        messages=messages,
        error=error,
    ), (502 if error else 200)
