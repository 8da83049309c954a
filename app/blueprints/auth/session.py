"""Per-request access to the operator's token and API client."""
import functools

from flask import current_app, redirect, request, session, url_for

from app.services.api_client import ApiClient, ClientContext

TOKEN_KEY = "auth_token"
USERNAME_KEY = "username"
DASHBOARD_KEY = "dashboard"


def client_context():
    return ClientContext.from_config(current_app.config, session.get(TOKEN_KEY))


def api_client():
    return ApiClient(client_context())


def is_authenticated():
    return bool(session.get(TOKEN_KEY))


def start_session(username, token):
    session.clear()
    session[TOKEN_KEY] = token
    session[USERNAME_KEY] = username


def end_session():
    session.clear()


def search_scope():
    """Key that isolates search generations per operator session."""
    return f"{session.get(USERNAME_KEY, '')}:{session.get(TOKEN_KEY, '')[-12:]}"


def login_required(view):
    @functools.wraps(view)
    def wrapped(*args, **kwargs):
        if not is_authenticated():
            return redirect(url_for("auth.login", next=request.full_path))
        return current_app.ensure_sync(view)(*args, **kwargs)

    return wrapped
