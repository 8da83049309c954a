import logging

from app.exceptions import ApiError, SessionExpiredError
from app.services.api_client import ApiClient

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS = "Invalid username or password"


async def login(context, username, password, transport=None):
    """Exchange credentials for a bearer token.

    Returns the access token. Raises ApiError with an operator-facing
    message on bad credentials or when the auth server is unreachable.
    """
    url = context.api_url("/auth/login")
    async with ApiClient(context, transport=transport) as client:
        try:
            data = await client.post(
                url,
                json_body=False,
                data={"username": username, "password": password},
            )
        except SessionExpiredError:
            raise ApiError(INVALID_CREDENTIALS, status_code=401, url=url)
        except ApiError as e:
            if e.status_code is None:
                raise ApiError("Could not reach the server. Please try again.", url=url)
            raise

    token = data.get("access_token") if isinstance(data, dict) else None
    if not token:
        message = data.get("message") if isinstance(data, dict) else None
        raise ApiError(message or INVALID_CREDENTIALS, url=url)

    logger.info("Operator %s logged in", username)
    return token


async def validate_token(context, transport=None):
    """True when the backend still accepts the context's token."""
    if not context.token:
        return False
    async with ApiClient(context, transport=transport) as client:
        try:
            await client.get(context.api_url("/auth/validate-token"))
        except SessionExpiredError:
            return False
    return True


async def reset_password(context, username, email, new_password, transport=None):
    """Ask the auth backend to reset a password. Returns its confirmation message."""
    async with ApiClient(context, transport=transport) as client:
        data = await client.post(
            context.api_url("/auth/reset-password"),
            json={"username": username, "email": email, "new_password": new_password},
        )
    return (data or {}).get("message") or "Password reset successfully"
