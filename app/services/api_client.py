"""HTTP access to the dashboard backends.

Every call goes through an explicit ClientContext (token + base URLs)
instead of reading a global token. ApiClient.request normalises transport
failures, non-2xx responses and bad JSON into ApiError.
"""
from dataclasses import dataclass
import logging
from typing import Optional

import httpx

from app.exceptions import ApiError, SessionExpiredError
from app.models.dashboard import PERIODS

logger = logging.getLogger(__name__)

ERROR_BODY_EXCERPT = 300


@dataclass(frozen=True)
class ClientContext:
    token: Optional[str]
    api_base_url: str
    product_api_base_url: str
    timeout: float = 15.0

    @classmethod
    def from_config(cls, config, token=None):
        return cls(
            token=token,
            api_base_url=config["API_BASE_URL"],
            product_api_base_url=config["API_PRODUCT_BASE_URL"],
            timeout=config.get("API_TIMEOUT", 15.0),
        )

    def api_url(self, path):
        return f"{self.api_base_url}{path}"

    def product_url(self, path):
        return f"{self.product_api_base_url}{path}"

    def headers(self, json=True):
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        # multipart uploads let httpx set the boundary header
        if json:
            headers["Content-Type"] = "application/json"
        return headers


def check_period(period):
    if period not in PERIODS:
        raise ValueError(f"Unknown period {period!r}, expected one of {', '.join(PERIODS)}")
    return period


class ApiClient:
    """Async client bound to one ClientContext.

    Usage::

        async with ApiClient(context) as client:
            data = await client.get(context.api_url("/customer/all"))
    """

    def __init__(self, context, transport=None):
        self.context = context
        self._transport = transport
        self._http = None

    async def __aenter__(self):
        self._http = httpx.AsyncClient(
            timeout=self.context.timeout, transport=self._transport
        )
        return self

    async def __aexit__(self, *exc):
        await self._http.aclose()
        self._http = None

    async def get(self, url, params=None):
        return await self.request("GET", url, params=params)

    async def post(self, url, **kwargs):
        return await self.request("POST", url, **kwargs)

    async def request(self, method, url, json_body=True, **kwargs):
        """Send a request and return the decoded JSON body.

        Raises:
            SessionExpiredError on HTTP 401
            ApiError on connection failure, other non-2xx, or non-JSON body
        """
        if self._http is None:
            raise RuntimeError("ApiClient used outside 'async with'")

        headers = self.context.headers(json=json_body)
        headers.update(kwargs.pop("headers", {}))
        try:
            resp = await self._http.request(method, url, headers=headers, **kwargs)
        except httpx.TransportError as e:
            logger.error("Request to %s failed: %s", url, e)
            raise ApiError(f"Could not connect to {url}: {e}", url=url) from e

        if resp.status_code == 401:
            logger.warning("Backend rejected token for %s", url)
            raise SessionExpiredError(url=url)

        if not resp.is_success:
            message = _describe_error(resp)
            logger.error("API error %s for %s: %s", resp.status_code, url, message)
            raise ApiError(message, status_code=resp.status_code, url=url)

        if not resp.content:
            return {}
        try:
            return resp.json()
        except ValueError as e:
            logger.error(
                "Non-JSON response from %s: %s", url, resp.text[:ERROR_BODY_EXCERPT]
            )
            raise ApiError(
                "Failed to parse API response as JSON.",
                status_code=resp.status_code,
                url=url,
            ) from e


def _describe_error(resp):
    """Human-readable message for a non-2xx response."""
    prefix = f"API error {resp.status_code} {resp.reason_phrase}".rstrip()
    content_type = resp.headers.get("content-type", "")

    if "text/html" in content_type:
        return f"{prefix}: backend returned an HTML page (likely a 404 or 500 error page)"

    if "json" in content_type:
        try:
            data = resp.json()
        except ValueError:
            data = None
        if isinstance(data, dict):
            detail = data.get("message") or data.get("detail")
            if isinstance(detail, str) and detail:
                return f"{prefix}: {detail}"

    body = resp.text.strip()[:ERROR_BODY_EXCERPT]
    return f"{prefix}: {body}" if body else prefix
