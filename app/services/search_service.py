"""Debounced product search.

Each search request takes a generation token for its scope (one per
logged-in operator). A request that is no longer the newest generation
skips its backend call, or drops its response if it was superseded while
in flight, so an older search can never overwrite a newer one.
"""
import asyncio
import logging

from app.services import product_service
from app.services.draft_service import get_backend

logger = logging.getLogger(__name__)

KEY_PREFIX = "search-gen:"


class SearchGenerations:
    def __init__(self, backend=None):
        self.backend = backend or get_backend()

    def begin(self, scope):
        return int(self.backend.incr(KEY_PREFIX + scope))

    def is_current(self, scope, token):
        latest = self.backend.get(KEY_PREFIX + scope)
        return latest is not None and int(latest) == token


async def debounced_search(client, generations, scope, query, page, per_page, delay):
    """Run a product search unless a newer one supersedes it.

    Returns the list result, or None when this request was superseded.
    """
    token = generations.begin(scope)
    if delay:
        await asyncio.sleep(delay)
    if not generations.is_current(scope, token):
        logger.debug("Search %s for %r superseded before fetch", token, query)
        return None

    result = await product_service.list_products(client, page, per_page, query)

    if not generations.is_current(scope, token):
        logger.debug("Search %s for %r superseded in flight, dropping", token, query)
        return None
    return result
