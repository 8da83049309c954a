import logging
import math

from app.models.product import ProductSnapshot
from app.services import payload_service

logger = logging.getLogger(__name__)


def _products_url(client, path=""):
    return client.context.product_url(f"/api/products{path}")


async def list_products(client, page=1, per_page=50, query=""):
    """One page of the product list, filtered by ``query``."""
    data = await client.get(
        _products_url(client),
        params={"page": page, "limit": per_page, "q": query or ""},
    )
    items = data.get("data") if isinstance(data, dict) else None
    if not isinstance(items, list):
        return {"products": [], "total": 0, "total_pages": 1, "page": page}

    total = (data.get("pagination") or {}).get("total") or 0
    return {
        "products": items,
        "total": total,
        "total_pages": total_pages(total, per_page),
        "page": page,
    }


def total_pages(total, per_page):
    return max(1, math.ceil(total / per_page)) if per_page else 1


def page_window(current, total, max_visible=5):
    """Page numbers to link, at most ``max_visible`` centred on ``current``."""
    start = max(1, current - max_visible // 2)
    end = min(total, start + max_visible - 1)
    if end - start + 1 < max_visible:
        start = max(1, end - max_visible + 1)
    return list(range(start, end + 1))


async def get_product(client, product_id):
    data = await client.get(_products_url(client, f"/{product_id}"))
    return ProductSnapshot.from_api(data)


async def process_product(client, payload):
    """Send an action-tagged payload; the backend applies it in one call."""
    logger.info(
        "Processing product %s: %s",
        payload["product"].get("id", "(new)"),
        payload_service.summarize(payload),
    )
    return await client.post(_products_url(client, "/process"), json=payload)


async def delete_product(client, product_id):
    """Delete a product and everything attached to it.

    Loads the current snapshot first so every image and variance is
    tagged for deletion.
    """
    snapshot = await get_product(client, product_id)
    payload = payload_service.build_delete_payload(snapshot, product_id)
    return await process_product(client, payload)
