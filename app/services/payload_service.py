"""Turn product form state into the action-tagged process-product payload.

The diff baseline is always the snapshot loaded from the server when the
form was opened, never an earlier in-memory generation of variants. Every
snapshot entity appears exactly once in the output; everything without a
server id is a create.
"""
import enum
import logging

from app.exceptions import EntityNotFoundError

logger = logging.getLogger(__name__)

DEFAULT_VARIANCE_NAME = "Default"


class Action(str, enum.Enum):
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    KEEP = "keep"


def build_payload(snapshot, fields, images, variants, option_set=None, delete=False):
    """Build the payload for /api/products/process.

    Args:
        snapshot: ProductSnapshot loaded from the server, or None when creating
        fields: current ProductFields
        images: current list of StagedImage
        variants: current generated list of Variant
        option_set: current OptionSet (stored on the product for re-editing)
        delete: True to delete the whole product
    """
    if delete:
        if snapshot is None or snapshot.product_id is None:
            raise EntityNotFoundError("Product", None)
        return _delete_everything(snapshot)

    product_id = snapshot.product_id if snapshot else None
    core = {
        "action": (Action.CREATE if product_id is None else Action.UPDATE).value,
        "name": fields.name,
        "brand": fields.brand,
        "short_description": fields.short_description,
        "description": fields.description,
        "has_variants": fields.has_variants,
        "general_attributes": [
            {"name": a["name"], "value": a["value"]}
            for a in fields.general_attributes
            if a.get("name") and a.get("value")
        ],
        "variant_options": (
            [
                {"name": g.name, "values": list(g.values)}
                for g in option_set.valid_groups()
            ]
            if option_set is not None and fields.has_variants and variants
            else []
        ),
    }
    if product_id is not None:
        core["id"] = product_id

    # no valid option groups falls back to the base price/stock fields
    if fields.has_variants and variants:
        variances = _variances_from_variants(snapshot, variants)
    else:
        variances = _default_variance(snapshot, fields)

    return {
        "product": core,
        "images": _image_entries(snapshot, images),
        "variances": variances,
    }


def build_delete_payload(snapshot, product_id):
    """Payload deleting product ``product_id``.

    Refuses (EntityNotFoundError) when ``snapshot`` is not that product, so
    a stale id never turns into a partial payload.
    """
    if snapshot is None or snapshot.product_id is None or snapshot.product_id != product_id:
        logger.warning("Refusing delete payload: product %s not loaded", product_id)
        raise EntityNotFoundError("Product", product_id)
    return _delete_everything(snapshot)


def _delete_everything(snapshot):
    return {
        "product": {"action": Action.DELETE.value, "id": snapshot.product_id},
        "images": [
            {"action": Action.DELETE.value, "id": img.id}
            for img in snapshot.images
            if img.id is not None
        ],
        "variances": [_deleted_variance(v) for v in snapshot.variances if v.id is not None],
    }


def _image_entries(snapshot, images):
    original_ids = {img.id for img in snapshot.images} if snapshot else set()
    entries = []
    kept = set()
    for position, image in enumerate(images):
        if image.id is not None and image.id in original_ids and image.id not in kept:
            kept.add(image.id)
            entries.append(
                {
                    "action": Action.KEEP.value,
                    "id": image.id,
                    "url": image.url,
                    "position": position,
                }
            )
        else:
            entries.append(
                {"action": Action.CREATE.value, "url": image.url, "position": position}
            )

    if snapshot:
        for image in snapshot.images:
            if image.id is not None and image.id not in kept:
                entries.append({"action": Action.DELETE.value, "id": image.id})
    return entries


def _price_entry(price_id, price, sale_price):
    entry = {
        "action": (Action.CREATE if price_id is None else Action.UPDATE).value,
        "price": float(price or 0),
        "sale_price": float(sale_price or 0),
    }
    if price_id is not None:
        entry["id"] = price_id
    return entry


def _deleted_variance(variance):
    entry = {"action": Action.DELETE.value, "id": variance.id}
    if variance.price_id is not None:
        entry["price"] = {"action": Action.DELETE.value, "id": variance.price_id}
    return entry


def _default_variance(snapshot, fields):
    """The single synthetic variance used when the product has no variants.

    Reuses the first original variance (and its price) so switching
    variants off does not orphan a record.
    """
    originals = [v for v in snapshot.variances if v.id is not None] if snapshot else []
    reused = originals[0] if originals else None

    entry = {
        "action": (Action.UPDATE if reused else Action.CREATE).value,
        "name": DEFAULT_VARIANCE_NAME,
        "sku": fields.base_sku,
        "stock": int(fields.base_stock or 0),
        "attributes": {},
        "price": _price_entry(
            reused.price_id if reused else None,
            fields.base_price,
            fields.base_sale_price,
        ),
    }
    if reused:
        entry["id"] = reused.id

    return [entry] + [_deleted_variance(v) for v in originals[1:]]


def _variances_from_variants(snapshot, variants):
    originals = {v.id: v for v in snapshot.variances if v.id is not None} if snapshot else {}
    entries = []
    represented = set()
    for variant in variants:
        original = originals.get(variant.id) if variant.id is not None else None
        if original is not None and variant.id in represented:
            # the same server row can only be updated once
            original = None
        price_id = original.price_id if original else None

        entry = {
            "action": (Action.UPDATE if original else Action.CREATE).value,
            "name": variant.name,
            "sku": variant.sku,
            "stock": int(variant.stock or 0),
            "attributes": dict(variant.attributes),
            "price": _price_entry(price_id, variant.price, variant.sale_price),
        }
        if original:
            entry["id"] = original.id
            represented.add(original.id)
        entries.append(entry)

    for variance_id, variance in originals.items():
        if variance_id not in represented:
            entries.append(_deleted_variance(variance))
    return entries


def summarize(payload):
    """Count entities per action, e.g. {"images": {"keep": 1, "create": 1}}."""
    summary = {}
    for section in ("images", "variances"):
        counts = {}
        for entry in payload.get(section, []):
            counts[entry["action"]] = counts.get(entry["action"], 0) + 1
        summary[section] = counts
    summary["product"] = payload["product"]["action"]
    return summary
