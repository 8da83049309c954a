"""Product form actions.

Every button of the product form posts the whole form plus an ``op`` value
such as ``add_value:1`` or ``remove_value:0:2``. The form fields are applied
to the draft first, then the op is dispatched.
"""
import inspect
import logging

from flask import flash

from app.exceptions import EntityNotFoundError
from app.services import image_service, product_service, variant_service

logger = logging.getLogger(__name__)

# ops that leave the form page on success
SUBMIT = "submit"
DELETE = "delete"


def parse_op(raw):
    """Split ``"remove_value:0:2"`` into ("remove_value", [0, 2])."""
    name, *args = (raw or "save_fields").split(":")
    try:
        return name, [int(a) for a in args]
    except ValueError:
        raise EntityNotFoundError("Form action", raw)


def _number(raw, cast, label):
    if raw in (None, ""):
        return None
    try:
        return cast(raw)
    except ValueError:
        raise ValueError(f"{label} must be a number")


# ---------------------------------------------------------------------------
# Form state
# ---------------------------------------------------------------------------

def apply_form(draft, form):
    """Copy submitted fields, group names and variant rows into the draft."""
    if "name" in form:
        draft.fields.update_from_form(form)

    for variant in draft.variants:
        prefix = f"variant-{variant.key}-"
        if prefix + "price" not in form:
            continue
        variant_service.update_variant(
            draft.variants,
            variant.key,
            price=_number(form.get(prefix + "price"), float, "Price"),
            sale_price=_number(form.get(prefix + "sale_price"), float, "Sale price"),
            stock=_number(form.get(prefix + "stock"), int, "Stock"),
            sku=form.get(prefix + "sku", "").strip(),
        )

    renamed = False
    try:
        for index, group in enumerate(draft.option_set.groups):
            key = f"group-{index}-name"
            if key not in form:
                continue
            old_name, new_name = group.name, form[key].strip()
            if new_name != old_name:
                draft.option_set.rename_group(index, new_name)
                variant_service.rename_attribute(draft.variants, old_name, new_name)
                renamed = True
    finally:
        # a rename can make a group valid or invalid
        if renamed:
            draft.regenerate()


# ---------------------------------------------------------------------------
# Ops
# ---------------------------------------------------------------------------

def _handle_save_fields(draft, form, files):
    flash("Changes saved.", "success")


def _handle_add_group(draft, form, files):
    if draft.option_set.add_group() is None:
        flash("A product can have at most 3 option groups.", "error")


def _handle_add_value(draft, form, files, index):
    value = form.get(f"group-{index}-new_value", "")
    if draft.option_set.add_value(index, value):
        draft.regenerate()


def _handle_remove_value(draft, form, files, index, value_index):
    draft.option_set.remove_value(index, value_index)
    draft.regenerate()


def _handle_remove_group(draft, form, files, index):
    draft.option_set.remove_group(index)
    draft.regenerate()


def _handle_regenerate(draft, form, files):
    draft.regenerate()


def _handle_bulk_edit(draft, form, files):
    variant_service.apply_bulk_edit(
        draft.variants,
        price=_number(form.get("bulk_price"), float, "Bulk price"),
        stock=_number(form.get("bulk_stock"), int, "Bulk stock"),
        sku_prefix=form.get("bulk_sku_prefix", "").strip() or None,
    )
    flash("Bulk edit applied.", "success")


def _handle_remove_image(draft, form, files, index):
    image_service.remove_image(draft.images, index)


async def _handle_upload_images(draft, form, files, client):
    uploads = []
    for storage in files.getlist("images"):
        if not storage or not storage.filename:
            continue
        if storage.mimetype not in image_service.ALLOWED_CONTENT_TYPES:
            flash(f"{storage.filename}: unsupported image type", "error")
            continue
        uploads.append((storage.filename, storage.read()))

    if not uploads:
        flash("Choose at least one image to upload.", "error")
        return

    urls, errors = await image_service.upload_images(client, uploads)
    image_service.stage_uploaded(draft.images, urls)
    for error in errors:
        flash(error, "error")
    if urls:
        flash(f"Uploaded {len(urls)} image(s).", "success")


async def _handle_submit(draft, form, files, client):
    if not draft.fields.name:
        raise ValueError("Product name is required")
    payload = draft.build_payload()
    await product_service.process_product(client, payload)
    flash("Product created." if draft.is_new else "Product updated.", "success")


async def _handle_delete(draft, form, files, client):
    payload = draft.build_payload(delete=True)
    await product_service.process_product(client, payload)
    flash("Product deleted.", "success")


SYNC_OPS = {
    "save_fields": _handle_save_fields,
    "add_group": _handle_add_group,
    "add_value": _handle_add_value,
    "remove_value": _handle_remove_value,
    "remove_group": _handle_remove_group,
    "regenerate": _handle_regenerate,
    "bulk_edit": _handle_bulk_edit,
    "remove_image": _handle_remove_image,
}

ASYNC_OPS = {
    "upload_images": _handle_upload_images,
    SUBMIT: _handle_submit,
    DELETE: _handle_delete,
}


async def dispatch(draft, op, args, form, files, client_factory):
    """Run one op against ``draft``.

    ``client_factory`` is only called for ops that talk to the backend.
    Raises EntityNotFoundError for unknown ops or stale indices.
    """
    if op in SYNC_OPS:
        handler = SYNC_OPS[op]
        _check_args(handler, op, args, fixed=3)
        handler(draft, form, files, *args)
        return
    if op not in ASYNC_OPS:
        raise EntityNotFoundError("Form action", op)
    handler = ASYNC_OPS[op]
    _check_args(handler, op, args, fixed=4)
    async with client_factory() as client:
        await handler(draft, form, files, client, *args)


def _check_args(handler, op, args, fixed):
    if len(inspect.signature(handler).parameters) - fixed != len(args):
        raise EntityNotFoundError("Form action", op)
