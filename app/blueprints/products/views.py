"""Product list, search and the product form."""
import logging

from flask import (
    abort,
    current_app,
    flash,
    redirect,
    render_template,
    request,
    url_for,
)

from app.blueprints.auth.session import api_client, login_required, search_scope
from app.blueprints.products import products_bp
from app.blueprints.products import form_actions
from app.exceptions import ApiError, EntityNotFoundError, SessionExpiredError
from app.models.product import format_attributes
from app.models.variant import MAX_OPTION_GROUPS
from app.services import product_service, search_service
from app.services.draft_service import DraftStore, ProductDraft

logger = logging.getLogger(__name__)


def _list_context(result, query):
    return {
        "products": result["products"],
        "page": result["page"],
        "total_pages": result["total_pages"],
        "pages": product_service.page_window(result["page"], result["total_pages"]),
        "query": query,
    }


def _session_expired_response():
    flash("Your session has expired. Please log in again.", "error")
    return render_template("dashboard/session_expired.html"), 401


@products_bp.route("/")
@login_required
async def product_list():
    query = request.args.get("q", "").strip()
    page = max(1, request.args.get("page", 1, type=int))
    per_page = current_app.config["PRODUCTS_PER_PAGE"]

    try:
        async with api_client() as client:
            result = await product_service.list_products(client, page, per_page, query)
    except SessionExpiredError:
        return _session_expired_response()
    except ApiError as e:
        logger.warning("Product list failed: %s", e.message)
        flash(e.message, "error")
        result = {"products": [], "total": 0, "total_pages": 1, "page": page}

    return render_template("products/list.html", **_list_context(result, query))


@products_bp.route("/search")
@login_required
async def product_search():
    """Results fragment for the search box. 204 when superseded by a newer search."""
    query = request.args.get("q", "").strip()
    page = max(1, request.args.get("page", 1, type=int))
    per_page = current_app.config["PRODUCTS_PER_PAGE"]
    delay = current_app.config["SEARCH_DEBOUNCE_MS"] / 1000

    try:
        async with api_client() as client:
            result = await search_service.debounced_search(
                client,
                search_service.SearchGenerations(),
                search_scope(),
                query,
                page,
                per_page,
                delay,
            )
    except SessionExpiredError:
        return _session_expired_response()
    except ApiError as e:
        return render_template("products/_results.html", error=e.message, products=[]), 502

    if result is None:
        return "", 204
    return render_template("products/_results.html", **_list_context(result, query))


@products_bp.route("/new")
@login_required
def new_product():
    draft = DraftStore().save(ProductDraft.new())
    return redirect(url_for("products.edit_draft", draft_id=draft.draft_id))


@products_bp.route("/<int:product_id>/edit")
@login_required
async def edit_product(product_id):
    try:
        async with api_client() as client:
            snapshot = await product_service.get_product(client, product_id)
    except SessionExpiredError:
        return _session_expired_response()
    except ApiError as e:
        logger.warning("Loading product %s failed: %s", product_id, e.message)
        flash(e.message, "error")
        return redirect(url_for("products.product_list"))

    draft = DraftStore().save(ProductDraft.new(snapshot))
    return redirect(url_for("products.edit_draft", draft_id=draft.draft_id))


@products_bp.route("/<int:product_id>/delete", methods=["POST"])
@login_required
async def delete_product(product_id):
    try:
        async with api_client() as client:
            await product_service.delete_product(client, product_id)
    except SessionExpiredError:
        return _session_expired_response()
    except EntityNotFoundError as e:
        flash(f"Could not delete: {e}", "error")
    except ApiError as e:
        logger.warning("Deleting product %s failed: %s", product_id, e.message)
        flash(e.message, "error")
    else:
        flash("Product deleted.", "success")
    return redirect(url_for("products.product_list"))


@products_bp.route("/drafts/<draft_id>", methods=["GET"])
@login_required
def edit_draft(draft_id):
    try:
        draft = DraftStore().load(draft_id)
    except EntityNotFoundError:
        abort(404)
    return render_template(
        "products/form.html",
        draft=draft,
        attributes_text=format_attributes(draft.fields.general_attributes),
        max_groups=MAX_OPTION_GROUPS,
    )


@products_bp.route("/drafts/<draft_id>", methods=["POST"])
@login_required
async def update_draft(draft_id):
    store = DraftStore()
    try:
        draft = store.load(draft_id)
    except EntityNotFoundError:
        abort(404)

    try:
        op, args = form_actions.parse_op(request.form.get("op"))
        form_actions.apply_form(draft, request.form)
        await form_actions.dispatch(
            draft, op, args, request.form, request.files, api_client
        )
    except SessionExpiredError:
        store.save(draft)
        return _session_expired_response()
    except (ApiError, EntityNotFoundError, ValueError) as e:
        logger.warning("Form action on draft %s failed: %s", draft_id, e)
        flash(getattr(e, "message", None) or str(e), "error")
        store.save(draft)
        return redirect(url_for("products.edit_draft", draft_id=draft_id))

    if op in (form_actions.SUBMIT, form_actions.DELETE):
        store.discard(draft_id)
        return redirect(url_for("products.product_list"))

    store.save(draft)
    return redirect(url_for("products.edit_draft", draft_id=draft_id))
