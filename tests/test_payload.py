"""Tests for the action-tagged process-product payload."""
import pytest

from app.exceptions import EntityNotFoundError
from app.models.image import StagedImage
from app.models.product import ProductFields
from app.models.variant import OptionSet, VariantOptionGroup
from app.services import image_service, payload_service, variant_service


def _actions(entries):
    return sorted(e["action"] for e in entries)


def _fields(**kwargs):
    return ProductFields(name="Tee", **kwargs)


def test_new_product_is_all_create():
    options = OptionSet([VariantOptionGroup("Size", ["S", "M"])])
    variants = variant_service.generate_variants(options)
    payload = payload_service.build_payload(
        None,
        _fields(has_variants=True),
        [StagedImage(url="https://cdn.test/new.jpg")],
        variants,
        option_set=options,
    )

    assert payload["product"]["action"] == "create"
    assert "id" not in payload["product"]
    assert _actions(payload["images"]) == ["create"]
    assert _actions(payload["variances"]) == ["create", "create"]
    assert all(v["price"]["action"] == "create" for v in payload["variances"])
    assert payload["product"]["variant_options"] == [{"name": "Size", "values": ["S", "M"]}]


def test_images_keep_create_delete(snapshot):
    images = image_service.images_from_snapshot(snapshot)
    image_service.remove_image(images, 1)  # operator removed image #2
    image_service.stage_uploaded(images, ["https://cdn.test/3.jpg"])

    payload = payload_service.build_payload(
        snapshot,
        _fields(has_variants=True),
        images,
        variant_service.variants_from_snapshot(snapshot),
    )

    assert _actions(payload["images"]) == ["create", "delete", "keep"]
    deleted = [e for e in payload["images"] if e["action"] == "delete"]
    assert deleted == [{"action": "delete", "id": 2}]
    kept = [e for e in payload["images"] if e["action"] == "keep"]
    assert kept[0]["id"] == 1
    assert (payload["product"]["action"], payload["product"]["id"]) == ("update", 7)


def test_toggle_variants_off_reuses_first_variance(snapshot):
    fields = ProductFields.from_snapshot(snapshot)
    fields.has_variants = False
    fields.base_price = 30

    payload = payload_service.build_payload(
        snapshot,
        fields,
        image_service.images_from_snapshot(snapshot),
        variant_service.variants_from_snapshot(snapshot),
    )
    variances = payload["variances"]

    updated = [v for v in variances if v["action"] == "update"]
    deleted = [v for v in variances if v["action"] == "delete"]
    assert len(updated) == 1 and len(deleted) == 2
    assert updated[0]["id"] == 10
    assert updated[0]["name"] == "Default"
    assert updated[0]["attributes"] == {}
    assert updated[0]["price"] == {"action": "update", "id": 100, "price": 30.0, "sale_price": 0.0}
    assert sorted(v["id"] for v in deleted) == [11, 12]
    assert all(v["price"]["action"] == "delete" for v in deleted)


def test_default_variance_without_originals_is_created():
    payload = payload_service.build_payload(
        None, _fields(base_price=5, base_stock=2, base_sku="X"), [], []
    )
    assert payload["variances"] == [
        {
            "action": "create",
            "name": "Default",
            "sku": "X",
            "stock": 2,
            "attributes": {},
            "price": {"action": "create", "price": 5.0, "sale_price": 0.0},
        }
    ]


def test_has_variants_without_groups_falls_back_to_default(snapshot):
    payload = payload_service.build_payload(snapshot, _fields(has_variants=True), [], [])
    assert _actions(payload["variances"]) == ["delete", "delete", "update"]


def test_regenerated_variants_diff_against_snapshot(snapshot):
    options = variant_service.option_set_from_snapshot(snapshot)
    variants = variant_service.variants_from_snapshot(snapshot)

    options.remove_value(0, 2)  # drop Green
    options.add_value(0, "Black")
    variants = variant_service.generate_variants(options, variants)

    payload = payload_service.build_payload(
        snapshot, _fields(has_variants=True), [], variants, option_set=options
    )
    by_action = {}
    for v in payload["variances"]:
        by_action.setdefault(v["action"], []).append(v)

    assert sorted(v["id"] for v in by_action["update"]) == [10, 11]
    assert [v["name"] for v in by_action["create"]] == ["Black"]
    assert by_action["create"][0]["price"]["action"] == "create"
    assert [v["id"] for v in by_action["delete"]] == [12]
    assert by_action["delete"][0]["price"] == {"action": "delete", "id": 102}


def test_every_snapshot_entity_appears_once(snapshot):
    options = variant_service.option_set_from_snapshot(snapshot)
    variants = variant_service.generate_variants(
        options, variant_service.variants_from_snapshot(snapshot)
    )
    payload = payload_service.build_payload(
        snapshot, _fields(has_variants=True), [], variants, option_set=options
    )
    variance_ids = [v["id"] for v in payload["variances"] if "id" in v]
    image_ids = [i["id"] for i in payload["images"] if "id" in i]
    assert sorted(variance_ids) == [10, 11, 12]
    assert sorted(image_ids) == [1, 2]


def test_delete_request_ignores_ui_state(snapshot):
    options = OptionSet([VariantOptionGroup("Size", ["S", "M", "L"])])
    payload = payload_service.build_payload(
        snapshot,
        _fields(has_variants=True),
        [StagedImage(url="https://cdn.test/new.jpg")],
        variant_service.generate_variants(options),
        option_set=options,
        delete=True,
    )

    assert payload["product"] == {"action": "delete", "id": 7}
    assert payload["images"] == [
        {"action": "delete", "id": 1},
        {"action": "delete", "id": 2},
    ]
    assert [v["id"] for v in payload["variances"]] == [10, 11, 12]
    assert all(v["action"] == "delete" for v in payload["variances"])
    assert [v["price"] for v in payload["variances"]] == [
        {"action": "delete", "id": 100},
        {"action": "delete", "id": 101},
        {"action": "delete", "id": 102},
    ]


def test_delete_payload_refuses_unknown_product(snapshot):
    with pytest.raises(EntityNotFoundError):
        payload_service.build_delete_payload(snapshot, 8)
    with pytest.raises(EntityNotFoundError):
        payload_service.build_delete_payload(None, 7)
    with pytest.raises(EntityNotFoundError):
        payload_service.build_payload(None, _fields(), [], [], delete=True)

    payload = payload_service.build_delete_payload(snapshot, 7)
    assert payload["product"]["action"] == "delete"


def test_general_attributes_drop_blanks():
    fields = _fields(
        general_attributes=[
            {"name": "Material", "value": "Cotton"},
            {"name": "", "value": "x"},
        ]
    )
    payload = payload_service.build_payload(None, fields, [], [])
    assert payload["product"]["general_attributes"] == [
        {"name": "Material", "value": "Cotton"}
    ]


def test_summarize(snapshot):
    payload = payload_service.build_delete_payload(snapshot, 7)
    assert payload_service.summarize(payload) == {
        "product": "delete",
        "images": {"delete": 2},
        "variances": {"delete": 3},
    }
