"""Variant generation from option groups.

Variants are always the Cartesian product of the valid option groups.
Regenerating keeps the key, server ids, price, stock and SKU of every
combination that still exists; matching uses the sorted attribute pairs, so
a value containing the display separator cannot collide with another
combination.
"""
from app.models.variant import (
    VARIANT_NAME_SEPARATOR,
    OptionSet,
    Variant,
    VariantOptionGroup,
    new_variant_key,
)


def cartesian(value_lists):
    """All combinations, first list as the outer loop and last as the inner."""
    if not value_lists:
        return []
    combos = [[]]
    for values in value_lists:
        combos = [combo + [value] for combo in combos for value in values]
    return combos


def attribute_key(attributes):
    return tuple(sorted(attributes.items()))


def generate_variants(option_set, previous=()):
    """Return the variants for ``option_set``, reconciled against ``previous``."""
    groups = option_set.valid_groups()
    if not groups:
        return []

    by_attributes = {attribute_key(v.attributes): v for v in previous}
    variants = []
    for combo in cartesian([g.values for g in groups]):
        attributes = {g.name: value for g, value in zip(groups, combo)}
        name = VARIANT_NAME_SEPARATOR.join(combo)
        existing = by_attributes.get(attribute_key(attributes))
        if existing:
            variants.append(
                Variant(
                    key=existing.key,
                    name=name,
                    attributes=attributes,
                    id=existing.id,
                    price_id=existing.price_id,
                    price=existing.price,
                    sale_price=existing.sale_price,
                    stock=existing.stock,
                    sku=existing.sku,
                )
            )
        else:
            variants.append(
                Variant(key=new_variant_key(), name=name, attributes=attributes)
            )
    return variants


def apply_bulk_edit(variants, price=None, stock=None, sku_prefix=None):
    """Set price/stock on every variant and number SKUs as <prefix>-1, -2, ..."""
    for n, variant in enumerate(variants, start=1):
        if price is not None:
            variant.price = price
        if stock is not None:
            variant.stock = stock
        if sku_prefix:
            variant.sku = f"{sku_prefix}-{n}"
    return variants


def update_variant(variants, key, price=None, sale_price=None, stock=None, sku=None):
    for variant in variants:
        if variant.key == key:
            if price is not None:
                variant.price = price
            if sale_price is not None:
                variant.sale_price = sale_price
            if stock is not None:
                variant.stock = stock
            if sku is not None:
                variant.sku = sku
            return variant
    return None


def rename_attribute(variants, old_name, new_name):
    """Follow an option group rename so existing combinations keep matching."""
    if not old_name or old_name == new_name:
        return variants
    for variant in variants:
        if old_name in variant.attributes:
            variant.attributes = {
                (new_name if k == old_name else k): v
                for k, v in variant.attributes.items()
            }
    return variants


def option_set_from_snapshot(snapshot):
    """Option groups of a loaded product.

    Uses the stored variant_options when the backend sent them, else
    rebuilds groups from the variance attributes in first-seen order.
    """
    if snapshot is None:
        return OptionSet()
    if snapshot.variant_options:
        return OptionSet.from_list(snapshot.variant_options)

    groups = {}
    for variance in snapshot.variances:
        for name, value in variance.attributes.items():
            group = groups.setdefault(name, VariantOptionGroup(name=name))
            group.add_value(value)
    return OptionSet(list(groups.values()))


def variants_from_snapshot(snapshot):
    if snapshot is None or not snapshot.product.has_variants:
        return []
    return [
        Variant(
            key=new_variant_key(),
            name=v.name or VARIANT_NAME_SEPARATOR.join(v.attributes.values()),
            attributes=dict(v.attributes),
            id=v.id,
            price_id=v.price_id,
            price=v.price.price if v.price else 0.0,
            sale_price=v.price.sale_price if v.price else 0.0,
            stock=v.stock,
            sku=v.sku,
        )
        for v in snapshot.variances
        if v.attributes
    ]
