"""Server-shaped product records and the form fields edited over them.

A ProductSnapshot is what the product API returned when the form was
opened. It is never mutated; payloads are computed by diffing the current
form state against it.
"""
from dataclasses import asdict, dataclass, field
from typing import List, Optional


def _to_float(value, default=0.0):
    if value in (None, ""):
        return default
    return float(value)


def _to_int(value, default=0):
    if value in (None, ""):
        return default
    return int(float(value))


@dataclass
class ProductCore:
    id: Optional[int] = None
    name: str = ""
    brand: str = ""
    short_description: str = ""
    description: str = ""
    has_variants: bool = False
    general_attributes: List[dict] = field(default_factory=list)

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            brand=data.get("brand") or "",
            short_description=data.get("short_description") or "",
            description=data.get("description") or "",
            has_variants=bool(data.get("has_variants")),
            general_attributes=[
                {"name": a.get("name", ""), "value": a.get("value", "")}
                for a in data.get("general_attributes") or []
            ],
        )


@dataclass
class ProductImage:
    id: Optional[int]
    url: str
    position: int = 0

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data.get("id"),
            url=data.get("url") or "",
            position=_to_int(data.get("position")),
        )


@dataclass
class ProductPrice:
    id: Optional[int]
    price: float = 0.0
    sale_price: float = 0.0

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data.get("id"),
            price=_to_float(data.get("price")),
            sale_price=_to_float(data.get("sale_price")),
        )


@dataclass
class ProductVariance:
    id: Optional[int]
    name: str = ""
    sku: str = ""
    stock: int = 0
    attributes: dict = field(default_factory=dict)
    price: Optional[ProductPrice] = None

    @property
    def price_id(self):
        return self.price.id if self.price else None

    @classmethod
    def from_api(cls, data):
        price = data.get("price")
        return cls(
            id=data.get("id"),
            name=data.get("name") or "",
            sku=data.get("sku") or "",
            stock=_to_int(data.get("stock")),
            attributes=dict(data.get("attributes") or {}),
            price=ProductPrice.from_api(price) if price else None,
        )


@dataclass
class ProductSnapshot:
    product: ProductCore
    images: List[ProductImage] = field(default_factory=list)
    variances: List[ProductVariance] = field(default_factory=list)
    variant_options: List[dict] = field(default_factory=list)

    @property
    def product_id(self):
        return self.product.id

    @classmethod
    def from_api(cls, data):
        """Parse the product detail response of the product API."""
        return cls(
            product=ProductCore.from_api(data.get("product") or {}),
            images=[ProductImage.from_api(i) for i in data.get("images") or []],
            variances=[
                ProductVariance.from_api(v) for v in data.get("variances") or []
            ],
            variant_options=[
                {"name": o.get("name", ""), "values": list(o.get("values") or [])}
                for o in data.get("variant_options") or []
            ],
        )

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        return cls(
            product=ProductCore(**data["product"]),
            images=[ProductImage(**i) for i in data.get("images", [])],
            variances=[
                ProductVariance(
                    **{k: v for k, v in var.items() if k != "price"},
                    price=ProductPrice(**var["price"]) if var.get("price") else None,
                )
                for var in data.get("variances", [])
            ],
            variant_options=data.get("variant_options", []),
        )


@dataclass
class ProductFields:
    """Core form fields plus the base price/stock/SKU of the default variance."""

    name: str = ""
    brand: str = ""
    short_description: str = ""
    description: str = ""
    has_variants: bool = False
    base_price: float = 0.0
    base_sale_price: float = 0.0
    base_stock: int = 0
    base_sku: str = ""
    general_attributes: List[dict] = field(default_factory=list)

    @classmethod
    def from_snapshot(cls, snapshot):
        if snapshot is None:
            return cls()
        core = snapshot.product
        fields = cls(
            name=core.name,
            brand=core.brand,
            short_description=core.short_description,
            description=core.description,
            has_variants=core.has_variants,
            general_attributes=[dict(a) for a in core.general_attributes],
        )
        if snapshot.variances:
            first = snapshot.variances[0]
            fields.base_stock = first.stock
            fields.base_sku = first.sku
            if first.price:
                fields.base_price = first.price.price
                fields.base_sale_price = first.price.sale_price
        return fields

    def update_from_form(self, form):
        """Apply submitted form values. Raises ValueError on bad numbers."""
        self.name = form.get("name", "").strip()
        self.brand = form.get("brand", "").strip()
        self.short_description = form.get("short_description", "").strip()
        self.description = form.get("description", "").strip()
        self.has_variants = form.get("has_variants") in ("on", "true", "1")
        try:
            self.base_price = _to_float(form.get("base_price"))
            self.base_sale_price = _to_float(form.get("base_sale_price"))
            self.base_stock = _to_int(form.get("base_stock"))
        except ValueError:
            raise ValueError("Price and stock must be numbers")
        self.base_sku = form.get("base_sku", "").strip()
        self.general_attributes = parse_attributes(form.get("general_attributes", ""))

    def to_dict(self):
        return asdict(self)


def parse_attributes(text):
    """Parse "Name: Value" lines. Lines without both parts are ignored."""
    attributes = []
    for line in text.splitlines():
        if ":" not in line:
            continue
        name, value = line.split(":", 1)
        name, value = name.strip(), value.strip()
        if name and value:
            attributes.append({"name": name, "value": value})
    return attributes


def format_attributes(attributes):
    return "\n".join(f"{a['name']}: {a['value']}" for a in attributes)
