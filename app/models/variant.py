from dataclasses import asdict, dataclass, field
from typing import List, Optional
import uuid

from app.exceptions import EntityNotFoundError

MAX_OPTION_GROUPS = 3
VARIANT_NAME_SEPARATOR = " - "


def new_variant_key():
    return uuid.uuid4().hex


@dataclass
class VariantOptionGroup:
    """An axis of variation, e.g. Color -> [Red, Blue]. Values keep insertion order."""

    name: str = ""
    values: List[str] = field(default_factory=list)

    @property
    def is_valid(self):
        return bool(self.name.strip()) and bool(self.values)

    def add_value(self, value):
        value = (value or "").strip()
        if not value or value in self.values:
            return False
        self.values.append(value)
        return True


class OptionSet:
    """Ordered option groups, capped at MAX_OPTION_GROUPS."""

    def __init__(self, groups=None):
        self.groups: List[VariantOptionGroup] = list(groups or [])

    def __len__(self):
        return len(self.groups)

    def __iter__(self):
        return iter(self.groups)

    def _group(self, index):
        if not 0 <= index < len(self.groups):
            raise EntityNotFoundError("Option group", index)
        return self.groups[index]

    def add_group(self, name=""):
        """Append a group. No-op (returns None) when the cap is reached."""
        if len(self.groups) >= MAX_OPTION_GROUPS:
            return None
        name = (name or "").strip()
        self._check_unique(name)
        group = VariantOptionGroup(name=name)
        self.groups.append(group)
        return group

    def rename_group(self, index, name):
        """Rename a group. Raises ValueError if another group has that name."""
        group = self._group(index)
        name = (name or "").strip()
        self._check_unique(name, skip=group)
        group.name = name

    def _check_unique(self, name, skip=None):
        # blank names are allowed while a group is being filled in
        if name and any(g.name == name for g in self.groups if g is not skip):
            raise ValueError(f"An option named '{name}' already exists")

    def add_value(self, index, value):
        return self._group(index).add_value(value)

    def remove_value(self, index, value_index):
        group = self._group(index)
        if not 0 <= value_index < len(group.values):
            raise EntityNotFoundError("Option value", value_index)
        return group.values.pop(value_index)

    def remove_group(self, index):
        self._group(index)
        return self.groups.pop(index)

    def valid_groups(self):
        """Named groups with values. A repeated name only counts once."""
        seen = set()
        groups = []
        for g in self.groups:
            if g.is_valid and g.name not in seen:
                seen.add(g.name)
                groups.append(g)
        return groups

    def to_list(self):
        return [asdict(g) for g in self.groups]

    @classmethod
    def from_list(cls, data):
        return cls(
            VariantOptionGroup(name=g.get("name", ""), values=list(g.get("values", [])))
            for g in data or []
        )


@dataclass
class Variant:
    """A sellable combination of one value per valid option group.

    ``key`` is assigned once and survives regeneration; ``id`` and
    ``price_id`` are the server ids, None for combinations not yet saved.
    """

    key: str
    name: str
    attributes: dict
    id: Optional[int] = None
    price_id: Optional[int] = None
    price: float = 0.0
    sale_price: float = 0.0
    stock: int = 0
    sku: str = ""

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        return cls(**data)
