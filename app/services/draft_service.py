"""In-progress product forms.

A draft is seeded from a server snapshot (or empty for a new product),
mutated by operator actions, and turned into a payload only on submit.
Drafts live in Redis with a TTL, or in process memory when Redis is not
configured.
"""
from dataclasses import dataclass, field
import json
import logging
import threading
from typing import List, Optional
import uuid

from flask import current_app

from app import extensions
from app.exceptions import EntityNotFoundError
from app.models.image import StagedImage
from app.models.product import ProductFields, ProductSnapshot
from app.models.variant import OptionSet, Variant
from app.services import image_service, payload_service, variant_service

logger = logging.getLogger(__name__)

KEY_PREFIX = "draft:"


@dataclass
class ProductDraft:
    draft_id: str
    snapshot: Optional[ProductSnapshot] = None
    fields: ProductFields = field(default_factory=ProductFields)
    images: List[StagedImage] = field(default_factory=list)
    option_set: OptionSet = field(default_factory=OptionSet)
    variants: List[Variant] = field(default_factory=list)

    @property
    def product_id(self):
        return self.snapshot.product_id if self.snapshot else None

    @property
    def is_new(self):
        return self.product_id is None

    @classmethod
    def new(cls, snapshot=None):
        draft = cls(
            draft_id=uuid.uuid4().hex,
            snapshot=snapshot,
            fields=ProductFields.from_snapshot(snapshot),
            images=image_service.images_from_snapshot(snapshot),
            option_set=variant_service.option_set_from_snapshot(snapshot),
            variants=variant_service.variants_from_snapshot(snapshot),
        )
        # fill in combinations the backend lacks and put rows in option order
        if draft.fields.has_variants:
            draft.regenerate()
        return draft

    def regenerate(self):
        self.variants = variant_service.generate_variants(self.option_set, self.variants)
        return self.variants

    def build_payload(self, delete=False):
        return payload_service.build_payload(
            self.snapshot,
            self.fields,
            self.images,
            self.variants,
            option_set=self.option_set,
            delete=delete,
        )

    def to_json(self):
        return json.dumps(
            {
                "draft_id": self.draft_id,
                "snapshot": self.snapshot.to_dict() if self.snapshot else None,
                "fields": self.fields.to_dict(),
                "images": [i.to_dict() for i in self.images],
                "option_set": self.option_set.to_list(),
                "variants": [v.to_dict() for v in self.variants],
            }
        )

    @classmethod
    def from_json(cls, raw):
        data = json.loads(raw)
        return cls(
            draft_id=data["draft_id"],
            snapshot=ProductSnapshot.from_dict(data["snapshot"]) if data.get("snapshot") else None,
            fields=ProductFields(**data["fields"]),
            images=[StagedImage.from_dict(i) for i in data.get("images", [])],
            option_set=OptionSet.from_list(data.get("option_set")),
            variants=[Variant.from_dict(v) for v in data.get("variants", [])],
        )


class MemoryBackend:
    """Process-local stand-in for Redis (dev and tests). TTL is not enforced."""

    def __init__(self):
        self._data = {}
        self._lock = threading.Lock()

    def get(self, key):
        with self._lock:
            return self._data.get(key)

    def set(self, key, value, ex=None):
        with self._lock:
            self._data[key] = value

    def delete(self, key):
        with self._lock:
            self._data.pop(key, None)

    def incr(self, key):
        with self._lock:
            value = int(self._data.get(key, 0)) + 1
            self._data[key] = value
            return value


_memory_backend = MemoryBackend()


def get_backend():
    """Redis when configured, else the shared in-process backend."""
    return extensions.redis_client or _memory_backend


class DraftStore:
    def __init__(self, backend=None, ttl=None):
        self.backend = backend or get_backend()
        self.ttl = ttl if ttl is not None else current_app.config["DRAFT_TTL_SECONDS"]

    def save(self, draft):
        self.backend.set(KEY_PREFIX + draft.draft_id, draft.to_json(), ex=self.ttl)
        return draft

    def load(self, draft_id):
        raw = self.backend.get(KEY_PREFIX + draft_id)
        if raw is None:
            raise EntityNotFoundError("Draft", draft_id)
        return ProductDraft.from_json(raw)

    def discard(self, draft_id):
        self.backend.delete(KEY_PREFIX + draft_id)
