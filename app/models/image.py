from dataclasses import asdict, dataclass
from typing import Optional


@dataclass
class StagedImage:
    """An image shown in the product form.

    Images loaded from the server carry their ``id``; freshly uploaded ones
    have ``id=None`` until the product is saved.
    """

    url: str
    id: Optional[int] = None

    @property
    def is_new(self):
        return self.id is None

    def to_dict(self):
        return asdict(self)

    @classmethod
    def from_dict(cls, data):
        return cls(url=data["url"], id=data.get("id"))

    def __repr__(self):
        state = "new" if self.is_new else f"#{self.id}"
        return f"<StagedImage {state} {self.url}>"
