from dataclasses import dataclass
from datetime import datetime
from typing import Optional


@dataclass
class Customer:
    id: int
    name: str = ""
    phone: str = ""
    email: str = ""
    control_mode: str = "BOT"  # BOT or ADMIN

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data["id"],
            name=data.get("name") or "",
            phone=data.get("phone") or "",
            email=data.get("email") or "",
            control_mode=data.get("control_mode") or "BOT",
        )

    @property
    def initials(self):
        """Up to two initials for the avatar; "None" names render as N."""
        name = (self.name or "").strip()
        if not name or name.lower() == "none":
            name = "None"
        initials = "".join(part[0] for part in name.split()[:2]).upper()
        return initials or "?"


@dataclass
class Session:
    id: int
    started_at: Optional[datetime] = None
    last_active_at: Optional[datetime] = None
    ended_at: Optional[datetime] = None

    @classmethod
    def from_api(cls, data):
        return cls(
            id=data["id"],
            started_at=_parse_datetime(data.get("started_at")),
            last_active_at=_parse_datetime(data.get("last_active_at")),
            ended_at=_parse_datetime(data.get("ended_at")),
        )


@dataclass
class ChatMessage:
    type: str
    content: str

    @property
    def from_customer(self):
        return self.type == "human"

    @classmethod
    def from_api(cls, data):
        return cls(type=data.get("type") or "", content=data.get("content") or "")


def _parse_datetime(value):
    if not value:
        return None
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (TypeError, ValueError):
        return None
