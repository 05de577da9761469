"""Data models for QR code records."""

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Optional, Union


class RecordKind(str, Enum):
    """Kind of destination a record points at."""

    LINK = "link"
    CONTACT_CARD = "vcard"


@dataclass(frozen=True)
class LinkPayload:
    """Redirect destination."""

    url: str

    def to_dict(self) -> dict:
        return {"url": self.url}

    @classmethod
    def from_dict(cls, data: dict) -> "LinkPayload":
        return cls(url=data["url"])


# Wire/storage key for each ContactCardPayload attribute, in vCard line order.
CONTACT_FIELDS = {
    "first_name": "firstName",
    "last_name": "lastName",
    "email": "email",
    "phone": "phone",
    "organization": "organization",
    "title": "title",
    "website": "website",
}


@dataclass(frozen=True)
class ContactCardPayload:
    """Contact record. All values are already sanitized."""

    first_name: str
    last_name: str
    email: Optional[str] = None
    phone: Optional[str] = None
    organization: Optional[str] = None
    title: Optional[str] = None
    website: Optional[str] = None

    def to_dict(self) -> dict:
        """Convert to dictionary, omitting absent optional fields."""
        result = {}
        for attr, key in CONTACT_FIELDS.items():
            value = getattr(self, attr)
            if value is not None:
                result[key] = value
        return result

    @classmethod
    def from_dict(cls, data: dict) -> "ContactCardPayload":
        return cls(**{attr: data.get(key) for attr, key in CONTACT_FIELDS.items()})


Payload = Union[LinkPayload, ContactCardPayload]

PAYLOAD_TYPES = {
    RecordKind.LINK: LinkPayload,
    RecordKind.CONTACT_CARD: ContactCardPayload,
}


def payload_from_dict(kind: RecordKind, data: dict) -> Payload:
    """Rebuild a stored payload for the given kind."""
    return PAYLOAD_TYPES[RecordKind(kind)].from_dict(data)


@dataclass(frozen=True)
class Record:
    """A persisted short id -> destination mapping."""

    id: int
    short_id: str
    kind: RecordKind
    payload: Payload
    created_at: datetime
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not isinstance(self.payload, PAYLOAD_TYPES[self.kind]):
            raise TypeError(
                f"{type(self.payload).__name__} does not match record kind '{self.kind.value}'"
            )
        if self.updated_at is None:
            object.__setattr__(self, "updated_at", self.created_at)

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "shortId": self.short_id,
            "type": self.kind.value,
            "data": self.payload.to_dict(),
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Record":
        """Create from dictionary."""
        kind = RecordKind(data["type"])
        created_at = data["createdAt"]
        updated_at = data.get("updatedAt") or created_at
        return cls(
            id=data["id"],
            short_id=data["shortId"],
            kind=kind,
            payload=payload_from_dict(kind, data["data"]),
            created_at=created_at if isinstance(created_at, datetime) else datetime.fromisoformat(created_at),
            updated_at=updated_at if isinstance(updated_at, datetime) else datetime.fromisoformat(updated_at),
        )


def record_from_row(row) -> Record:
    """Build a Record from a SQL row mapping.

    ``payload`` may be a JSON string or an already decoded dict; timestamps may
    be datetimes or ISO strings.
    """
    kind = RecordKind(row["kind"])
    payload = row["payload"]
    if isinstance(payload, str):
        payload = json.loads(payload)

    def _ts(value):
        return value if isinstance(value, datetime) else datetime.fromisoformat(value)

    return Record(
        id=row["id"],
        short_id=row["short_id"],
        kind=kind,
        payload=payload_from_dict(kind, payload),
        created_at=_ts(row["created_at"]),
        updated_at=_ts(row["updated_at"]),
    )
