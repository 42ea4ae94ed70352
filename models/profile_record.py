from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Dict, Mapping, Optional

from utils.timestamps import parse_timestamp, to_iso

PROFILE_COLUMNS = (
    "id",
    "first_name",
    "last_name",
    "date_of_birth",
    "phone",
    "address",
    "updated_at",
)


@dataclass
class ProfileRecord:
    """In-memory representation of a row in the profiles table.

    Attributes:
        id: Primary key, equal to the authenticated user's id.
        email: Email from the auth identity. Not stored in the profiles table.
        first_name: Optional given name.
        last_name: Optional family name.
        date_of_birth: Optional ISO date string (YYYY-MM-DD).
        phone: Optional phone number.
        address: Optional postal address.
        updated_at: Instant of the last successful save, None before the first.
        is_new_user: True while the record only exists locally.
    """

    id: str
    email: str = ""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    date_of_birth: Optional[str] = None
    phone: Optional[str] = None
    address: Optional[str] = None
    updated_at: Optional[datetime] = None
    is_new_user: bool = False

    @classmethod
    def new_for_user(cls, user_id: str, email: str) -> "ProfileRecord":
        """Default record for a user that has no stored profile yet."""
        return cls(id=user_id, email=email, is_new_user=True)

    @classmethod
    def from_row(cls, row: Mapping[str, Any], email: str = "") -> "ProfileRecord":
        updated_at = row.get("updated_at")
        return cls(
            id=str(row["id"]),
            email=email,
            first_name=row.get("first_name"),
            last_name=row.get("last_name"),
            date_of_birth=row.get("date_of_birth"),
            phone=row.get("phone"),
            address=row.get("address"),
            updated_at=parse_timestamp(updated_at) if updated_at else None,
        )

    def to_row(self) -> Dict[str, Any]:
        """Columns written on upsert (email and the local flag are excluded)."""
        return {
            "id": self.id,
            "first_name": self.first_name,
            "last_name": self.last_name,
            "date_of_birth": self.date_of_birth,
            "phone": self.phone,
            "address": self.address,
            "updated_at": to_iso(self.updated_at) if self.updated_at else None,
        }

    def to_dict(self) -> Dict[str, Any]:
        data = self.to_row()
        data["email"] = self.email
        data["is_new_user"] = self.is_new_user
        return data
