"""Validated profile edits submitted from the Profile page."""

from __future__ import annotations

import re
from datetime import date
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

_PHONE = re.compile(r"^[0-9+\-() ]{3,32}$")


class ProfileUpdate(BaseModel):
    """Editable profile fields. Blank strings are stored as None."""

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    first_name: Optional[str] = Field(default=None, max_length=100)
    last_name: Optional[str] = Field(default=None, max_length=100)
    date_of_birth: Optional[date] = None
    phone: Optional[str] = None
    address: Optional[str] = Field(default=None, max_length=255)

    @field_validator("first_name", "last_name", "phone", "address", "date_of_birth", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @field_validator("phone")
    @classmethod
    def _check_phone(cls, value: Optional[str]) -> Optional[str]:
        if value is not None and not _PHONE.match(value):
            raise ValueError("Phone may only contain digits, spaces and + - ( )")
        return value

    @field_validator("date_of_birth")
    @classmethod
    def _check_birth_date(cls, value: Optional[date]) -> Optional[date]:
        if value is not None and value > date.today():
            raise ValueError("Date of birth cannot be in the future")
        return value

    def changes(self) -> dict:
        """Fields the client actually sent, in profile-row form."""
        data = self.model_dump(exclude_unset=True)
        if data.get("date_of_birth") is not None:
            data["date_of_birth"] = data["date_of_birth"].isoformat()
        return data
