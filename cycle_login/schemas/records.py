"""Pydantic schemas for persisted records: users and page visits.

Field names are snake_case in Python and camelCase on the wire / in JSON
files, matching what browser clients already send.
"""
import math

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

CYCLE_COUNT = 5


def truncate_float(v):
    """Older clients wrote fractional epoch-ms values; keep the whole milliseconds."""
    if isinstance(v, float) and math.isfinite(v):
        return int(v)
    return v


class UserRecord(BaseModel):
    id: str
    username: str
    cycle_codes: list[str] = Field(min_length=CYCLE_COUNT, max_length=CYCLE_COUNT)
    created_at: int
    license_expires_at: int | None = None

    @field_validator("created_at", "license_expires_at", mode="before")
    @classmethod
    def whole_milliseconds(cls, v):
        return truncate_float(v)

    @field_validator("cycle_codes", mode="before")
    @classmethod
    def codes_as_strings(cls, v):
        if isinstance(v, list):
            return [str(code) if isinstance(code, int) and not isinstance(code, bool) else code for code in v]
        return v

    @field_validator("cycle_codes")
    @classmethod
    def codes_are_numeric(cls, v: list[str]) -> list[str]:
        for code in v:
            if not code.isdigit():
                raise ValueError("cycle codes must be numeric strings")
        return v

    @property
    def username_key(self) -> str:
        return normalize_username(self.username)

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


class VisitRecord(BaseModel):
    """One page visit. Unknown client fields are kept as-is."""

    username: str | None = None
    type: str | None = None
    referrer: str | None = None
    cycle: int | None = None
    timestamp: int | None = None
    duration_ms: int | None = None
    session_start: int | None = None

    @field_validator("cycle", "timestamp", "duration_ms", "session_start", mode="before")
    @classmethod
    def whole_numbers(cls, v):
        return truncate_float(v)

    @property
    def is_session(self) -> bool:
        return self.type == "app" or self.session_start is not None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True
        extra = "allow"


def normalize_username(username: str | None) -> str:
    return (username or "").strip().lower()


def dump_users(users: list[UserRecord]) -> list[dict]:
    return [u.model_dump(by_alias=True) for u in users]


def dump_visits(visits: list[VisitRecord]) -> list[dict]:
    return [v.model_dump(by_alias=True, exclude_none=True) for v in visits]
