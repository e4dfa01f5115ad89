"""Pydantic schemas for request and response bodies (camelCase on the wire)."""
from pydantic import BaseModel
from pydantic.alias_generators import to_camel


class WireModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True


class DevAuthSchema(WireModel):
    pin: str | None = None


class DevTokenOutSchema(WireModel):
    token: str


class ValidateSchema(WireModel):
    username: str | None = None
    pin: str | None = None
    cycle: int | float | str | None = None


class LicenseOutSchema(WireModel):
    expired: bool
    remaining_ms: int
    remaining_text: str


class ValidateOutSchema(WireModel):
    ok: bool
    dev: bool | None = None
    license_expires_at: int | None = None
    license: LicenseOutSchema | None = None
    error: str | None = None
    reason: str | None = None


class CountOutSchema(WireModel):
    count: int
    cycle: int


class DurationSchema(WireModel):
    username: str | None = None
    duration_ms: float | str | None = None


class CreateUserSchema(WireModel):
    username: str | None = None


class CreatedUserOutSchema(WireModel):
    ok: bool = True
    id: str
    cycle_codes: list[str]


class LicensePatchSchema(WireModel):
    """expiresAt present-but-null clears the license; absent leaves it alone."""

    expires_at: int | None = None
    remove_days: float | None = None
    add_days: float | None = None


class BulkLicenseSchema(WireModel):
    days: float | str | None = None


class BulkLicenseOutSchema(WireModel):
    ok: bool = True
    count: int


class UserOutSchema(WireModel):
    id: str
    username: str
    created_at: int
    license_expires_at: int | None = None
    license_expired: bool
    license_remaining: str
