from cycle_login.schemas.records import UserRecord, VisitRecord, normalize_username
from cycle_login.schemas.api import (
    BulkLicenseSchema,
    CreateUserSchema,
    DevAuthSchema,
    DurationSchema,
    LicensePatchSchema,
    ValidateSchema,
)

__all__ = [
    "UserRecord",
    "VisitRecord",
    "normalize_username",
    "BulkLicenseSchema",
    "CreateUserSchema",
    "DevAuthSchema",
    "DurationSchema",
    "LicensePatchSchema",
    "ValidateSchema",
]
