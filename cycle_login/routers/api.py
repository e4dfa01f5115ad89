"""Public API routes: login validation, visit counter, visit telemetry."""
from fastapi import APIRouter

from cycle_login.routers.deps import SettingsDep, StoreDep
from cycle_login.schemas.api import (
    CountOutSchema,
    DurationSchema,
    LicenseOutSchema,
    ValidateOutSchema,
    ValidateSchema,
)
from cycle_login.schemas.records import VisitRecord
from cycle_login.services import auth, counter, license, visits

router = APIRouter(prefix="/api", tags=["api"])


def coerce_cycle(raw) -> int | float:
    """Missing, zero or non-numeric cycle falls back to cycle 1."""
    if isinstance(raw, str):
        try:
            raw = float(raw.strip())
        except ValueError:
            return 1
    if raw is None or raw != raw or raw == 0:  # NaN check
        return 1
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    return raw


def coerce_number(raw) -> float:
    if isinstance(raw, str):
        try:
            raw = float(raw.strip())
        except ValueError:
            return 0
    if raw is None or raw != raw:
        return 0
    return raw


@router.post("/validate", response_model=ValidateOutSchema, response_model_exclude_unset=True)
async def validate(body: ValidateSchema, store: StoreDep, settings: SettingsDep):
    """Check a PIN against the user's code for the given cycle."""
    result = await auth.login(store, body.username, body.pin, coerce_cycle(body.cycle), settings)
    if isinstance(result, auth.Rejected):
        return ValidateOutSchema(ok=False, error=result.message, reason=result.reason.value)
    if result.privileged:
        return ValidateOutSchema(ok=True, dev=True)
    status = license.license_status(result.user)
    return ValidateOutSchema(
        ok=True,
        license_expires_at=result.license_expires_at,
        license=LicenseOutSchema(
            expired=status.expired,
            remaining_ms=status.remaining_ms,
            remaining_text=status.remaining_text,
        ),
    )


@router.post("/visit-count/inc", response_model=CountOutSchema)
async def increment_visit_count(store: StoreDep):
    """Count a page visit and return the cycle it falls in."""
    count, cycle = await counter.increment_and_get_cycle(store)
    return CountOutSchema(count=count, cycle=cycle)


@router.get("/visit-count", response_model=CountOutSchema)
async def get_visit_count(store: StoreDep):
    count = await counter.get_count(store)
    return CountOutSchema(count=count, cycle=counter.cycle_from_count(count))


@router.post("/visits", status_code=201)
async def add_visit(body: VisitRecord, store: StoreDep):
    await visits.record(store, body)
    return {"ok": True}


@router.patch("/visits/last-duration")
async def update_last_duration(body: DurationSchema, store: StoreDep):
    """Called on page unload with how long the app session lasted."""
    await visits.amend_last_duration(store, body.username, coerce_number(body.duration_ms))
    return {"ok": True}
