"""Admin routes (dev token required): users, licenses, visit log, counter reset."""
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from cycle_login.routers.api import coerce_number
from cycle_login.routers.deps import AdminDep, SettingsDep, StoreDep
from cycle_login.schemas.api import (
    BulkLicenseOutSchema,
    BulkLicenseSchema,
    CreatedUserOutSchema,
    CreateUserSchema,
    LicensePatchSchema,
    UserOutSchema,
)
from cycle_login.schemas.records import UserRecord, dump_visits
from cycle_login.services import counter, license, users, visits

router = APIRouter(prefix="/api", tags=["admin"])


def _user_out(user: UserRecord) -> UserOutSchema:
    status = license.license_status(user)
    return UserOutSchema(
        id=user.id,
        username=user.username,
        created_at=user.created_at,
        license_expires_at=user.license_expires_at,
        license_expired=status.expired,
        license_remaining=status.remaining_text,
    )


@router.get("/users", response_model=list[UserOutSchema])
async def list_users(store: StoreDep, claim: AdminDep):
    """All users, newest first."""
    found = await users.list_all(store)
    found.sort(key=lambda u: u.created_at, reverse=True)
    return [_user_out(u) for u in found]


@router.post("/users", status_code=201, response_model=CreatedUserOutSchema)
async def create_user(body: CreateUserSchema, store: StoreDep, claim: AdminDep):
    result = await users.create(store, claim, body.username)
    if isinstance(result, (users.Conflict, users.InvalidInput)):
        return JSONResponse(status_code=400, content={"ok": False, "error": result.message})
    return CreatedUserOutSchema(id=result.user.id, cycle_codes=result.cycle_codes)


@router.post("/users/bulk-add-license", response_model=BulkLicenseOutSchema)
async def bulk_add_license(body: BulkLicenseSchema, store: StoreDep, settings: SettingsDep, claim: AdminDep):
    """Extend every active license by `days` (default from settings)."""
    days = coerce_number(body.days) or settings.default_bulk_days
    count = await license.bulk_add_days(store, claim, days)
    return BulkLicenseOutSchema(count=count)


@router.delete("/users/{user_id}")
async def delete_user(user_id: str, store: StoreDep, claim: AdminDep):
    await users.delete(store, claim, user_id)
    return {"ok": True}


@router.patch("/users/{user_id}/license")
async def patch_license(user_id: str, body: LicensePatchSchema, store: StoreDep, claim: AdminDep):
    """Body may carry expiresAt (null clears), removeDays and addDays; applied in that order."""
    expires_at = body.expires_at if "expires_at" in body.model_fields_set else license.UNSET
    found = await license.apply_license_patch(
        store,
        claim,
        user_id,
        expires_at=expires_at,
        remove=body.remove_days,
        add=body.add_days,
    )
    if not found:
        return JSONResponse(status_code=404, content={"error": "User not found"})
    return {"ok": True}


@router.get("/visits")
async def list_visits(store: StoreDep, claim: AdminDep, grouped: bool = False):
    """Raw visit log, or grouped by username when ?grouped=true."""
    found = await visits.list_all(store, claim)
    if grouped:
        return {name: dump_visits(entries) for name, entries in visits.group_by_user(found).items()}
    return dump_visits(found)


@router.post("/visit-count/reset")
async def reset_visit_count(store: StoreDep, claim: AdminDep):
    await counter.reset(store, claim)
    return {"ok": True}
