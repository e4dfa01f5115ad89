"""Auth routes: exchange the dev PIN for an admin token."""
from fastapi import APIRouter
from fastapi.responses import JSONResponse

from cycle_login.core.security import create_dev_token, is_dev_pin
from cycle_login.routers.deps import SettingsDep
from cycle_login.schemas.api import DevAuthSchema, DevTokenOutSchema

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/dev", response_model=DevTokenOutSchema)
async def dev_login(body: DevAuthSchema, settings: SettingsDep):
    """Dev PIN -> bearer token for the admin endpoints (24h by default)."""
    if not is_dev_pin(body.pin, settings):
        return JSONResponse(status_code=401, content={"error": "Invalid dev PIN"})
    return DevTokenOutSchema(token=create_dev_token(settings))
