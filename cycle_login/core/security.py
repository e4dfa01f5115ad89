"""Admin credential: the dev PIN is exchanged for a short-lived signed token.

Admin operations in the services take an AdminClaim explicitly; the only way
to get one is to present the dev PIN or a valid dev token.
"""
import hmac
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

from jose import JWTError, jwt

from cycle_login.core.config import Settings, get_settings
from cycle_login.core.errors import AdminRequired

DEV_TOKEN_TYPE = "dev"


@dataclass(frozen=True)
class AdminClaim:
    """Proof that the caller passed the admin gate."""

    subject: str = "dev"
    expires_at: datetime | None = None


def is_dev_pin(pin: str | None, settings: Settings | None = None) -> bool:
    settings = settings or get_settings()
    if not pin or not settings.dev_pin:
        return False
    return hmac.compare_digest(str(pin).encode("utf-8"), settings.dev_pin.encode("utf-8"))


def create_dev_token(settings: Settings | None = None) -> str:
    """Signed admin token, valid for settings.dev_token_expire_minutes."""
    settings = settings or get_settings()
    expire = datetime.now(timezone.utc) + timedelta(minutes=settings.dev_token_expire_minutes)
    to_encode = {"sub": "dev", "exp": expire, "type": DEV_TOKEN_TYPE}
    return jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)


def verify_dev_token(token: str | None, settings: Settings | None = None) -> AdminClaim | None:
    """Return an AdminClaim for a valid unexpired dev token; None otherwise."""
    if not token:
        return None
    settings = settings or get_settings()
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None
    if payload.get("type") != DEV_TOKEN_TYPE:
        return None
    exp = payload.get("exp")
    expires_at = datetime.fromtimestamp(exp, tz=timezone.utc) if exp else None
    return AdminClaim(subject=str(payload.get("sub", "dev")), expires_at=expires_at)


def claim_from_pin(pin: str | None, settings: Settings | None = None) -> AdminClaim | None:
    return AdminClaim() if is_dev_pin(pin, settings) else None


def require_admin(claim: AdminClaim | None) -> AdminClaim:
    if not isinstance(claim, AdminClaim):
        raise AdminRequired("Dev auth required")
    return claim


def bearer_token(header_value: str | None) -> str:
    """Strip an optional 'Bearer ' prefix from an Authorization / X-Dev-Token value."""
    value = (header_value or "").strip()
    if value[:7].lower() == "bearer ":
        value = value[7:]
    return value.strip()
