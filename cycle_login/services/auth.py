"""Cycle login decision: which of a user's five codes is valid right now."""
import enum
import logging
from dataclasses import dataclass

from cycle_login.core.config import Settings, get_settings
from cycle_login.core.security import is_dev_pin
from cycle_login.schemas.records import CYCLE_COUNT, UserRecord
from cycle_login.services.users import find_by_username
from cycle_login.stores.base import RecordStore

logger = logging.getLogger(__name__)


class RejectReason(str, enum.Enum):
    UNKNOWN_USERNAME = "unknown_username"
    INVALID_CYCLE = "invalid_cycle"
    WRONG_CYCLE_CODE = "wrong_cycle_code"
    WRONG_PIN = "wrong_pin"


REJECT_MESSAGES = {
    RejectReason.UNKNOWN_USERNAME: "Unknown username",
    RejectReason.INVALID_CYCLE: "Invalid cycle",
    RejectReason.WRONG_CYCLE_CODE: "Incorrect — that code is not for the current cycle.",
    RejectReason.WRONG_PIN: "Incorrect PIN.",
}


@dataclass(frozen=True)
class Accepted:
    privileged: bool = False
    user: UserRecord | None = None

    @property
    def license_expires_at(self) -> int | None:
        return self.user.license_expires_at if self.user is not None else None


@dataclass(frozen=True)
class Rejected:
    reason: RejectReason

    @property
    def message(self) -> str:
        return REJECT_MESSAGES[self.reason]


LoginResult = Accepted | Rejected


def validate_login(
    user: UserRecord | None,
    submitted_pin: str | None,
    current_cycle: int,
    *,
    override_pin: str | None,
) -> LoginResult:
    """Order matters: override PIN, unknown user, bad cycle, exact code, code from another cycle."""
    if override_pin and submitted_pin == override_pin:
        return Accepted(privileged=True)
    if user is None:
        return Rejected(RejectReason.UNKNOWN_USERNAME)
    if not isinstance(current_cycle, int) or not 1 <= current_cycle <= CYCLE_COUNT:
        return Rejected(RejectReason.INVALID_CYCLE)
    if submitted_pin == user.cycle_codes[current_cycle - 1]:
        return Accepted(user=user)
    if submitted_pin in user.cycle_codes:
        return Rejected(RejectReason.WRONG_CYCLE_CODE)
    return Rejected(RejectReason.WRONG_PIN)


async def login(
    store: RecordStore,
    username: str | None,
    submitted_pin: str | None,
    current_cycle: int,
    settings: Settings | None = None,
) -> LoginResult:
    settings = settings or get_settings()
    if is_dev_pin(submitted_pin, settings):
        logger.info("Privileged login (username=%r)", username)
        return Accepted(privileged=True)
    user = await find_by_username(store, username)
    result = validate_login(user, submitted_pin, current_cycle, override_pin=settings.dev_pin)
    if isinstance(result, Rejected):
        logger.info("Login rejected for %r: %s", username, result.reason.value)
    else:
        logger.info("Login accepted for %r at cycle %s", username, current_cycle)
    return result
