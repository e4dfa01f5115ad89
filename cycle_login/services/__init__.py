from cycle_login.services.auth import Accepted, Rejected, RejectReason, login, validate_login
from cycle_login.services.counter import cycle_from_count, increment_and_get_cycle
from cycle_login.services.license import format_remaining, is_expired, remaining_ms

__all__ = [
    "Accepted",
    "Rejected",
    "RejectReason",
    "login",
    "validate_login",
    "cycle_from_count",
    "increment_and_get_cycle",
    "format_remaining",
    "is_expired",
    "remaining_ms",
]
