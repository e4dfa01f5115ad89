"""Wall-clock helpers; every timestamp in the system is epoch milliseconds."""
import time

DAY_MS = 24 * 60 * 60 * 1000
HOUR_MS = 60 * 60 * 1000
MINUTE_MS = 60 * 1000


def now_ms() -> int:
    return int(time.time() * 1000)
