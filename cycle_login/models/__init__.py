from cycle_login.models.user import User
from cycle_login.models.visit import Visit
from cycle_login.models.state import CycleState

__all__ = ["User", "Visit", "CycleState"]
