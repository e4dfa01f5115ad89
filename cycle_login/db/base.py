"""SQLAlchemy declarative base and model imports for Alembic."""
from cycle_login.db.session import Base

# Import all models so Alembic can see them
from cycle_login.models.state import CycleState  # noqa: F401
from cycle_login.models.user import User  # noqa: F401
from cycle_login.models.visit import Visit  # noqa: F401

__all__ = ["Base", "User", "Visit", "CycleState"]
