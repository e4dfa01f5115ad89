"""Single-row table holding the global visit counter."""
from sqlalchemy import BigInteger, Column, Integer

from cycle_login.db.session import Base

STATE_ROW_ID = 1


class CycleState(Base):
    __tablename__ = "cycle_state"

    id = Column(Integer, primary_key=True, default=STATE_ROW_ID)
    visit_count = Column(BigInteger, nullable=False, default=0)
