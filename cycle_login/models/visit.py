"""Visit model: one page or app visit, amended once with a session duration."""
from sqlalchemy import BigInteger, Column, Integer, String, Text

from cycle_login.db.session import Base


class Visit(Base):
    __tablename__ = "visits"

    id = Column(Integer, primary_key=True, autoincrement=True)
    username = Column(String(255), nullable=True, index=True)  # null = login page
    type = Column(String(32), nullable=True)
    referrer = Column(Text, nullable=True)
    cycle = Column(Integer, nullable=True)
    timestamp = Column(BigInteger, nullable=True)
    duration_ms = Column(BigInteger, nullable=True)
    session_start = Column(BigInteger, nullable=True)
    # any other client-supplied fields, JSON object
    extra_json = Column(Text, nullable=True)
