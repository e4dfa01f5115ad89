"""User model: username, five cycle codes, license expiry."""
from sqlalchemy import BigInteger, Column, String, Text

from cycle_login.db.session import Base


class User(Base):
    __tablename__ = "users"

    id = Column(String(64), primary_key=True)
    username = Column(String(255), nullable=False)
    # trimmed + lower-cased username; keeps uniqueness case-insensitive
    username_key = Column(String(255), unique=True, nullable=False, index=True)
    # JSON array of 5 numeric strings, index 0..4 = cycle 1..5
    cycle_codes_json = Column(Text, nullable=False)
    created_at = Column(BigInteger, nullable=False)  # epoch ms
    license_expires_at = Column(BigInteger, nullable=True)  # epoch ms, null = no license
