"""
User model — the owner of leads, derived from a client session token.
"""
from datetime import datetime, timezone

from sqlalchemy import Column, Text, DateTime
from sqlalchemy.sql import func

from leadtree.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class User(Base):
    __tablename__ = 'users'

    id = Column(Text, primary_key=True)
    session = Column(Text, unique=True, nullable=True)   # token the user was derived from
    email = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
