"""
Lead model — one node in the referral tree.

Ownership (User HAS_LEAD Lead) is the user_id column. Parent/child edges
live in lead_links so a lead's ancestry is always walked through that table.
"""
from enum import Enum

from sqlalchemy import Column, Float, Text, DateTime, ForeignKey
from sqlalchemy.sql import func

from leadtree.database import Base
from leadtree.models.user import _utcnow


class LeadSource(str, Enum):
    """How a lead came into existence. Closed set: every member needs a side-effect handler."""
    UNKNOWN = 'unknown'
    INVITATION = 'invitation'


class Lead(Base):
    __tablename__ = 'leads'

    id = Column(Text, primary_key=True)
    hash = Column(Text, nullable=False, index=True)      # shareable referral code
    source = Column(Text, nullable=False, default=LeadSource.UNKNOWN.value)
    motivation = Column(Text, nullable=True)
    status = Column(Text, nullable=True)
    score = Column(Float, nullable=True)
    color = Column(Text, nullable=True)
    user_id = Column(Text, ForeignKey('users.id'), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())
