"""
Event model — append-only log of things that happened to a lead.
"""
from sqlalchemy import Column, Text, DateTime, JSON, ForeignKey

from leadtree.database import Base
from leadtree.models.user import _utcnow


class Event(Base):
    __tablename__ = 'events'

    id = Column(Text, primary_key=True)
    lead_id = Column(Text, ForeignKey('leads.id'), nullable=False, index=True)
    type = Column(Text, nullable=False)     # viewed-profile / invited-friend
    data = Column(JSON, nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
