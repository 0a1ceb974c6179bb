"""
Reward model — RECEIVED_REWARD and CAUSED_REWARD edges as two lead FKs.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey

from leadtree.database import Base
from leadtree.models.user import _utcnow


class Reward(Base):
    __tablename__ = 'rewards'

    id = Column(Text, primary_key=True)
    received_by_lead_id = Column(Text, ForeignKey('leads.id'), nullable=False, index=True)
    caused_by_lead_id = Column(Text, ForeignKey('leads.id'), nullable=True, index=True)
    kind = Column(Text, nullable=False)
    points = Column(Integer, default=0)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
