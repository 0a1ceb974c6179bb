"""
LeadLink model — one row per parent → child HAS_LEAD edge.
"""
from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Index
from sqlalchemy.sql import func

from leadtree.database import Base
from leadtree.models.user import _utcnow


class LeadLink(Base):
    __tablename__ = 'lead_links'

    id = Column(Integer, primary_key=True, autoincrement=True)
    parent_id = Column(Text, ForeignKey('leads.id'), nullable=False)
    child_id = Column(Text, ForeignKey('leads.id'), nullable=False)
    created_at = Column(DateTime(timezone=True), default=_utcnow, server_default=func.now())

    __table_args__ = (
        Index('ix_lead_links_parent_id', 'parent_id'),
        Index('ix_lead_links_child_id', 'child_id'),
    )
