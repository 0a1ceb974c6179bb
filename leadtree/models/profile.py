"""
Profile model — owned by a user (HAS_PROFILE), anchored to a root lead (HAS_LEAD).
"""
from sqlalchemy import Column, Text, DateTime, ForeignKey

from leadtree.database import Base
from leadtree.models.user import _utcnow


class Profile(Base):
    __tablename__ = 'profiles'

    id = Column(Text, primary_key=True)
    user_id = Column(Text, ForeignKey('users.id'), nullable=False, index=True)
    lead_id = Column(Text, ForeignKey('leads.id'), nullable=True, index=True)
    name = Column(Text, default='')
    created_at = Column(DateTime(timezone=True), default=_utcnow)
