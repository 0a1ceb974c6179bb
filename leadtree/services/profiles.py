"""
Profile lookups.
"""
from sqlalchemy import select

from leadtree.models.profile import Profile
from leadtree.records import profile_record
from leadtree.services.errors import handle_store_errors


@handle_store_errors
def get_profile(session, profile_id):
    return profile_record(session.get(Profile, profile_id))


@handle_store_errors
def get_profile_by_lead(session, lead_id):
    stmt = select(Profile).where(Profile.lead_id == lead_id).limit(1)
    return profile_record(session.execute(stmt).scalars().first())
