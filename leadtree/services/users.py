"""
User lookups and session-derived users.
"""
import logging

from sqlalchemy import select

from leadtree.models.user import User
from leadtree.models.lead import Lead
from leadtree.records import user_record
from leadtree.services.errors import handle_store_errors
from leadtree.services.identity import new_id

logger = logging.getLogger('services.users')


@handle_store_errors
def get_user(session, user_id):
    return user_record(session.get(User, user_id))


@handle_store_errors
def get_user_by_session(session, token):
    row = session.execute(select(User).where(User.session == token)).scalar_one_or_none()
    return user_record(row)


@handle_store_errors
def get_user_by_lead(session, lead_id):
    """Owner of a lead (User HAS_LEAD Lead)."""
    row = session.execute(
        select(User).join(Lead, Lead.user_id == User.id).where(Lead.id == lead_id)
    ).scalar_one_or_none()
    return user_record(row)


@handle_store_errors
def create_user_from_session(session, token):
    """
    Return the user bound to a session token, creating it on first sight.

    One token maps to one user, so a client that keeps its session keeps its
    identity across redirects.
    """
    existing = session.execute(select(User).where(User.session == token)).scalar_one_or_none()
    if existing is not None:
        return user_record(existing)

    user = User(id=new_id(), session=token)
    session.add(user)
    session.flush()
    logger.info("Created user %s from session", user.id, extra={'user_id': user.id})
    return user_record(user)
