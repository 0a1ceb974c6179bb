"""
Lead events — append-only log plus the side-effect jobs run after lead creation.

viewed_profile() and invited_friend() are RQ job entry points: each opens its
own session scope, so a failing job never touches the transaction that
created the lead. RQ records job failures in its failed registry.
"""
import logging

from sqlalchemy import select

from leadtree.config import (
    EVENT_VIEWED_PROFILE, EVENT_INVITED_FRIEND,
    INVITATION_REWARD_POINTS, REWARD_KIND_INVITATION,
)
from leadtree.database import session_scope
from leadtree.models.event import Event
from leadtree.models.lead import Lead
from leadtree.records import event_record, lead_record
from leadtree.services.errors import NotFoundError, handle_store_errors
from leadtree.services.identity import new_id
from leadtree.services.notifications import notify_reward_granted
from leadtree.services.rewards import grant_reward

logger = logging.getLogger('services.events')


@handle_store_errors
def record_event(session, lead_id, event_type, data=None):
    if session.get(Lead, lead_id) is None:
        raise NotFoundError('Lead', lead_id)
    event = Event(id=new_id(), lead_id=lead_id, type=event_type, data=data)
    session.add(event)
    session.flush()
    logger.debug("Recorded %s on lead %s", event_type, lead_id, extra={'lead_id': lead_id})
    return event_record(event)


@handle_store_errors
def get_events_for_lead(session, lead_id):
    stmt = select(Event).where(Event.lead_id == lead_id).order_by(Event.created_at)
    return [event_record(row) for row in session.execute(stmt).scalars()]


@handle_store_errors
def get_events_for_lead_and_type(session, lead_id, event_type):
    stmt = (
        select(Event)
        .where(Event.lead_id == lead_id, Event.type == event_type)
        .order_by(Event.created_at)
    )
    return [event_record(row) for row in session.execute(stmt).scalars()]


# ── Jobs (enqueued by services.dispatch) ─────────────────────────────────────

def viewed_profile(lead_id):
    """A lead was created by someone opening a shared profile link."""
    with session_scope() as session:
        event = record_event(session, lead_id, EVENT_VIEWED_PROFILE)
    logger.info("viewed-profile recorded for lead %s", lead_id, extra={'lead_id': lead_id})
    return event.id


def invited_friend(parent_id, lead_id):
    """
    A lead was created from an invitation: log it on the inviter's lead
    and credit the inviter with a reward caused by the new lead.
    """
    with session_scope() as session:
        event = record_event(session, parent_id, EVENT_INVITED_FRIEND, data={'lead_id': lead_id})
        reward = grant_reward(
            session, parent_id, lead_id,
            kind=REWARD_KIND_INVITATION,
            points=INVITATION_REWARD_POINTS,
        )
        inviter = lead_record(session.get(Lead, parent_id))
        invited = lead_record(session.get(Lead, lead_id))

    logger.info(
        "invited-friend recorded for lead %s (invited %s)", parent_id, lead_id,
        extra={'lead_id': lead_id, 'parent_id': parent_id},
    )
    notify_reward_granted(reward, inviter=inviter, invited=invited)
    return {'event_id': event.id, 'reward_id': reward.id}
