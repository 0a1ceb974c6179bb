"""
Reward persistence — RECEIVED_REWARD / CAUSED_REWARD bookkeeping between leads.
"""
import logging

from sqlalchemy import select

from leadtree.models.lead import Lead
from leadtree.models.reward import Reward
from leadtree.records import reward_record
from leadtree.services.errors import NotFoundError, handle_store_errors
from leadtree.services.identity import new_id

logger = logging.getLogger('services.rewards')


@handle_store_errors
def grant_reward(session, received_by_lead_id, caused_by_lead_id, kind, points=0):
    """Credit `received_by_lead_id` with a reward triggered by `caused_by_lead_id`."""
    if session.get(Lead, received_by_lead_id) is None:
        raise NotFoundError('Lead', received_by_lead_id)

    reward = Reward(
        id=new_id(),
        received_by_lead_id=received_by_lead_id,
        caused_by_lead_id=caused_by_lead_id,
        kind=kind,
        points=points,
    )
    session.add(reward)
    session.flush()
    logger.info(
        "Granted %s reward (%d pts) to lead %s", kind, points, received_by_lead_id,
        extra={'lead_id': received_by_lead_id},
    )
    return reward_record(reward)


@handle_store_errors
def get_rewards_received(session, lead_id):
    stmt = select(Reward).where(Reward.received_by_lead_id == lead_id).order_by(Reward.created_at)
    return [reward_record(row) for row in session.execute(stmt).scalars()]


@handle_store_errors
def get_rewards_caused(session, lead_id):
    stmt = select(Reward).where(Reward.caused_by_lead_id == lead_id).order_by(Reward.created_at)
    return [reward_record(row) for row in session.execute(stmt).scalars()]
