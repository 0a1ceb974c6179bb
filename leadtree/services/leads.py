"""
Lead store — persistence and traversal of the referral tree.

Every function takes the caller's session; nothing here commits. Traversals
walk lead_links with a recursive CTE and keep the longest path per lead
(max(depth)), so duplicate or divergent edges never under-report depth.
"""
import logging
from datetime import datetime, timezone

from sqlalchemy import Integer, case, func, literal, select
from sqlalchemy.orm import aliased

from leadtree.config import MAX_TREE_DEPTH
from leadtree.models.event import Event
from leadtree.models.lead import Lead, LeadSource
from leadtree.models.lead_link import LeadLink
from leadtree.models.profile import Profile
from leadtree.models.reward import Reward
from leadtree.models.user import User
from leadtree.records import lead_record
from leadtree.services.dispatch import dispatch_after_commit
from leadtree.services.errors import NotFoundError, handle_store_errors
from leadtree.services.identity import new_id, new_hash, random_color

logger = logging.getLogger('services.leads')

UP = 'up'
DOWN = 'down'


# ── Traversal helpers ────────────────────────────────────────────────────────

def _walk(name, start, direction):
    """
    Recursive CTE of (lead_id, depth) rows reachable from `start`.

    `start` is a select of (lead_id, depth) seed rows. UP follows child →
    parent links, DOWN follows parent → child. Depth is capped at
    MAX_TREE_DEPTH so a cyclic edge set still terminates.
    """
    tree = start.cte(name, recursive=True)
    if direction == UP:
        step = (
            select(LeadLink.parent_id, tree.c.depth + 1)
            .select_from(LeadLink)
            .join(tree, LeadLink.child_id == tree.c.lead_id)
        )
    else:
        step = (
            select(LeadLink.child_id, tree.c.depth + 1)
            .select_from(LeadLink)
            .join(tree, LeadLink.parent_id == tree.c.lead_id)
        )
    return tree.union_all(step.where(tree.c.depth < MAX_TREE_DEPTH))


def _max_depths(tree):
    """Collapse a walk to one row per lead carrying its longest path."""
    return (
        select(tree.c.lead_id, func.max(tree.c.depth).label('depth'))
        .group_by(tree.c.lead_id)
        .subquery()
    )


def _leads_with_depth(session, tree, *criteria):
    depths = _max_depths(tree)
    stmt = (
        select(Lead, depths.c.depth)
        .join(depths, depths.c.lead_id == Lead.id)
        .where(*criteria)
        .order_by(depths.c.depth, Lead.created_at)
    )
    return [lead_record(row, depth) for row, depth in session.execute(stmt).all()]


# ── Creation ─────────────────────────────────────────────────────────────────

@handle_store_errors
def create_lead(session, parent_id, user_id, *, id=None, hash=None, source=None,
                motivation=None, status=None, score=None, color=None):
    """
    Create a lead under `parent_id`, owned by `user_id`.

    The lead row, its parent link and its ownership are flushed together.
    The source-specific side effect is dispatched once the caller's
    transaction commits; its failure never affects the created lead.

    Raises:
        NotFoundError: parent lead or user does not exist.
        ValueError: `source` is not a known LeadSource.
    """
    lead_source = LeadSource(source) if source else LeadSource.UNKNOWN

    if session.get(Lead, parent_id) is None:
        raise NotFoundError('Lead', parent_id)
    if session.get(User, user_id) is None:
        raise NotFoundError('User', user_id)

    lead = Lead(
        id=id or new_id(),
        hash=hash or new_hash(),
        source=lead_source.value,
        motivation=motivation,
        status=status,
        score=score,
        color=color or random_color(),
        user_id=user_id,
        created_at=datetime.now(timezone.utc),
    )
    session.add(lead)
    session.add(LeadLink(parent_id=parent_id, child_id=lead.id))
    session.flush()

    record = lead_record(lead)
    logger.info(
        "Created lead %s under %s (source=%s)", record.id, parent_id, record.source,
        extra={'lead_id': record.id, 'parent_id': parent_id, 'user_id': user_id},
    )
    dispatch_after_commit(session, record, parent_id)
    return record


# ── Point lookups ────────────────────────────────────────────────────────────

@handle_store_errors
def get_lead(session, lead_id):
    return lead_record(session.get(Lead, lead_id))


@handle_store_errors
def get_lead_by_hash(session, hash):
    """
    The lead that minted `hash`.

    Redirected leads copy their parent's hash, so several leads can carry the
    same code. Prefer the one whose parent does not share it, then the oldest.
    """
    parent = aliased(Lead)
    inherited = (
        select(LeadLink.id)
        .join(parent, parent.id == LeadLink.parent_id)
        .where(LeadLink.child_id == Lead.id, parent.hash == hash)
        .exists()
    )
    stmt = (
        select(Lead)
        .where(Lead.hash == hash)
        .order_by(case((inherited, 1), else_=0), Lead.created_at)
        .limit(1)
    )
    return lead_record(session.execute(stmt).scalars().first())


@handle_store_errors
def get_leads(session):
    """All leads that hang under another lead."""
    stmt = (
        select(Lead)
        .where(select(LeadLink.id).where(LeadLink.child_id == Lead.id).exists())
        .order_by(Lead.created_at)
    )
    return [lead_record(row) for row in session.execute(stmt).scalars()]


@handle_store_errors
def get_parent(session, lead_id):
    stmt = (
        select(Lead)
        .join(LeadLink, LeadLink.parent_id == Lead.id)
        .where(LeadLink.child_id == lead_id)
        .order_by(LeadLink.id)
        .limit(1)
    )
    return lead_record(session.execute(stmt).scalars().first())


@handle_store_errors
def get_children_by_source(session, lead_id, source):
    source = LeadSource(source).value
    stmt = (
        select(Lead)
        .join(LeadLink, LeadLink.child_id == Lead.id)
        .where(LeadLink.parent_id == lead_id, Lead.source == source)
        .distinct()
        .order_by(Lead.created_at)
    )
    return [lead_record(row) for row in session.execute(stmt).scalars()]


@handle_store_errors
def find_leads_for_user(session, user_id):
    stmt = select(Lead).where(Lead.user_id == user_id).order_by(Lead.created_at)
    return [lead_record(row) for row in session.execute(stmt).scalars()]


@handle_store_errors
def find_lead_by_profile(session, profile_id):
    stmt = select(Lead).join(Profile, Profile.lead_id == Lead.id).where(Profile.id == profile_id)
    return lead_record(session.execute(stmt).scalars().first())


@handle_store_errors
def get_lead_by_event(session, event_id):
    stmt = select(Lead).join(Event, Event.lead_id == Lead.id).where(Event.id == event_id)
    return lead_record(session.execute(stmt).scalars().first())


@handle_store_errors
def get_lead_by_reward(session, reward_id):
    """Lead that RECEIVED the reward."""
    stmt = select(Lead).join(Reward, Reward.received_by_lead_id == Lead.id).where(Reward.id == reward_id)
    return lead_record(session.execute(stmt).scalars().first())


@handle_store_errors
def get_lead_that_caused_reward(session, reward_id):
    stmt = select(Lead).join(Reward, Reward.caused_by_lead_id == Lead.id).where(Reward.id == reward_id)
    return lead_record(session.execute(stmt).scalars().first())


# ── Traversals ───────────────────────────────────────────────────────────────

@handle_store_errors
def find_parents(session, lead_id, exclude_user_id=None):
    """
    Ancestors of a lead at any depth (direct parent = 1).

    Leads owned by `exclude_user_id`, and ownerless leads, are left out.
    """
    start = (
        select(LeadLink.parent_id.label('lead_id'), literal(1, Integer).label('depth'))
        .where(LeadLink.child_id == lead_id)
    )
    tree = _walk('ancestors', start, UP)
    criteria = [Lead.user_id.is_not(None)]
    if exclude_user_id is not None:
        criteria.append(Lead.user_id != exclude_user_id)
    return _leads_with_depth(session, tree, *criteria)


@handle_store_errors
def find_leads_for_profile(session, profile_id):
    """
    Leads down the profile's lead chain, not owned by the profile's owner.

    The profile's own root lead sits at depth 1, its children at depth 2, etc.
    """
    profile = session.get(Profile, profile_id)
    if profile is None or profile.lead_id is None:
        return []

    start = (
        select(Profile.lead_id.label('lead_id'), literal(1, Integer).label('depth'))
        .where(Profile.id == profile_id)
    )
    tree = _walk('profile_chain', start, DOWN)
    return _leads_with_depth(
        session, tree,
        Lead.user_id.is_not(None),
        Lead.user_id != profile.user_id,
    )


@handle_store_errors
def find_lead_for_user_and_hash(session, user_id, hash):
    """
    The user's lead that carries `hash` or descends from a lead that does.

    Walks down from every lead tagged with the hash; the seed rows cover the
    "is tagged" case at depth 0. Returns the oldest match or None.
    """
    start = select(Lead.id.label('lead_id'), literal(0, Integer).label('depth')).where(Lead.hash == hash)
    tree = _walk('hash_subtree', start, DOWN)
    stmt = (
        select(Lead)
        .where(Lead.user_id == user_id, Lead.id.in_(select(tree.c.lead_id)))
        .order_by(Lead.created_at)
        .limit(1)
    )
    return lead_record(session.execute(stmt).scalars().first())
