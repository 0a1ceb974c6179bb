"""
Side-effect dispatch after lead creation.

The job for a new lead is chosen by its source through SOURCE_HANDLERS, which
must cover every LeadSource member (checked at import). Jobs are enqueued on
RQ only after the creating transaction commits; a dispatch failure is logged
and reported through DispatchResult, never raised to the caller.
"""
import logging
from dataclasses import dataclass
from typing import Callable, Dict, Optional, Tuple

from sqlalchemy import event
from sqlalchemy.orm import Session

from leadtree.config import LEAD_EVENTS_INLINE
from leadtree.models.lead import LeadSource
from leadtree.services.events import viewed_profile, invited_friend

logger = logging.getLogger('services.dispatch')

PENDING_KEY = 'leadtree.pending_dispatch'


@dataclass
class DispatchResult:
    ok: bool
    source: str
    lead_id: str
    job_id: Optional[str] = None
    error: Optional[str] = None


# ── Source → job ─────────────────────────────────────────────────────────────

def _invitation_job(lead, parent_id):
    return invited_friend, (parent_id, lead.id)


def _profile_view_job(lead, parent_id):
    return viewed_profile, (lead.id,)


SOURCE_HANDLERS: Dict[LeadSource, Callable[..., Tuple[Callable, tuple]]] = {
    LeadSource.INVITATION: _invitation_job,
    LeadSource.UNKNOWN:    _profile_view_job,
}

_unhandled = set(LeadSource) - set(SOURCE_HANDLERS)
if _unhandled:
    raise RuntimeError(f"No side-effect handler for lead sources: {sorted(s.value for s in _unhandled)}")


# ── Lazy RQ queue (avoids import-time Redis connection) ──────────────────────

QUEUE_NAME = 'lead-events'

_queue = None


def _get_queue():
    global _queue
    if _queue is None:
        from leadtree.extensions import rq_connection
        from rq import Queue
        _queue = Queue(QUEUE_NAME, connection=rq_connection)
    return _queue


# ── Public API ───────────────────────────────────────────────────────────────

def dispatch_lead_created(lead, parent_id) -> DispatchResult:
    """Enqueue (or, with LEAD_EVENTS_INLINE, run) the side effect for a new lead."""
    source = LeadSource(lead.source)
    job_fn, args = SOURCE_HANDLERS[source](lead, parent_id)
    log_extra = {'lead_id': lead.id, 'parent_id': parent_id, 'source': source.value}

    try:
        if LEAD_EVENTS_INLINE:
            job_fn(*args)
            job_id = None
        else:
            job = _get_queue().enqueue(job_fn, *args)
            job_id = job.id
            log_extra['job_id'] = job_id
        logger.info("Dispatched %s for lead %s", job_fn.__name__, lead.id, extra=log_extra)
        return DispatchResult(ok=True, source=source.value, lead_id=lead.id, job_id=job_id)
    except Exception as e:
        logger.error("Failed to dispatch %s for lead %s", job_fn.__name__, lead.id,
                     exc_info=True, extra=log_extra)
        return DispatchResult(ok=False, source=source.value, lead_id=lead.id, error=str(e))


def dispatch_after_commit(session, lead, parent_id):
    """Queue a dispatch to fire when `session` commits; dropped on rollback."""
    session.info.setdefault(PENDING_KEY, []).append((lead, parent_id))


@event.listens_for(Session, 'after_commit')
def _dispatch_pending(session):
    for lead, parent_id in session.info.pop(PENDING_KEY, []):
        dispatch_lead_created(lead, parent_id)


@event.listens_for(Session, 'after_soft_rollback')
def _discard_pending(session, previous_transaction):
    dropped = session.info.pop(PENDING_KEY, [])
    if dropped:
        logger.warning("Discarded %d pending dispatch(es) after rollback", len(dropped))
