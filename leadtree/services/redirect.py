"""
Redirect resolver — turn a shared hash into the resolving user's lead.

The user is resolved first, in its own scope. Find-or-create then runs under
a Redis lock keyed on (user id, hash) and commits before the lock is
released, so concurrent redirects for the same pair see each other's lead
instead of creating siblings, whichever way the user was supplied.
"""
import logging

from leadtree.config import REDIRECT_STATUS, REDIRECT_LOCK_TIMEOUT, REDIRECT_LOCK_WAIT
from leadtree.database import session_scope
from leadtree.services.errors import NotFoundError, handle_store_errors
from leadtree.services.leads import create_lead, find_lead_for_user_and_hash, get_lead_by_hash
from leadtree.services.users import create_user_from_session

logger = logging.getLogger('services.redirect')

LOCK_PREFIX = 'lead-redirect'


def _lock_key(hash, user_id):
    return f'{LOCK_PREFIX}:{user_id}:{hash}'


@handle_store_errors
def redirect(hash, session_token, user=None):
    """
    Resolve `hash` for a user, creating their lead on first redemption.

    Args:
        hash:          referral code from the shared link
        session_token: client session, used to derive a user when none is given
        user:          an already-resolved user (UserRecord), optional

    Returns:
        LeadRecord: the existing lead when this user already redeemed the
        hash (or descends from it), otherwise a new child of the hash's lead.

    Raises:
        NotFoundError: the hash does not belong to any lead.
        StoreError:    database/Redis failure, including lock timeout.
    """
    from leadtree.extensions import redis_client

    if user is None:
        with session_scope() as session:
            user = create_user_from_session(session, session_token)

    lock = redis_client.lock(
        _lock_key(hash, user.id),
        timeout=REDIRECT_LOCK_TIMEOUT,
        blocking_timeout=REDIRECT_LOCK_WAIT,
    )
    with lock:
        with session_scope() as session:
            existing = find_lead_for_user_and_hash(session, user.id, hash)
            if existing is not None:
                logger.info("Redirect %s resolved to existing lead %s", hash, existing.id,
                            extra={'hash': hash, 'user_id': user.id, 'lead_id': existing.id})
                return existing

            target = get_lead_by_hash(session, hash)
            if target is None:
                raise NotFoundError('Hash', hash)

            lead = create_lead(
                session,
                parent_id=target.id,
                user_id=user.id,
                hash=target.hash,
                status=REDIRECT_STATUS,
            )
            logger.info("Redirect %s created lead %s under %s", hash, lead.id, target.id,
                        extra={'hash': hash, 'user_id': user.id, 'lead_id': lead.id})
            return lead
