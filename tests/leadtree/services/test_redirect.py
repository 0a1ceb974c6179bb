"""Tests for leadtree.services.redirect — hash redemption find-or-create."""
import pytest
import redis
from unittest.mock import patch

from leadtree.models.lead import Lead
from leadtree.models.user import User
from leadtree.records import UserRecord
from leadtree.services.errors import NotFoundError, StoreError
from leadtree.services.leads import get_parent
from leadtree.services.redirect import redirect, _lock_key
from leadtree.services.users import create_user_from_session


@pytest.fixture
def root(make_user, make_lead):
    """Root lead R (hash "abc") owned by U1."""
    return make_lead(id='R', user=make_user(id='U1'), hash='abc')


class TestRedirect:

    def test_creates_child_lead_for_new_session(self, db_session, root, mock_redis):
        lead = redirect('abc', 'session-u2')
        assert lead.hash == 'abc'
        assert lead.status == 'redirected'
        assert get_parent(db_session, lead.id).id == 'R'

        owner = db_session.get(User, lead.user_id)
        assert owner.session == 'session-u2'

    def test_second_redirect_returns_same_lead(self, db_session, root, mock_redis):
        first = redirect('abc', 'session-u2')
        second = redirect('abc', 'session-u2')
        assert second.id == first.id
        assert db_session.query(Lead).filter_by(user_id=first.user_id).count() == 1

    def test_different_sessions_get_sibling_leads(self, db_session, root, mock_redis):
        a = redirect('abc', 'session-a')
        b = redirect('abc', 'session-b')
        assert a.id != b.id
        assert get_parent(db_session, a.id).id == get_parent(db_session, b.id).id == 'R'

    def test_owner_redirecting_own_hash_gets_own_lead(self, db_session, root, mock_redis):
        u1 = db_session.get(User, 'U1')
        lead = redirect('abc', 'ignored', user=UserRecord(id=u1.id))
        assert lead.id == 'R'

    def test_supplied_user_is_used(self, db_session, root, make_user, mock_redis):
        existing = make_user(id='U3')
        lead = redirect('abc', 'unused-token', user=UserRecord(id=existing.id))
        assert lead.user_id == 'U3'
        assert db_session.query(User).filter_by(session='unused-token').count() == 0

    def test_redirect_down_the_tree_reuses_parent_lead(self, db_session, root, mock_redis):
        """A user who already descends from the hash's lead is not re-attached."""
        mine = redirect('abc', 'session-u2')
        again = redirect(mine.hash, 'session-u2')
        assert again.id == mine.id

    def test_unknown_hash_raises_not_found(self, db_session, root, mock_redis):
        with pytest.raises(NotFoundError) as exc:
            redirect('missing', 'session-u2')
        assert exc.value.entity == 'Hash'

    def test_commits_new_lead(self, db_session, root, make_user, mock_redis):
        user = make_user(id='U3')
        with patch.object(db_session, 'commit', wraps=db_session.commit) as commit:
            redirect('abc', 'unused-token', user=UserRecord(id=user.id))
        commit.assert_called_once()

    def test_user_committed_before_find_or_create(self, db_session, root, mock_redis):
        with patch.object(db_session, 'commit', wraps=db_session.commit) as commit:
            redirect('abc', 'session-u2')
        assert commit.call_count == 2

    def test_dispatches_profile_view_after_commit(self, db_session, root, mock_redis, mock_queue):
        lead = redirect('abc', 'session-u2')
        mock_queue.enqueue.assert_called_once()
        args = mock_queue.enqueue.call_args[0]
        assert args[0].__name__ == 'viewed_profile'
        assert args[1] == lead.id

    def test_existing_lead_dispatches_nothing(self, db_session, root, mock_redis, mock_queue):
        redirect('abc', 'session-u2')
        mock_queue.enqueue.reset_mock()
        redirect('abc', 'session-u2')
        mock_queue.enqueue.assert_not_called()


class FakeLockRegistry:
    """Stands in for redis_client: one non-reentrant lock per key.

    A contended acquire raises LockError, which is what redis-py does once
    blocking_timeout runs out.
    """

    def __init__(self):
        self.held = set()
        self.keys = []

    def lock(self, key, timeout=None, blocking_timeout=None):
        self.keys.append(key)
        return _FakeLock(self, key)


class _FakeLock:

    def __init__(self, registry, key):
        self.registry = registry
        self.key = key

    def __enter__(self):
        if self.key in self.registry.held:
            raise redis.exceptions.LockError(f'{self.key} is held')
        self.registry.held.add(self.key)
        return self

    def __exit__(self, *exc):
        self.registry.held.discard(self.key)
        return False


@pytest.fixture
def fake_locks():
    registry = FakeLockRegistry()
    with patch('leadtree.extensions.redis_client', registry):
        yield registry


class TestRedirectLocking:

    def test_lock_keyed_on_resolved_user_and_hash(self, db_session, root, mock_redis):
        lead = redirect('abc', 'session-u2')
        key = mock_redis.lock.call_args[0][0]
        assert key == f'lead-redirect:{lead.user_id}:abc'

    def test_lock_keyed_on_user_when_supplied(self, root, make_user, mock_redis):
        user = make_user(id='U9')
        redirect('abc', 'tok', user=UserRecord(id=user.id))
        assert mock_redis.lock.call_args[0][0] == 'lead-redirect:U9:abc'

    def test_token_and_supplied_user_share_one_key(self, db_session, root, mock_redis):
        redirect('abc', 'session-u2')
        via_token = mock_redis.lock.call_args[0][0]
        user = create_user_from_session(db_session, 'session-u2')
        redirect('abc', 'other', user=user)
        via_user = mock_redis.lock.call_args[0][0]
        assert via_token == via_user == _lock_key('abc', user.id)

    def test_lock_held_around_find_or_create(self, root, mock_redis):
        redirect('abc', 'session-u2')
        lock = mock_redis.lock.return_value
        lock.__enter__.assert_called_once()
        lock.__exit__.assert_called_once()

    def test_lock_timeout_surfaces_as_store_error(self, db_session, root, mock_redis):
        mock_redis.lock.return_value.__enter__.side_effect = redis.exceptions.LockError('busy')
        with pytest.raises(StoreError):
            redirect('abc', 'session-u2')
        user = db_session.query(User).filter_by(session='session-u2').one()
        assert db_session.query(Lead).filter_by(user_id=user.id).count() == 0

    def test_lock_key_helper(self):
        assert _lock_key('h', 'u') == 'lead-redirect:u:h'


class TestRedirectSerialization:

    def test_contended_pair_creates_nothing(self, db_session, root, fake_locks):
        user = create_user_from_session(db_session, 'session-u2')
        with fake_locks.lock(_lock_key('abc', user.id)):
            with pytest.raises(StoreError):
                redirect('abc', 'session-u2')
        assert db_session.query(Lead).filter_by(user_id=user.id).count() == 0

    def test_lock_released_after_redirect(self, db_session, root, fake_locks):
        redirect('abc', 'session-u2')
        assert fake_locks.held == set()

    def test_supplied_user_blocks_on_token_redirect_in_flight(self, db_session, root, fake_locks):
        """A redirect with the user supplied cannot run while the token path holds the pair."""
        from leadtree.services import redirect as redirect_module
        real_create = redirect_module.create_lead
        blocked = []

        def create_while_racing(session, **kwargs):
            try:
                redirect('abc', 'other', user=UserRecord(id=kwargs['user_id']))
            except StoreError:
                blocked.append(kwargs['user_id'])
            return real_create(session, **kwargs)

        with patch.object(redirect_module, 'create_lead', side_effect=create_while_racing):
            lead = redirect('abc', 'session-u2')

        assert blocked == [lead.user_id]
        assert db_session.query(Lead).filter_by(user_id=lead.user_id).count() == 1

    def test_second_caller_sees_first_callers_lead(self, db_session, root, fake_locks):
        first = redirect('abc', 'session-u2')
        second = redirect('abc', 'ignored', user=UserRecord(id=first.user_id))
        assert second.id == first.id
        assert db_session.query(Lead).filter_by(user_id=first.user_id).count() == 1
