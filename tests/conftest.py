"""Shared test fixtures."""
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import patch, MagicMock
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from leadtree.database import Base, import_models


@pytest.fixture
def db_engine():
    """In-memory SQLite engine with schema created."""
    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )
    import_models()
    Base.metadata.create_all(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session(db_engine):
    """SQLAlchemy session bound to in-memory SQLite. Rolls back after each test."""
    Session = sessionmaker(bind=db_engine)
    session = Session()
    yield session
    session.rollback()
    session.close()


@pytest.fixture(autouse=True)
def patch_get_session(db_session):
    """Route all get_session() calls to the test session.

    We disable close() so that session_scope() closing its session
    does not invalidate the shared test session.
    """
    _real_close = db_session.close
    db_session.close = lambda: None
    with patch('leadtree.database.get_session', return_value=db_session):
        yield db_session
    db_session.close = _real_close


@pytest.fixture
def mock_redis():
    """Mock Redis client. lock() returns a context manager that always acquires."""
    mock = MagicMock()
    with patch('leadtree.extensions.redis_client', mock):
        yield mock


@pytest.fixture(autouse=True)
def mock_queue():
    """Mock RQ queue so commits never reach Redis."""
    queue = MagicMock()
    queue.enqueue.return_value = MagicMock(id='job-test-001')
    with patch('leadtree.services.dispatch._get_queue', return_value=queue):
        yield queue


@pytest.fixture
def app():
    """Flask test app."""
    from leadtree import create_app
    app = create_app()
    app.config['TESTING'] = True
    yield app


@pytest.fixture
def client(app):
    """Flask test client."""
    with app.test_client() as c:
        yield c


# ── Graph builders ──────────────────────────────────────────────────────────

@pytest.fixture
def clock():
    """Monotonic timestamps so created_at ordering is deterministic."""
    state = {'now': datetime(2020, 1, 1, 9, 0, tzinfo=timezone.utc)}

    def _tick():
        state['now'] += timedelta(seconds=1)
        return state['now']
    return _tick


@pytest.fixture
def make_user(db_session):
    """Factory fixture — inserts a User row."""
    from leadtree.models.user import User

    counter = {'n': 0}

    def _make(id=None, session=None, email=None):
        counter['n'] += 1
        user = User(
            id=id or f'user-{counter["n"]}',
            session=session,
            email=email,
        )
        db_session.add(user)
        db_session.flush()
        return user
    return _make


@pytest.fixture
def make_lead(db_session, clock):
    """Factory fixture — inserts a Lead row and, when parent is given, its link."""
    from leadtree.models.lead import Lead
    from leadtree.models.lead_link import LeadLink

    counter = {'n': 0}

    def _make(id=None, user=None, parent=None, hash=None, source='unknown', **attrs):
        counter['n'] += 1
        lead = Lead(
            id=id or f'lead-{counter["n"]}',
            hash=hash or f'hash{counter["n"]}',
            source=source,
            user_id=user.id if user is not None else None,
            created_at=clock(),
            **attrs,
        )
        db_session.add(lead)
        db_session.flush()
        if parent is not None:
            link(parent, lead)
        return lead

    def link(parent, child):
        db_session.add(LeadLink(parent_id=parent.id, child_id=child.id))
        db_session.flush()

    _make.link = link
    return _make


@pytest.fixture
def make_profile(db_session):
    """Factory fixture — inserts a Profile row anchored to a lead."""
    from leadtree.models.profile import Profile

    counter = {'n': 0}

    def _make(user, lead=None, id=None, name=''):
        counter['n'] += 1
        profile = Profile(
            id=id or f'profile-{counter["n"]}',
            user_id=user.id,
            lead_id=lead.id if lead is not None else None,
            name=name,
        )
        db_session.add(profile)
        db_session.flush()
        return profile
    return _make
