"""
Database engine + session factory.

Always initializes — defaults to SQLite for local dev, Postgres in production.
Request handlers and jobs acquire sessions through session_scope(); store
functions receive the session explicitly and never open their own.
"""
from contextlib import contextmanager

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from leadtree.config import DATABASE_URL


class Base(DeclarativeBase):
    pass


# Railway injects postgres:// but SQLAlchemy 2.x requires postgresql://
url = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

# SQLite needs different engine kwargs than Postgres
if url.startswith('sqlite'):
    engine = create_engine(url, connect_args={'check_same_thread': False})
else:
    engine = create_engine(url, pool_pre_ping=True, pool_size=5, max_overflow=10)

SessionLocal = sessionmaker(bind=engine)


def get_session():
    """Return a new DB session."""
    return SessionLocal()


@contextmanager
def session_scope():
    """
    Acquire a session for one unit of work.

    Commits when the block exits cleanly, rolls back on any exception
    (which is re-raised), and always closes the session.
    """
    session = get_session()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def import_models():
    """Import every model module so Base.metadata knows about all tables."""
    import importlib
    for name in ('user', 'lead', 'lead_link', 'profile', 'event', 'reward'):
        importlib.import_module(f'leadtree.models.{name}')
