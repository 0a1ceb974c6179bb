"""
Error taxonomy for the lead store.

  - NotFoundError → a referenced lead/user/hash does not exist
  - StoreError    → the database or Redis failed underneath us

Both derive from LeadTreeError so the API layer can map them to status codes.
"""
import logging
from functools import wraps

import redis
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger('services.errors')


class LeadTreeError(Exception):
    """Base class for every error raised by leadtree services."""


class NotFoundError(LeadTreeError):
    """Raised when a referenced entity is missing from the store."""
    def __init__(self, entity, key):
        self.entity = entity
        self.key = key
        super().__init__(f"{entity} '{key}' not found")


class StoreError(LeadTreeError):
    """Raised when the database or Redis fails (upstream failure)."""
    def __init__(self, operation, cause=None):
        self.operation = operation
        self.cause = cause
        super().__init__(f"{operation} failed: {cause}" if cause else f"{operation} failed")


def handle_store_errors(fn):
    """
    Log failures of a store operation and surface them to the caller.

    Domain errors pass through untouched; driver errors are wrapped in
    StoreError so callers never need to import SQLAlchemy or redis.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            return fn(*args, **kwargs)
        except LeadTreeError:
            raise
        except (SQLAlchemyError, redis.RedisError) as e:
            logger.error("%s failed", fn.__name__, exc_info=True)
            raise StoreError(fn.__name__, e) from e
    return wrapper
