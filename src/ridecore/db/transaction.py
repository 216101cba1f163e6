"""Transaction boundaries with automatic commit/rollback semantics."""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm import Session

from ridecore.core.exceptions import PersistenceError


@contextmanager
def transaction(session: Session) -> Iterator[Session]:
    """Commits on successful completion, rolls back on any exception.

    Database connectivity failures are re-raised as PersistenceError so
    callers can treat them as transient.
    """
    try:
        yield session
        session.commit()
    except OperationalError as e:
        session.rollback()
        raise PersistenceError("Database operation failed", {"error": str(e.orig)}) from e
    except Exception:
        session.rollback()
        raise
