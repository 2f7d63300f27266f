# Overview: Retry helper for database writes that can lose an optimistic-lock race.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run a unit of database work, retrying on lock/version conflicts.

    OperationalError covers "database is locked" and deadlocks; StaleDataError
    is raised when a versioned row (Store) changed underneath us. Anything
    else propagates on the first failure.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
