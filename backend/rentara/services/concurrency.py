# Overview: Transaction helpers shared by services that mutate several rows at once.

from __future__ import annotations

import time

from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    SELECT ... FOR UPDATE on the rows a mutation is about to change
    (payment balances, unit status).

    NOTE: SQLite ignores FOR UPDATE; version_id columns still catch races there.
    """
    return query.with_for_update()


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run func() as one unit of work.

    func is expected to commit. Lock/deadlock failures (OperationalError) and
    optimistic-locking conflicts (StaleDataError) are rolled back and retried
    with exponential backoff. Any other exception rolls the session back and
    propagates, so a half-applied mutation is never left pending.
    """
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError):
            db.session.rollback()
            if attempt >= attempts - 1:
                raise
            time.sleep(backoff_base * (2 ** attempt))
        except Exception:
            db.session.rollback()
            raise
