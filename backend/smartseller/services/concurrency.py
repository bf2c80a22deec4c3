# Overview: Unit-of-work and retry helpers for every stock-affecting operation.

from __future__ import annotations

import time

from flask import current_app
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.orm.exc import StaleDataError

from ..extensions import db


def lock_for_update(query):
    """
    Apply row-level locking for critical operations.

    NOTE: SQLite ignores SELECT ... FOR UPDATE; begin_write() takes the
    database write lock there instead.
    """
    return query.with_for_update()


def begin_write(session) -> None:
    """
    Start the unit of work as a writer.

    On SQLite this is BEGIN IMMEDIATE so two writers serialize before
    either reads stock. Other dialects rely on the FOR UPDATE row locks
    taken by inventory_service.lock_and_fetch.
    """
    if session.get_bind().dialect.name == "sqlite":
        session.execute(text("BEGIN IMMEDIATE"))


def run_with_retry(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Execute a DB operation with retry on concurrency-related failures.

    Retries on OperationalError (deadlocks, lock timeouts) and
    StaleDataError (optimistic locking conflicts). Anything else is
    re-raised on the first failure.
    """
    last_exc = None
    for attempt in range(attempts):
        try:
            return func()
        except (OperationalError, StaleDataError) as exc:
            db.session.rollback()
            last_exc = exc
            if attempt >= attempts - 1:
                raise
            current_app.logger.warning(
                "Retrying unit of work after %s (attempt %d/%d)",
                type(exc).__name__, attempt + 1, attempts,
            )
            time.sleep(backoff_base * (2 ** attempt))
    if last_exc:
        raise last_exc


def run_in_unit_of_work(func, *, attempts: int = 3, backoff_base: float = 0.1):
    """
    Run ``func(session)`` as one all-or-nothing transaction.

    The session handle is passed explicitly; func must not commit. The
    transaction commits only when func returns and rolls back on any
    exception, domain errors included.
    """
    def _op():
        session = db.session
        try:
            begin_write(session)
            result = func(session)
            session.commit()
            return result
        except Exception:
            session.rollback()
            raise

    return run_with_retry(_op, attempts=attempts, backoff_base=backoff_base)
