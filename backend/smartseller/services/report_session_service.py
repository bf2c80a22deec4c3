# Overview: Report session lifecycle; at most one session is active (ended_at IS NULL) at a time.

from __future__ import annotations

from flask import current_app

from ..extensions import db
from ..models import ReportSession
from smartseller.time_utils import utcnow
from .concurrency import run_in_unit_of_work
from .errors import ReportSessionNotFound


def _active_query(session):
    return (
        session.query(ReportSession)
        .filter(ReportSession.ended_at.is_(None))
        .order_by(ReportSession.started_at.desc(), ReportSession.id.desc())
    )


def get_or_create_active_session_id(session) -> int:
    """
    Id of the active session, creating one if none is active.

    Runs inside the caller's unit of work; the new row is flushed, not
    committed.
    """
    active = _active_query(session).first()
    if active is not None:
        return active.id

    created = ReportSession(started_at=utcnow())
    session.add(created)
    session.flush()
    current_app.logger.info("Report session %s started lazily", created.id)
    return created.id


def get_active_session() -> ReportSession | None:
    return _active_query(db.session).first()


def get_session(session_id: int) -> ReportSession:
    row = db.session.get(ReportSession, session_id)
    if row is None:
        raise ReportSessionNotFound("Report session not found", details={"session_id": session_id})
    return row


def stop_active_session() -> ReportSession:
    """End the active session; ReportSessionNotFound if there is none."""
    def _op(session):
        active = _active_query(session).first()
        if active is None:
            raise ReportSessionNotFound("No active report session")
        active.ended_at = utcnow()
        return active

    stopped = run_in_unit_of_work(_op)
    current_app.logger.info("Report session %s stopped", stopped.id)
    return stopped


def start_new_session() -> ReportSession:
    """End every active session and open a fresh one."""
    def _op(session):
        now = utcnow()
        for active in _active_query(session).all():
            active.ended_at = now
        created = ReportSession(started_at=now)
        session.add(created)
        session.flush()
        return created

    created = run_in_unit_of_work(_op)
    current_app.logger.info("Report session %s started", created.id)
    return created
