from __future__ import annotations

from ..extensions import db
from smartseller.time_utils import to_utc_z


class ReportSession(db.Model):
    """
    Reporting window that groups delivered orders.

    ended_at IS NULL marks the active session; report_session_service keeps
    at most one of those around.
    """
    __tablename__ = "report_sessions"
    __table_args__ = (
        db.Index("ix_report_sessions_ended_started", "ended_at", "started_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    started_at = db.Column(db.DateTime(timezone=True), nullable=False)
    ended_at = db.Column(db.DateTime(timezone=True), nullable=True)

    @property
    def is_active(self) -> bool:
        return self.ended_at is None

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "started_at": to_utc_z(self.started_at),
            "ended_at": to_utc_z(self.ended_at) if self.ended_at else None,
            "is_active": self.is_active,
        }
