from __future__ import annotations

from ..extensions import db
from smartseller.time_utils import to_utc_z


class VendorSession(db.Model):
    """
    Bearer token issued to the vendor on login.

    Only the SHA-256 of the token is stored; the plaintext goes to the
    client once. Sessions expire after Config.SESSION_TTL_HOURS and can be
    revoked on logout.
    """
    __tablename__ = "vendor_sessions"
    __table_args__ = (
        db.Index("ix_vendor_sessions_active", "is_revoked", "expires_at"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)

    token_hash = db.Column(db.String(64), nullable=False, unique=True, index=True)

    created_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    last_used_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now())
    expires_at = db.Column(db.DateTime(timezone=True), nullable=False)

    is_revoked = db.Column(db.Boolean, nullable=False, default=False)
    revoked_at = db.Column(db.DateTime(timezone=True), nullable=True)
    revoked_reason = db.Column(db.String(255), nullable=True)

    user_agent = db.Column(db.String(255), nullable=True)
    ip_address = db.Column(db.String(64), nullable=True)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "created_at": to_utc_z(self.created_at),
            "last_used_at": to_utc_z(self.last_used_at),
            "expires_at": to_utc_z(self.expires_at),
            "is_revoked": self.is_revoked,
        }
