from __future__ import annotations

from ..extensions import db
from cashboard.time_utils import to_utc_z


class SystemSetting(db.Model):
    """
    One stored settings section (general, financial, reports, system, security).

    The section is stored as saved; defaults live in settings_service and
    are merged under it on load.
    """
    __tablename__ = "system_settings"

    section = db.Column(db.String(32), primary_key=True)
    value_json = db.Column(db.JSON, nullable=False, default=dict)

    updated_by_user_id = db.Column(db.Integer, db.ForeignKey("users.id"), nullable=True)
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, server_default=db.func.now(), onupdate=db.func.now())

    def to_dict(self) -> dict:
        return {
            "section": self.section,
            "value": dict(self.value_json or {}),
            "updated_by_user_id": self.updated_by_user_id,
            "updated_at": to_utc_z(self.updated_at),
        }
