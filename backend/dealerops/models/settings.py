from __future__ import annotations

from ..extensions import db
from dealerops.time_utils import to_utc_z, utcnow


class DropdownSetting(db.Model):
    """
    Admin-managed option list entry (e.g. transport companies, locations).

    (category, label) is unique; inactive entries are hidden by default.
    """
    __tablename__ = "dropdown_settings"
    __table_args__ = (
        db.UniqueConstraint("category", "label", name="uq_dropdown_settings_category_label"),
        db.Index("ix_dropdown_settings_category_order", "category", "display_order"),
        {"sqlite_autoincrement": True},
    )

    id = db.Column(db.Integer, primary_key=True)
    category = db.Column(db.String(64), nullable=False)
    label = db.Column(db.String(255), nullable=False)
    value = db.Column(db.String(255), nullable=False)
    display_order = db.Column(db.Integer, nullable=False, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)

    created_by = db.Column(db.Integer, db.ForeignKey("profiles.id", ondelete="SET NULL"), nullable=True)
    created_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now())
    updated_at = db.Column(db.DateTime(timezone=True), nullable=False, default=utcnow, server_default=db.func.now(), onupdate=utcnow)

    def to_dict(self):
        return {
            "id": self.id,
            "category": self.category,
            "label": self.label,
            "value": self.value,
            "display_order": self.display_order,
            "is_active": self.is_active,
            "created_by": self.created_by,
            "created_at": to_utc_z(self.created_at),
            "updated_at": to_utc_z(self.updated_at),
        }
