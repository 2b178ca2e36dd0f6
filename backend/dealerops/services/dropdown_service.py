# Overview: Service-layer operations for admin-managed dropdown options.

from __future__ import annotations

from sqlalchemy.exc import IntegrityError

from ..extensions import db
from ..models import DropdownSetting
from ..validation import ConflictError, ModelValidationPolicy, NotFoundError, ValidationError, validate_payload


DUPLICATE_MESSAGE = "A dropdown option with this label already exists in this category"

DROPDOWN_POLICY = ModelValidationPolicy(
    writable_fields={"category", "label", "value", "display_order", "is_active"},
)


def get_setting(setting_id: int) -> DropdownSetting:
    setting = db.session.get(DropdownSetting, setting_id)
    if not setting:
        raise NotFoundError("Dropdown setting not found")
    return setting


def list_settings(*, category: str | None = None, active_only: bool = True) -> list[DropdownSetting]:
    query = db.session.query(DropdownSetting)
    if category:
        query = query.filter(DropdownSetting.category == category)
    if active_only:
        query = query.filter(DropdownSetting.is_active.is_(True))
    return query.order_by(
        DropdownSetting.category.asc(),
        DropdownSetting.display_order.asc(),
        DropdownSetting.created_at.asc(),
        DropdownSetting.id.asc(),
    ).all()


def _label_taken(category: str, label: str, exclude_id: int | None = None) -> bool:
    query = db.session.query(DropdownSetting.id).filter(
        DropdownSetting.category == category,
        DropdownSetting.label == label,
    )
    if exclude_id is not None:
        query = query.filter(DropdownSetting.id != exclude_id)
    return query.first() is not None


def _commit_unique() -> None:
    # The unique constraint still guards a race between check and insert
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise ConflictError(DUPLICATE_MESSAGE)


def create_setting(*, payload: dict, created_by: int | None) -> DropdownSetting:
    for field, label in (("category", "Category"), ("label", "Label"), ("value", "Value")):
        if not str(payload.get(field) or "").strip():
            raise ValidationError(f"{label} is required")

    patch = validate_payload(model=DropdownSetting, payload=payload, policy=DROPDOWN_POLICY, partial=False)
    if _label_taken(patch["category"], patch["label"]):
        raise ConflictError(DUPLICATE_MESSAGE)

    setting = DropdownSetting(created_by=created_by, **patch)
    if setting.display_order is None:
        setting.display_order = 0
    if setting.is_active is None:
        setting.is_active = True
    db.session.add(setting)
    _commit_unique()
    return setting


def update_setting(*, setting_id: int, payload: dict) -> DropdownSetting:
    setting = get_setting(setting_id)
    patch = validate_payload(model=DropdownSetting, payload=payload, policy=DROPDOWN_POLICY, partial=True)

    category = patch.get("category", setting.category)
    label = patch.get("label", setting.label)
    if ("category" in patch or "label" in patch) and _label_taken(category, label, exclude_id=setting.id):
        raise ConflictError(DUPLICATE_MESSAGE)

    for k, v in patch.items():
        setattr(setting, k, v)
    _commit_unique()
    return setting


def delete_setting(*, setting_id: int) -> None:
    setting = get_setting(setting_id)
    db.session.delete(setting)
    db.session.commit()
