"""Target role selection. At most one active selection per user; history is kept."""

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.tables import TargetRole, utcnow
from services import snapshot_store
from services.catalog import get_role
from services.errors import RoleNotFound

logger = logging.getLogger(__name__)


def get_active_target_role(db: Session, user_id: str) -> TargetRole | None:
    stmt = select(TargetRole).where(TargetRole.user_id == user_id, TargetRole.is_active.is_(True))
    return db.scalar(stmt)


def change_target_role(db: Session, user_id: str, role_id: str) -> TargetRole:
    """Deactivate the current selection and record a new one.

    Selecting the already active role returns the current row unchanged.
    """
    role = get_role(db, role_id)
    if not role.is_active:
        raise RoleNotFound("This role is no longer available")
    current = get_active_target_role(db, user_id)
    if current is not None and current.role_id == role_id:
        return current

    now = utcnow()
    if current is not None:
        latest = snapshot_store.latest(db, user_id, current.role_id)
        current.is_active = False
        current.deactivated_at = now
        if latest is not None:
            current.readiness_at_change = latest.percentage
        # Flush the deactivation before the insert to satisfy the partial unique index
        db.flush()

    selection = TargetRole(user_id=user_id, role_id=role_id, is_active=True, selected_at=now)
    db.add(selection)
    db.commit()
    logger.info("User %s changed target role to %s", user_id, role_id)
    return selection


def get_target_role_history(db: Session, user_id: str, include_active: bool = True) -> list[TargetRole]:
    stmt = select(TargetRole).where(TargetRole.user_id == user_id)
    if not include_active:
        stmt = stmt.where(TargetRole.is_active.is_(False))
    return list(db.scalars(stmt.order_by(TargetRole.selected_at.desc())))
