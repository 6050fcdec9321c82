"""User skill ledger: claims, validation requests and mentor reviews."""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.schemas.readiness import UserSkillInput
from models.tables import Skill, UserSkill, utcnow
from services.catalog import skill_names
from services.errors import (
    Forbidden,
    InvalidValidationState,
    SkillNotFound,
    UserSkillNotFound,
)
from services.readiness_calculator import is_eligible

logger = logging.getLogger(__name__)


def list_skills(db: Session, user_id: str) -> list[UserSkill]:
    stmt = select(UserSkill).where(UserSkill.user_id == user_id).order_by(UserSkill.created_at)
    return list(db.scalars(stmt))


def list_pending(db: Session, limit: int = 50, exclude_user_id: str | None = None) -> list[UserSkill]:
    """Oldest validation requests first, for the mentor queue."""
    stmt = select(UserSkill).where(UserSkill.validation_status == "pending")
    if exclude_user_id is not None:
        stmt = stmt.where(UserSkill.user_id != exclude_user_id)
    stmt = stmt.order_by(UserSkill.updated_at).limit(limit)
    return list(db.scalars(stmt))


def get_user_skill(db: Session, user_skill_id: str) -> UserSkill:
    user_skill = db.get(UserSkill, user_skill_id)
    if user_skill is None:
        raise UserSkillNotFound()
    return user_skill


def claim_skill(
    db: Session,
    user_id: str,
    skill_id: str,
    level: str = "beginner",
    source: str = "self",
) -> UserSkill:
    """Add a skill to the ledger, or update the existing claim for the same skill."""
    skill = db.get(Skill, skill_id)
    if skill is None or not skill.is_active:
        raise SkillNotFound()

    existing = db.scalar(
        select(UserSkill).where(UserSkill.user_id == user_id, UserSkill.skill_id == skill_id)
    )
    if existing is None:
        user_skill = UserSkill(user_id=user_id, skill_id=skill_id, level=level, source=source)
        db.add(user_skill)
        db.commit()
        logger.info("User %s claimed skill %s (%s)", user_id, skill.name, source)
        return user_skill

    # A level change invalidates an approval; rejected and pending entries keep their status
    if existing.level != level and existing.validation_status == "validated":
        existing.validation_status = "none"
        existing.validated_at = None
        existing.validated_by = None
        existing.source = source
    elif existing.source != "validated":
        existing.source = source
    existing.level = level
    db.commit()
    return existing


def request_validation(db: Session, user_id: str, user_skill_id: str) -> UserSkill:
    user_skill = get_user_skill(db, user_skill_id)
    if user_skill.user_id != user_id:
        raise UserSkillNotFound()
    if user_skill.validation_status not in ("none", "rejected"):
        raise InvalidValidationState(
            f"Skill is already {user_skill.validation_status}",
            validation_status=user_skill.validation_status,
        )
    user_skill.validation_status = "pending"
    db.commit()
    return user_skill


def review_skill(
    db: Session,
    mentor_id: str,
    user_skill_id: str,
    approve: bool,
    note: str | None = None,
    now: datetime | None = None,
) -> UserSkill:
    """Record a mentor's validation or rejection of a claimed skill."""
    user_skill = get_user_skill(db, user_skill_id)
    if user_skill.user_id == mentor_id:
        raise Forbidden("Mentors cannot review their own skills")
    refused = ("validated",) if approve else ("validated", "rejected")
    if user_skill.validation_status in refused:
        raise InvalidValidationState(
            f"Skill is already {user_skill.validation_status}",
            validation_status=user_skill.validation_status,
        )

    if approve:
        user_skill.validation_status = "validated"
        user_skill.source = "validated"
    else:
        user_skill.validation_status = "rejected"
    user_skill.validated_at = now or utcnow()
    user_skill.validated_by = mentor_id
    user_skill.validation_note = note
    db.commit()
    logger.info(
        "Mentor %s %s skill %s of user %s",
        mentor_id, user_skill.validation_status, user_skill.skill_id, user_skill.user_id,
    )
    return user_skill


def to_input(user_skill: UserSkill, names: dict[str, str]) -> UserSkillInput:
    return UserSkillInput(
        skill_id=user_skill.skill_id,
        skill_name=names.get(user_skill.skill_id, "Unknown"),
        level=user_skill.level,
        source=user_skill.source,
        validation_status=user_skill.validation_status,
    )


def ledger_inputs(db: Session, user_id: str) -> list[UserSkillInput]:
    ledger = list_skills(db, user_id)
    names = skill_names(db, [s.skill_id for s in ledger])
    return [to_input(s, names) for s in ledger]


def eligible_inputs(db: Session, user_id: str) -> list[UserSkillInput]:
    """Ledger entries that count towards readiness (not rejected)."""
    return [s for s in ledger_inputs(db, user_id) if is_eligible(s)]
