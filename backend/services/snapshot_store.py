"""Append-only readiness snapshot history."""

import logging
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.schemas.readiness import ReadinessResult, SnapshotTrigger
from models.tables import ReadinessSnapshot, utcnow

logger = logging.getLogger(__name__)

MAX_TRIGGER_DETAILS = 500


def append(
    db: Session,
    result: ReadinessResult,
    trigger: SnapshotTrigger,
    trigger_details: str | None = None,
    now: datetime | None = None,
) -> ReadinessSnapshot:
    snapshot = ReadinessSnapshot(
        user_id=result.user_id,
        role_id=result.role_id,
        total_score=result.total_score,
        max_possible_score=result.max_possible_score,
        percentage=result.percentage,
        has_all_required=result.has_all_required,
        required_skills_met=result.required_skills_met,
        required_skills_total=result.required_skills_total,
        total_benchmarks=result.total_benchmarks,
        skills_matched=result.skills_matched,
        skills_missing=result.skills_missing,
        missing_required_skills=list(result.missing_required_skills),
        breakdown=[b.model_dump() for b in result.breakdown],
        trigger=trigger,
        trigger_details=trigger_details[:MAX_TRIGGER_DETAILS] if trigger_details else None,
        created_at=now or utcnow(),
    )
    db.add(snapshot)
    db.commit()
    logger.info(
        "Snapshot %s for user=%s role=%s: %d%% (%s)",
        snapshot.id, result.user_id, result.role_id, result.percentage, trigger,
    )
    return snapshot


def latest(db: Session, user_id: str, role_id: str) -> ReadinessSnapshot | None:
    stmt = (
        select(ReadinessSnapshot)
        .where(ReadinessSnapshot.user_id == user_id, ReadinessSnapshot.role_id == role_id)
        .order_by(ReadinessSnapshot.created_at.desc())
        .limit(1)
    )
    return db.scalar(stmt)


def history(db: Session, user_id: str, role_id: str | None = None, limit: int = 20) -> list[ReadinessSnapshot]:
    stmt = select(ReadinessSnapshot).where(ReadinessSnapshot.user_id == user_id)
    if role_id:
        stmt = stmt.where(ReadinessSnapshot.role_id == role_id)
    stmt = stmt.order_by(ReadinessSnapshot.created_at.desc()).limit(limit)
    return list(db.scalars(stmt))


def get(db: Session, snapshot_id: str) -> ReadinessSnapshot | None:
    return db.get(ReadinessSnapshot, snapshot_id)
