"""SQLAlchemy tables for the skill catalog, user ledger, target roles and snapshots.

Owned collections (a role's benchmarks, a snapshot's breakdown) live in JSON
columns on the parent row so they are always read together with it.
"""

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Index,
    Integer,
    String,
    UniqueConstraint,
    event,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


def _new_id() -> str:
    return uuid.uuid4().hex


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def as_utc(value: datetime | None) -> datetime | None:
    """SQLite hands back naive datetimes; treat them as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class Base(DeclarativeBase):
    pass


class Skill(Base):
    __tablename__ = "skills"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False)
    normalized_name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True, index=True)
    domain: Mapped[str] = mapped_column(String(20), nullable=False, default="other")
    description: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Skill {self.name}>"


class Role(Base):
    __tablename__ = "roles"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    description: Mapped[Optional[str]] = mapped_column(String(1000), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    # list of {skill_id, importance, weight, required_level, is_active}
    benchmarks: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)

    def __repr__(self) -> str:
        return f"<Role {self.name}>"


class UserSkill(Base):
    __tablename__ = "user_skills"
    __table_args__ = (
        UniqueConstraint("user_id", "skill_id", name="uq_user_skill"),
        Index("ix_user_skills_user_validated_at", "user_id", "validated_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    skill_id: Mapped[str] = mapped_column(String(32), nullable=False)
    level: Mapped[str] = mapped_column(String(20), nullable=False, default="beginner")
    source: Mapped[str] = mapped_column(String(20), nullable=False, default="self")
    validation_status: Mapped[str] = mapped_column(String(20), nullable=False, default="none")
    validated_by: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    validated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    validation_note: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )

    def __repr__(self) -> str:
        return f"<UserSkill {self.skill_id} for user_id={self.user_id}>"


class TargetRole(Base):
    __tablename__ = "target_roles"
    __table_args__ = (
        Index(
            "unique_active_role_per_user",
            "user_id",
            unique=True,
            sqlite_where=text("is_active = 1"),
            postgresql_where=text("is_active"),
        ),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    role_id: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    selected_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)
    deactivated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    readiness_at_change: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)


class ReadinessSnapshot(Base):
    __tablename__ = "readiness_snapshots"
    __table_args__ = (
        Index("ix_snapshots_user_role_created", "user_id", "role_id", "created_at"),
    )

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=_new_id)
    user_id: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    role_id: Mapped[str] = mapped_column(String(32), nullable=False)

    total_score: Mapped[int] = mapped_column(Integer, nullable=False)
    max_possible_score: Mapped[int] = mapped_column(Integer, nullable=False)
    percentage: Mapped[int] = mapped_column(Integer, nullable=False)

    has_all_required: Mapped[bool] = mapped_column(Boolean, nullable=False)
    required_skills_met: Mapped[int] = mapped_column(Integer, nullable=False)
    required_skills_total: Mapped[int] = mapped_column(Integer, nullable=False)
    total_benchmarks: Mapped[int] = mapped_column(Integer, nullable=False)
    skills_matched: Mapped[int] = mapped_column(Integer, nullable=False)
    skills_missing: Mapped[int] = mapped_column(Integer, nullable=False)
    missing_required_skills: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    breakdown: Mapped[list] = mapped_column(JSON, nullable=False, default=list)

    trigger: Mapped[str] = mapped_column(String(30), nullable=False)
    trigger_details: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow)


@event.listens_for(ReadinessSnapshot, "before_update")
def _reject_snapshot_update(mapper, connection, target) -> None:
    raise ValueError("Readiness snapshots are append-only")
