"""Results of the staleness / cooldown checks."""

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class CooldownCheck(BaseModel):
    allowed: bool
    bypassed: bool = False
    bypass_reason: str | None = None
    reason: Literal["COOLDOWN_ACTIVE"] | None = None
    message: str | None = None
    last_calculation: datetime | None = None
    cooldown_ends_at: datetime | None = None
    remaining_seconds: int = 0


class SkillChangeCheck(BaseModel):
    changed: bool
    reason: Literal["FIRST_CALCULATION", "NO_CHANGES", "SKILLS_CHANGED"]
    message: str | None = None
    skills_added: int = 0
    skills_removed: int = 0
    # Previous score, populated when nothing changed
    last_score: int | None = None
    last_max_score: int | None = None
    last_percentage: int | None = None


class ValidatedSkillSummary(BaseModel):
    skill_id: str
    skill_name: str
    validated_at: datetime | None = None
    mentor_id: str | None = None


class ValidationUpdates(BaseModel):
    has_updates: bool
    reason: Literal[
        "NO_TARGET_ROLE",
        "NO_PREVIOUS_CALCULATION",
        "NO_NEW_VALIDATIONS",
        "VALIDATION_UPDATES_AVAILABLE",
    ]
    last_calculation: datetime | None = None
    validated_count: int = 0
    rejected_count: int = 0
    validated_skills: list[ValidatedSkillSummary] = []
    rejected_skills: list[ValidatedSkillSummary] = []
    message: str | None = None
