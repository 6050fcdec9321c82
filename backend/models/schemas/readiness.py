"""Readiness calculator inputs and outputs."""

from typing import Literal

from pydantic import BaseModel, Field

SkillLevel = Literal["none", "beginner", "intermediate", "advanced", "expert"]
SkillSource = Literal["self", "resume", "validated"]
ValidationStatus = Literal["none", "pending", "validated", "rejected"]
Importance = Literal["required", "optional"]
SnapshotTrigger = Literal["user_explicit", "validation_review"]


class BenchmarkInput(BaseModel):
    """One active benchmark of a role, resolved to its skill name."""
    skill_id: str
    skill_name: str = "Unknown"
    importance: Importance = "optional"
    weight: int = Field(1, gt=0)
    required_level: SkillLevel = "beginner"


class UserSkillInput(BaseModel):
    """One entry of a user's skill ledger as seen by the calculator."""
    skill_id: str
    skill_name: str = "Unknown"
    level: SkillLevel = "beginner"
    source: SkillSource = "self"
    validation_status: ValidationStatus = "none"


class SkillBreakdown(BaseModel):
    skill_id: str
    skill_name: str
    importance: Importance
    required_weight: int
    achieved_weight: int = 0
    status: Literal["met", "missing"] = "missing"
    source: SkillSource | None = None
    validation_status: ValidationStatus | None = None
    is_validated: bool = False
    validation_bonus: int = 0  # extra weight points from the bonus
    required_level: SkillLevel = "beginner"
    user_level: SkillLevel = "none"


class SkillStats(BaseModel):
    total_benchmark_skills: int = 0
    skills_met: int = 0
    skills_missing: int = 0
    self_skills_count: int = 0
    resume_skills_count: int = 0
    validated_skills_count: int = 0


class ReadinessResult(BaseModel):
    """Output of the pure calculator. Not yet persisted."""
    user_id: str
    role_id: str
    role_name: str = ""

    total_score: int = 0
    max_possible_score: int = 0
    percentage: int = 0

    has_all_required: bool = True
    required_skills_met: int = 0
    required_skills_total: int = 0
    missing_required_skills: list[str] = []

    total_benchmarks: int = 0
    skills_matched: int = 0
    skills_missing: int = 0
    skill_stats: SkillStats = SkillStats()

    breakdown: list[SkillBreakdown] = []


class SkillGap(BaseModel):
    skill_id: str
    skill_name: str
    current_level: SkillLevel
    required_level: SkillLevel
    importance: Importance
    levels_needed: int
    priority: int  # higher = more urgent
