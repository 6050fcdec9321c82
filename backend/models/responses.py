from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict

from models.schemas.gate import ValidationUpdates
from models.schemas.readiness import ReadinessResult, SkillBreakdown, SkillGap


def ok(data: Any = None, message: str | None = None) -> dict[str, Any]:
    """Success envelope shared by every endpoint."""
    return {"success": True, "data": data, "message": message}


class RoleRef(BaseModel):
    id: str
    name: str


class ValidationContext(BaseModel):
    validated_count: int = 0
    rejected_count: int = 0
    pending_count: int = 0
    has_updates_since_last_calc: bool = False
    updates_summary: dict[str, int] | None = None
    message: str | None = None
    show_recalculate_prompt: bool = False


class ReadinessContext(BaseModel):
    has_target_role: bool
    edge_case: str | None = None
    edge_case_message: str | None = None
    action_required: str | None = None
    action_url: str | None = None
    role: RoleRef | None = None
    required_skills_count: int = 0
    total_benchmark_skills_count: int = 0
    user_skills_count: int = 0
    user_skills_by_source: dict[str, int] = {}
    last_calculated_at: datetime | None = None
    validation: ValidationContext | None = None


class ReadinessScore(ReadinessResult):
    """A persisted calculation."""
    readiness_id: str
    calculated_at: datetime
    trigger: str


class RecalculationOutcome(BaseModel):
    recalculated: bool
    reason: str | None = None
    message: str | None = None
    readiness: ReadinessScore | None = None
    # Previous score, set when nothing changed
    current_score: int | None = None
    max_possible_score: int | None = None
    percentage: int | None = None


class ValidationApplied(BaseModel):
    validated_skills: int
    rejected_skills: int
    weight_bonus: str
    rejected_excluded: str = "Rejected skills were excluded from calculation"


class ValidationRecalculation(BaseModel):
    validation_applied: ValidationApplied
    readiness: ReadinessScore


class ValidationUpdatesView(ValidationUpdates):
    user_id: str
    role_id: str | None = None


class LatestSkillStats(BaseModel):
    total_benchmark_skills: int
    skills_met: int
    skills_missing: int


class LatestReadiness(BaseModel):
    readiness_id: str
    role_id: str
    total_score: int
    max_possible_score: int
    percentage: int
    has_all_required: bool
    missing_required_skills: list[str] = []
    calculated_at: datetime
    trigger: str
    skill_stats: LatestSkillStats


class HistoryEntry(BaseModel):
    readiness_id: str
    total_score: int
    max_possible_score: int
    percentage: int
    calculated_at: datetime
    trigger: str


class MetSkill(BaseModel):
    name: str
    source: str | None = None


class ImportanceGroup(BaseModel):
    total: int = 0
    met: int = 0
    missing: int = 0
    met_skills: list[MetSkill] = []
    missing_skills: list[str] = []


class WeightImpact(BaseModel):
    total_weight: int = 0
    achieved_weight: int = 0
    required_weight_total: int = 0
    required_weight_achieved: int = 0
    optional_weight_total: int = 0
    optional_weight_achieved: int = 0


class TrustIndicators(BaseModel):
    validated_count: int = 0
    resume_count: int = 0
    self_count: int = 0
    total_met: int = 0
    validation_percentage: int = 0


class BreakdownView(BaseModel):
    readiness_id: str
    percentage: int
    calculated_at: datetime
    breakdown: list[SkillBreakdown]
    required_skills: ImportanceGroup
    optional_skills: ImportanceGroup
    weight_impact: WeightImpact
    trust_indicators: TrustIndicators
    missing_required_skills: list[str] = []


class ReadinessPreview(BaseModel):
    result: ReadinessResult
    skill_gaps: list[SkillGap] = []


class SkillView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    domain: str
    description: str | None = None


class UserSkillView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    skill_id: str
    skill_name: str = "Unknown"
    level: str
    source: str
    validation_status: str
    validated_by: str | None = None
    validated_at: datetime | None = None
    validation_note: str | None = None


class RoleView(BaseModel):
    id: str
    name: str
    description: str | None = None
    benchmark_count: int = 0
    required_count: int = 0


class TargetRoleView(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    role_id: str
    role_name: str | None = None
    is_active: bool
    selected_at: datetime
    deactivated_at: datetime | None = None
    readiness_at_change: int | None = None
