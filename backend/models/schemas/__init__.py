"""Pydantic contracts shared by the readiness services."""

from models.schemas.gate import CooldownCheck, SkillChangeCheck, ValidationUpdates
from models.schemas.readiness import (
    BenchmarkInput,
    ReadinessResult,
    SkillBreakdown,
    SkillGap,
    UserSkillInput,
)

__all__ = [
    "BenchmarkInput",
    "UserSkillInput",
    "SkillBreakdown",
    "ReadinessResult",
    "SkillGap",
    "CooldownCheck",
    "SkillChangeCheck",
    "ValidationUpdates",
]
