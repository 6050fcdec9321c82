"""Readiness calculation engine.

Pure functions: no database access, no side effects. Given a role's active
benchmarks and a user's skill ledger, produce a deterministic score breakdown.

Scoring:
1. Only eligible ledger entries count: source self/resume/validated and a
   validation status other than "rejected".
2. A benchmark is met when the user holds an eligible entry for its skill.
   Achieved weight is the benchmark weight, or round(weight * bonus) when the
   entry is mentor-validated (source or status "validated").
3. max_possible_score sums the plain benchmark weights; the bonus never
   inflates it.
4. percentage = round(total_score / max_possible_score * 100), clamped to 100.
"""

import logging
import math
from collections.abc import Iterable

from config import settings
from models.schemas.readiness import (
    BenchmarkInput,
    ReadinessResult,
    SkillBreakdown,
    SkillGap,
    SkillStats,
    UserSkillInput,
)

logger = logging.getLogger(__name__)

ELIGIBLE_SOURCES = frozenset({"self", "resume", "validated"})
MAX_PERCENTAGE = 100

LEVEL_RANK: dict[str, int] = {
    "none": 0,
    "beginner": 1,
    "intermediate": 2,
    "advanced": 3,
    "expert": 4,
}


def round_half_up(value: float) -> int:
    """Round .5 away from zero for non-negative values (round(62.5) == 63)."""
    return int(math.floor(value + 0.5))


def is_eligible(skill: UserSkillInput) -> bool:
    return skill.source in ELIGIBLE_SOURCES and skill.validation_status != "rejected"


def eligible_skills(user_skills: Iterable[UserSkillInput]) -> list[UserSkillInput]:
    """Filter a ledger down to the entries that count towards readiness."""
    return [s for s in user_skills if is_eligible(s)]


def is_validated(skill: UserSkillInput) -> bool:
    return skill.source == "validated" or skill.validation_status == "validated"


def achieved_weight(weight: int, skill: UserSkillInput | None, multiplier: float | None = None) -> int:
    """Weight earned for one benchmark given the matching ledger entry (or None)."""
    if skill is None:
        return 0
    if is_validated(skill):
        bonus = settings.validation_bonus_multiplier if multiplier is None else multiplier
        return round_half_up(weight * bonus)
    return weight


def compute_percentage(total_score: int, max_possible_score: int) -> int:
    if max_possible_score <= 0:
        return 0
    return min(MAX_PERCENTAGE, round_half_up(total_score / max_possible_score * 100))


def calculate_readiness(
    benchmarks: list[BenchmarkInput],
    user_skills: list[UserSkillInput],
    *,
    user_id: str,
    role_id: str,
    role_name: str = "",
    multiplier: float | None = None,
) -> ReadinessResult:
    """Score a user's ledger against a role's benchmarks."""
    eligible = eligible_skills(user_skills)
    by_skill = {s.skill_id: s for s in eligible}

    breakdown: list[SkillBreakdown] = []
    missing_required: list[str] = []
    total_score = 0
    max_possible_score = 0
    required_total = 0

    for benchmark in benchmarks:
        skill = by_skill.get(benchmark.skill_id)
        earned = achieved_weight(benchmark.weight, skill, multiplier)
        validated = skill is not None and is_validated(skill)

        breakdown.append(SkillBreakdown(
            skill_id=benchmark.skill_id,
            skill_name=benchmark.skill_name,
            importance=benchmark.importance,
            required_weight=benchmark.weight,
            achieved_weight=earned,
            status="met" if skill is not None else "missing",
            source=skill.source if skill else None,
            validation_status=skill.validation_status if skill else None,
            is_validated=validated,
            validation_bonus=earned - benchmark.weight if validated else 0,
            required_level=benchmark.required_level,
            user_level=skill.level if skill else "none",
        ))

        max_possible_score += benchmark.weight
        total_score += earned
        if benchmark.importance == "required":
            required_total += 1
            if skill is None:
                missing_required.append(benchmark.skill_name)

    skills_matched = sum(1 for b in breakdown if b.status == "met")
    logger.debug(
        "Readiness for user=%s role=%s: %d/%d (%d eligible skills)",
        user_id, role_id, total_score, max_possible_score, len(eligible),
    )

    return ReadinessResult(
        user_id=user_id,
        role_id=role_id,
        role_name=role_name,
        total_score=total_score,
        max_possible_score=max_possible_score,
        percentage=compute_percentage(total_score, max_possible_score),
        has_all_required=not missing_required,
        required_skills_met=required_total - len(missing_required),
        required_skills_total=required_total,
        missing_required_skills=missing_required,
        total_benchmarks=len(benchmarks),
        skills_matched=skills_matched,
        skills_missing=len(breakdown) - skills_matched,
        skill_stats=SkillStats(
            total_benchmark_skills=len(benchmarks),
            skills_met=skills_matched,
            skills_missing=len(breakdown) - skills_matched,
            self_skills_count=sum(1 for s in eligible if s.source == "self"),
            resume_skills_count=sum(1 for s in eligible if s.source == "resume"),
            validated_skills_count=sum(1 for s in eligible if is_validated(s)),
        ),
        breakdown=breakdown,
    )


def get_skill_gaps(result: ReadinessResult) -> list[SkillGap]:
    """Skills that are missing or below the required level, most urgent first."""
    gaps: list[SkillGap] = []
    for item in result.breakdown:
        current = item.user_level if item.status == "met" else "none"
        levels_needed = LEVEL_RANK[item.required_level] - LEVEL_RANK[current]
        if item.status == "met" and levels_needed <= 0:
            continue
        levels_needed = max(levels_needed, 0)
        importance_bonus = 100 if item.importance == "required" else 0
        gaps.append(SkillGap(
            skill_id=item.skill_id,
            skill_name=item.skill_name,
            current_level=current,
            required_level=item.required_level,
            importance=item.importance,
            levels_needed=levels_needed,
            priority=importance_bonus + levels_needed * 10 + item.required_weight,
        ))

    gaps.sort(key=lambda g: g.priority, reverse=True)
    return gaps
