"""Staleness and cooldown checks for readiness recalculation.

All checks are read-only and operate on data the caller has already loaded.
A missing snapshot is never an error: it means "first calculation".
"""

import logging
import math
from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta

from config import settings
from models.schemas.gate import (
    CooldownCheck,
    SkillChangeCheck,
    ValidatedSkillSummary,
    ValidationUpdates,
)
from models.tables import ReadinessSnapshot, UserSkill, as_utc

logger = logging.getLogger(__name__)

VALIDATION_BYPASS_REASON = "validation_update"
REVIEWED_STATUSES = ("validated", "rejected")


def _wait_message(remaining_seconds: int) -> str:
    if remaining_seconds >= 60:
        minutes = math.ceil(remaining_seconds / 60)
        return f"Please wait {minutes} minute(s) before recalculating"
    return f"Please wait {remaining_seconds} seconds before recalculating"


def check_cooldown(
    last_calculated_at: datetime | None,
    now: datetime,
    *,
    bypass_reason: str | None = None,
    cooldown_minutes: int | None = None,
) -> CooldownCheck:
    """Refuse a recalculation inside the cooldown window unless bypassed."""
    if bypass_reason == VALIDATION_BYPASS_REASON:
        return CooldownCheck(
            allowed=True,
            bypassed=True,
            bypass_reason=bypass_reason,
            message="Cooldown bypassed due to mentor validation updates",
            last_calculation=as_utc(last_calculated_at),
        )

    if last_calculated_at is None:
        return CooldownCheck(allowed=True)

    last = as_utc(last_calculated_at)
    minutes = settings.recalculation_cooldown_minutes if cooldown_minutes is None else cooldown_minutes
    ends_at = last + timedelta(minutes=minutes)

    if now < ends_at:
        remaining = math.ceil((ends_at - now).total_seconds())
        logger.info("Recalculation refused: cooldown active for another %ds", remaining)
        return CooldownCheck(
            allowed=False,
            reason="COOLDOWN_ACTIVE",
            message=_wait_message(remaining),
            last_calculation=last,
            cooldown_ends_at=ends_at,
            remaining_seconds=remaining,
        )

    return CooldownCheck(allowed=True, last_calculation=last)


def met_skill_ids(snapshot: ReadinessSnapshot) -> list[str]:
    return sorted(b["skill_id"] for b in snapshot.breakdown or [] if b.get("status") == "met")


def check_skills_changed(
    latest: ReadinessSnapshot | None,
    current_skill_ids: Iterable[str],
) -> SkillChangeCheck:
    """Compare the skills met last time against the current eligible skill set."""
    if latest is None:
        return SkillChangeCheck(changed=True, reason="FIRST_CALCULATION")

    last_ids = met_skill_ids(latest)
    current_ids = sorted(current_skill_ids)

    if last_ids == current_ids:
        return SkillChangeCheck(
            changed=False,
            reason="NO_CHANGES",
            message="No changes detected since last calculation. Your skills are the same.",
            last_score=latest.total_score,
            last_max_score=latest.max_possible_score,
            last_percentage=latest.percentage,
        )

    last_set, current_set = set(last_ids), set(current_ids)
    return SkillChangeCheck(
        changed=True,
        reason="SKILLS_CHANGED",
        skills_added=len(current_set - last_set),
        skills_removed=len(last_set - current_set),
    )


def _summarize(skill: UserSkill, skill_names: Mapping[str, str]) -> ValidatedSkillSummary:
    return ValidatedSkillSummary(
        skill_id=skill.skill_id,
        skill_name=skill_names.get(skill.skill_id, "Unknown"),
        validated_at=as_utc(skill.validated_at),
        mentor_id=skill.validated_by,
    )


def check_validation_updates(
    last_calculated_at: datetime | None,
    ledger: Iterable[UserSkill],
    skill_names: Mapping[str, str] | None = None,
) -> ValidationUpdates:
    """Find mentor validations or rejections newer than the last snapshot."""
    if last_calculated_at is None:
        return ValidationUpdates(has_updates=False, reason="NO_PREVIOUS_CALCULATION")

    last = as_utc(last_calculated_at)
    names = skill_names or {}
    reviewed = [
        s for s in ledger
        if s.validation_status in REVIEWED_STATUSES
        and s.validated_at is not None
        and as_utc(s.validated_at) > last
    ]

    if not reviewed:
        return ValidationUpdates(has_updates=False, reason="NO_NEW_VALIDATIONS", last_calculation=last)

    validated = [_summarize(s, names) for s in reviewed if s.validation_status == "validated"]
    rejected = [_summarize(s, names) for s in reviewed if s.validation_status == "rejected"]

    return ValidationUpdates(
        has_updates=True,
        reason="VALIDATION_UPDATES_AVAILABLE",
        last_calculation=last,
        validated_count=len(validated),
        rejected_count=len(rejected),
        validated_skills=validated,
        rejected_skills=rejected,
        message=validation_message(len(validated), len(rejected)),
    )


def validation_message(validated: int, rejected: int) -> str:
    return (
        f"{validated} skill(s) validated, {rejected} skill(s) rejected "
        "since your last readiness check."
    )
