"""Readiness orchestration: target role -> benchmarks -> ledger -> gate -> snapshot.

Every entry point takes the caller's own user id and a database session. Refusals
are raised as ReadinessError subclasses; the context view reports them as edge
cases instead so the dashboard can render guidance.
"""

import logging
from collections import Counter
from datetime import datetime

from sqlalchemy.orm import Session

from config import settings
from models.responses import (
    BreakdownView,
    HistoryEntry,
    ImportanceGroup,
    LatestReadiness,
    LatestSkillStats,
    MetSkill,
    ReadinessContext,
    ReadinessPreview,
    ReadinessScore,
    RecalculationOutcome,
    RoleRef,
    TrustIndicators,
    ValidationApplied,
    ValidationContext,
    ValidationRecalculation,
    ValidationUpdatesView,
    WeightImpact,
)
from models.schemas.gate import ValidationUpdates
from models.schemas.readiness import (
    BenchmarkInput,
    ReadinessResult,
    SkillBreakdown,
    SnapshotTrigger,
)
from models.tables import ReadinessSnapshot, Role, as_utc, utcnow
from services import readiness_gate, skill_ledger, snapshot_store
from services.catalog import active_benchmarks, skill_names
from services.errors import (
    CooldownActive,
    NoBenchmarkSkills,
    NoTargetRole,
    NoUserSkills,
    NoValidationUpdates,
    RoleNotFound,
    SnapshotNotFound,
)
from services.readiness_calculator import (
    calculate_readiness,
    get_skill_gaps,
    is_validated,
    round_half_up,
)
from services.target_roles import get_active_target_role

logger = logging.getLogger(__name__)


def _resolve_role(db: Session, user_id: str) -> Role:
    target = get_active_target_role(db, user_id)
    if target is None:
        raise NoTargetRole()
    role = db.get(Role, target.role_id)
    if role is None or not role.is_active:
        raise RoleNotFound()
    return role


def _require_benchmarks(db: Session, role: Role) -> list[BenchmarkInput]:
    benchmarks = active_benchmarks(db, role)
    if not benchmarks:
        raise NoBenchmarkSkills(
            f'The "{role.name}" role has no benchmark skills configured',
            role_id=role.id,
        )
    return benchmarks


def _score_from_snapshot(result: ReadinessResult, snapshot: ReadinessSnapshot) -> ReadinessScore:
    return ReadinessScore(
        **result.model_dump(),
        readiness_id=snapshot.id,
        calculated_at=as_utc(snapshot.created_at),
        trigger=snapshot.trigger,
    )


def _score(
    db: Session,
    user_id: str,
    role: Role,
    benchmarks: list[BenchmarkInput],
    trigger: SnapshotTrigger,
    trigger_details: str | None,
    now: datetime | None,
) -> ReadinessScore:
    result = calculate_readiness(
        benchmarks,
        skill_ledger.ledger_inputs(db, user_id),
        user_id=user_id,
        role_id=role.id,
        role_name=role.name,
    )
    snapshot = snapshot_store.append(db, result, trigger, trigger_details, now=now)
    return _score_from_snapshot(result, snapshot)


def calculate_and_snapshot(
    db: Session,
    user_id: str,
    role: Role,
    trigger: SnapshotTrigger,
    trigger_details: str | None = None,
    now: datetime | None = None,
) -> ReadinessScore:
    """Calculate against the role's current benchmarks and persist a snapshot. No gate."""
    return _score(db, user_id, role, _require_benchmarks(db, role), trigger, trigger_details, now)


def recalculate_explicit(
    db: Session,
    user_id: str,
    force: bool = False,
    bypass_reason: str | None = None,
    now: datetime | None = None,
) -> RecalculationOutcome:
    """User-requested recalculation.

    Unless forced, the cooldown and the skill-change check run first. An
    unchanged skill set is a no-op that reports the previous score.
    """
    now = now or utcnow()
    role = _resolve_role(db, user_id)
    benchmarks = _require_benchmarks(db, role)
    skills = skill_ledger.eligible_inputs(db, user_id)
    if not skills:
        raise NoUserSkills()

    if not force:
        latest = snapshot_store.latest(db, user_id, role.id)
        cooldown = readiness_gate.check_cooldown(
            latest.created_at if latest else None, now, bypass_reason=bypass_reason
        )
        if not cooldown.allowed:
            raise CooldownActive(
                cooldown.message,
                remaining_seconds=cooldown.remaining_seconds,
                cooldown_ends_at=cooldown.cooldown_ends_at.isoformat(),
            )

        change = readiness_gate.check_skills_changed(latest, [s.skill_id for s in skills])
        if not change.changed:
            logger.info("No skill changes for user %s, keeping snapshot %s", user_id, latest.id)
            return RecalculationOutcome(
                recalculated=False,
                reason="NO_CHANGES_DETECTED",
                message=change.message,
                current_score=change.last_score,
                max_possible_score=change.last_max_score,
                percentage=change.last_percentage,
            )

    details = "forced" if force else bypass_reason
    score = _score(db, user_id, role, benchmarks, "user_explicit", details, now)
    return RecalculationOutcome(
        recalculated=True,
        message="Readiness calculated successfully",
        readiness=score,
        current_score=score.total_score,
        max_possible_score=score.max_possible_score,
        percentage=score.percentage,
    )


def recalculate_for_validation(db: Session, user_id: str, now: datetime | None = None) -> ValidationRecalculation:
    """Recalculate after mentor reviews. Skips the cooldown, but only when reviews exist."""
    role = _resolve_role(db, user_id)
    updates = _validation_updates(db, user_id, role)
    if not updates.has_updates:
        raise NoValidationUpdates(reason=updates.reason)

    details = f"{updates.validated_count} validated, {updates.rejected_count} rejected"
    score = calculate_and_snapshot(db, user_id, role, "validation_review", details, now=now)
    bonus = settings.validation_bonus_multiplier
    return ValidationRecalculation(
        validation_applied=ValidationApplied(
            validated_skills=updates.validated_count,
            rejected_skills=updates.rejected_count,
            weight_bonus=f"Validated skills received {bonus:g}x weight bonus",
        ),
        readiness=score,
    )


def _validation_updates(db: Session, user_id: str, role: Role) -> ValidationUpdates:
    latest = snapshot_store.latest(db, user_id, role.id)
    ledger = skill_ledger.list_skills(db, user_id)
    names = skill_names(db, [s.skill_id for s in ledger])
    return readiness_gate.check_validation_updates(latest.created_at if latest else None, ledger, names)


def get_validation_updates(db: Session, user_id: str) -> ValidationUpdatesView:
    if get_active_target_role(db, user_id) is None:
        return ValidationUpdatesView(
            has_updates=False,
            reason="NO_TARGET_ROLE",
            message="No target role selected",
            user_id=user_id,
        )
    try:
        role = _resolve_role(db, user_id)
    except RoleNotFound as exc:
        # a stale selection is a bad request here, not a missing resource
        exc.status_code = 400
        raise
    updates = _validation_updates(db, user_id, role)
    return ValidationUpdatesView(**updates.model_dump(), user_id=user_id, role_id=role.id)


def get_context(db: Session, user_id: str) -> ReadinessContext:
    """Everything the dashboard needs before offering a (re)calculation."""
    target = get_active_target_role(db, user_id)
    if target is None:
        return ReadinessContext(
            has_target_role=False,
            edge_case=NoTargetRole.code,
            edge_case_message=(
                "You haven't selected a target role yet. Your readiness score is "
                "calculated against your target role's required skills."
            ),
            action_required=NoTargetRole.action_required,
            action_url=NoTargetRole.action_url,
        )

    role = db.get(Role, target.role_id)
    if role is None or not role.is_active:
        return ReadinessContext(
            has_target_role=False,
            edge_case=RoleNotFound.code,
            edge_case_message="Your target role could not be found. Please select a new role.",
            action_url=RoleNotFound.action_url,
        )

    role_ref = RoleRef(id=role.id, name=role.name)
    benchmarks = active_benchmarks(db, role)
    if not benchmarks:
        return ReadinessContext(
            has_target_role=True,
            edge_case=NoBenchmarkSkills.code,
            edge_case_message=(
                f'The "{role.name}" role has no benchmark skills configured. '
                "This is a system configuration issue."
            ),
            action_required=NoBenchmarkSkills.action_required,
            role=role_ref,
        )

    ledger = skill_ledger.list_skills(db, user_id)
    names = skill_names(db, [s.skill_id for s in ledger])
    inputs = [skill_ledger.to_input(s, names) for s in ledger]
    eligible = [s for s in inputs if s.validation_status != "rejected"]
    benchmark_ids = {b.skill_id for b in benchmarks}

    validated_count = sum(1 for s in eligible if is_validated(s))
    rejected_count = sum(
        1 for s in inputs if s.validation_status == "rejected" and s.skill_id in benchmark_ids
    )
    pending_count = sum(1 for s in eligible if s.validation_status == "pending")

    latest = snapshot_store.latest(db, user_id, role.id)
    last_calculated_at = as_utc(latest.created_at) if latest else None
    updates = readiness_gate.check_validation_updates(last_calculated_at, ledger, names)

    if updates.has_updates:
        message = updates.message
    elif validated_count:
        message = f"{validated_count} of your skills are mentor-validated."
    else:
        message = None

    context = ReadinessContext(
        has_target_role=True,
        role=role_ref,
        required_skills_count=sum(1 for b in benchmarks if b.importance == "required"),
        total_benchmark_skills_count=len(benchmarks),
        user_skills_count=len(eligible),
        user_skills_by_source=dict(Counter(s.source for s in eligible)),
        last_calculated_at=last_calculated_at,
        validation=ValidationContext(
            validated_count=validated_count,
            rejected_count=rejected_count,
            pending_count=pending_count,
            has_updates_since_last_calc=updates.has_updates,
            updates_summary=(
                {"validated": updates.validated_count, "rejected": updates.rejected_count}
                if updates.has_updates else None
            ),
            message=message,
            show_recalculate_prompt=updates.has_updates,
        ),
    )
    if not eligible:
        context.edge_case = NoUserSkills.code
        context.edge_case_message = (
            "You haven't added any skills yet. Add your skills to calculate your readiness."
        )
        context.action_required = NoUserSkills.action_required
        context.action_url = NoUserSkills.action_url
    return context


def get_latest(db: Session, user_id: str) -> LatestReadiness:
    role = _resolve_role(db, user_id)
    snapshot = snapshot_store.latest(db, user_id, role.id)
    if snapshot is None:
        raise SnapshotNotFound()
    return LatestReadiness(
        readiness_id=snapshot.id,
        role_id=snapshot.role_id,
        total_score=snapshot.total_score,
        max_possible_score=snapshot.max_possible_score,
        percentage=snapshot.percentage,
        has_all_required=snapshot.has_all_required,
        missing_required_skills=snapshot.missing_required_skills or [],
        calculated_at=as_utc(snapshot.created_at),
        trigger=snapshot.trigger,
        skill_stats=LatestSkillStats(
            total_benchmark_skills=snapshot.total_benchmarks,
            skills_met=snapshot.skills_matched,
            skills_missing=snapshot.skills_missing,
        ),
    )


def get_history(db: Session, user_id: str, limit: int = 20) -> list[HistoryEntry]:
    """Snapshots for the active target role, newest first."""
    role = _resolve_role(db, user_id)
    return [
        HistoryEntry(
            readiness_id=s.id,
            total_score=s.total_score,
            max_possible_score=s.max_possible_score,
            percentage=s.percentage,
            calculated_at=as_utc(s.created_at),
            trigger=s.trigger,
        )
        for s in snapshot_store.history(db, user_id, role.id, limit=limit)
    ]


def _group(items: list[SkillBreakdown]) -> ImportanceGroup:
    met = [b for b in items if b.status == "met"]
    return ImportanceGroup(
        total=len(items),
        met=len(met),
        missing=len(items) - len(met),
        met_skills=[MetSkill(name=b.skill_name, source=b.source) for b in met],
        missing_skills=[b.skill_name for b in items if b.status == "missing"],
    )


def get_breakdown(db: Session, user_id: str, snapshot_id: str) -> BreakdownView:
    """Required/optional split, weight impact and trust indicators of one snapshot."""
    snapshot = snapshot_store.get(db, snapshot_id)
    if snapshot is None or snapshot.user_id != user_id:
        raise SnapshotNotFound("Readiness score not found")

    breakdown = [SkillBreakdown.model_validate(b) for b in snapshot.breakdown or []]
    required = [b for b in breakdown if b.importance == "required"]
    optional = [b for b in breakdown if b.importance != "required"]
    met = [b for b in breakdown if b.status == "met"]

    required_total = sum(b.required_weight for b in required)
    optional_total = sum(b.required_weight for b in optional)
    required_achieved = sum(b.achieved_weight for b in required)
    optional_achieved = sum(b.achieved_weight for b in optional)

    validated = sum(1 for b in met if b.is_validated)
    return BreakdownView(
        readiness_id=snapshot.id,
        percentage=snapshot.percentage,
        calculated_at=as_utc(snapshot.created_at),
        breakdown=breakdown,
        required_skills=_group(required),
        optional_skills=_group(optional),
        weight_impact=WeightImpact(
            total_weight=required_total + optional_total,
            achieved_weight=required_achieved + optional_achieved,
            required_weight_total=required_total,
            required_weight_achieved=required_achieved,
            optional_weight_total=optional_total,
            optional_weight_achieved=optional_achieved,
        ),
        trust_indicators=TrustIndicators(
            validated_count=validated,
            resume_count=sum(1 for b in met if b.source == "resume"),
            self_count=sum(1 for b in met if b.source == "self"),
            total_met=len(met),
            validation_percentage=round_half_up(validated / len(met) * 100) if met else 0,
        ),
        missing_required_skills=[b.skill_name for b in required if b.status == "missing"],
    )


def preview(db: Session, user_id: str) -> ReadinessPreview:
    """Score the current ledger without writing a snapshot."""
    role = _resolve_role(db, user_id)
    result = calculate_readiness(
        _require_benchmarks(db, role),
        skill_ledger.ledger_inputs(db, user_id),
        user_id=user_id,
        role_id=role.id,
        role_name=role.name,
    )
    return ReadinessPreview(result=result, skill_gaps=get_skill_gaps(result))
