"""Tests for readiness orchestration: recalculation, context and read views."""

from datetime import timedelta

import pytest
from sqlalchemy import func, select

from conftest import MENTOR_ID, USER_ID
from models.tables import ReadinessSnapshot, utcnow
from services import catalog, readiness_service, skill_ledger, target_roles
from services.errors import (
    CooldownActive,
    InvalidValidationState,
    NoBenchmarkSkills,
    NoTargetRole,
    NoUserSkills,
    NoValidationUpdates,
    RoleNotFound,
    SnapshotNotFound,
)


def _snapshot_count(db) -> int:
    return db.scalar(select(func.count()).select_from(ReadinessSnapshot))


class TestRecalculateExplicit:
    def test_first_calculation_writes_snapshot(self, db, targeted):
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)

        outcome = readiness_service.recalculate_explicit(db, USER_ID)

        assert outcome.recalculated is True
        assert outcome.readiness.percentage == 50
        assert outcome.readiness.trigger == "user_explicit"
        assert outcome.readiness.missing_required_skills == []
        assert _snapshot_count(db) == 1

    def test_no_target_role(self, db, backend_role):
        with pytest.raises(NoTargetRole):
            readiness_service.recalculate_explicit(db, USER_ID)

    def test_deactivated_role(self, db, targeted):
        targeted["role"].is_active = False
        db.commit()
        with pytest.raises(RoleNotFound):
            readiness_service.recalculate_explicit(db, USER_ID)

    def test_role_without_benchmarks_is_refused(self, db):
        skill = catalog.create_skill(db, "Python")
        role = catalog.create_role(db, "Empty Role")
        target_roles.change_target_role(db, USER_ID, role.id)
        skill_ledger.claim_skill(db, USER_ID, skill.id)

        with pytest.raises(NoBenchmarkSkills):
            readiness_service.recalculate_explicit(db, USER_ID)
        assert _snapshot_count(db) == 0

    def test_user_without_skills_is_refused(self, db, targeted):
        with pytest.raises(NoUserSkills):
            readiness_service.recalculate_explicit(db, USER_ID)
        assert _snapshot_count(db) == 0

    def test_only_rejected_skills_is_refused(self, db, targeted):
        user_skill = skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        skill_ledger.review_skill(db, MENTOR_ID, user_skill.id, approve=False)
        with pytest.raises(NoUserSkills):
            readiness_service.recalculate_explicit(db, USER_ID)

    def test_reclaiming_rejected_skill_keeps_it_out(self, db, targeted):
        user_skill = skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        skill_ledger.review_skill(db, MENTOR_ID, user_skill.id, approve=False)
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id, level="advanced")
        with pytest.raises(NoUserSkills):
            readiness_service.recalculate_explicit(db, USER_ID)
        assert _snapshot_count(db) == 0

    def test_cooldown_refuses_second_calculation(self, db, targeted):
        now = utcnow()
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        readiness_service.recalculate_explicit(db, USER_ID, now=now - timedelta(minutes=2))
        skill_ledger.claim_skill(db, USER_ID, targeted["docker"].id)

        with pytest.raises(CooldownActive) as exc_info:
            readiness_service.recalculate_explicit(db, USER_ID, now=now)
        assert exc_info.value.details["remaining_seconds"] == 180
        assert _snapshot_count(db) == 1

    def test_unchanged_skills_is_a_no_op(self, db, targeted):
        now = utcnow()
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        first = readiness_service.recalculate_explicit(db, USER_ID, now=now - timedelta(minutes=10))

        outcome = readiness_service.recalculate_explicit(db, USER_ID, now=now)

        assert outcome.recalculated is False
        assert outcome.reason == "NO_CHANGES_DETECTED"
        assert outcome.percentage == first.readiness.percentage
        assert _snapshot_count(db) == 1

    def test_changed_skills_after_cooldown(self, db, targeted):
        now = utcnow()
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        readiness_service.recalculate_explicit(db, USER_ID, now=now - timedelta(minutes=10))
        skill_ledger.claim_skill(db, USER_ID, targeted["docker"].id)

        outcome = readiness_service.recalculate_explicit(db, USER_ID, now=now)

        assert outcome.recalculated is True
        assert outcome.readiness.percentage == 100
        assert _snapshot_count(db) == 2

    def test_unbenchmarked_skill_counts_as_a_change(self, db, targeted):
        now = utcnow()
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        readiness_service.recalculate_explicit(db, USER_ID, now=now - timedelta(minutes=10))
        skill_ledger.claim_skill(db, USER_ID, targeted["git"].id)

        outcome = readiness_service.recalculate_explicit(db, USER_ID, now=now)

        assert outcome.recalculated is True
        assert outcome.readiness.percentage == 50

    def test_force_skips_gate(self, db, targeted):
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)

        first = readiness_service.recalculate_explicit(db, USER_ID, force=True)
        second = readiness_service.recalculate_explicit(db, USER_ID, force=True)

        assert second.recalculated is True
        assert first.readiness.total_score == second.readiness.total_score
        assert first.readiness.breakdown == second.readiness.breakdown
        assert _snapshot_count(db) == 2

    def test_validation_bypass_still_checks_changes(self, db, targeted):
        now = utcnow()
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        readiness_service.recalculate_explicit(db, USER_ID, now=now - timedelta(seconds=30))

        outcome = readiness_service.recalculate_explicit(
            db, USER_ID, bypass_reason="validation_update", now=now
        )
        assert outcome.recalculated is False


class TestRecalculateForValidation:
    def test_requires_previous_snapshot(self, db, targeted):
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        with pytest.raises(NoValidationUpdates):
            readiness_service.recalculate_for_validation(db, USER_ID)

    def test_requires_new_reviews(self, db, targeted):
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        readiness_service.recalculate_explicit(db, USER_ID, now=utcnow() - timedelta(minutes=10))
        with pytest.raises(NoValidationUpdates):
            readiness_service.recalculate_for_validation(db, USER_ID)

    def test_applies_bonus_inside_cooldown(self, db, targeted):
        user_skill = skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        readiness_service.recalculate_explicit(db, USER_ID, now=utcnow() - timedelta(minutes=1))
        skill_ledger.review_skill(db, MENTOR_ID, user_skill.id, approve=True)

        result = readiness_service.recalculate_for_validation(db, USER_ID)

        assert result.validation_applied.validated_skills == 1
        assert result.validation_applied.rejected_skills == 0
        assert result.readiness.trigger == "validation_review"
        assert result.readiness.total_score == 63
        assert result.readiness.percentage == 63
        assert _snapshot_count(db) == 2

    def test_repeat_approval_is_not_a_new_update(self, db, targeted):
        user_skill = skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        readiness_service.recalculate_explicit(db, USER_ID, now=utcnow() - timedelta(minutes=1))
        skill_ledger.review_skill(db, MENTOR_ID, user_skill.id, approve=True)
        readiness_service.recalculate_for_validation(db, USER_ID)

        with pytest.raises(InvalidValidationState):
            skill_ledger.review_skill(db, MENTOR_ID, user_skill.id, approve=True)
        with pytest.raises(NoValidationUpdates):
            readiness_service.recalculate_for_validation(db, USER_ID)


class TestContext:
    def test_no_target_role(self, db):
        context = readiness_service.get_context(db, USER_ID)
        assert context.has_target_role is False
        assert context.edge_case == "NO_TARGET_ROLE"
        assert context.action_url == "/dashboard/roles"

    def test_no_benchmarks(self, db):
        role = catalog.create_role(db, "Empty Role")
        target_roles.change_target_role(db, USER_ID, role.id)

        context = readiness_service.get_context(db, USER_ID)
        assert context.has_target_role is True
        assert context.edge_case == "NO_BENCHMARK_SKILLS"
        assert context.action_required == "ADMIN_SETUP_REQUIRED"

    def test_no_user_skills(self, db, targeted):
        context = readiness_service.get_context(db, USER_ID)
        assert context.edge_case == "NO_USER_SKILLS"
        assert context.required_skills_count == 1
        assert context.total_benchmark_skills_count == 2
        assert context.last_calculated_at is None

    def test_validation_block(self, db, targeted):
        python = skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        docker = skill_ledger.claim_skill(db, USER_ID, targeted["docker"].id, source="resume")
        skill_ledger.claim_skill(db, USER_ID, targeted["git"].id)
        skill_ledger.request_validation(db, USER_ID, docker.id)
        readiness_service.recalculate_explicit(db, USER_ID, now=utcnow() - timedelta(minutes=10))
        skill_ledger.review_skill(db, MENTOR_ID, python.id, approve=True)

        context = readiness_service.get_context(db, USER_ID)

        assert context.edge_case is None
        assert context.user_skills_count == 3
        assert context.user_skills_by_source == {"self": 1, "resume": 1, "validated": 1}
        assert context.validation.validated_count == 1
        assert context.validation.pending_count == 1
        assert context.validation.has_updates_since_last_calc is True
        assert context.validation.updates_summary == {"validated": 1, "rejected": 0}
        assert context.validation.show_recalculate_prompt is True

    def test_rejected_benchmark_skill_counted(self, db, targeted):
        user_skill = skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        skill_ledger.review_skill(db, MENTOR_ID, user_skill.id, approve=False)

        context = readiness_service.get_context(db, USER_ID)
        assert context.user_skills_count == 0
        assert context.validation.rejected_count == 1


class TestReadViews:
    def test_latest_without_snapshot(self, db, targeted):
        with pytest.raises(SnapshotNotFound):
            readiness_service.get_latest(db, USER_ID)

    def test_latest_and_history(self, db, targeted):
        now = utcnow()
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        readiness_service.recalculate_explicit(db, USER_ID, now=now - timedelta(minutes=20))
        skill_ledger.claim_skill(db, USER_ID, targeted["docker"].id)
        readiness_service.recalculate_explicit(db, USER_ID, now=now - timedelta(minutes=10))

        latest = readiness_service.get_latest(db, USER_ID)
        history = readiness_service.get_history(db, USER_ID)

        assert latest.percentage == 100
        assert latest.skill_stats.skills_met == 2
        assert [h.percentage for h in history] == [100, 50]
        assert len(readiness_service.get_history(db, USER_ID, limit=1)) == 1

    def test_breakdown(self, db, targeted):
        python = skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        skill_ledger.review_skill(db, MENTOR_ID, python.id, approve=True)
        outcome = readiness_service.recalculate_explicit(db, USER_ID)

        view = readiness_service.get_breakdown(db, USER_ID, outcome.readiness.readiness_id)

        assert view.required_skills.met == 1
        assert view.optional_skills.missing_skills == ["Docker"]
        assert view.weight_impact.total_weight == 100
        assert view.weight_impact.required_weight_achieved == 63
        assert view.trust_indicators.validated_count == 1
        assert view.trust_indicators.validation_percentage == 100

    def test_breakdown_of_other_user(self, db, targeted):
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
        outcome = readiness_service.recalculate_explicit(db, USER_ID)
        with pytest.raises(SnapshotNotFound):
            readiness_service.get_breakdown(db, "someone-else", outcome.readiness.readiness_id)

    def test_preview_does_not_persist(self, db, targeted):
        skill_ledger.claim_skill(db, USER_ID, targeted["python"].id, level="beginner")

        preview = readiness_service.preview(db, USER_ID)

        assert preview.result.percentage == 50
        assert [g.skill_name for g in preview.skill_gaps] == ["Docker"]
        assert _snapshot_count(db) == 0

    def test_validation_updates_without_target_role(self, db):
        view = readiness_service.get_validation_updates(db, USER_ID)
        assert view.has_updates is False
        assert view.reason == "NO_TARGET_ROLE"

    def test_validation_updates_for_deactivated_role(self, db, targeted):
        targeted["role"].is_active = False
        db.commit()
        with pytest.raises(RoleNotFound) as excinfo:
            readiness_service.get_validation_updates(db, USER_ID)
        assert excinfo.value.status_code == 400


def test_snapshots_are_append_only(db, targeted):
    skill_ledger.claim_skill(db, USER_ID, targeted["python"].id)
    readiness_service.recalculate_explicit(db, USER_ID)
    snapshot = db.scalar(select(ReadinessSnapshot))

    snapshot.percentage = 99
    with pytest.raises(ValueError, match="append-only"):
        db.commit()
    db.rollback()
