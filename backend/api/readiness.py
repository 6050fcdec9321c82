from fastapi import APIRouter, Depends, Query, Request
from sqlalchemy.orm import Session

from api.dependencies import CurrentUser, get_current_user, limiter
from config import settings
from db import get_session
from models.requests import CalculateRequest
from models.responses import ok
from services import readiness_service

router = APIRouter(prefix="/readiness", tags=["readiness"])


@router.get("/context")
def get_context(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    return ok(readiness_service.get_context(db, user.id))


@router.post("/context")
@limiter.limit(settings.recalculate_rate_limit)
def recalculate(
    request: Request,
    body: CalculateRequest | None = None,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    body = body or CalculateRequest()
    outcome = readiness_service.recalculate_explicit(
        db, user.id, force=body.force, bypass_reason=body.bypass_reason
    )
    return ok(outcome, outcome.message)


@router.patch("/context")
@limiter.limit(settings.recalculate_rate_limit)
def recalculate_after_validation(
    request: Request,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    result = readiness_service.recalculate_for_validation(db, user.id)
    return ok(result, "Readiness recalculated with validation updates")


@router.get("/validation-updates")
def validation_updates(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    return ok(readiness_service.get_validation_updates(db, user.id))


@router.get("/latest")
def latest(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    return ok(readiness_service.get_latest(db, user.id))


@router.get("/history")
def history(
    limit: int = Query(20, ge=1, le=100),
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    return ok(readiness_service.get_history(db, user.id, limit=limit))


@router.get("/preview")
def preview(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    return ok(readiness_service.preview(db, user.id))


@router.get("/breakdown/{snapshot_id}")
def breakdown(
    snapshot_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    return ok(readiness_service.get_breakdown(db, user.id, snapshot_id))
