from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.dependencies import CurrentUser, require_mentor
from api.skills import user_skill_view
from db import get_session
from models.requests import ReviewRequest
from models.responses import ok
from services import skill_ledger
from services.catalog import skill_names

router = APIRouter(prefix="/mentor/skills", tags=["mentor"])


@router.get("/pending")
def pending_reviews(
    limit: int = Query(50, ge=1, le=200),
    mentor: CurrentUser = Depends(require_mentor),
    db: Session = Depends(get_session),
):
    queue = skill_ledger.list_pending(db, limit=limit, exclude_user_id=mentor.id)
    names = skill_names(db, [s.skill_id for s in queue])
    return ok([user_skill_view(s, names) for s in queue])


def _review(db: Session, mentor: CurrentUser, user_skill_id: str, approve: bool, body: ReviewRequest | None):
    note = body.note if body else None
    user_skill = skill_ledger.review_skill(db, mentor.id, user_skill_id, approve=approve, note=note)
    return user_skill_view(user_skill, skill_names(db, [user_skill.skill_id]))


@router.post("/{user_skill_id}/approve")
def approve(
    user_skill_id: str,
    body: ReviewRequest | None = None,
    mentor: CurrentUser = Depends(require_mentor),
    db: Session = Depends(get_session),
):
    return ok(_review(db, mentor, user_skill_id, True, body), "Skill validated")


@router.post("/{user_skill_id}/reject")
def reject(
    user_skill_id: str,
    body: ReviewRequest | None = None,
    mentor: CurrentUser = Depends(require_mentor),
    db: Session = Depends(get_session),
):
    return ok(_review(db, mentor, user_skill_id, False, body), "Skill rejected")
