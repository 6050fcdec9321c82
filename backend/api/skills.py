from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.dependencies import CurrentUser, get_current_user
from db import get_session
from models.requests import ClaimSkillRequest
from models.responses import SkillView, UserSkillView, ok
from models.tables import UserSkill
from services import skill_ledger
from services.catalog import list_active_skills, skill_names

router = APIRouter(prefix="/skills", tags=["skills"])


def user_skill_view(user_skill: UserSkill, names: dict[str, str]) -> UserSkillView:
    view = UserSkillView.model_validate(user_skill)
    view.skill_name = names.get(user_skill.skill_id, "Unknown")
    return view


@router.get("/catalog")
def skill_catalog(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    return ok([SkillView.model_validate(s) for s in list_active_skills(db)])


@router.get("")
def list_skills(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    ledger = skill_ledger.list_skills(db, user.id)
    names = skill_names(db, [s.skill_id for s in ledger])
    return ok([user_skill_view(s, names) for s in ledger])


@router.post("", status_code=201)
def claim_skill(
    body: ClaimSkillRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    user_skill = skill_ledger.claim_skill(db, user.id, body.skill_id, level=body.level, source=body.source)
    return ok(user_skill_view(user_skill, skill_names(db, [user_skill.skill_id])), "Skill saved")


@router.post("/{user_skill_id}/request-validation")
def request_validation(
    user_skill_id: str,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    user_skill = skill_ledger.request_validation(db, user.id, user_skill_id)
    return ok(
        user_skill_view(user_skill, skill_names(db, [user_skill.skill_id])),
        "Validation requested",
    )
