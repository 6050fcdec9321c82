from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.dependencies import CurrentUser, get_current_user
from db import get_session
from models.requests import SelectTargetRoleRequest
from models.responses import RoleView, TargetRoleView, ok
from models.tables import Role, TargetRole
from services import catalog, target_roles

router = APIRouter(tags=["roles"])


def role_view(role: Role) -> RoleView:
    active = [b for b in role.benchmarks or [] if b.get("is_active", True)]
    return RoleView(
        id=role.id,
        name=role.name,
        description=role.description,
        benchmark_count=len(active),
        required_count=sum(1 for b in active if b.get("importance") == "required"),
    )


def target_role_view(db: Session, selection: TargetRole) -> TargetRoleView:
    view = TargetRoleView.model_validate(selection)
    role = db.get(Role, selection.role_id)
    view.role_name = role.name if role else None
    return view


@router.get("/roles")
def list_roles(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    return ok([role_view(r) for r in catalog.list_active_roles(db)])


@router.get("/target-role")
def get_target_role(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    selection = target_roles.get_active_target_role(db, user.id)
    if selection is None:
        return ok(None, "No target role selected")
    return ok(target_role_view(db, selection))


@router.put("/target-role")
def select_target_role(
    body: SelectTargetRoleRequest,
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    selection = target_roles.change_target_role(db, user.id, body.role_id)
    return ok(target_role_view(db, selection), "Target role updated")


@router.get("/target-role/history")
def target_role_history(
    user: CurrentUser = Depends(get_current_user),
    db: Session = Depends(get_session),
):
    return ok([target_role_view(db, s) for s in target_roles.get_target_role_history(db, user.id)])
