from typing import Literal

from pydantic import BaseModel, Field


class CalculateRequest(BaseModel):
    force: bool = Field(False, description="Skip the cooldown and change checks")
    bypass_reason: str | None = Field(None, max_length=50, description="'validation_update' skips the cooldown")


class ClaimSkillRequest(BaseModel):
    skill_id: str = Field(..., min_length=1, max_length=32)
    level: Literal["beginner", "intermediate", "advanced", "expert"] = "beginner"
    # "validated" is only ever set by a mentor review
    source: Literal["self", "resume"] = "self"


class SelectTargetRoleRequest(BaseModel):
    role_id: str = Field(..., min_length=1, max_length=32)


class ReviewRequest(BaseModel):
    note: str | None = Field(None, max_length=500, description="Feedback shown to the user")
