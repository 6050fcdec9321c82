"""Business-rule refusals raised by the readiness services.

Each error carries a stable code and an HTTP status; the API layer renders them
into the standard error envelope. Anything else is an unexpected failure.
"""

from typing import Any


class ReadinessError(Exception):
    code: str = "BAD_REQUEST"
    status_code: int = 400
    default_message: str = "Bad request"
    action_required: str | None = None
    action_url: str | None = None

    def __init__(self, message: str | None = None, **details: Any) -> None:
        self.message = message or self.default_message
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "success": False,
            "error": self.code,
            "message": self.message,
        }
        if self.action_required:
            payload["action_required"] = self.action_required
        if self.action_url:
            payload["action_url"] = self.action_url
        if self.details:
            payload["details"] = self.details
        return payload


class NoTargetRole(ReadinessError):
    code = "NO_TARGET_ROLE"
    default_message = "Please select a target role first"
    action_required = "SELECT_TARGET_ROLE"
    action_url = "/dashboard/roles"


class RoleNotFound(ReadinessError):
    code = "ROLE_NOT_FOUND"
    status_code = 404
    default_message = "Your target role could not be found"
    action_url = "/dashboard/roles"


class NoBenchmarkSkills(ReadinessError):
    code = "NO_BENCHMARK_SKILLS"
    default_message = "This role has no benchmark skills configured"
    action_required = "ADMIN_SETUP_REQUIRED"


class NoUserSkills(ReadinessError):
    code = "NO_USER_SKILLS"
    default_message = "You haven't added any skills yet"
    action_required = "ADD_SKILLS"
    action_url = "/dashboard/skills"


class CooldownActive(ReadinessError):
    code = "COOLDOWN_ACTIVE"
    default_message = "Please wait before recalculating"


class NoValidationUpdates(ReadinessError):
    code = "NO_VALIDATION_UPDATES"
    default_message = "No validation updates found since your last calculation"


class SnapshotNotFound(ReadinessError):
    code = "SNAPSHOT_NOT_FOUND"
    status_code = 404
    default_message = "No readiness score found"


class SkillNotFound(ReadinessError):
    code = "SKILL_NOT_FOUND"
    status_code = 404
    default_message = "Skill not found"


class UserSkillNotFound(ReadinessError):
    code = "USER_SKILL_NOT_FOUND"
    status_code = 404
    default_message = "User skill not found"


class DuplicateSkill(ReadinessError):
    code = "DUPLICATE_SKILL"
    status_code = 409
    default_message = "Skill already exists"


class InvalidValidationState(ReadinessError):
    code = "INVALID_VALIDATION_STATE"
    default_message = "Skill cannot change validation state"


class Forbidden(ReadinessError):
    code = "FORBIDDEN"
    status_code = 403
    default_message = "Forbidden"
