"""Skill and role benchmark store."""

import logging
import re

from sqlalchemy import select
from sqlalchemy.orm import Session

from models.schemas.readiness import BenchmarkInput
from models.tables import Role, Skill
from services.errors import DuplicateSkill, RoleNotFound, SkillNotFound

logger = logging.getLogger(__name__)

SKILL_DOMAINS = frozenset({
    "technical", "soft-skills", "tools", "frameworks",
    "languages", "databases", "cloud", "other",
})

_DISALLOWED_CHARS = re.compile(r"[^a-z0-9\s+#._-]")
_WHITESPACE = re.compile(r"\s+")


def normalize_skill_name(name: str) -> str:
    """Lowercase, drop punctuation other than + # . _ -, collapse whitespace."""
    cleaned = _DISALLOWED_CHARS.sub("", name.lower().strip())
    return _WHITESPACE.sub(" ", cleaned).strip()


def create_skill(
    db: Session,
    name: str,
    domain: str = "other",
    description: str | None = None,
) -> Skill:
    normalized = normalize_skill_name(name)
    if not normalized:
        raise ValueError(f"Skill name {name!r} is empty after normalization")
    if domain not in SKILL_DOMAINS:
        raise ValueError(f"{domain} is not a valid domain")

    existing = db.scalar(select(Skill).where(Skill.normalized_name == normalized))
    if existing is not None:
        raise DuplicateSkill(f"Skill '{existing.name}' already exists")

    skill = Skill(name=name.strip(), normalized_name=normalized, domain=domain, description=description)
    db.add(skill)
    db.commit()
    logger.info("Created skill %s (%s)", skill.name, skill.id)
    return skill


def get_skill(db: Session, skill_id: str) -> Skill:
    skill = db.get(Skill, skill_id)
    if skill is None:
        raise SkillNotFound()
    return skill


def deactivate_skill(db: Session, skill_id: str) -> Skill:
    """Soft-delete: history keeps referencing the row."""
    skill = get_skill(db, skill_id)
    skill.is_active = False
    db.commit()
    return skill


def find_skills_by_names(db: Session, names: list[str]) -> list[Skill]:
    normalized = [normalize_skill_name(n) for n in names]
    stmt = select(Skill).where(Skill.normalized_name.in_(normalized), Skill.is_active.is_(True))
    return list(db.scalars(stmt))


def skill_names(db: Session, skill_ids: list[str]) -> dict[str, str]:
    if not skill_ids:
        return {}
    rows = db.execute(select(Skill.id, Skill.name).where(Skill.id.in_(skill_ids)))
    return {row.id: row.name for row in rows}


def create_role(db: Session, name: str, description: str | None = None) -> Role:
    role = Role(name=name.strip(), description=description, benchmarks=[])
    db.add(role)
    db.commit()
    logger.info("Created role %s (%s)", role.name, role.id)
    return role


def get_role(db: Session, role_id: str) -> Role:
    role = db.get(Role, role_id)
    if role is None:
        raise RoleNotFound()
    return role


def list_active_skills(db: Session) -> list[Skill]:
    return list(db.scalars(select(Skill).where(Skill.is_active.is_(True)).order_by(Skill.name)))


def list_active_roles(db: Session) -> list[Role]:
    return list(db.scalars(select(Role).where(Role.is_active.is_(True)).order_by(Role.name)))


def add_benchmark(
    db: Session,
    role_id: str,
    skill_id: str,
    importance: str = "optional",
    weight: int = 1,
    required_level: str = "beginner",
) -> Role:
    """Add a benchmark, or update it in place if the skill is already benchmarked."""
    role = get_role(db, role_id)
    get_skill(db, skill_id)
    # Validates importance, weight > 0 and level
    entry = BenchmarkInput(
        skill_id=skill_id,
        importance=importance,
        weight=weight,
        required_level=required_level,
    ).model_dump(include={"skill_id", "importance", "weight", "required_level"})
    entry["is_active"] = True

    benchmarks = [dict(b) for b in role.benchmarks or []]
    for i, existing in enumerate(benchmarks):
        if existing["skill_id"] == skill_id:
            benchmarks[i] = entry
            break
    else:
        benchmarks.append(entry)

    # Reassign so the JSON column is flagged dirty
    role.benchmarks = benchmarks
    db.commit()
    return role


def remove_benchmark(db: Session, role_id: str, skill_id: str) -> Role:
    role = get_role(db, role_id)
    role.benchmarks = [dict(b) for b in role.benchmarks or [] if b["skill_id"] != skill_id]
    db.commit()
    return role


def active_benchmarks(db: Session, role: Role) -> list[BenchmarkInput]:
    """Resolve a role's active benchmarks with their skill names."""
    entries = [b for b in role.benchmarks or [] if b.get("is_active", True)]
    names = skill_names(db, [b["skill_id"] for b in entries])
    return [
        BenchmarkInput(
            skill_id=b["skill_id"],
            skill_name=names.get(b["skill_id"], "Unknown"),
            importance=b.get("importance", "optional"),
            weight=b.get("weight", 1),
            required_level=b.get("required_level", "beginner"),
        )
        for b in entries
    ]
