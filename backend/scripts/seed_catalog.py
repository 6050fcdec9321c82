"""Load the skill catalog and role benchmarks from YAML.

Usage:
    python backend/scripts/seed_catalog.py [--config backend/data/catalog.yaml]

Existing skills (by normalized name) and roles (by name) are reused, so the
script can be re-run after editing the file; benchmarks are upserted.
"""

import argparse
import logging
import sys
from pathlib import Path

import yaml
from sqlalchemy import select
from sqlalchemy.orm import Session

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from db import get_session_factory, init_db  # noqa: E402
from models.tables import Role, Skill  # noqa: E402
from services import catalog  # noqa: E402

logger = logging.getLogger(__name__)

DEFAULT_CONFIG = str(Path(__file__).resolve().parent.parent / "data" / "catalog.yaml")


def load_config(path: str) -> dict:
    with open(path) as f:
        return yaml.safe_load(f) or {}


def seed_catalog(db: Session, config: dict) -> dict[str, int]:
    counts = {"skills_created": 0, "roles_created": 0, "benchmarks": 0}
    skills_by_name: dict[str, Skill] = {}

    for entry in config.get("skills", []):
        normalized = catalog.normalize_skill_name(entry["name"])
        skill = db.scalar(select(Skill).where(Skill.normalized_name == normalized))
        if skill is None:
            skill = catalog.create_skill(
                db, entry["name"], domain=entry.get("domain", "other"), description=entry.get("description")
            )
            counts["skills_created"] += 1
        skills_by_name[normalized] = skill

    for entry in config.get("roles", []):
        role = db.scalar(select(Role).where(Role.name == entry["name"].strip()))
        if role is None:
            role = catalog.create_role(db, entry["name"], description=entry.get("description"))
            counts["roles_created"] += 1

        for benchmark in entry.get("benchmarks", []):
            skill = skills_by_name.get(catalog.normalize_skill_name(benchmark["skill"]))
            if skill is None:
                raise ValueError(f"Role {role.name!r} references unknown skill {benchmark['skill']!r}")
            catalog.add_benchmark(
                db,
                role.id,
                skill.id,
                importance=benchmark.get("importance", "optional"),
                weight=benchmark.get("weight", 1),
                required_level=benchmark.get("required_level", "beginner"),
            )
            counts["benchmarks"] += 1

    return counts


def main(config_path: str = DEFAULT_CONFIG) -> None:
    config = load_config(config_path)
    init_db()
    with get_session_factory()() as db:
        counts = seed_catalog(db, config)
    logger.info(
        "Seeded %d new skills, %d new roles, %d benchmarks from %s",
        counts["skills_created"], counts["roles_created"], counts["benchmarks"], config_path,
    )


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(message)s")
    parser = argparse.ArgumentParser(description="Seed the skill catalog and role benchmarks")
    parser.add_argument("--config", default=DEFAULT_CONFIG)
    args = parser.parse_args()
    main(args.config)
