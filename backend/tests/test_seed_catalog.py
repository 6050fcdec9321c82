"""Tests for seeding the catalog from YAML."""

from pathlib import Path

import pytest

from scripts.seed_catalog import load_config, seed_catalog
from services import catalog

CATALOG_FILE = Path(__file__).resolve().parent.parent / "data" / "catalog.yaml"


def test_seed_bundled_catalog(db):
    counts = seed_catalog(db, load_config(str(CATALOG_FILE)))

    assert counts == {"skills_created": 17, "roles_created": 3, "benchmarks": 18}
    roles = {r.name: r for r in catalog.list_active_roles(db)}
    assert sorted(roles) == ["Backend Developer", "Data Analyst", "Frontend Developer"]
    backend = catalog.active_benchmarks(db, roles["Backend Developer"])
    assert sum(b.weight for b in backend) == 100


def test_reseed_is_idempotent(db):
    config = load_config(str(CATALOG_FILE))
    seed_catalog(db, config)

    counts = seed_catalog(db, config)

    assert counts["skills_created"] == 0
    assert counts["roles_created"] == 0
    assert len(catalog.list_active_roles(db)) == 3


def test_unknown_benchmark_skill(db):
    config = {"roles": [{"name": "Broken", "benchmarks": [{"skill": "Cobol"}]}]}
    with pytest.raises(ValueError, match="Cobol"):
        seed_catalog(db, config)
