"""Seed the fixed framework domains and default tags."""
from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from sqlalchemy import select
from sqlalchemy.orm import Session

from policy_aligner.models import Domain, Tag

logger = logging.getLogger(__name__)

REFERENCE_DATA_PATH = Path(__file__).resolve().parents[1] / "constants" / "reference_data.yaml"


@lru_cache()
def load_reference_data(path: Path = REFERENCE_DATA_PATH) -> dict[str, Any]:
    return yaml.safe_load(path.read_text(encoding="utf-8")) or {}


def seed_domains(db: Session) -> int:
    """Insert any missing framework domains; existing rows are left untouched."""

    existing_codes = set(db.execute(select(Domain.domain_code)).scalars())
    created = 0
    for entry in load_reference_data().get("domains", []):
        if entry["domain_code"] in existing_codes:
            continue
        db.add(
            Domain(
                domain_name=entry["domain_name"],
                domain_code=entry["domain_code"],
                description=entry.get("description"),
            )
        )
        created += 1
    db.commit()
    if created:
        logger.info("Seeded %s framework domains", created)
    return created


def seed_tags(db: Session) -> int:
    existing_names = set(db.execute(select(Tag.name)).scalars())
    created = 0
    for entry in load_reference_data().get("tags", []):
        if entry["name"] in existing_names:
            continue
        db.add(Tag(name=entry["name"], color=entry.get("color") or "#3B82F6"))
        created += 1
    db.commit()
    return created
