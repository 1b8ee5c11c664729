from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.orm import Session

from policy_aligner.exceptions import NotFoundError
from policy_aligner.models import Mapping, StakeholderInsight
from policy_aligner.schemas import StakeholderInsightCreate


def list_insights(db: Session, *, related_mapping_id: int | None = None) -> list[StakeholderInsight]:
    statement = select(StakeholderInsight)
    if related_mapping_id is not None:
        statement = statement.where(StakeholderInsight.related_mapping_id == related_mapping_id)
    statement = statement.order_by(StakeholderInsight.created_at.desc(), StakeholderInsight.id.desc())
    return list(db.execute(statement).scalars())


def create_insight(db: Session, payload: StakeholderInsightCreate, *, created_by: int) -> StakeholderInsight:
    if payload.related_mapping_id is not None and db.get(Mapping, payload.related_mapping_id) is None:
        raise NotFoundError("Mapping not found")

    insight = StakeholderInsight(**payload.model_dump(), created_by=created_by)
    db.add(insight)
    db.commit()
    db.refresh(insight)
    return insight


def delete_insight(db: Session, insight_id: int) -> None:
    insight = db.get(StakeholderInsight, insight_id)
    if insight is None:
        raise NotFoundError("Insight not found")
    db.delete(insight)
    db.commit()
