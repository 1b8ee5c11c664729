"""Alignment scoring and per-domain aggregation.

The classification helpers are pure functions over counts so they can be
reused by the analysis endpoints and the report assembler alike. The query
helpers always return every domain, even those without any mapping in the
selected documents.
"""
from __future__ import annotations

from collections.abc import Iterable, Mapping as MappingType, Sequence
from typing import Any

from sqlalchemy import and_, case, func, select, true
from sqlalchemy.orm import Session

from policy_aligner.models import Document, Domain, Mapping
from policy_aligner.schemas import (
    AlignmentStatus,
    CoverageStatus,
    GapStatus,
    RecommendationPriority,
)

CONCERN_THRESHOLD = 50.0
CRITICAL_THRESHOLD = 25.0
MINOR_THRESHOLD = 75.0

GAP_SEVERITY = {
    GapStatus.NO_COVERAGE: 0,
    GapStatus.CRITICAL_GAP: 1,
    GapStatus.SIGNIFICANT_GAP: 2,
    GapStatus.MINOR_GAP: 3,
    GapStatus.ADEQUATE_COVERAGE: 4,
}


def alignment_percentage(total: int, fully_aligned: int, partially_aligned: int) -> float | None:
    """Weighted share of aligned mappings, ``None`` when nothing was mapped."""

    if not total:
        return None
    return round(100 * (fully_aligned + 0.5 * partially_aligned) / total, 2)


def classify_coverage(total: int, fully_aligned: int, partially_aligned: int) -> CoverageStatus:
    if not total:
        return CoverageStatus.NO_COVERAGE
    if fully_aligned > 0:
        return CoverageStatus.STRONG_COVERAGE
    if partially_aligned > 0:
        return CoverageStatus.PARTIAL_COVERAGE
    return CoverageStatus.WEAK_COVERAGE


def classify_gap(total: int, percentage: float | None) -> GapStatus:
    if not total or percentage is None:
        return GapStatus.NO_COVERAGE
    if percentage < CRITICAL_THRESHOLD:
        return GapStatus.CRITICAL_GAP
    if percentage < CONCERN_THRESHOLD:
        return GapStatus.SIGNIFICANT_GAP
    if percentage < MINOR_THRESHOLD:
        return GapStatus.MINOR_GAP
    return GapStatus.ADEQUATE_COVERAGE


def is_area_of_concern(row: MappingType[str, Any]) -> bool:
    percentage = row.get("alignment_percentage")
    return not row.get("total_mappings") or percentage is None or percentage < CONCERN_THRESHOLD


def _percentage_sort_key(row: MappingType[str, Any]) -> tuple[int, float, str]:
    percentage = row.get("alignment_percentage")
    if percentage is None:
        return (0, 0.0, row["domain_name"])
    return (1, percentage, row["domain_name"])


def select_areas_of_concern(rows: Iterable[MappingType[str, Any]]) -> list[dict[str, Any]]:
    """Domains below the concern threshold, unmapped domains first."""

    return sorted((dict(row) for row in rows if is_area_of_concern(row)), key=_percentage_sort_key)


def sort_by_gap_severity(rows: Iterable[MappingType[str, Any]]) -> list[dict[str, Any]]:
    def key(row: MappingType[str, Any]) -> tuple[int, float, str]:
        percentage = row.get("alignment_percentage")
        return (
            GAP_SEVERITY[GapStatus(row["gap_status"])],
            percentage if percentage is not None else -1.0,
            row["domain_name"],
        )

    return sorted((dict(row) for row in rows), key=key)


def build_recommendation(row: MappingType[str, Any]) -> dict[str, Any] | None:
    """Return a recommendation for a weak domain, or ``None`` when it is fine."""

    total = row.get("total_mappings") or 0
    percentage = row.get("alignment_percentage")
    name = row["domain_name"].lower()

    if not total or percentage is None:
        priority = RecommendationPriority.HIGH
        text = (
            f"Develop comprehensive policies and procedures for {name} domain. "
            "Consider establishing dedicated cybersecurity frameworks and governance structures."
        )
    elif percentage < CRITICAL_THRESHOLD:
        priority = RecommendationPriority.HIGH
        text = (
            f"Strengthen existing {name} policies. "
            "Review current implementations and enhance coverage for critical areas."
        )
    elif percentage < CONCERN_THRESHOLD:
        priority = RecommendationPriority.MEDIUM
        text = (
            f"Improve alignment in {name} domain. "
            "Identify specific gaps and develop targeted improvements."
        )
    else:
        return None

    return {
        "domain_name": row["domain_name"],
        "domain_code": row["domain_code"],
        "description": row.get("description"),
        "alignment_percentage": percentage,
        "total_mappings": total,
        "recommendation": text,
        "priority": priority,
    }


def overall_alignment_score(statuses: Iterable[str]) -> float | None:
    """Score computed over raw mapping statuses rather than per-domain averages."""

    total = fully = partially = 0
    for value in statuses:
        total += 1
        if value == AlignmentStatus.FULLY_ALIGNED.value:
            fully += 1
        elif value == AlignmentStatus.PARTIALLY_ALIGNED.value:
            partially += 1
    return alignment_percentage(total, fully, partially)


def _status_count(status: AlignmentStatus):
    return func.coalesce(func.sum(case((Mapping.alignment_status == status.value, 1), else_=0)), 0)


def _count_columns():
    return (
        func.count(Mapping.id).label("total_mappings"),
        _status_count(AlignmentStatus.FULLY_ALIGNED).label("fully_aligned"),
        _status_count(AlignmentStatus.PARTIALLY_ALIGNED).label("partially_aligned"),
        _status_count(AlignmentStatus.NOT_ALIGNED).label("not_aligned"),
        func.avg(Mapping.maturity_level).label("avg_maturity_level"),
    )


def _normalize_counts(row: MappingType[str, Any]) -> dict[str, Any]:
    payload = dict(row)
    for key in ("total_mappings", "fully_aligned", "partially_aligned", "not_aligned"):
        payload[key] = int(payload.get(key) or 0)
    average = payload.get("avg_maturity_level")
    payload["avg_maturity_level"] = round(float(average), 2) if average is not None else None
    return payload


def _mapping_join_condition(document_ids: Sequence[int] | None):
    condition = Mapping.domain_id == Domain.id
    if document_ids is not None:
        condition = and_(condition, Mapping.document_id.in_(list(document_ids)))
    return condition


def domain_statistics(db: Session, document_ids: Sequence[int] | None = None) -> list[dict[str, Any]]:
    """Counts and average maturity for every domain, ordered by domain id."""

    statement = (
        select(
            Domain.id.label("domain_id"),
            Domain.domain_name,
            Domain.domain_code,
            Domain.description,
            *_count_columns(),
        )
        .select_from(Domain)
        .outerjoin(Mapping, _mapping_join_condition(document_ids))
        .group_by(Domain.id, Domain.domain_name, Domain.domain_code, Domain.description)
        .order_by(Domain.id)
    )
    return [_normalize_counts(row) for row in db.execute(statement).mappings()]


def domain_coverage(db: Session, document_ids: Sequence[int] | None = None) -> list[dict[str, Any]]:
    rows = domain_statistics(db, document_ids)
    for row in rows:
        row["alignment_percentage"] = alignment_percentage(
            row["total_mappings"], row["fully_aligned"], row["partially_aligned"]
        )
    return rows


def gap_analysis(db: Session, document_ids: Sequence[int] | None = None) -> list[dict[str, Any]]:
    rows = domain_coverage(db, document_ids)
    for row in rows:
        row["gap_status"] = classify_gap(row["total_mappings"], row["alignment_percentage"])
    return rows


def gap_matrix(db: Session, document_ids: Sequence[int] | None = None) -> list[dict[str, Any]]:
    """One cell per (domain, document) pair for the selected documents."""

    document_query = select(Document.id, Document.original_name, Document.relevant_agency)
    if document_ids is not None:
        document_query = document_query.where(Document.id.in_(list(document_ids)))
    pairs = document_query.subquery("selected_documents")

    statement = (
        select(
            Domain.id.label("domain_id"),
            Domain.domain_name,
            Domain.domain_code,
            pairs.c.id.label("document_id"),
            pairs.c.original_name.label("document_name"),
            pairs.c.relevant_agency,
            *_count_columns(),
        )
        .select_from(Domain)
        .join(pairs, true())
        .outerjoin(
            Mapping,
            and_(Mapping.domain_id == Domain.id, Mapping.document_id == pairs.c.id),
        )
        .group_by(
            Domain.id,
            Domain.domain_name,
            Domain.domain_code,
            pairs.c.id,
            pairs.c.original_name,
            pairs.c.relevant_agency,
        )
        .order_by(Domain.id, pairs.c.original_name, pairs.c.id)
    )

    cells = []
    for row in db.execute(statement).mappings():
        cell = _normalize_counts(row)
        cell["coverage_status"] = classify_coverage(
            cell["total_mappings"], cell["fully_aligned"], cell["partially_aligned"]
        )
        cells.append(cell)
    return cells


def maturity_distribution(db: Session, document_ids: Sequence[int] | None = None) -> list[dict[str, Any]]:
    statement = (
        select(
            Domain.id.label("domain_id"),
            Domain.domain_name,
            Mapping.maturity_level,
            func.count(Mapping.id).label("count"),
        )
        .select_from(Domain)
        .join(Mapping, _mapping_join_condition(document_ids))
        .group_by(Domain.id, Domain.domain_name, Mapping.maturity_level)
        .order_by(Domain.id, Mapping.maturity_level)
    )
    return [dict(row) for row in db.execute(statement).mappings()]
