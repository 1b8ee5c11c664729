from __future__ import annotations

import csv
import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from io import BytesIO, StringIO
from typing import Any

from openpyxl import Workbook
from sqlalchemy import select
from sqlalchemy.orm import Session

from policy_aligner.exceptions import ValidationFailed
from policy_aligner.models import Document, Domain, Mapping
from policy_aligner.schemas import AlignmentStatus, GapStatus, RecommendationPriority
from policy_aligner.services import scoring
from policy_aligner.services.mapping_service import mapping_detail_statement

logger = logging.getLogger(__name__)

MAPPING_EXPORT_COLUMNS = [
    "id",
    "document_name",
    "domain_name",
    "domain_code",
    "maturity_level",
    "alignment_status",
    "notes",
    "section_text",
    "mapped_by_name",
    "created_at",
]

COVERAGE_EXPORT_COLUMNS = [
    "domain_code",
    "domain_name",
    "total_mappings",
    "fully_aligned",
    "partially_aligned",
    "not_aligned",
    "avg_maturity_level",
    "alignment_percentage",
]


def parse_optional_document_ids(raw: str | None) -> list[int] | None:
    """Like :func:`parse_document_ids` but an absent value selects every document."""

    if raw is None or not raw.strip():
        return None
    return parse_document_ids(raw)


def parse_document_ids(raw: str | None) -> list[int]:
    """Parse a comma-separated ``document_ids`` query value into integers."""

    if raw is None or not raw.strip():
        raise ValidationFailed("document_ids parameter is required")

    document_ids: list[int] = []
    for part in raw.split(","):
        value = part.strip()
        if not value:
            continue
        try:
            document_id = int(value)
        except ValueError:
            raise ValidationFailed(f"Invalid document id '{value}'") from None
        if document_id not in document_ids:
            document_ids.append(document_id)

    if not document_ids:
        raise ValidationFailed("document_ids parameter is required")
    return document_ids


def _report_documents(db: Session, document_ids: Sequence[int]) -> list[dict[str, Any]]:
    statement = (
        select(
            Document.id,
            Document.original_name,
            Document.relevant_agency,
            Document.publication_date,
            Document.created_at,
        )
        .where(Document.id.in_(list(document_ids)))
        .order_by(Document.original_name, Document.id)
    )
    return [dict(row) for row in db.execute(statement).mappings()]


def _report_mappings(db: Session, document_ids: Sequence[int]) -> list[dict[str, Any]]:
    statement = (
        mapping_detail_statement()
        .where(Mapping.document_id.in_(list(document_ids)))
        .order_by(Document.original_name, Domain.domain_name, Mapping.created_at, Mapping.id)
    )
    return [dict(row) for row in db.execute(statement).mappings()]


def build_comprehensive_report(db: Session, document_ids: Sequence[int]) -> dict[str, Any]:
    documents = _report_documents(db, document_ids)
    coverage = scoring.domain_coverage(db, document_ids)
    mappings = _report_mappings(db, document_ids)
    concerns = scoring.select_areas_of_concern(coverage)

    statuses = [mapping["alignment_status"] for mapping in mappings]
    overall_score = scoring.overall_alignment_score(statuses)
    fully = statuses.count(AlignmentStatus.FULLY_ALIGNED.value)
    partially = statuses.count(AlignmentStatus.PARTIALLY_ALIGNED.value)
    not_aligned = statuses.count(AlignmentStatus.NOT_ALIGNED.value)

    logger.info(
        "Built comprehensive report for %s documents with %s mappings", len(documents), len(mappings)
    )

    return {
        "metadata": {
            "generated_at": datetime.now(timezone.utc),
            "documents_analyzed": len(documents),
            "total_mappings": len(mappings),
            "overall_alignment_score": overall_score,
        },
        "documents": documents,
        "domain_coverage": coverage,
        "detailed_mappings": mappings,
        "areas_of_concern": concerns,
        "summary": {
            "total_mappings": len(mappings),
            "fully_aligned": fully,
            "partially_aligned": partially,
            "not_aligned": not_aligned,
            "overall_alignment_score": overall_score,
            "domains_with_concerns": len(concerns),
        },
    }


def build_gap_analysis_report(db: Session, document_ids: Sequence[int]) -> dict[str, Any]:
    rows = scoring.sort_by_gap_severity(scoring.gap_analysis(db, document_ids))

    def count(status: GapStatus) -> int:
        return sum(1 for row in rows if row["gap_status"] == status)

    return {
        "gap_analysis": rows,
        "summary": {
            "total_domains": len(rows),
            "no_coverage": count(GapStatus.NO_COVERAGE),
            "critical_gaps": count(GapStatus.CRITICAL_GAP),
            "significant_gaps": count(GapStatus.SIGNIFICANT_GAP),
            "minor_gaps": count(GapStatus.MINOR_GAP),
            "adequate_coverage": count(GapStatus.ADEQUATE_COVERAGE),
        },
    }


def build_recommendations_report(db: Session, document_ids: Sequence[int]) -> dict[str, Any]:
    concerns = scoring.select_areas_of_concern(scoring.domain_coverage(db, document_ids))
    recommendations = [
        recommendation
        for recommendation in (scoring.build_recommendation(row) for row in concerns)
        if recommendation is not None
    ]
    high = sum(1 for item in recommendations if item["priority"] == RecommendationPriority.HIGH)
    medium = sum(1 for item in recommendations if item["priority"] == RecommendationPriority.MEDIUM)
    return {
        "recommendations": recommendations,
        "summary": {
            "total_recommendations": len(recommendations),
            "high_priority": high,
            "medium_priority": medium,
        },
    }


def _export_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if hasattr(value, "value"):
        return value.value
    return value


def render_mappings_csv(report: dict[str, Any]) -> str:
    buffer = StringIO()
    writer = csv.DictWriter(buffer, fieldnames=MAPPING_EXPORT_COLUMNS, extrasaction="ignore")
    writer.writeheader()
    for row in report["detailed_mappings"]:
        writer.writerow({column: _export_value(row.get(column)) for column in MAPPING_EXPORT_COLUMNS})
    return buffer.getvalue()


def render_report_workbook(report: dict[str, Any]) -> bytes:
    workbook = Workbook()

    summary_sheet = workbook.active
    summary_sheet.title = "Summary"
    summary_sheet.append(["Metric", "Value"])
    for key, value in report["metadata"].items():
        summary_sheet.append([key, _export_value(value)])
    for key, value in report["summary"].items():
        if key not in report["metadata"]:
            summary_sheet.append([key, _export_value(value)])

    coverage_sheet = workbook.create_sheet("Domain Coverage")
    coverage_sheet.append(COVERAGE_EXPORT_COLUMNS)
    for row in report["domain_coverage"]:
        coverage_sheet.append([_export_value(row.get(column)) for column in COVERAGE_EXPORT_COLUMNS])

    mappings_sheet = workbook.create_sheet("Mappings")
    mappings_sheet.append(MAPPING_EXPORT_COLUMNS)
    for row in report["detailed_mappings"]:
        mappings_sheet.append([_export_value(row.get(column)) for column in MAPPING_EXPORT_COLUMNS])

    buffer = BytesIO()
    workbook.save(buffer)
    return buffer.getvalue()
