from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import StreamingResponse
from sqlalchemy.orm import Session

from policy_aligner.database import get_db
from policy_aligner.dependencies import get_current_user
from policy_aligner.exceptions import PolicyAlignerError, to_http_exception
from policy_aligner.models import User
from policy_aligner.schemas import ComprehensiveReport, GapAnalysisReport, RecommendationsReport
from policy_aligner.services import report_service

router = APIRouter(prefix="/reports", tags=["Reports"])

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


class ReportFormat(str, Enum):
    JSON = "json"
    CSV = "csv"
    XLSX = "xlsx"


def _document_ids(raw: Optional[str]) -> list[int]:
    try:
        return report_service.parse_document_ids(raw)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc


def _attachment_headers(extension: str) -> dict[str, str]:
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d%H%M%S")
    return {
        "Content-Disposition": f"attachment; filename=comprehensive_report_{timestamp}.{extension}",
        "Cache-Control": "no-store",
    }


@router.get(
    "/comprehensive",
    response_model=ComprehensiveReport,
    responses={200: {"content": {"text/csv": {}, XLSX_MEDIA_TYPE: {}}}},
)
def comprehensive_report(
    document_ids: Optional[str] = Query(default=None),
    format: ReportFormat = Query(default=ReportFormat.JSON),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
):
    report = report_service.build_comprehensive_report(db, _document_ids(document_ids))

    if format == ReportFormat.CSV:
        content = report_service.render_mappings_csv(report)
        return StreamingResponse(iter([content]), media_type="text/csv", headers=_attachment_headers("csv"))
    if format == ReportFormat.XLSX:
        content = report_service.render_report_workbook(report)
        return StreamingResponse(iter([content]), media_type=XLSX_MEDIA_TYPE, headers=_attachment_headers("xlsx"))

    return report


@router.get("/gap-analysis", response_model=GapAnalysisReport)
def gap_analysis_report(
    document_ids: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> dict:
    return report_service.build_gap_analysis_report(db, _document_ids(document_ids))


@router.get("/recommendations", response_model=RecommendationsReport)
def recommendations_report(
    document_ids: Optional[str] = Query(default=None),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> dict:
    return report_service.build_recommendations_report(db, _document_ids(document_ids))
