from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from policy_aligner.database import get_db
from policy_aligner.dependencies import get_current_user
from policy_aligner.exceptions import PolicyAlignerError, to_http_exception
from policy_aligner.models import User
from policy_aligner.schemas import DomainCoverage, GapMatrixCell, MaturityDistributionRow
from policy_aligner.services import scoring
from policy_aligner.services.report_service import parse_optional_document_ids

router = APIRouter(prefix="/analysis", tags=["Analysis"])

_DOCUMENT_IDS_QUERY = Query(
    default=None,
    description="Comma-separated document ids; omit to analyse every document.",
)


def _selected_documents(document_ids: Optional[str]) -> Optional[list[int]]:
    try:
        return parse_optional_document_ids(document_ids)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc


@router.get("/gap-matrix", response_model=list[GapMatrixCell])
def gap_matrix(
    document_ids: Optional[str] = _DOCUMENT_IDS_QUERY,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[dict]:
    return scoring.gap_matrix(db, _selected_documents(document_ids))


@router.get("/domain-coverage", response_model=list[DomainCoverage])
def domain_coverage(
    document_ids: Optional[str] = _DOCUMENT_IDS_QUERY,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[dict]:
    return scoring.domain_coverage(db, _selected_documents(document_ids))


@router.get("/maturity-distribution", response_model=list[MaturityDistributionRow])
def maturity_distribution(
    document_ids: Optional[str] = _DOCUMENT_IDS_QUERY,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[dict]:
    return scoring.maturity_distribution(db, _selected_documents(document_ids))


@router.get("/areas-of-concern", response_model=list[DomainCoverage])
def areas_of_concern(
    document_ids: Optional[str] = _DOCUMENT_IDS_QUERY,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[dict]:
    coverage = scoring.domain_coverage(db, _selected_documents(document_ids))
    return scoring.select_areas_of_concern(coverage)
