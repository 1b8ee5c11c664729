from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from policy_aligner.database import get_db
from policy_aligner.dependencies import get_current_user
from policy_aligner.exceptions import PolicyAlignerError, to_http_exception
from policy_aligner.models import StakeholderInsight, User
from policy_aligner.schemas import StakeholderInsightCreate, StakeholderInsightRead
from policy_aligner.services import insight_service

router = APIRouter(prefix="/insights", tags=["Stakeholder Insights"])


@router.get("", response_model=list[StakeholderInsightRead])
def list_insights(
    related_mapping_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[StakeholderInsight]:
    return insight_service.list_insights(db, related_mapping_id=related_mapping_id)


@router.post("", response_model=StakeholderInsightRead, status_code=status.HTTP_201_CREATED)
def create_insight(
    payload: StakeholderInsightCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> StakeholderInsight:
    try:
        return insight_service.create_insight(db, payload, created_by=current_user.id)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{insight_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_insight(
    insight_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> Response:
    try:
        insight_service.delete_insight(db, insight_id)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
