from typing import Optional

from fastapi import APIRouter, Depends, Query, Response, status
from sqlalchemy.orm import Session

from policy_aligner.database import get_db
from policy_aligner.dependencies import get_current_user
from policy_aligner.exceptions import PolicyAlignerError, to_http_exception
from policy_aligner.models import Domain, User
from policy_aligner.schemas import (
    AlignmentStatus,
    DomainRead,
    DomainStatistics,
    MappingCreate,
    MappingRead,
    MappingUpdate,
)
from policy_aligner.services import mapping_service, scoring

router = APIRouter(prefix="/mappings", tags=["Mappings"])


@router.get("/domains", response_model=list[DomainRead])
def list_domains(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[Domain]:
    return mapping_service.list_domains(db)


@router.get("/statistics", response_model=list[DomainStatistics])
def mapping_statistics(
    document_id: Optional[int] = Query(default=None),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[dict]:
    document_ids = [document_id] if document_id is not None else None
    return scoring.domain_statistics(db, document_ids)


@router.get("", response_model=list[MappingRead])
def list_mappings(
    document_id: Optional[int] = Query(default=None),
    domain_id: Optional[int] = Query(default=None),
    alignment_status: Optional[AlignmentStatus] = Query(default=None),
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[dict]:
    return mapping_service.list_mappings(
        db,
        document_id=document_id,
        domain_id=domain_id,
        alignment_status=alignment_status,
    )


@router.post("", response_model=MappingRead, status_code=status.HTTP_201_CREATED)
def create_mapping(
    payload: MappingCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(get_current_user),
) -> dict:
    try:
        return mapping_service.create_mapping(db, payload, mapped_by=current_user.id)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc


@router.get("/{mapping_id}", response_model=MappingRead)
def get_mapping(
    mapping_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> dict:
    try:
        return mapping_service.get_mapping_detail(db, mapping_id)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{mapping_id}", response_model=MappingRead)
def update_mapping(
    mapping_id: int,
    payload: MappingUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> dict:
    try:
        return mapping_service.update_mapping(db, mapping_id, payload.model_dump(exclude_unset=True))
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc


@router.delete("/{mapping_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_mapping(
    mapping_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> Response:
    try:
        mapping_service.delete_mapping(db, mapping_id)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
