from __future__ import annotations

from typing import Any

from sqlalchemy import Select, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from policy_aligner.exceptions import ConflictError, NotFoundError, ValidationFailed
from policy_aligner.models import Document, DocumentSection, Domain, Mapping, StakeholderInsight, User
from policy_aligner.schemas import AlignmentStatus, MappingCreate

_UPDATABLE_FIELDS = ("domain_id", "maturity_level", "alignment_status", "notes")
_DUPLICATE_MESSAGE = "Mapping already exists for this document-section-domain combination"


def list_domains(db: Session) -> list[Domain]:
    return list(db.execute(select(Domain).order_by(Domain.id)).scalars())


def mapping_detail_statement() -> Select:
    return (
        select(
            Mapping.id,
            Mapping.document_id,
            Mapping.section_id,
            Mapping.domain_id,
            Mapping.maturity_level,
            Mapping.alignment_status,
            Mapping.notes,
            Mapping.mapped_by,
            Mapping.created_at,
            Document.original_name.label("document_name"),
            Domain.domain_name,
            Domain.domain_code,
            User.username.label("mapped_by_name"),
            DocumentSection.section_text,
        )
        .select_from(Mapping)
        .outerjoin(Document, Mapping.document_id == Document.id)
        .outerjoin(Domain, Mapping.domain_id == Domain.id)
        .outerjoin(User, Mapping.mapped_by == User.id)
        .outerjoin(DocumentSection, Mapping.section_id == DocumentSection.id)
    )


def list_mappings(
    db: Session,
    *,
    document_id: int | None = None,
    domain_id: int | None = None,
    alignment_status: AlignmentStatus | None = None,
) -> list[dict[str, Any]]:
    statement = mapping_detail_statement()
    if document_id is not None:
        statement = statement.where(Mapping.document_id == document_id)
    if domain_id is not None:
        statement = statement.where(Mapping.domain_id == domain_id)
    if alignment_status is not None:
        statement = statement.where(Mapping.alignment_status == alignment_status.value)
    statement = statement.order_by(Mapping.created_at.desc(), Mapping.id.desc())
    return [dict(row) for row in db.execute(statement).mappings()]


def get_mapping_detail(db: Session, mapping_id: int) -> dict[str, Any]:
    row = db.execute(mapping_detail_statement().where(Mapping.id == mapping_id)).mappings().first()
    if row is None:
        raise NotFoundError("Mapping not found")
    return dict(row)


def _find_duplicate(
    db: Session,
    *,
    document_id: int,
    section_id: int | None,
    domain_id: int,
    exclude_id: int | None = None,
) -> int | None:
    statement = select(Mapping.id).where(
        Mapping.document_id == document_id,
        Mapping.domain_id == domain_id,
        Mapping.section_id.is_(None) if section_id is None else Mapping.section_id == section_id,
    )
    if exclude_id is not None:
        statement = statement.where(Mapping.id != exclude_id)
    return db.scalar(statement.limit(1))


def _ensure_domain_exists(db: Session, domain_id: int) -> None:
    if db.get(Domain, domain_id) is None:
        raise NotFoundError("Domain not found")


def create_mapping(db: Session, payload: MappingCreate, *, mapped_by: int) -> dict[str, Any]:
    if db.get(Document, payload.document_id) is None:
        raise NotFoundError("Document not found")
    _ensure_domain_exists(db, payload.domain_id)
    if payload.section_id is not None:
        section = db.get(DocumentSection, payload.section_id)
        if section is None:
            raise NotFoundError("Section not found")
        if section.document_id != payload.document_id:
            raise NotFoundError("Section not found in the selected document")

    if _find_duplicate(
        db,
        document_id=payload.document_id,
        section_id=payload.section_id,
        domain_id=payload.domain_id,
    ):
        raise ConflictError(_DUPLICATE_MESSAGE)

    mapping = Mapping(
        document_id=payload.document_id,
        section_id=payload.section_id,
        domain_id=payload.domain_id,
        maturity_level=payload.maturity_level,
        alignment_status=payload.alignment_status.value,
        notes=payload.notes or None,
        mapped_by=mapped_by,
    )
    db.add(mapping)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(_DUPLICATE_MESSAGE) from exc

    return get_mapping_detail(db, mapping.id)


def update_mapping(db: Session, mapping_id: int, changes: dict[str, Any]) -> dict[str, Any]:
    mapping = db.get(Mapping, mapping_id)
    if mapping is None:
        raise NotFoundError("Mapping not found")

    update_data = {key: value for key, value in changes.items() if key in _UPDATABLE_FIELDS}
    if not update_data:
        raise ValidationFailed("No fields to update")

    for required in ("domain_id", "maturity_level", "alignment_status"):
        if required in update_data and update_data[required] is None:
            raise ValidationFailed(f"{required} cannot be null")

    if "alignment_status" in update_data:
        update_data["alignment_status"] = AlignmentStatus(update_data["alignment_status"]).value

    new_domain_id = update_data.get("domain_id", mapping.domain_id)
    if new_domain_id != mapping.domain_id:
        _ensure_domain_exists(db, new_domain_id)
        if _find_duplicate(
            db,
            document_id=mapping.document_id,
            section_id=mapping.section_id,
            domain_id=new_domain_id,
            exclude_id=mapping.id,
        ):
            raise ConflictError(_DUPLICATE_MESSAGE)

    for field_name, value in update_data.items():
        setattr(mapping, field_name, value)

    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError(_DUPLICATE_MESSAGE) from exc

    return get_mapping_detail(db, mapping.id)


def delete_mapping(db: Session, mapping_id: int) -> None:
    mapping = db.get(Mapping, mapping_id)
    if mapping is None:
        raise NotFoundError("Mapping not found")

    for insight in db.execute(
        select(StakeholderInsight).where(StakeholderInsight.related_mapping_id == mapping_id)
    ).scalars():
        insight.related_mapping_id = None

    db.delete(mapping)
    db.commit()
