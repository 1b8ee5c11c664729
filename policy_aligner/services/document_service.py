from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session, selectinload

from policy_aligner.exceptions import NotFoundError, ValidationFailed
from policy_aligner.models import (
    Document,
    DocumentSection,
    Mapping,
    SectionTag,
    StakeholderInsight,
)
from policy_aligner.services.document_storage import (
    ALLOWED_EXTENSIONS,
    DocumentStorage,
    normalize_extension,
)
from policy_aligner.services.text_extraction import (
    DEFAULT_MAX_SECTION_LENGTH,
    TextExtractionError,
    extract_text,
    split_text_into_sections,
)

logger = logging.getLogger(__name__)


def validate_extension(filename: str | None) -> str:
    extension = normalize_extension(filename)
    if extension not in ALLOWED_EXTENSIONS:
        raise ValidationFailed("Invalid file type. Only PDF, DOCX, DOC, and TXT files are allowed.")
    return extension


def validate_size(data: bytes, max_bytes: int) -> None:
    if not data:
        raise ValidationFailed("Uploaded file is empty.")
    if len(data) > max_bytes:
        limit_mb = max_bytes / (1024 * 1024)
        raise ValidationFailed(f"Uploaded file exceeds the {limit_mb:g} MB size limit.")


def _clean(value: str | None) -> str | None:
    if value is None:
        return None
    cleaned = value.strip()
    return cleaned or None


def serialize_document(document: Document) -> dict[str, Any]:
    return {
        "id": document.id,
        "filename": document.filename,
        "original_name": document.original_name,
        "file_type": document.file_type,
        "file_size": document.file_size,
        "source": document.source,
        "publication_date": document.publication_date,
        "relevant_agency": document.relevant_agency,
        "uploaded_by": document.uploaded_by,
        "uploaded_by_name": document.uploader.username if document.uploader else None,
        "created_at": document.created_at,
    }


def ingest_document(
    db: Session,
    storage: DocumentStorage,
    *,
    original_name: str,
    data: bytes,
    uploaded_by: int,
    max_bytes: int,
    source: str | None = None,
    publication_date: str | None = None,
    relevant_agency: str | None = None,
    max_section_length: int = DEFAULT_MAX_SECTION_LENGTH,
) -> tuple[Document, int]:
    """Store an uploaded file, record it and split its text into sections.

    Returns the persisted document and the number of sections created. Text
    extraction problems are logged and leave the document without sections.
    """

    extension = validate_extension(original_name)
    validate_size(data, max_bytes)

    stored = storage.save(data, extension)

    try:
        text = extract_text(stored.path, extension)
    except TextExtractionError:
        logger.exception("Text extraction failed for %s", original_name)
        text = ""

    document = Document(
        filename=stored.filename,
        original_name=original_name,
        file_path=str(stored.path),
        file_type=extension,
        file_size=stored.size,
        source=_clean(source),
        publication_date=_clean(publication_date),
        relevant_agency=_clean(relevant_agency),
        uploaded_by=uploaded_by,
    )
    sections = split_text_into_sections(text, max_section_length) if text.strip() else []

    try:
        db.add(document)
        db.flush()
        db.add_all(
            DocumentSection(
                document_id=document.id,
                section_text=section.text,
                section_start=section.start,
                section_end=section.end,
            )
            for section in sections
        )
        db.commit()
    except Exception:
        db.rollback()
        storage.remove(stored.filename)
        raise

    db.refresh(document)
    logger.info("Ingested document %s (%s) with %s sections", document.id, original_name, len(sections))
    return document, len(sections)


def list_documents(db: Session) -> list[dict[str, Any]]:
    sections_count = (
        select(func.count(DocumentSection.id))
        .where(DocumentSection.document_id == Document.id)
        .correlate(Document)
        .scalar_subquery()
    )
    mappings_count = (
        select(func.count(Mapping.id))
        .where(Mapping.document_id == Document.id)
        .correlate(Document)
        .scalar_subquery()
    )
    statement = (
        select(Document, sections_count.label("sections_count"), mappings_count.label("mappings_count"))
        .options(selectinload(Document.uploader))
        .order_by(Document.created_at.desc(), Document.id.desc())
    )

    items = []
    for document, section_total, mapping_total in db.execute(statement):
        payload = serialize_document(document)
        payload["sections_count"] = section_total or 0
        payload["mappings_count"] = mapping_total or 0
        items.append(payload)
    return items


def require_document(db: Session, document_id: int) -> Document:
    document = db.get(Document, document_id)
    if document is None:
        raise NotFoundError("Document not found")
    return document


def get_document_detail(db: Session, document_id: int) -> dict[str, Any]:
    statement = (
        select(Document)
        .where(Document.id == document_id)
        .options(
            selectinload(Document.uploader),
            selectinload(Document.sections).selectinload(DocumentSection.tags),
        )
    )
    document = db.execute(statement).scalars().first()
    if document is None:
        raise NotFoundError("Document not found")

    payload = serialize_document(document)
    payload["sections"] = [
        {
            "id": section.id,
            "document_id": section.document_id,
            "section_text": section.section_text,
            "section_start": section.section_start,
            "section_end": section.section_end,
            "tags": [tag.name for tag in section.tags],
        }
        for section in document.sections
    ]
    return payload


def update_document_metadata(db: Session, document_id: int, changes: dict[str, Any]) -> Document:
    document = require_document(db, document_id)
    for field_name in ("source", "publication_date", "relevant_agency"):
        if field_name in changes:
            setattr(document, field_name, _clean(changes[field_name]))
    db.commit()
    db.refresh(document)
    return document


def delete_document(db: Session, storage: DocumentStorage, document_id: int) -> None:
    """Remove a document with everything that references it, then its file."""

    document = require_document(db, document_id)
    filename = document.filename

    mapping_ids = select(Mapping.id).where(Mapping.document_id == document_id)
    section_ids = select(DocumentSection.id).where(DocumentSection.document_id == document_id)

    db.execute(delete(StakeholderInsight).where(StakeholderInsight.related_mapping_id.in_(mapping_ids)))
    db.execute(delete(SectionTag).where(SectionTag.section_id.in_(section_ids)))
    db.execute(delete(Mapping).where(Mapping.document_id == document_id))
    db.execute(delete(DocumentSection).where(DocumentSection.document_id == document_id))
    db.execute(delete(Document).where(Document.id == document_id))
    db.commit()

    if storage.remove(filename):
        logger.info("Deleted stored file %s for document %s", filename, document_id)
    else:
        logger.warning("Stored file %s for document %s was already missing", filename, document_id)

