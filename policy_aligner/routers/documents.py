from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Response, UploadFile, status
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from policy_aligner.config import get_settings
from policy_aligner.database import get_db
from policy_aligner.dependencies import get_current_user, get_document_storage
from policy_aligner.exceptions import PolicyAlignerError, to_http_exception
from policy_aligner.models import User
from policy_aligner.schemas import (
    DocumentDetail,
    DocumentListItem,
    DocumentMetadataUpdate,
    DocumentRead,
    DocumentUploadResponse,
)
from policy_aligner.services import document_service, tag_service
from policy_aligner.services.document_storage import DocumentStorage, content_type_for

router = APIRouter(prefix="/documents", tags=["Documents"])


@router.post("/upload", response_model=DocumentUploadResponse, status_code=status.HTTP_201_CREATED)
async def upload_document(
    document: UploadFile = File(...),
    source: Optional[str] = Form(None),
    publication_date: Optional[str] = Form(None),
    relevant_agency: Optional[str] = Form(None),
    db: Session = Depends(get_db),
    storage: DocumentStorage = Depends(get_document_storage),
    current_user: User = Depends(get_current_user),
) -> DocumentUploadResponse:
    settings = get_settings()
    try:
        # Reject unsupported types before reading the body.
        document_service.validate_extension(document.filename)
        data = await document.read()
        record, sections_count = document_service.ingest_document(
            db,
            storage,
            original_name=document.filename or "document",
            data=data,
            uploaded_by=current_user.id,
            max_bytes=settings.max_upload_bytes,
            source=source,
            publication_date=publication_date,
            relevant_agency=relevant_agency,
            max_section_length=settings.max_section_length,
        )
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc
    finally:
        await document.close()

    payload = document_service.serialize_document(record)
    return DocumentUploadResponse(**payload, sections_count=sections_count)


@router.get("", response_model=list[DocumentListItem])
def list_documents(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[dict]:
    return document_service.list_documents(db)


@router.get("/file/{document_id}")
def serve_document_file(
    document_id: int,
    db: Session = Depends(get_db),
    storage: DocumentStorage = Depends(get_document_storage),
    _user: User = Depends(get_current_user),
) -> FileResponse:
    try:
        document = document_service.require_document(db, document_id)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc

    path = storage.resolve(document.filename)
    if not path.is_file():
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="File not found")

    media_type, disposition = content_type_for(document.file_type or path.suffix)
    return FileResponse(
        path,
        media_type=media_type,
        filename=document.original_name,
        content_disposition_type=disposition,
        headers={"X-Content-Type-Options": "nosniff"},
    )


@router.get("/{document_id}", response_model=DocumentDetail)
def get_document(
    document_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> dict:
    try:
        return document_service.get_document_detail(db, document_id)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc


@router.put("/{document_id}", response_model=DocumentRead)
def update_document(
    document_id: int,
    payload: DocumentMetadataUpdate,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> dict:
    try:
        document = document_service.update_document_metadata(
            db, document_id, payload.model_dump(exclude_unset=True)
        )
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc
    return document_service.serialize_document(document)


@router.delete("/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_document(
    document_id: int,
    db: Session = Depends(get_db),
    storage: DocumentStorage = Depends(get_document_storage),
    _user: User = Depends(get_current_user),
) -> Response:
    try:
        document_service.delete_document(db, storage, document_id)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.post("/sections/{section_id}/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def add_section_tag(
    section_id: int,
    tag_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> Response:
    try:
        tag_service.tag_section(db, section_id, tag_id)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.delete("/sections/{section_id}/tags/{tag_id}", status_code=status.HTTP_204_NO_CONTENT)
def remove_section_tag(
    section_id: int,
    tag_id: int,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> Response:
    try:
        tag_service.untag_section(db, section_id, tag_id)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc
    return Response(status_code=status.HTTP_204_NO_CONTENT)
