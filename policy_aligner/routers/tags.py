from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from policy_aligner.database import get_db
from policy_aligner.dependencies import get_current_user
from policy_aligner.exceptions import PolicyAlignerError, to_http_exception
from policy_aligner.models import Tag, User
from policy_aligner.schemas import TagCreate, TagRead
from policy_aligner.services import tag_service

router = APIRouter(prefix="/tags", tags=["Tags"])


@router.get("", response_model=list[TagRead])
def list_tags(
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> list[Tag]:
    return tag_service.list_tags(db)


@router.post("", response_model=TagRead, status_code=status.HTTP_201_CREATED)
def create_tag(
    payload: TagCreate,
    db: Session = Depends(get_db),
    _user: User = Depends(get_current_user),
) -> Tag:
    try:
        return tag_service.create_tag(db, name=payload.name, color=payload.color)
    except PolicyAlignerError as exc:
        raise to_http_exception(exc) from exc
