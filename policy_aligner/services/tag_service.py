from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from policy_aligner.exceptions import ConflictError, NotFoundError
from policy_aligner.models import DocumentSection, SectionTag, Tag


def list_tags(db: Session) -> list[Tag]:
    return list(db.execute(select(Tag).order_by(Tag.name)).scalars())


def create_tag(db: Session, *, name: str, color: str) -> Tag:
    cleaned_name = name.strip()
    if db.execute(select(Tag.id).where(Tag.name == cleaned_name)).first():
        raise ConflictError("Tag already exists")

    tag = Tag(name=cleaned_name, color=color)
    db.add(tag)
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ConflictError("Tag already exists") from exc
    db.refresh(tag)
    return tag


def _ensure_section_and_tag(db: Session, section_id: int, tag_id: int) -> None:
    if db.get(DocumentSection, section_id) is None:
        raise NotFoundError("Section not found")
    if db.get(Tag, tag_id) is None:
        raise NotFoundError("Tag not found")


def tag_section(db: Session, section_id: int, tag_id: int) -> SectionTag:
    """Attach a tag to a section; attaching an existing pair is a no-op."""

    _ensure_section_and_tag(db, section_id, tag_id)
    existing = db.execute(
        select(SectionTag).where(SectionTag.section_id == section_id, SectionTag.tag_id == tag_id)
    ).scalars().first()
    if existing:
        return existing

    link = SectionTag(section_id=section_id, tag_id=tag_id)
    db.add(link)
    db.commit()
    db.refresh(link)
    return link


def untag_section(db: Session, section_id: int, tag_id: int) -> None:
    link = db.execute(
        select(SectionTag).where(SectionTag.section_id == section_id, SectionTag.tag_id == tag_id)
    ).scalars().first()
    if link is None:
        raise NotFoundError("Tag is not attached to this section")
    db.delete(link)
    db.commit()
