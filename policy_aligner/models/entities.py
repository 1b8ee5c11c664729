from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from policy_aligner.database import Base


class CreatedAtMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=lambda: datetime.now(timezone.utc)
    )


class User(Base, CreatedAtMixin):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(150), nullable=False, unique=True)
    email: Mapped[str] = mapped_column(String(200), nullable=False, unique=True)
    password_hash: Mapped[str] = mapped_column(String(255), nullable=False)
    role: Mapped[str] = mapped_column(String(20), nullable=False, default="analyst")
    is_active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    __table_args__ = (
        CheckConstraint("role IN ('admin', 'analyst')", name="ck_users_role"),
    )


class Domain(Base):
    __tablename__ = "qc2m2_domains"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    domain_name: Mapped[str] = mapped_column(String(100), nullable=False)
    domain_code: Mapped[str] = mapped_column(String(50), nullable=False, unique=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    maturity_levels: Mapped[str] = mapped_column(String(20), nullable=False, default="1,2,3")


class Document(Base, CreatedAtMixin):
    __tablename__ = "documents"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    filename: Mapped[str] = mapped_column(String(255), nullable=False)
    original_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_path: Mapped[str] = mapped_column(String(1024), nullable=False)
    file_type: Mapped[str] = mapped_column(String(10), nullable=False)
    file_size: Mapped[int | None] = mapped_column(Integer, nullable=True)
    source: Mapped[str | None] = mapped_column(String(255), nullable=True)
    publication_date: Mapped[str | None] = mapped_column(String(50), nullable=True)
    relevant_agency: Mapped[str | None] = mapped_column(String(255), nullable=True)
    uploaded_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    uploader: Mapped[User | None] = relationship("User")
    sections: Mapped[list["DocumentSection"]] = relationship(
        "DocumentSection",
        back_populates="document",
        order_by="DocumentSection.section_start",
        passive_deletes=True,
    )


class DocumentSection(Base, CreatedAtMixin):
    __tablename__ = "document_sections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    section_text: Mapped[str] = mapped_column(Text, nullable=False)
    section_start: Mapped[int | None] = mapped_column(Integer, nullable=True)
    section_end: Mapped[int | None] = mapped_column(Integer, nullable=True)

    document: Mapped[Document] = relationship("Document", back_populates="sections")
    tags: Mapped[list["Tag"]] = relationship(
        "Tag",
        secondary="section_tags",
        order_by="Tag.name",
        viewonly=True,
    )


class Mapping(Base, CreatedAtMixin):
    __tablename__ = "mappings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    document_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("documents.id", ondelete="CASCADE"), nullable=False, index=True
    )
    section_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("document_sections.id", ondelete="CASCADE"), nullable=True
    )
    domain_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("qc2m2_domains.id"), nullable=False, index=True
    )
    maturity_level: Mapped[int] = mapped_column(Integer, nullable=False)
    alignment_status: Mapped[str] = mapped_column(String(30), nullable=False)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    mapped_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )

    document: Mapped[Document] = relationship("Document")
    section: Mapped[DocumentSection | None] = relationship("DocumentSection")
    domain: Mapped[Domain] = relationship("Domain")
    mapper: Mapped[User | None] = relationship("User")

    __table_args__ = (
        UniqueConstraint(
            "document_id", "section_id", "domain_id", name="uq_mappings_document_section_domain"
        ),
        CheckConstraint("maturity_level BETWEEN 1 AND 3", name="ck_mappings_maturity_level"),
        CheckConstraint(
            "alignment_status IN ('fully_aligned', 'partially_aligned', 'not_aligned')",
            name="ck_mappings_alignment_status",
        ),
    )


class Tag(Base, CreatedAtMixin):
    __tablename__ = "tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    color: Mapped[str] = mapped_column(String(20), nullable=False, default="#3B82F6")


class SectionTag(Base, CreatedAtMixin):
    __tablename__ = "section_tags"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    section_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("document_sections.id", ondelete="CASCADE"), nullable=False
    )
    tag_id: Mapped[int] = mapped_column(
        Integer, ForeignKey("tags.id", ondelete="CASCADE"), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("section_id", "tag_id", name="uq_section_tags_section_tag"),
    )


class StakeholderInsight(Base, CreatedAtMixin):
    __tablename__ = "stakeholder_insights"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    stakeholder_name: Mapped[str | None] = mapped_column(String(200), nullable=True)
    insight_type: Mapped[str] = mapped_column(String(50), nullable=False, default="interview")
    related_mapping_id: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("mappings.id", ondelete="SET NULL"), nullable=True
    )
    created_by: Mapped[int | None] = mapped_column(
        Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
