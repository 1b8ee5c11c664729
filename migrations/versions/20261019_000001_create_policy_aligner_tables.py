"""create policy aligner tables

Revision ID: 20261019_000001
Revises: 
Create Date: 2026-10-19 00:00:00.000000
"""

from alembic import op
import sqlalchemy as sa

revision = "20261019_000001"
down_revision = None
branch_labels = None
depends_on = None


def _created_at() -> sa.Column:
    return sa.Column(
        "created_at", sa.DateTime(timezone=True), nullable=False, server_default=sa.func.current_timestamp()
    )


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("username", sa.String(length=150), nullable=False, unique=True),
        sa.Column("email", sa.String(length=200), nullable=False, unique=True),
        sa.Column("password_hash", sa.String(length=255), nullable=False),
        sa.Column("role", sa.String(length=20), nullable=False, server_default="analyst"),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        _created_at(),
        sa.CheckConstraint("role IN ('admin', 'analyst')", name="ck_users_role"),
    )

    op.create_table(
        "qc2m2_domains",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("domain_name", sa.String(length=100), nullable=False),
        sa.Column("domain_code", sa.String(length=50), nullable=False, unique=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("maturity_levels", sa.String(length=20), nullable=False, server_default="1,2,3"),
    )

    op.create_table(
        "documents",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("filename", sa.String(length=255), nullable=False),
        sa.Column("original_name", sa.String(length=255), nullable=False),
        sa.Column("file_path", sa.String(length=1024), nullable=False),
        sa.Column("file_type", sa.String(length=10), nullable=False),
        sa.Column("file_size", sa.Integer(), nullable=True),
        sa.Column("source", sa.String(length=255), nullable=True),
        sa.Column("publication_date", sa.String(length=50), nullable=True),
        sa.Column("relevant_agency", sa.String(length=255), nullable=True),
        sa.Column("uploaded_by", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["uploaded_by"], ["users.id"], ondelete="SET NULL"),
    )

    op.create_table(
        "document_sections",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("document_id", sa.Integer(), nullable=False),
        sa.Column("section_text", sa.Text(), nullable=False),
        sa.Column("section_start", sa.Integer(), nullable=True),
        sa.Column("section_end", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"], ondelete="CASCADE"),
    )
    op.create_index("ix_document_sections_document_id", "document_sections", ["document_id"])

    op.create_table(
        "mappings",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("document_id", sa.Integer(), nullable=False),
        sa.Column("section_id", sa.Integer(), nullable=True),
        sa.Column("domain_id", sa.Integer(), nullable=False),
        sa.Column("maturity_level", sa.Integer(), nullable=False),
        sa.Column("alignment_status", sa.String(length=30), nullable=False),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("mapped_by", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["document_id"], ["documents.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["section_id"], ["document_sections.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["domain_id"], ["qc2m2_domains.id"]),
        sa.ForeignKeyConstraint(["mapped_by"], ["users.id"], ondelete="SET NULL"),
        sa.UniqueConstraint(
            "document_id", "section_id", "domain_id", name="uq_mappings_document_section_domain"
        ),
        sa.CheckConstraint("maturity_level BETWEEN 1 AND 3", name="ck_mappings_maturity_level"),
        sa.CheckConstraint(
            "alignment_status IN ('fully_aligned', 'partially_aligned', 'not_aligned')",
            name="ck_mappings_alignment_status",
        ),
    )
    op.create_index("ix_mappings_document_id", "mappings", ["document_id"])
    op.create_index("ix_mappings_domain_id", "mappings", ["domain_id"])

    op.create_table(
        "tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("color", sa.String(length=20), nullable=False, server_default="#3B82F6"),
        _created_at(),
    )

    op.create_table(
        "section_tags",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("section_id", sa.Integer(), nullable=False),
        sa.Column("tag_id", sa.Integer(), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(["section_id"], ["document_sections.id"], ondelete="CASCADE"),
        sa.ForeignKeyConstraint(["tag_id"], ["tags.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("section_id", "tag_id", name="uq_section_tags_section_tag"),
    )

    op.create_table(
        "stakeholder_insights",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("title", sa.String(length=255), nullable=False),
        sa.Column("content", sa.Text(), nullable=False),
        sa.Column("stakeholder_name", sa.String(length=200), nullable=True),
        sa.Column("insight_type", sa.String(length=50), nullable=False, server_default="interview"),
        sa.Column("related_mapping_id", sa.Integer(), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(["related_mapping_id"], ["mappings.id"], ondelete="SET NULL"),
        sa.ForeignKeyConstraint(["created_by"], ["users.id"], ondelete="SET NULL"),
    )


def downgrade() -> None:
    op.drop_table("stakeholder_insights")
    op.drop_table("section_tags")
    op.drop_table("tags")
    op.drop_index("ix_mappings_domain_id", table_name="mappings")
    op.drop_index("ix_mappings_document_id", table_name="mappings")
    op.drop_table("mappings")
    op.drop_index("ix_document_sections_document_id", table_name="document_sections")
    op.drop_table("document_sections")
    op.drop_table("documents")
    op.drop_table("qc2m2_domains")
    op.drop_table("users")
