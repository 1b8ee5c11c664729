from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

from policy_aligner.config import check_password_length


class ORMSchema(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class UserRole(str, Enum):
    ADMIN = "admin"
    ANALYST = "analyst"


class AlignmentStatus(str, Enum):
    FULLY_ALIGNED = "fully_aligned"
    PARTIALLY_ALIGNED = "partially_aligned"
    NOT_ALIGNED = "not_aligned"


class UserRead(ORMSchema):
    id: int
    username: str
    email: str
    role: UserRole
    is_active: bool
    created_at: datetime


class UserRegister(BaseModel):
    username: str = Field(..., min_length=1, max_length=150)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=128)

    @field_validator("username")
    @classmethod
    def _strip_username(cls, value: str) -> str:
        cleaned = value.strip()
        if not cleaned:
            raise ValueError("Username cannot be blank.")
        return cleaned

    @field_validator("password")
    @classmethod
    def _check_password(cls, value: str) -> str:
        return check_password_length(value)


class LoginRequest(BaseModel):
    username: str = Field(..., min_length=1, description="Username or email address.")
    password: str = Field(..., min_length=1)


class LoginResponse(BaseModel):
    token: str
    token_type: str = "bearer"
    user: UserRead


class UserRoleUpdate(BaseModel):
    role: UserRole


class UserStatusUpdate(BaseModel):
    is_active: bool


class DomainRead(ORMSchema):
    id: int
    domain_name: str
    domain_code: str
    description: Optional[str] = None
    maturity_levels: str


class TagBase(BaseModel):
    name: str = Field(..., min_length=1, max_length=100)
    color: str = Field("#3B82F6", pattern=r"^#[0-9A-Fa-f]{6}$")


class TagCreate(TagBase):
    pass


class TagRead(TagBase, ORMSchema):
    id: int
    created_at: datetime


class SectionRead(ORMSchema):
    id: int
    document_id: int
    section_text: str
    section_start: Optional[int] = None
    section_end: Optional[int] = None
    tags: list[str] = Field(default_factory=list)


class DocumentMetadataUpdate(BaseModel):
    source: Optional[str] = Field(None, max_length=255)
    publication_date: Optional[str] = Field(None, max_length=50)
    relevant_agency: Optional[str] = Field(None, max_length=255)


class DocumentRead(ORMSchema):
    id: int
    filename: str
    original_name: str
    file_type: str
    file_size: Optional[int] = None
    source: Optional[str] = None
    publication_date: Optional[str] = None
    relevant_agency: Optional[str] = None
    uploaded_by: Optional[int] = None
    uploaded_by_name: Optional[str] = None
    created_at: datetime


class DocumentListItem(DocumentRead):
    sections_count: int = 0
    mappings_count: int = 0


class DocumentDetail(DocumentRead):
    sections: list[SectionRead] = Field(default_factory=list)


class DocumentUploadResponse(DocumentRead):
    sections_count: int


class MappingCreate(BaseModel):
    document_id: int
    section_id: Optional[int] = None
    domain_id: int
    maturity_level: int = Field(..., ge=1, le=3)
    alignment_status: AlignmentStatus
    notes: Optional[str] = None


class MappingUpdate(BaseModel):
    domain_id: Optional[int] = None
    maturity_level: Optional[int] = Field(None, ge=1, le=3)
    alignment_status: Optional[AlignmentStatus] = None
    notes: Optional[str] = None


class MappingRead(ORMSchema):
    id: int
    document_id: int
    section_id: Optional[int] = None
    domain_id: int
    maturity_level: int
    alignment_status: AlignmentStatus
    notes: Optional[str] = None
    mapped_by: Optional[int] = None
    created_at: datetime
    document_name: Optional[str] = None
    domain_name: Optional[str] = None
    domain_code: Optional[str] = None
    mapped_by_name: Optional[str] = None
    section_text: Optional[str] = None


class StakeholderInsightCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    stakeholder_name: Optional[str] = Field(None, max_length=200)
    insight_type: str = Field("interview", max_length=50)
    related_mapping_id: Optional[int] = None


class StakeholderInsightRead(StakeholderInsightCreate, ORMSchema):
    id: int
    created_by: Optional[int] = None
    created_at: datetime
