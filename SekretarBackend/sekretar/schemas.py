"""Data models shared by services and routes.

Holds Pydantic models for archive items, user accounts, compliance results,
export packages and generation requests. Persisted and wire shapes use the
camelCase field names of the stored layout (``fileName``, ``riskLevel`` ...),
while Python code uses snake_case attributes.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class ArchiveStatus(str, Enum):
    DRAFT = "DRAFT"
    SENT = "SENT"


class RiskLevel(str, Enum):
    SAFE = "SAFE"
    WARNING = "WARNING"
    CRITICAL = "CRITICAL"


class Severity(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class Role(str, Enum):
    ADMIN = "ADMIN"
    USER = "USER"


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class SourceFile(BaseModel):
    """An uploaded incoming document (scan, photo or PDF)."""

    file_name: str
    mime_type: str
    data: bytes

    @property
    def size(self) -> int:
        return len(self.data)


class GenerationRequest(BaseModel):
    source_bytes: str  # base64
    mime_type: str
    instruction_text: str


class ArchiveItem(_CamelModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    id: str
    timestamp: int  # epoch millis
    file_name: str
    file_type: str
    instruction: str
    response_text: str
    status: ArchiveStatus = ArchiveStatus.DRAFT


class LegalIssue(_CamelModel):
    description: str
    severity: Severity
    citation: Optional[str] = None


class LegalAnalysisResult(_CamelModel):
    """Outcome of one compliance review; wire layout is fixed by the analysis prompt."""

    has_risks: bool
    risk_level: RiskLevel
    issues: List[LegalIssue]
    general_comment: str
    revised_text: str


class UserProfile(BaseModel):
    """A user account without its credential; the only shape returned by auth."""

    id: str
    username: str
    name: str
    email: str
    position: str
    role: Role


class UserAccount(UserProfile):
    password: str  # bcrypt hash

    def to_profile(self) -> UserProfile:
        return UserProfile(**self.model_dump(exclude={"password"}))


class NewUserAccount(BaseModel):
    username: str
    password: str
    name: str
    email: str = "no-email@gov.ru"
    position: str = "Сотрудник"
    role: Role = Role.USER

    @field_validator("username", "password", "name")
    @classmethod
    def _not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("must not be blank")
        return v

    @field_validator("email", "position", mode="before")
    @classmethod
    def _blank_to_default(cls, v, info):
        if v is None or (isinstance(v, str) and not v.strip()):
            return cls.model_fields[info.field_name].default
        return v


class ExportPackage(BaseModel):
    filename: str
    content: str
    mime_type: str = Field(default="text/plain")
