"""Models module.

This module belongs to `prd_stream` in the prd-stream codebase.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from prd_stream.errors import UnknownDocumentKindError


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def new_section_id() -> str:
    return f"section-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class DocumentKind:
    kind: str
    open_marker: str
    close_marker: str
    default_title: str


DOCUMENT_KINDS: Dict[str, DocumentKind] = {
    "prd": DocumentKind(
        kind="prd",
        open_marker="<prd_document>",
        close_marker="</prd_document>",
        default_title="Untitled PRD",
    ),
    "ticket": DocumentKind(
        kind="ticket",
        open_marker="<ticket_document>",
        close_marker="</ticket_document>",
        default_title="Untitled Ticket",
    ),
}


def get_document_kind(kind: str) -> DocumentKind:
    key = str(kind or "").strip().lower()
    spec = DOCUMENT_KINDS.get(key)
    if spec is None:
        raise UnknownDocumentKindError(f"unknown document kind: {kind!r}")
    return spec


class Section(BaseModel):
    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=new_section_id)
    title: str
    content: str = ""

    @field_validator("title")
    @classmethod
    def _strip_title(cls, v: str) -> str:
        return (v or "").strip()

    def title_key(self) -> str:
        return self.title.lower()


class Document(BaseModel):
    """Persisted document-of-record for one storage slot.

    `description` and every `Section.content` hold canonical markdown; the
    editor markup is derived from it on demand.
    """

    model_config = ConfigDict(validate_assignment=True)

    title: str = "Untitled PRD"
    description: str = ""
    sections: List[Section] = Field(default_factory=list)
    last_updated: datetime = Field(default_factory=utc_now)

    def content_key(self) -> Dict[str, Any]:
        return self.model_dump(exclude={"last_updated"})

    def same_content(self, other: Optional["Document"]) -> bool:
        if other is None:
            return False
        return self.content_key() == other.content_key()

    def section_by_id(self, section_id: str) -> Optional[Section]:
        for sec in self.sections:
            if sec.id == section_id:
                return sec
        return None

    def section_by_title(self, title: str) -> Optional[Section]:
        key = (title or "").strip().lower()
        for sec in self.sections:
            if sec.title_key() == key:
                return sec
        return None


@dataclass
class CandidateSection:
    title: str
    content: str = ""


@dataclass
class CandidateDocument:
    title: str | None = None
    description: str = ""
    sections: list[CandidateSection] = field(default_factory=list)
    trailing_open: bool = False

    def is_degenerate(self) -> bool:
        return not self.title and not self.sections and not self.description.strip()

    def has_heading_structure(self) -> bool:
        return bool(self.title) or bool(self.sections)


@dataclass(frozen=True)
class ExtractedBlock:
    markdown: str
    closed: bool


def to_dict(doc: Document) -> dict:
    return doc.model_dump(mode="json")


def from_dict(data: dict | None) -> Optional[Document]:
    if not isinstance(data, dict):
        return None
    return Document.model_validate(data)
