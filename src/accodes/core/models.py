"""Page, document and annotation models shared by the ingest pipeline."""

import json
from datetime import datetime
from typing import List, Dict, Any, Optional, Tuple, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator

ContentType = Literal["requirement", "exception", "definition", "normal"]

CONTENT_TYPE_NORMAL: ContentType = "normal"


class RawPage(BaseModel):
    """One page of raw text as produced by the extractor."""
    page_number: int = Field(gt=0)
    text: str = ""


class DocumentMeta(BaseModel):
    """Document-level metadata delivered alongside the first page."""
    file_name: str
    total_pages: int = Field(ge=0)


class DocumentRecord(BaseModel):
    """Persisted document row."""
    model_config = ConfigDict(frozen=True)

    id: int
    file_name: str
    total_pages: int
    processed_at: datetime


class PageAnnotation(BaseModel):
    """Structured facts derived from a single page."""
    model_config = ConfigDict(frozen=True)

    page_number: int = Field(gt=0)
    raw_text: str
    section_headings: Tuple[str, ...] = ()
    section_number: Optional[str] = None
    content_types: Tuple[ContentType, ...] = (CONTENT_TYPE_NORMAL,)
    keywords: Tuple[str, ...] = ()
    keyword_count: int = Field(default=0, ge=0)
    has_figure: bool = False
    mandatory_language_count: int = Field(default=0, ge=0)
    exception_language_count: int = Field(default=0, ge=0)

    @model_validator(mode="after")
    def _check_invariants(self) -> "PageAnnotation":
        if self.keyword_count != len(self.keywords):
            raise ValueError(
                f"keyword_count={self.keyword_count} does not match {len(self.keywords)} keywords"
            )
        if len(set(self.keywords)) != len(self.keywords):
            raise ValueError("keywords must be distinct")
        if len(set(self.section_headings)) != len(self.section_headings):
            raise ValueError("section_headings must be distinct")
        if not self.content_types:
            raise ValueError("content_types must not be empty")
        if len(set(self.content_types)) != len(self.content_types):
            raise ValueError("content_types must be distinct")
        if CONTENT_TYPE_NORMAL in self.content_types and len(self.content_types) > 1:
            raise ValueError("'normal' cannot be combined with other content types")
        return self

    def to_row(self, document_id: int) -> Dict[str, Any]:
        """Serialize to the persisted page_content row shape."""
        return {
            "document_id": document_id,
            "page_number": self.page_number,
            "raw_text": self.raw_text,
            "section_headings": json.dumps(list(self.section_headings)),
            "section_number": self.section_number,
            "content_type": json.dumps(list(self.content_types)),
            "keyword_count": self.keyword_count,
            "keywords": json.dumps(list(self.keywords)),
            "has_figure": self.has_figure,
            "mandatory_language_count": self.mandatory_language_count,
            "exception_language_count": self.exception_language_count,
        }


PAGE_ROW_COLUMNS: List[str] = [
    "document_id",
    "page_number",
    "raw_text",
    "section_headings",
    "section_number",
    "content_type",
    "keyword_count",
    "keywords",
    "has_figure",
    "mandatory_language_count",
    "exception_language_count",
]


class IngestResult(BaseModel):
    """Summary of a single document ingestion run."""
    document_id: Optional[int] = None
    file_name: str
    pages_loaded: int = 0
    batches_committed: int = 0
    elapsed_ms: float = 0.0
