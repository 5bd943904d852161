"""Normalized record model shared by both providers."""

from enum import Enum
from typing import Annotated, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator

# Healthcare topics searched on every run, in processing order
HEALTHCARE_TOPICS: tuple[str, ...] = (
    "Utilization Review healthcare",
    "Care Management healthcare",
    "Care Coordination healthcare",
    "Practice Management healthcare",
    "Telehealth healthcare",
    "Population Health Management",
    "Value Based Care",
    "Healthcare Quality Improvement",
    "Clinical Decision Support",
    "Patient Engagement healthcare",
    "Healthcare Analytics",
    "Remote Patient Monitoring",
    "Healthcare Interoperability",
    "Preventive Care Management",
    "Chronic Disease Management",
)


class SourceKind(str, Enum):
    """Provider that produced a record."""

    PUBMED = "pubmed"
    SCHOLAR = "semantic"


SOURCE_LABELS = {
    SourceKind.PUBMED: "PubMed",
    SourceKind.SCHOLAR: "Semantic Scholar",
}


class RecordBase(BaseModel):
    """Fields common to every normalized record."""

    model_config = ConfigDict(frozen=True)

    native_id: str
    title: str
    abstract: str = ""
    authors: list[str] = Field(default_factory=list)
    publication_date: str = ""
    venue: str = ""

    @field_validator("native_id", "title")
    @classmethod
    def not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    @property
    def identity(self) -> str:
        """Provider-qualified key used for deduplication."""
        return f"{self.source.value}-{self.native_id}"


class PubMedRecord(RecordBase):
    """Article fetched from PubMed."""

    source: Literal[SourceKind.PUBMED] = SourceKind.PUBMED
    doi: str | None = None


class ScholarRecord(RecordBase):
    """Paper fetched from Semantic Scholar."""

    source: Literal[SourceKind.SCHOLAR] = SourceKind.SCHOLAR
    citation_count: int | None = None
    open_access_pdf_url: str | None = None
    fields_of_study: list[str] | None = None


NormalizedRecord = Annotated[
    Union[PubMedRecord, ScholarRecord], Field(discriminator="source")
]


class SearchCursor(BaseModel):
    """Offset/limit pair tracking Semantic Scholar pagination."""

    offset: int = Field(0, ge=0)
    limit: int = Field(100, ge=1, le=100)
