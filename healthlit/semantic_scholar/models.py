"""Pydantic models for Semantic Scholar API responses."""

from typing import Any

from pydantic import BaseModel, Field, field_validator

from ..records import ScholarRecord


class Author(BaseModel):
    """Author information."""

    author_id: str | None = Field(None, alias="authorId")
    name: str | None = None

    model_config = {"populate_by_name": True}


class OpenAccessPdf(BaseModel):
    """Open access PDF information."""

    url: str | None = None
    status: str | None = None


class Paper(BaseModel):
    """Paper as returned by /paper/search, optionally merged with /paper/{id}."""

    paper_id: str | None = Field(None, alias="paperId")
    title: str | None = None
    abstract: str | None = None
    authors: list[Author] = Field(default_factory=list)
    year: int | None = None
    venue: str | None = None
    url: str | None = None
    is_open_access: bool | None = Field(None, alias="isOpenAccess")
    open_access_pdf: OpenAccessPdf | None = Field(None, alias="openAccessPdf")
    publication_venue: dict[str, Any] | None = Field(None, alias="publicationVenue")
    citation_count: int | None = Field(None, alias="citationCount")
    influential_citation_count: int | None = Field(None, alias="influentialCitationCount")
    reference_count: int | None = Field(None, alias="referenceCount")
    fields_of_study: list[str] | None = Field(None, alias="fieldsOfStudy")
    publication_types: list[str] | None = Field(None, alias="publicationTypes")
    # Detail-only fields
    references: list[dict[str, Any]] | None = None
    citations: list[dict[str, Any]] | None = None
    embedding: dict[str, Any] | None = None

    model_config = {"populate_by_name": True}

    @property
    def pdf_url(self) -> str | None:
        if self.open_access_pdf and self.open_access_pdf.url:
            return self.open_access_pdf.url
        return None

    def merged_with(self, details: dict[str, Any]) -> "Paper":
        """Return a copy with fields from a detail response overwriting ours."""
        data = self.model_dump(by_alias=True, exclude_unset=True)
        data.update(details)
        return Paper.model_validate(data)

    def to_record(self) -> ScholarRecord | None:
        """Normalize to a ScholarRecord, or None without an id or title."""
        if not self.paper_id or not self.paper_id.strip():
            return None
        if not self.title or not self.title.strip():
            return None

        return ScholarRecord(
            native_id=self.paper_id,
            title=self.title,
            abstract=self.abstract or "",
            authors=[a.name for a in self.authors if a.name],
            publication_date=str(self.year) if self.year else "",
            venue=self.venue or "",
            citation_count=self.citation_count,
            open_access_pdf_url=self.pdf_url,
            fields_of_study=self.fields_of_study,
        )


class SearchFilters(BaseModel):
    """Filters for paper search."""

    year: str | None = None
    fields_of_study: list[str] | None = None
    min_citation_count: int | None = None
    publication_types: list[str] | None = None

    def to_query_params(self) -> dict[str, str]:
        """Convert filters to API query parameters."""
        params: dict[str, str] = {}

        if self.year:
            params["year"] = self.year

        if self.fields_of_study:
            params["fieldsOfStudy"] = ",".join(self.fields_of_study)

        if self.min_citation_count is not None:
            params["minCitationCount"] = str(self.min_citation_count)

        if self.publication_types:
            params["publicationTypes"] = ",".join(self.publication_types)

        return params


class SearchResponse(BaseModel):
    """Envelope of a /paper/search response.

    Entries in `data` stay raw so each paper can be validated on its own.
    """

    total: int = 0
    offset: int = 0
    next: int | None = None
    data: list[Any] = Field(default_factory=list)

    @field_validator("data", mode="before")
    @classmethod
    def null_data_to_empty(cls, value):
        return value or []
