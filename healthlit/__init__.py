"""Healthcare literature ingestion from PubMed and Semantic Scholar."""

from .deduplication import deduplicate_records, merge_sources
from .records import (
    HEALTHCARE_TOPICS,
    PubMedRecord,
    ScholarRecord,
    SearchCursor,
    SourceKind,
)

__all__ = [
    "HEALTHCARE_TOPICS",
    "PubMedRecord",
    "ScholarRecord",
    "SearchCursor",
    "SourceKind",
    "deduplicate_records",
    "merge_sources",
]
