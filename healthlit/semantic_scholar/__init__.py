"""Semantic Scholar API integration."""

from .client import SemanticScholarClient, OFFSET_CEILING
from .fetcher import ScholarFetcher, DEFAULT_FILTERS, SAFE_OFFSET_LIMIT
from .models import Author, OpenAccessPdf, Paper, SearchFilters, SearchResponse

__all__ = [
    # Models
    "Author",
    "OpenAccessPdf",
    "Paper",
    "SearchFilters",
    "SearchResponse",
    # Client
    "SemanticScholarClient",
    "OFFSET_CEILING",
    # Fetcher
    "ScholarFetcher",
    "DEFAULT_FILTERS",
    "SAFE_OFFSET_LIMIT",
]
