"""PubMed E-utilities integration.

Usage:
    from healthlit.pubmed import PubMedClient, PubMedFetcher

    async with PubMedClient() as client:
        records = await PubMedFetcher(client).fetch("Telehealth healthcare")
"""

from .client import PubMedClient
from .fetcher import PubMedFetcher
from .parser import parse_article, parse_authors, parse_id_list

__all__ = [
    "PubMedClient",
    "PubMedFetcher",
    "parse_article",
    "parse_authors",
    "parse_id_list",
]
