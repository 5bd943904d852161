"""Async HTTP client for the Semantic Scholar Graph API."""

import logging
from typing import Any

import httpx

from ..retrying_client import RateLimitedClient, RetryPolicy
from ..settings import (
    SEMANTIC_SCHOLAR_API_KEY,
    SEMANTIC_SCHOLAR_BASE_URL,
    SEMANTIC_SCHOLAR_REQUESTS_PER_SECOND,
    SEMANTIC_SCHOLAR_REQUESTS_PER_SECOND_NO_KEY,
)

logger = logging.getLogger(__name__)

# offset + limit must stay below this on /paper/search
OFFSET_CEILING = 999

SEARCH_FIELDS = [
    "paperId",
    "title",
    "abstract",
    "year",
    "authors",
    "url",
    "venue",
    "openAccessPdf",
    "isOpenAccess",
    "publicationVenue",
    "citationCount",
    "fieldsOfStudy",
]

DETAIL_FIELDS = [
    "title",
    "abstract",
    "year",
    "authors",
    "url",
    "venue",
    "openAccessPdf",
    "isOpenAccess",
    "publicationVenue",
    "references",
    "citations",
    "embedding",
]


class SemanticScholarClient(RateLimitedClient):
    """Async client for Semantic Scholar API."""

    def __init__(
        self,
        api_key: str | None = None,
        base_url: str = SEMANTIC_SCHOLAR_BASE_URL,
        requests_per_second: float | None = None,
        retry_policy: RetryPolicy | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.api_key = api_key or SEMANTIC_SCHOLAR_API_KEY

        # Build headers
        headers: dict[str, str] = {"Content-Type": "application/json"}
        if self.api_key:
            headers["x-api-key"] = self.api_key
            logger.info("Semantic Scholar client initialized with API key")
        else:
            logger.warning("No API key provided - rate limiting will be strict")

        # Set rate limit based on whether we have an API key
        if requests_per_second is None:
            requests_per_second = (
                SEMANTIC_SCHOLAR_REQUESTS_PER_SECOND
                if self.api_key
                else SEMANTIC_SCHOLAR_REQUESTS_PER_SECOND_NO_KEY
            )

        super().__init__(
            base_url=base_url,
            name="Semantic Scholar",
            requests_per_second=requests_per_second,
            retry_policy=retry_policy,
            headers=headers,
            transport=transport,
        )

    async def search_papers(
        self,
        query: str,
        offset: int = 0,
        limit: int = 100,
        fields: list[str] | None = None,
        **filter_params: str,
    ) -> dict[str, Any]:
        """Search for papers using the /paper/search endpoint."""
        params: dict[str, Any] = {
            "query": query,
            "fields": ",".join(fields or SEARCH_FIELDS),
            "offset": offset,
            "limit": min(limit, 100, OFFSET_CEILING - offset),
        }
        params.update(filter_params)

        logger.info(f"Searching papers: query='{query}', limit={params['limit']}, offset={offset}")
        logger.debug(f"Filter params: {filter_params}")

        response = await self.get("/paper/search", "Semantic Scholar search", params=params)
        data = response.json()

        total = data.get("total", 0)
        found = len(data.get("data") or [])
        logger.info(f"Search returned {found} papers (total available: {total})")

        return data

    async def get_paper(
        self,
        paper_id: str,
        fields: list[str] | None = None,
    ) -> dict[str, Any]:
        """Fetch a single paper by ID using the /paper/{paper_id} endpoint."""
        params = {"fields": ",".join(fields or DETAIL_FIELDS)}

        response = await self.get(
            f"/paper/{paper_id}",
            f"Semantic Scholar details {paper_id}",
            params=params,
        )
        return response.json()
