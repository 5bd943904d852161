"""Topic-level Semantic Scholar fetch with cursor pagination."""

import asyncio
import logging

import httpx
from pydantic import ValidationError

from ..records import ScholarRecord, SearchCursor
from .client import OFFSET_CEILING, SemanticScholarClient
from .models import Paper, SearchFilters, SearchResponse

logger = logging.getLogger(__name__)

# Pages are sized to end at or below this offset, leaving margin under OFFSET_CEILING
SAFE_OFFSET_LIMIT = 899

DEFAULT_FILTERS = SearchFilters(
    year="2018-2023",
    publication_types=["Review", "JournalArticle"],
    fields_of_study=["Medicine"],
    min_citation_count=1,
)


class ScholarFetcher:
    """
    Turns a topic into ScholarRecords, page by page.

    Pagination stops when the server has no next page, returns an empty page,
    answers HTTP 400 (provider limit), fails in any other way, or when the
    next request would cross the provider's offset ceiling. Whatever was
    accumulated before the stop is returned.
    """

    def __init__(
        self,
        client: SemanticScholarClient,
        filters: SearchFilters | None = None,
        page_size: int = 100,
        page_delay: float = 2.0,
        detail_delay: float = 1.0,
    ):
        self.client = client
        self.filters = filters or DEFAULT_FILTERS
        self.page_size = page_size
        self.page_delay = page_delay
        self.detail_delay = detail_delay

    def next_cursor(self, offset: int) -> SearchCursor | None:
        """Cursor for a page starting at `offset`, or None if the ceiling is reached."""
        if offset + self.page_size >= OFFSET_CEILING:
            return None

        limit = min(self.page_size, SAFE_OFFSET_LIMIT - offset)
        if limit < 1:
            return None

        return SearchCursor(offset=offset, limit=limit)

    async def fetch(self, topic: str) -> list[ScholarRecord]:
        """Return every Semantic Scholar paper matching the topic."""
        papers = await self.fetch_papers(topic)

        records: list[ScholarRecord] = []
        for paper in papers:
            try:
                record = paper.to_record()
            except ValidationError as e:
                logger.error(f"Error normalizing paper {paper.paper_id!r} for '{topic}': {e}")
                continue
            if record is None:
                logger.debug(f"Dropping paper without id or title: {paper.paper_id}")
                continue
            records.append(record)

        return records

    async def fetch_papers(self, topic: str) -> list[Paper]:
        """Paginate /paper/search for a topic, enriching each paper with details."""
        filter_params = self.filters.to_query_params()
        all_papers: list[Paper] = []
        offset = 0

        while True:
            cursor = self.next_cursor(offset)
            if cursor is None:
                logger.info(
                    f"Reached Semantic Scholar API limit for '{topic}' "
                    f"(offset + limit must be < {OFFSET_CEILING})"
                )
                break

            try:
                response_data = await self.client.search_papers(
                    query=topic,
                    offset=cursor.offset,
                    limit=cursor.limit,
                    **filter_params,
                )
                response = SearchResponse.model_validate(response_data)
            except httpx.HTTPStatusError as e:
                if e.response.status_code == 400:
                    logger.info(f"Reached Semantic Scholar API limit for '{topic}' (HTTP 400)")
                else:
                    logger.error(f"Error in Semantic Scholar search for '{topic}': {e}")
                break
            except Exception as e:
                logger.error(f"Error in Semantic Scholar search for '{topic}': {e}")
                break

            if not response.data:
                break

            page_papers = self._parse_page(response.data, topic)
            for paper in page_papers:
                all_papers.append(await self._with_details(paper))

            logger.info(
                f"Found {len(page_papers)} more Semantic Scholar papers for '{topic}' "
                f"(total: {len(all_papers)})"
            )

            if response.next is None:
                break

            if response.next <= cursor.offset:
                logger.warning(
                    f"Semantic Scholar returned non-advancing next offset {response.next}; stopping"
                )
                break

            offset = response.next
            if self.page_delay > 0:
                await asyncio.sleep(self.page_delay)

        return all_papers

    def _parse_page(self, entries: list, topic: str) -> list[Paper]:
        """Validate each page entry on its own; a malformed entry is logged and skipped."""
        papers: list[Paper] = []

        for position, entry in enumerate(entries, start=1):
            try:
                papers.append(Paper.model_validate(entry))
            except ValidationError as e:
                logger.error(f"Error parsing Semantic Scholar entry {position} for '{topic}': {e}")

        return papers

    async def _with_details(self, paper: Paper) -> Paper:
        """Merge the detail response into a page entry; keep page fields on failure."""
        if not paper.paper_id or not paper.paper_id.strip():
            return paper

        try:
            details = await self.client.get_paper(paper.paper_id)
            paper = paper.merged_with(details)
        except Exception as e:
            logger.error(f"Error getting details for paper {paper.paper_id}: {e}")
            return paper

        if paper.pdf_url:
            # Pacing reserved for full-text retrieval, which is not performed
            logger.info(f"Open access PDF available for paper {paper.paper_id}")
            if self.detail_delay > 0:
                await asyncio.sleep(self.detail_delay)

        return paper
