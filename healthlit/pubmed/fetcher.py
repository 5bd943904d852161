"""Topic-level PubMed fetch: search, batch, parse."""

import asyncio
import logging

from ..records import PubMedRecord
from .client import PubMedClient
from .parser import iter_articles, parse_article, parse_document

logger = logging.getLogger(__name__)


class PubMedFetcher:
    """
    Turns a topic into PubMedRecords.

    IDs are fetched in small batches (E-utilities URL length limit) with a
    fixed pause between batches.

    Usage:
        async with PubMedClient() as client:
            records = await PubMedFetcher(client).fetch("Telehealth healthcare")
    """

    def __init__(
        self,
        client: PubMedClient,
        batch_size: int = 20,
        batch_delay: float = 1.0,
        max_results: int = 500,
        min_year: int = 2018,
        max_year: int = 2023,
    ):
        self.client = client
        self.batch_size = batch_size
        self.batch_delay = batch_delay
        self.max_results = max_results
        self.min_year = min_year
        self.max_year = max_year

    async def fetch(self, topic: str) -> list[PubMedRecord]:
        """Return every PubMed article matching the topic."""
        pmids = await self.client.search(
            topic,
            retmax=self.max_results,
            mindate=str(self.min_year),
            maxdate=str(self.max_year),
        )
        if not pmids:
            return []

        records: list[PubMedRecord] = []
        total_batches = (len(pmids) + self.batch_size - 1) // self.batch_size

        for start in range(0, len(pmids), self.batch_size):
            batch = pmids[start : start + self.batch_size]
            batch_num = start // self.batch_size + 1

            if start > 0 and self.batch_delay > 0:
                await asyncio.sleep(self.batch_delay)

            try:
                xml = await self.client.fetch(batch)
                root = parse_document(xml)
            except Exception as e:
                logger.error(
                    f"Error fetching batch {batch_num}/{total_batches} "
                    f"({start}-{start + len(batch)}) for '{topic}': {e}"
                )
                continue

            batch_records = self._parse_batch(root, topic)
            logger.debug(f"Batch {batch_num}/{total_batches}: {len(batch_records)} articles")
            records.extend(batch_records)

        return records

    def _parse_batch(self, root, topic: str) -> list[PubMedRecord]:
        """Parse each article independently; a bad article is logged and skipped."""
        parsed: list[PubMedRecord] = []

        for position, article in enumerate(iter_articles(root), start=1):
            try:
                record = parse_article(article)
            except Exception as e:
                logger.error(f"Error parsing article {position} for '{topic}': {e}")
                continue

            if record is not None:
                parsed.append(record)

        return parsed
