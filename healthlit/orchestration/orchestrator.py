"""Topic orchestrator driving both providers through dedup, export and upload."""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Sequence

from ..deduplication import merge_sources
from ..protocols import ObjectStorage, PubMedSource, RecordExporter, ScholarSource
from ..records import HEALTHCARE_TOPICS, PubMedRecord, ScholarRecord
from .models import RunSummary, TopicResult

logger = logging.getLogger(__name__)


def run_timestamp(now: datetime | None = None) -> str:
    """UTC ISO-8601 timestamp with ':' and '.' replaced by '-'.

    Example: "2024-05-01T12-30-45-123Z"
    """
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%dT%H-%M-%S-") + f"{now.microsecond // 1000:03d}Z"


def topic_filename(topic: str, timestamp: str) -> str:
    """Export file name for a topic: whitespace runs become underscores."""
    stem = re.sub(r"\s+", "_", topic.strip())
    return f"{stem}_{timestamp}.csv"


@dataclass
class RunContext:
    """
    Everything shared across one run: the timestamp, the provider fetchers
    (and the HTTP clients they own), the exporter and the storage.

    Entering the context opens every client; exiting closes them.
    """

    pubmed: PubMedSource
    scholar: ScholarSource
    exporter: RecordExporter
    storage: ObjectStorage | None = None
    timestamp: str = field(default_factory=run_timestamp)
    clients: list[Any] = field(default_factory=list)
    cleanup_delay: float = 1.0

    async def __aenter__(self) -> "RunContext":
        for client in self.clients:
            await client.__aenter__()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        for client in reversed(self.clients):
            await client.__aexit__(exc_type, exc_val, exc_tb)


class TopicOrchestrator:
    """
    Runs every topic through fetch, dedup, export and upload, one at a time.

    A failure in one provider or in export/upload is logged and confined to
    its topic; the run always moves on to the next topic.

    Usage:
        async with create_run_context(profile) as context:
            summary = await TopicOrchestrator(context).run()
    """

    def __init__(self, context: RunContext, topics: Sequence[str] = HEALTHCARE_TOPICS):
        self.context = context
        self.topics = list(topics)
        self._cleanup_tasks: set[asyncio.Task] = set()

    async def run(self) -> RunSummary:
        """Process all topics in order and return the run summary."""
        summary = RunSummary(timestamp=self.context.timestamp)
        logger.info(f"Starting run {summary.timestamp} over {len(self.topics)} topics")

        try:
            for topic in self.topics:
                summary.results.append(await self.process_topic(topic))
        finally:
            await self._drain_cleanups()

        failed = summary.failed_topics
        logger.info(
            f"Run complete: {summary.total_records} records across "
            f"{len(summary.results) - len(failed)}/{len(summary.results)} topics"
        )
        if failed:
            logger.warning(f"Topics with errors: {', '.join(failed)}")

        return summary

    async def process_topic(self, topic: str) -> TopicResult:
        """Fetch, deduplicate and hand off one topic."""
        logger.info(f"Searching for topic: {topic}")
        result = TopicResult(topic=topic)

        pubmed_records: list[PubMedRecord] = []
        try:
            pubmed_records = await self.context.pubmed.fetch(topic)
        except Exception as e:
            logger.error(f"Error searching PubMed for topic {topic}: {e}")
            result.pubmed_error = str(e)
        logger.info(f"Found {len(pubmed_records)} PubMed articles for {topic}")

        scholar_records: list[ScholarRecord] = []
        try:
            scholar_records = await self.context.scholar.fetch(topic)
        except Exception as e:
            logger.error(f"Error searching Semantic Scholar for topic {topic}: {e}")
        logger.info(f"Found {len(scholar_records)} Semantic Scholar papers for {topic}")

        unique, removed = merge_sources(pubmed_records, scholar_records)
        logger.info(f"Removed {removed} duplicate articles")

        result.pubmed_count = len(pubmed_records)
        result.scholar_count = len(scholar_records)
        result.duplicates_removed = removed
        result.exported_count = len(unique)

        filename = topic_filename(topic, self.context.timestamp)
        try:
            result.file_path = self.context.exporter.export(unique, filename)
            if self.context.storage is not None:
                result.location = await self.context.storage.upload(result.file_path)
                logger.info(f"Results for {topic} uploaded to: {result.location}")
                self._schedule_cleanup(result.file_path)
            else:
                logger.info(f"Results for {topic} saved to: {result.file_path}")
        except Exception as e:
            logger.error(f"Error processing results for {topic}: {e}")
            result.error = str(e)

        return result

    def _schedule_cleanup(self, path: Path) -> None:
        task = asyncio.create_task(self._cleanup_later(path))
        self._cleanup_tasks.add(task)
        task.add_done_callback(self._cleanup_tasks.discard)

    async def _cleanup_later(self, path: Path) -> None:
        """Delete the uploaded local file after a short delay."""
        if self.context.cleanup_delay > 0:
            await asyncio.sleep(self.context.cleanup_delay)
        try:
            path.unlink()
            logger.debug(f"Deleted local file {path}")
        except OSError as e:
            logger.error(f"Error deleting file {path}: {e}")

    async def _drain_cleanups(self) -> None:
        if self._cleanup_tasks:
            await asyncio.gather(*self._cleanup_tasks)
