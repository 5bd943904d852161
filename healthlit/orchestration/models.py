"""Data models for a pipeline run."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path


@dataclass
class TopicResult:
    """Outcome of one topic's pass through the pipeline."""

    topic: str
    pubmed_count: int = 0
    scholar_count: int = 0
    duplicates_removed: int = 0
    exported_count: int = 0
    file_path: Path | None = None
    location: str | None = None  # Upload URI
    pubmed_error: str | None = None
    error: str | None = None  # Export/upload failure
    started_at: datetime = field(default_factory=datetime.now)

    @property
    def succeeded(self) -> bool:
        """Whether the topic's records reached export (and upload, if configured)."""
        return self.error is None and self.file_path is not None


@dataclass
class RunSummary:
    """All topic results of a run, sharing one timestamp."""

    timestamp: str
    results: list[TopicResult] = field(default_factory=list)

    @property
    def failed_topics(self) -> list[str]:
        return [r.topic for r in self.results if not r.succeeded]

    @property
    def total_records(self) -> int:
        return sum(r.exported_count for r in self.results)
