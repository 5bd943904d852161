"""Protocol definitions for the pipeline's collaborators."""

from pathlib import Path
from typing import Protocol, Sequence, runtime_checkable

from .records import NormalizedRecord, PubMedRecord, ScholarRecord


@runtime_checkable
class PubMedSource(Protocol):
    """Anything that can turn a topic into PubMed records."""

    async def fetch(self, topic: str) -> list[PubMedRecord]:
        ...


@runtime_checkable
class ScholarSource(Protocol):
    """Anything that can turn a topic into Semantic Scholar records."""

    async def fetch(self, topic: str) -> list[ScholarRecord]:
        ...


@runtime_checkable
class RecordExporter(Protocol):
    """Writes a topic's record set to a local file."""

    def export(self, records: Sequence[NormalizedRecord], filename: str) -> Path:
        """
        Write records to `filename`.

        Args:
            records: Deduplicated records, in output order
            filename: Target file name (no directory)

        Returns:
            Path of the written file
        """
        ...


@runtime_checkable
class ObjectStorage(Protocol):
    """Uploads exported files and returns where they landed."""

    async def upload(self, path: Path) -> str:
        """
        Upload a local file.

        Args:
            path: Local file to upload

        Returns:
            Location URI of the stored object
        """
        ...
