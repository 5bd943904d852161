"""Cross-source record deduplication."""

import logging
from typing import Iterable, Sequence

from .records import NormalizedRecord

logger = logging.getLogger(__name__)


def record_key(record: NormalizedRecord) -> str:
    """Provider-qualified identity, e.g. "pubmed-111" or "semantic-A1"."""
    return record.identity


def deduplicate_records(records: Iterable[NormalizedRecord]) -> list[NormalizedRecord]:
    """
    Drop records whose identity has already been seen.

    Keeps the first occurrence of each identity and preserves input order.
    Records from different providers never collide, even when their native
    ids are equal, because the identity carries the provider prefix.
    """
    seen: set[str] = set()
    unique: list[NormalizedRecord] = []

    for record in records:
        key = record_key(record)
        if key in seen:
            continue
        seen.add(key)
        unique.append(record)

    return unique


def merge_sources(*sources: Sequence[NormalizedRecord]) -> tuple[list[NormalizedRecord], int]:
    """Concatenate record lists in order, deduplicate, and report how many were removed."""
    combined = [record for source in sources for record in source]
    unique = deduplicate_records(combined)
    removed = len(combined) - len(unique)

    logger.info(f"Deduplicated {len(combined)} records to {len(unique)}")
    return unique, removed
