"""Factory functions to build pipeline components from configuration."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import TYPE_CHECKING

import httpx

from ..export import CsvExporter
from ..orchestration import RunContext
from ..pubmed import PubMedClient, PubMedFetcher
from ..retrying_client import RetryPolicy
from ..semantic_scholar import ScholarFetcher, SearchFilters, SemanticScholarClient
from ..storage import S3Storage

if TYPE_CHECKING:
    from .loader import (
        ProfileConfig,
        PubMedConfig,
        RetryConfig,
        SemanticScholarConfig,
        StorageConfig,
    )

logger = logging.getLogger(__name__)


def create_retry_policy(config: RetryConfig) -> RetryPolicy:
    """Create the retry policy shared by both provider clients."""
    return RetryPolicy(
        max_attempts=config.max_attempts,
        base_delay=config.base_delay,
        max_delay=config.max_delay,
        jitter=config.jitter,
    )


def create_pubmed_fetcher(
    config: PubMedConfig,
    retry_policy: RetryPolicy,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[PubMedClient, PubMedFetcher]:
    """Create the PubMed client and the fetcher that owns it.

    Args:
        config: PubMed configuration
        retry_policy: Retry policy for the client
        transport: Optional httpx transport (tests pass a MockTransport)

    Returns:
        Tuple of (client, fetcher); the client must be entered before fetching
    """
    client = PubMedClient(
        api_key=config.api_key,
        email=config.email,
        tool=config.tool,
        requests_per_second=config.requests_per_second,
        retry_policy=retry_policy,
        transport=transport,
    )
    fetcher = PubMedFetcher(
        client,
        batch_size=config.batch_size,
        batch_delay=config.batch_delay,
        max_results=config.max_results,
        min_year=config.min_year,
        max_year=config.max_year,
    )
    return client, fetcher


def create_scholar_fetcher(
    config: SemanticScholarConfig,
    retry_policy: RetryPolicy,
    transport: httpx.AsyncBaseTransport | None = None,
) -> tuple[SemanticScholarClient, ScholarFetcher]:
    """Create the Semantic Scholar client and the fetcher that owns it."""
    client = SemanticScholarClient(
        api_key=config.api_key,
        requests_per_second=config.requests_per_second,
        retry_policy=retry_policy,
        transport=transport,
    )
    filters = SearchFilters(
        year=config.year,
        publication_types=config.publication_types,
        fields_of_study=config.fields_of_study,
        min_citation_count=config.min_citation_count,
    )
    fetcher = ScholarFetcher(
        client,
        filters=filters,
        page_size=config.page_size,
        page_delay=config.page_delay,
        detail_delay=config.detail_delay,
    )
    return client, fetcher


def create_storage(config: StorageConfig) -> S3Storage | None:
    """Create S3 storage, or None when uploads are disabled."""
    if not config.enabled:
        logger.info("Upload disabled; exported files stay local")
        return None

    storage = S3Storage(bucket=config.bucket, region=config.region)
    if not storage.bucket:
        logger.warning("AWS_S3_BUCKET is not set - every upload will fail")
    return storage


def create_run_context(
    profile: ProfileConfig,
    output_dir: Path | str | None = None,
    skip_upload: bool = False,
    pubmed_transport: httpx.AsyncBaseTransport | None = None,
    scholar_transport: httpx.AsyncBaseTransport | None = None,
) -> RunContext:
    """Create the complete run context from a profile.

    This is the main factory function: it wires both fetchers (each owning
    its own rate-limited client), the CSV exporter and the S3 storage.

    Args:
        profile: Profile configuration
        output_dir: Overrides the profile's export directory
        skip_upload: Keep exported files local, never touching S3
        pubmed_transport: Optional httpx transport for the PubMed client
        scholar_transport: Optional httpx transport for the Semantic Scholar client

    Returns:
        RunContext; use it with `async with` to open the HTTP clients
    """
    retry_policy = create_retry_policy(profile.retry)
    pubmed_client, pubmed_fetcher = create_pubmed_fetcher(
        profile.pubmed, retry_policy, pubmed_transport
    )
    scholar_client, scholar_fetcher = create_scholar_fetcher(
        profile.semantic_scholar, retry_policy, scholar_transport
    )

    exporter = CsvExporter(output_dir or profile.export.output_dir)
    storage = None if skip_upload else create_storage(profile.storage)

    return RunContext(
        pubmed=pubmed_fetcher,
        scholar=scholar_fetcher,
        exporter=exporter,
        storage=storage,
        clients=[pubmed_client, scholar_client],
        cleanup_delay=profile.export.cleanup_delay,
    )
