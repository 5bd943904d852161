"""
Orchestrator Tests

Tests for the per-topic pipeline: provider failure isolation, export and
upload handoff, local cleanup, and an end-to-end run over mock transports.
"""

import csv
from datetime import datetime, timezone

import httpx
import pytest

from healthlit.config import create_run_context, load_config
from healthlit.export import CsvExporter
from healthlit.orchestration import RunContext, TopicOrchestrator, run_timestamp, topic_filename
from healthlit.records import PubMedRecord, ScholarRecord

TIMESTAMP = "2024-05-01T12-30-45-123Z"


class FakeSource:
    """Returns fixed records per topic, or raises for topics listed in `failing`."""

    def __init__(self, records_by_topic, failing=()):
        self.records_by_topic = records_by_topic
        self.failing = set(failing)
        self.topics: list[str] = []

    async def fetch(self, topic):
        self.topics.append(topic)
        if topic in self.failing:
            raise RuntimeError(f"provider down for {topic}")
        return list(self.records_by_topic.get(topic, []))


class FakeStorage:
    """Records uploads; raises for files whose name starts with a failing stem."""

    def __init__(self, failing_stems=()):
        self.failing_stems = tuple(failing_stems)
        self.uploaded: list[str] = []

    async def upload(self, path):
        if path.name.startswith(self.failing_stems):
            raise ConnectionError("S3 unreachable")
        self.uploaded.append(path.name)
        return f"s3://bucket/{path.name}"


class FakeClient:
    def __init__(self):
        self.events: list[str] = []

    async def __aenter__(self):
        self.events.append("open")
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        self.events.append("close")


def telehealth_sources():
    pubmed = FakeSource({
        "Telehealth healthcare": [
            PubMedRecord(native_id="111", title="Virtual visits"),
            PubMedRecord(native_id="222", title="Tele-ICU"),
        ],
        "Value Based Care": [PubMedRecord(native_id="333", title="Bundled payments")],
    })
    scholar = FakeSource({
        "Telehealth healthcare": [
            ScholarRecord(native_id="A1", title="Telehealth adoption"),
            ScholarRecord(native_id="A2", title="Video consults"),
        ],
    })
    return pubmed, scholar


def read_ids(path):
    with path.open(encoding="utf-8", newline="") as f:
        return [(row["ID"], row["Source"]) for row in csv.DictReader(f)]


# Naming

def test_run_timestamp_format():
    now = datetime(2024, 5, 1, 12, 30, 45, 123456, tzinfo=timezone.utc)
    assert run_timestamp(now) == TIMESTAMP


def test_topic_filename_replaces_whitespace():
    assert topic_filename("Telehealth healthcare", TIMESTAMP) == f"Telehealth_healthcare_{TIMESTAMP}.csv"
    assert topic_filename("Value  Based\tCare", TIMESTAMP) == f"Value_Based_Care_{TIMESTAMP}.csv"


# Orchestration

@pytest.mark.asyncio
async def test_telehealth_topic_exports_four_records(tmp_path):
    pubmed, scholar = telehealth_sources()
    context = RunContext(
        pubmed=pubmed, scholar=scholar, exporter=CsvExporter(tmp_path), timestamp=TIMESTAMP
    )

    summary = await TopicOrchestrator(context, topics=["Telehealth healthcare"]).run()

    result = summary.results[0]
    assert result.succeeded
    assert result.file_path == tmp_path / f"Telehealth_healthcare_{TIMESTAMP}.csv"
    assert result.location is None
    assert read_ids(result.file_path) == [
        ("111", "PubMed"),
        ("222", "PubMed"),
        ("A1", "Semantic Scholar"),
        ("A2", "Semantic Scholar"),
    ]
    assert summary.total_records == 4


@pytest.mark.asyncio
async def test_upload_failure_does_not_stop_next_topic(tmp_path):
    pubmed, scholar = telehealth_sources()
    storage = FakeStorage(failing_stems=["Telehealth_healthcare"])
    context = RunContext(
        pubmed=pubmed,
        scholar=scholar,
        exporter=CsvExporter(tmp_path),
        storage=storage,
        timestamp=TIMESTAMP,
        cleanup_delay=0.0,
    )

    summary = await TopicOrchestrator(
        context, topics=["Telehealth healthcare", "Value Based Care"]
    ).run()

    failed, succeeded = summary.results
    assert not failed.succeeded
    assert "S3 unreachable" in failed.error
    assert succeeded.succeeded
    assert succeeded.location == f"s3://bucket/Value_Based_Care_{TIMESTAMP}.csv"
    assert storage.uploaded == [f"Value_Based_Care_{TIMESTAMP}.csv"]
    assert summary.failed_topics == ["Telehealth healthcare"]

    # Uploaded files are removed locally; the one that failed to upload stays
    assert failed.file_path.exists()
    assert not succeeded.file_path.exists()


@pytest.mark.asyncio
async def test_pubmed_failure_keeps_scholar_records(tmp_path):
    pubmed, scholar = telehealth_sources()
    pubmed.failing.add("Telehealth healthcare")
    context = RunContext(
        pubmed=pubmed, scholar=scholar, exporter=CsvExporter(tmp_path), timestamp=TIMESTAMP
    )

    summary = await TopicOrchestrator(
        context, topics=["Telehealth healthcare", "Value Based Care"]
    ).run()

    first, second = summary.results
    assert "provider down" in first.pubmed_error
    assert first.succeeded
    assert read_ids(first.file_path) == [("A1", "Semantic Scholar"), ("A2", "Semantic Scholar")]
    assert read_ids(second.file_path) == [("333", "PubMed")]
    assert scholar.topics == ["Telehealth healthcare", "Value Based Care"]


@pytest.mark.asyncio
async def test_both_providers_failing_still_exports_empty_file(tmp_path):
    pubmed = FakeSource({}, failing=["Telehealth healthcare"])
    scholar = FakeSource({}, failing=["Telehealth healthcare"])
    context = RunContext(
        pubmed=pubmed, scholar=scholar, exporter=CsvExporter(tmp_path), timestamp=TIMESTAMP
    )

    summary = await TopicOrchestrator(context, topics=["Telehealth healthcare"]).run()

    assert summary.results[0].exported_count == 0
    assert read_ids(summary.results[0].file_path) == []


@pytest.mark.asyncio
async def test_run_context_opens_and_closes_clients(tmp_path):
    first, second = FakeClient(), FakeClient()
    context = RunContext(
        pubmed=FakeSource({}),
        scholar=FakeSource({}),
        exporter=CsvExporter(tmp_path),
        clients=[first, second],
    )

    async with context:
        assert first.events == ["open"]
        assert second.events == ["open"]

    assert first.events == ["open", "close"]
    assert second.events == ["open", "close"]


# End to end

def pubmed_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/esearch.fcgi"):
        return httpx.Response(
            200, text="<eSearchResult><IdList><Id>111</Id><Id>222</Id></IdList></eSearchResult>"
        )
    articles = "".join(
        f"<PubmedArticle><MedlineCitation><PMID>{pmid}</PMID><Article>"
        f"<ArticleTitle>Article {pmid}</ArticleTitle></Article></MedlineCitation></PubmedArticle>"
        for pmid in request.url.params["id"].split(",")
    )
    return httpx.Response(200, text=f"<PubmedArticleSet>{articles}</PubmedArticleSet>")


def scholar_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("/paper/search"):
        return httpx.Response(
            200,
            json={
                "total": 3,
                "offset": 0,
                "data": [
                    {"paperId": "A1", "title": "Scholar A1"},
                    {"paperId": "A2", "title": "Scholar A2"},
                    {"paperId": "A1", "title": "Scholar A1 again"},
                ],
            },
        )
    return httpx.Response(200, json={"venue": "JAMA"})


@pytest.mark.asyncio
async def test_end_to_end_with_test_profile(tmp_path):
    profile = load_config("test")
    context = create_run_context(
        profile,
        output_dir=tmp_path,
        skip_upload=True,
        pubmed_transport=httpx.MockTransport(pubmed_handler),
        scholar_transport=httpx.MockTransport(scholar_handler),
    )

    async with context:
        summary = await TopicOrchestrator(context, topics=["Telehealth healthcare"]).run()

    result = summary.results[0]
    assert result.pubmed_count == 2
    assert result.scholar_count == 3
    assert result.duplicates_removed == 1
    assert read_ids(result.file_path) == [
        ("111", "PubMed"),
        ("222", "PubMed"),
        ("A1", "Semantic Scholar"),
        ("A2", "Semantic Scholar"),
    ]
    assert result.file_path.name == f"Telehealth_healthcare_{context.timestamp}.csv"
