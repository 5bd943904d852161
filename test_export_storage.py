"""
Export and Storage Tests

Tests for CSV row mapping and writing, and for the S3 storage wrapper
against an in-memory stub client.
"""

import csv
import logging
from pathlib import Path

import pytest

import healthlit.storage.s3 as s3_module
from healthlit.export import CSV_COLUMNS, CsvExporter, record_to_row
from healthlit.records import PubMedRecord, ScholarRecord
from healthlit.storage import S3Storage, StorageConfigError

PUBMED_RECORD = PubMedRecord(
    native_id="111",
    title="Telehealth outcomes, a \"real world\" review",
    abstract="Line one.\nLine two.",
    authors=["Smith Jane", "Doe John"],
    publication_date="2021 Mar 05",
    venue="Telemedicine Journal",
    doi="10.1000/xyz",
)

SCHOLAR_RECORD = ScholarRecord(
    native_id="A1",
    title="Remote monitoring at scale",
    authors=["Ada Lovelace"],
    publication_date="2022",
    venue="Health Affairs",
    citation_count=12,
)


# CSV export

def test_record_to_row_pubmed():
    row = record_to_row(PUBMED_RECORD)

    assert list(row) == CSV_COLUMNS
    assert row["ID"] == "111"
    assert row["Authors"] == "Smith Jane; Doe John"
    assert row["DOI"] == "10.1000/xyz"
    assert row["Source"] == "PubMed"


def test_record_to_row_scholar_has_blank_doi():
    row = record_to_row(SCHOLAR_RECORD)

    assert row["DOI"] == ""
    assert row["Abstract"] == ""
    assert row["Journal"] == "Health Affairs"
    assert row["Source"] == "Semantic Scholar"


def test_csv_exporter_writes_header_and_rows(tmp_path):
    exporter = CsvExporter(tmp_path / "exports")

    path = exporter.export([PUBMED_RECORD, SCHOLAR_RECORD], "Telehealth_healthcare_ts.csv")

    assert path == tmp_path / "exports" / "Telehealth_healthcare_ts.csv"
    with path.open(encoding="utf-8", newline="") as f:
        reader = csv.DictReader(f)
        assert reader.fieldnames == CSV_COLUMNS
        rows = list(reader)

    assert [r["ID"] for r in rows] == ["111", "A1"]
    assert rows[0]["Title"] == PUBMED_RECORD.title
    assert rows[0]["Abstract"] == "Line one.\nLine two."


def test_csv_exporter_empty_record_set(tmp_path):
    path = CsvExporter(tmp_path).export([], "empty.csv")

    assert path.read_text(encoding="utf-8").strip() == ",".join(CSV_COLUMNS)


# S3 storage

class StubS3Client:
    """In-memory stand-in for a boto3 S3 client with a fixed listing page size."""

    def __init__(self, keys=(), page_size: int = 2, failing_keys=()):
        self.objects = list(keys)
        self.page_size = page_size
        self.failing_keys = set(failing_keys)
        self.uploads: list[tuple[str, str, str]] = []
        self.delete_calls = 0

    def upload_file(self, filename, bucket, key):
        self.uploads.append((filename, bucket, key))

    def list_objects_v2(self, Bucket):
        page = self.objects[: self.page_size]
        response = {"IsTruncated": len(self.objects) > self.page_size, "KeyCount": len(page)}
        if page:
            response["Contents"] = [{"Key": key} for key in page]
        return response

    def delete_objects(self, Bucket, Delete):
        self.delete_calls += 1
        deleted, errors = [], []
        for obj in Delete["Objects"]:
            if obj["Key"] in self.failing_keys:
                errors.append({"Key": obj["Key"], "Code": "AccessDenied", "Message": "Denied"})
            else:
                self.objects.remove(obj["Key"])
                deleted.append({"Key": obj["Key"]})
        return {"Deleted": deleted, "Errors": errors}


@pytest.mark.asyncio
async def test_upload_uses_basename_and_returns_url(tmp_path):
    stub = StubS3Client()
    storage = S3Storage(bucket="exports-bucket", region="us-east-1", client=stub)
    path = tmp_path / "Value_Based_Care_ts.csv"
    path.write_text("ID\n")

    url = await storage.upload(path)

    assert stub.uploads == [(str(path), "exports-bucket", "Value_Based_Care_ts.csv")]
    assert url == "https://exports-bucket.s3.us-east-1.amazonaws.com/Value_Based_Care_ts.csv"


@pytest.mark.asyncio
async def test_upload_without_bucket_fails(monkeypatch, tmp_path):
    monkeypatch.setattr(s3_module, "AWS_S3_BUCKET", None)
    storage = S3Storage(client=StubS3Client())

    with pytest.raises(StorageConfigError, match="AWS_S3_BUCKET"):
        await storage.upload(tmp_path / "x.csv")


@pytest.mark.asyncio
async def test_clear_bucket_follows_truncated_listings():
    stub = StubS3Client(keys=[f"file{i}.csv" for i in range(5)], page_size=2)
    storage = S3Storage(bucket="exports-bucket", client=stub)

    deleted = await storage.clear_bucket()

    assert deleted == 5
    assert stub.objects == []
    assert stub.delete_calls == 3


@pytest.mark.asyncio
async def test_clear_bucket_already_empty(caplog):
    stub = StubS3Client()
    storage = S3Storage(bucket="exports-bucket", client=stub)

    with caplog.at_level(logging.INFO):
        assert await storage.clear_bucket() == 0

    assert stub.delete_calls == 0
    assert "Bucket is already empty" in caplog.text


@pytest.mark.asyncio
async def test_clear_bucket_raises_when_nothing_can_be_deleted():
    stub = StubS3Client(keys=["locked.csv"], failing_keys=["locked.csv"])
    storage = S3Storage(bucket="exports-bucket", client=stub)

    with pytest.raises(RuntimeError, match="Could not delete"):
        await storage.clear_bucket()


@pytest.mark.asyncio
async def test_clear_bucket_without_bucket(monkeypatch):
    monkeypatch.setattr(s3_module, "AWS_S3_BUCKET", None)

    with pytest.raises(StorageConfigError):
        await S3Storage(client=StubS3Client()).clear_bucket()


def test_object_url_without_region(monkeypatch):
    monkeypatch.setattr(s3_module, "AWS_REGION", None)
    storage = S3Storage(bucket="b", client=StubS3Client())

    assert storage.object_url(Path("k.csv").name) == "https://b.s3.amazonaws.com/k.csv"
