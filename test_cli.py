"""
CLI Tests

Tests for the typer commands that need no network access.
"""

from typer.testing import CliRunner

import healthlit.storage.s3 as s3_module
from healthlit.cli import app
from healthlit.records import HEALTHCARE_TOPICS

runner = CliRunner()


def test_topics_lists_every_topic():
    result = runner.invoke(app, ["topics"])

    assert result.exit_code == 0
    for topic in HEALTHCARE_TOPICS:
        assert topic in result.output


def test_profiles_lists_bundled_profiles():
    result = runner.invoke(app, ["profiles"])

    assert result.exit_code == 0
    assert "default" in result.output
    assert "test" in result.output


def test_run_rejects_unknown_topic():
    result = runner.invoke(app, ["run", "--topic", "Astrophysics"])

    assert result.exit_code == 1


def test_run_rejects_unknown_profile():
    result = runner.invoke(app, ["run", "--profile", "no-such-profile"])

    assert result.exit_code == 1


def test_clear_bucket_without_bucket_exits_1(monkeypatch):
    monkeypatch.setattr(s3_module, "AWS_S3_BUCKET", None)

    result = runner.invoke(app, ["clear-bucket"])

    assert result.exit_code == 1
