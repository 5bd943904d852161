"""Command-line interface for the healthcare literature pipeline."""

import asyncio
from typing import Annotated

import typer

from .config.factory import create_run_context
from .config.loader import DEFAULT_CONFIG_PATH, load_config, read_config_file
from .orchestration import RunSummary, TopicOrchestrator
from .records import HEALTHCARE_TOPICS
from .storage import S3Storage, StorageConfigError

app = typer.Typer(
    name="healthlit",
    help="Fetch healthcare literature from PubMed and Semantic Scholar into CSV files.",
    add_completion=False,
)


@app.command()
def run(
    profile: Annotated[
        str,
        typer.Option("--profile", "-p", help="Configuration profile (default: HEALTHLIT_PROFILE or 'default')"),
    ] = None,
    topics: Annotated[
        list[str],
        typer.Option(
            "--topic", "-t",
            help="Restrict the run to these topics (can specify multiple)",
        ),
    ] = None,
    output_dir: Annotated[
        str,
        typer.Option("--output-dir", "-o", help="Directory for the exported CSV files"),
    ] = None,
    skip_upload: Annotated[
        bool,
        typer.Option("--skip-upload", help="Keep CSV files local instead of uploading to S3"),
    ] = False,
):
    """
    Run the pipeline over the healthcare topics.

    Examples:

        # Every topic, upload to S3
        healthlit run

        # Two topics, keep the CSV files
        healthlit run -t "Telehealth healthcare" -t "Value Based Care" --skip-upload

        # Fast profile into a custom directory
        healthlit run --profile fast -o ./out
    """
    selected = list(topics) if topics else list(HEALTHCARE_TOPICS)
    unknown = [t for t in selected if t not in HEALTHCARE_TOPICS]
    if unknown:
        typer.echo(f"Error: Unknown topic(s): {', '.join(unknown)}", err=True)
        typer.echo("Run 'healthlit topics' to list valid topics.", err=True)
        raise typer.Exit(1)

    try:
        config = load_config(profile)
    except KeyError as e:
        typer.echo(f"Error: {e.args[0]}", err=True)
        raise typer.Exit(1)

    summary = asyncio.run(_run_async(config, selected, output_dir, skip_upload))

    typer.echo(f"\nRun {summary.timestamp}: {summary.total_records} records\n")
    for result in summary.results:
        status = "OK" if result.succeeded else "FAILED"
        destination = result.location or result.file_path or "-"
        typer.echo(f"  [{status}] {result.topic}")
        typer.echo(
            f"    PubMed: {result.pubmed_count} | Semantic Scholar: {result.scholar_count} | "
            f"Duplicates removed: {result.duplicates_removed}"
        )
        typer.echo(f"    Output: {destination}")
        if result.error:
            typer.echo(f"    Error: {result.error}")


async def _run_async(config, topics: list[str], output_dir: str | None, skip_upload: bool) -> RunSummary:
    """Async implementation of run."""
    context = create_run_context(config, output_dir=output_dir, skip_upload=skip_upload)
    async with context:
        return await TopicOrchestrator(context, topics=topics).run()


@app.command()
def topics():
    """List the healthcare topics searched on every run."""
    typer.echo("Topics:\n")
    for i, topic in enumerate(HEALTHCARE_TOPICS, 1):
        typer.echo(f"  {i:2d}. {topic}")


@app.command("clear-bucket")
def clear_bucket(
    bucket: Annotated[
        str,
        typer.Option("--bucket", "-b", help="Bucket to clear (default: AWS_S3_BUCKET)"),
    ] = None,
):
    """
    Delete every object in the S3 bucket.

    Examples:

        healthlit clear-bucket
        healthlit clear-bucket --bucket my-exports
    """
    storage = S3Storage(bucket=bucket)

    try:
        deleted = asyncio.run(storage.clear_bucket())
    except StorageConfigError as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(1)

    typer.echo(f"Deleted {deleted} objects from {storage.bucket}")


@app.command()
def profiles():
    """List available configuration profiles."""
    config_file = read_config_file(DEFAULT_CONFIG_PATH)

    typer.echo("Available profiles:\n")
    for name, profile in config_file.profiles.items():
        upload = "S3" if profile.storage.enabled else "local only"
        typer.echo(f"  {name}")
        typer.echo(
            f"    PubMed batches: {profile.pubmed.batch_size} every {profile.pubmed.batch_delay}s"
        )
        typer.echo(
            f"    Semantic Scholar pages: {profile.semantic_scholar.page_size} "
            f"every {profile.semantic_scholar.page_delay}s"
        )
        typer.echo(f"    Output: {profile.export.output_dir} ({upload})")
        typer.echo()


def main():
    """Entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
