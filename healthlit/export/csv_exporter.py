"""CSV export of normalized records."""

import csv
import logging
from pathlib import Path
from typing import Sequence

from ..records import SOURCE_LABELS, NormalizedRecord, SourceKind

logger = logging.getLogger(__name__)

CSV_COLUMNS = [
    "ID",
    "Title",
    "Abstract",
    "Authors",
    "Publication Date",
    "Journal",
    "DOI",
    "Source",
]


def record_to_row(record: NormalizedRecord) -> dict[str, str]:
    """Map one record onto the export columns."""
    doi = ""
    if record.source is SourceKind.PUBMED:
        doi = record.doi or ""

    return {
        "ID": record.native_id,
        "Title": record.title,
        "Abstract": record.abstract,
        "Authors": "; ".join(record.authors),
        "Publication Date": record.publication_date,
        "Journal": record.venue,
        "DOI": doi,
        "Source": SOURCE_LABELS[record.source],
    }


class CsvExporter:
    """Writes record sets as CSV files into one output directory."""

    def __init__(self, output_dir: Path | str = "."):
        self.output_dir = Path(output_dir)

    def export(self, records: Sequence[NormalizedRecord], filename: str) -> Path:
        """Write `records` to `output_dir/filename` and return the path."""
        self.output_dir.mkdir(parents=True, exist_ok=True)
        path = self.output_dir / filename

        with path.open("w", encoding="utf-8", newline="") as f:
            writer = csv.DictWriter(f, fieldnames=CSV_COLUMNS)
            writer.writeheader()
            for record in records:
                writer.writerow(record_to_row(record))

        logger.info(f"Wrote {len(records)} records to {path}")
        return path
