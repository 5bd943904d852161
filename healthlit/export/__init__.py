from .csv_exporter import CSV_COLUMNS, CsvExporter, record_to_row

__all__ = ["CSV_COLUMNS", "CsvExporter", "record_to_row"]
