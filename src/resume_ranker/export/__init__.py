"""Export layer — Markdown, CSV, and JSON output."""

from resume_ranker.export.csv_export import CSVExporter
from resume_ranker.export.json_export import JSONExporter
from resume_ranker.export.markdown import MarkdownExporter

EXPORTERS = {
    "markdown": MarkdownExporter,
    "csv": CSVExporter,
    "json": JSONExporter,
}

FILE_SUFFIXES = {"markdown": ".md", "csv": ".csv", "json": ".json"}

__all__ = ["EXPORTERS", "FILE_SUFFIXES", "CSVExporter", "JSONExporter", "MarkdownExporter"]
