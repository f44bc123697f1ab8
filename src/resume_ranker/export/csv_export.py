"""CSV export."""

from __future__ import annotations

import csv
import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from resume_ranker.pipeline.runner import RunResult

logger = logging.getLogger(__name__)

# Resume text is excluded: it is too large for spreadsheet cells.
_COLUMNS = [
    "rank",
    "name",
    "fused_score",
    "semantic_score",
    "keyword_score",
    "similarity",
    "matched_keywords",
    "status",
    "degradation",
    "error",
]


class CSVExporter:
    """Renders ranked results as a CSV file suitable for spreadsheet import."""

    def export(self, result: RunResult, output_path: str) -> None:
        """Write a CSV with header row, one row per candidate in rank order.

        Keywords are joined with ``;`` so they stay in a single cell.
        """
        with open(output_path, "w", newline="", encoding="utf-8") as f:
            writer = csv.writer(f)
            writer.writerow(_COLUMNS)

            for r in result.ranked:
                writer.writerow([
                    r.rank,
                    r.name,
                    r.fused_score,
                    r.semantic_score,
                    r.keyword_score,
                    f"{r.similarity:.4f}",
                    ";".join(r.matched_keywords),
                    r.status.value,
                    r.degradation.value if r.degradation else "",
                    r.error or "",
                ])
        logger.debug("Wrote CSV for %d candidates to %s", len(result.ranked), output_path)
