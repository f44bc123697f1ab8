"""Markdown table export."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from resume_ranker.pipeline.runner import RunResult

logger = logging.getLogger(__name__)

_EXCERPT_CHARS = 200


class MarkdownExporter:
    """Renders a ranking run as a human-readable Markdown report."""

    def render(self, result: RunResult) -> str:
        """Return the report: run summary, then one table row per candidate."""
        lines: list[str] = []

        # --- Run summary ---
        lines.append("# Ranking Summary\n")
        excerpt = result.job_description[:_EXCERPT_CHARS].replace("\n", " ")
        if len(result.job_description) > _EXCERPT_CHARS:
            excerpt += "…"
        lines.append(f"- **Job description:** {excerpt}")
        lines.append(f"- **Total resumes:** {result.summary.total}")
        lines.append(f"- **Scored:** {result.summary.scored}")
        lines.append(f"- **Could not be evaluated:** {result.summary.degraded}")
        lines.append(f"- **Processing time:** {result.processing_ms:.0f} ms")
        lines.append("")

        if not result.ranked:
            lines.append("No results to display.\n")
            return "\n".join(lines)

        # --- Candidate table ---
        lines.append("## Ranked Candidates\n")
        lines.append("| # | Candidate | Score | Breakdown | Keywords |")
        lines.append("|---|-----------|-------|-----------|----------|")

        for r in result.ranked:
            keywords = ", ".join(r.matched_keywords) or "—"
            lines.append(
                f"| {r.rank} "
                f"| {_escape(r.name)} "
                f"| {r.fused_score} "
                f"| {_escape(r.score_explanation())} "
                f"| {keywords} |"
            )

        lines.append("")
        return "\n".join(lines)

    def export(self, result: RunResult, output_path: str) -> None:
        """Write the report to *output_path*."""
        with open(output_path, "w", encoding="utf-8") as f:
            f.write(self.render(result))
        logger.debug("Wrote Markdown report for %d candidates to %s", len(result.ranked), output_path)


def _escape(cell: str) -> str:
    return cell.replace("|", "\\|")
