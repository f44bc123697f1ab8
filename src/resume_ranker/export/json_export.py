"""JSON export — the payload a presentation layer consumes."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from resume_ranker.pipeline.runner import RunResult


class JSONExporter:
    """Serializes a ranking run with totals and the ranked list."""

    def to_payload(self, result: RunResult) -> dict[str, Any]:
        return {
            "job_description": result.job_description,
            "total_resumes": len(result.ranked),
            "successful_resumes": result.successful,
            "failed_resumes": result.failed,
            "processing_ms": round(result.processing_ms, 1),
            "summary": {
                "scored": result.summary.scored,
                "degraded_invalid": result.summary.degraded_invalid,
                "degraded_error": result.summary.degraded_error,
            },
            "resumes": [r.to_dict() for r in result.ranked],
        }

    def export(self, result: RunResult, output_path: str) -> None:
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(self.to_payload(result), f, indent=2, ensure_ascii=False)
            f.write("\n")
