"""Evaluation report writer using orjson."""

from __future__ import annotations

from pathlib import Path

import orjson

from sign_classifier.schemas.evaluation import EvaluationResult


class EvaluationReportWriter:
    """Write an :class:`EvaluationResult` as ``evaluation.json`` in ``output_dir``."""

    filename = "evaluation.json"

    def __init__(self, output_dir: Path) -> None:
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)

    def write(self, result: EvaluationResult) -> Path:
        """Write ``result`` to disk. Returns the output path."""
        out_path = self.output_dir / self.filename
        out_path.write_bytes(orjson.dumps(result.model_dump(), option=orjson.OPT_INDENT_2))
        return out_path
