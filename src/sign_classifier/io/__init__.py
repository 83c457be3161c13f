"""Manifest reading and report writing."""

from sign_classifier.io.manifest import read_manifest
from sign_classifier.io.report import EvaluationReportWriter

__all__ = ["EvaluationReportWriter", "read_manifest"]
