"""alignscan - Normalized landmark error evaluation and hard-case mining.

Quick Start:
    >>> from alignscan import Evaluator, EvalConfig, Measure
    >>> config = EvalConfig(measure=Measure.PUPILS, database="wflw", output_dir="./hard")
    >>> summary = Evaluator(config).run(samples)
    >>> print(f"{summary.hard} hard cases out of {summary.scored} faces")

Single face:
    >>> from alignscan import classify
    >>> score = classify(predicted, ground_truth, Measure.HEIGHT, "aflw")
    >>> print(f"{score.mean_error:.4f} hard={score.is_hard}")
"""

from alignscan.types import (
    OCCLUSION_THRESHOLD,
    BBox,
    FaceAnnotation,
    FacePart,
    Landmark,
    Measure,
)
from alignscan.exceptions import (
    AlignScanError,
    EmptyMatchError,
    EvaluationError,
    ImageIOError,
    ImageReadError,
    ImageWriteError,
    NormalizationError,
)
from alignscan.matching import LandmarkIndex, find_landmark
from alignscan.normalize import normalize
from alignscan.metrics import NormalizedErrors, get_normalized_errors
from alignscan.thresholds import FaceScore, ThresholdRule, classify, hard_case_threshold
from alignscan.report import ReportWriter, parse_report_line
from alignscan.overlay import Palette, Role
from alignscan.writer import HardCaseWriter, SaveOutcome
from alignscan.config import EvalConfig
from alignscan.engine import EvaluationSummary, Evaluator, FaceResult, ImageResult

__all__ = [
    # Types
    "OCCLUSION_THRESHOLD",
    "BBox",
    "FaceAnnotation",
    "FacePart",
    "Landmark",
    "Measure",
    # Errors
    "AlignScanError",
    "EvaluationError",
    "NormalizationError",
    "EmptyMatchError",
    "ImageIOError",
    "ImageReadError",
    "ImageWriteError",
    # Core
    "find_landmark",
    "LandmarkIndex",
    "normalize",
    "NormalizedErrors",
    "get_normalized_errors",
    "ThresholdRule",
    "FaceScore",
    "hard_case_threshold",
    "classify",
    # Sinks
    "ReportWriter",
    "parse_report_line",
    "Palette",
    "Role",
    "HardCaseWriter",
    "SaveOutcome",
    # Batch
    "EvalConfig",
    "Evaluator",
    "FaceResult",
    "ImageResult",
    "EvaluationSummary",
]
