"""Evaluator - batch driver for normalized landmark error evaluation.

Feeds every (predictions, ground truth) pair of a benchmark through the
report writer and the hard-case writer.

Faults are face-scoped: a face that cannot be scored is left out of
both sinks, logged at WARNING, and returned as an
``unscoreable`` :class:`FaceResult` carrying the reason. The two sinks run
independently, so a report fault does not stop the image sink and vice
versa. Report and image I/O faults are recorded on the face and never
abort the batch.

Example:
    >>> from alignscan import EvalConfig, Evaluator
    >>> with open("report.txt", "a") as stream:
    ...     evaluator = Evaluator(EvalConfig(output_dir="hard"), report_stream=stream)
    ...     summary = evaluator.run(samples)
    >>> print(f"{summary.hard} hard cases")
"""

from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, TextIO, Tuple

import numpy as np

from alignscan.config import EvalConfig
from alignscan.exceptions import EvaluationError
from alignscan.metrics import NormalizedErrors, get_normalized_errors
from alignscan.report import ReportWriter
from alignscan.thresholds import FaceScore, hard_case_threshold, score_errors
from alignscan.types import FaceAnnotation
from alignscan.writer import HardCaseWriter

logger = logging.getLogger(__name__)

STATUS_SCORED = "scored"
STATUS_UNSCOREABLE = "unscoreable"

Sample = Tuple[Sequence[FaceAnnotation], FaceAnnotation]


@dataclass
class FaceResult:
    """Outcome for one predicted face.

    Attributes:
        filename: Ground-truth image path.
        status: ``scored`` or ``unscoreable``.
        mean_error: Mean normalized error (None when unscoreable).
        is_hard: Whether ``mean_error`` exceeds ``threshold``.
        threshold: Hard-case threshold used.
        num_landmarks: Number of matched landmarks.
        reason: Fault description when unscoreable.
        saved_path: Hard-case image path, when one was written.
        image_error: Image sink fault for this face, if any.
        report_error: Report sink fault for this face, if any.
    """

    filename: str
    status: str = STATUS_SCORED
    mean_error: Optional[float] = None
    is_hard: bool = False
    threshold: float = 0.0
    num_landmarks: int = 0
    reason: str = ""
    saved_path: Optional[Path] = None
    image_error: str = ""
    report_error: str = ""

    @property
    def scored(self) -> bool:
        return self.status == STATUS_SCORED


@dataclass
class ImageResult:
    filename: str
    faces: List[FaceResult] = field(default_factory=list)


@dataclass
class EvaluationSummary:
    """Aggregate counters of a batch run."""

    images: int = 0
    faces: int = 0
    scored: int = 0
    unscoreable: int = 0
    hard: int = 0
    image_errors: int = 0
    report_errors: int = 0
    cancelled: bool = False
    saved_paths: List[Path] = field(default_factory=list)
    _errors: List[float] = field(default_factory=list, repr=False)

    @property
    def mean_error(self) -> Optional[float]:
        """Mean of the per-face mean errors over scored faces."""
        if not self._errors:
            return None
        return float(np.mean(self._errors))

    def add(self, result: ImageResult) -> None:
        self.images += 1
        for face in result.faces:
            self.faces += 1
            if face.scored:
                self.scored += 1
                self._errors.append(face.mean_error)
                if face.is_hard:
                    self.hard += 1
            else:
                self.unscoreable += 1
            if face.saved_path is not None:
                self.saved_paths.append(face.saved_path)
            if face.image_error:
                self.image_errors += 1
            if face.report_error:
                self.report_errors += 1


def _unscoreable(result: FaceResult, error: EvaluationError) -> FaceResult:
    logger.warning("Unscoreable face in %s: %s", result.filename, error)
    result.status = STATUS_UNSCOREABLE
    result.reason = str(error)
    return result


class Evaluator:
    """Score predicted faces and dispatch them to the result sinks.

    Args:
        config: Run options. Defaults to :class:`EvalConfig`.
        report_stream: Text stream for report records. No report when None.
            The stream is never closed by the evaluator.
    """

    def __init__(self, config: Optional[EvalConfig] = None, report_stream: Optional[TextIO] = None):
        self.config = config or EvalConfig()
        self._threshold = hard_case_threshold(self.config.measure, self.config.database, self.config.rules)
        self._report: Optional[ReportWriter] = None
        if report_stream is not None:
            self._report = ReportWriter(
                report_stream,
                label=self.config.label,
                pupil_ids=self.config.pupil_ids,
                corner_ids=self.config.corner_ids,
            )
        self._writer: Optional[HardCaseWriter] = None
        if self.config.output_dir:
            self._writer = HardCaseWriter(self.config.output_dir, palette=self.config.palette)

    @property
    def threshold(self) -> float:
        return self._threshold

    def _errors(self, face: FaceAnnotation, ground_truth: FaceAnnotation) -> NormalizedErrors:
        return get_normalized_errors(
            face, ground_truth, self.config.measure,
            pupil_ids=self.config.pupil_ids, corner_ids=self.config.corner_ids,
        )

    def score_face(self, face: FaceAnnotation, ground_truth: FaceAnnotation) -> Tuple[FaceResult, Optional[FaceScore]]:
        """Score one predicted face and write its report record.

        Unscoreable faces get no report record.
        """
        result = FaceResult(filename=ground_truth.filename, threshold=self._threshold)
        try:
            errors = self._errors(face, ground_truth)
            result.num_landmarks = len(errors)
            score = score_errors(errors, self._threshold)
        except EvaluationError as e:
            return _unscoreable(result, e), None

        result.mean_error = score.mean_error
        result.is_hard = score.is_hard
        logger.debug(
            "%s: %d landmarks, mean error %.4f%s",
            ground_truth.filename, len(errors), score.mean_error, " (hard)" if score.is_hard else "",
        )
        self._write_report(face, ground_truth, errors, result)
        return result, score

    def _write_report(
        self,
        face: FaceAnnotation,
        ground_truth: FaceAnnotation,
        errors: NormalizedErrors,
        result: FaceResult,
    ) -> None:
        if self._report is None:
            return
        try:
            self._report.write_face(face, ground_truth, self.config.measure, errors=errors)
        except (OSError, ValueError) as e:
            # ValueError: write to a closed stream
            logger.warning("Report record for %s not written: %s", ground_truth.filename, e)
            result.report_error = str(e)

    def evaluate(self, faces: Sequence[FaceAnnotation], ground_truth: FaceAnnotation) -> ImageResult:
        """Evaluate every predicted face of one image.

        Args:
            faces: Predicted faces (possibly empty).
            ground_truth: Ground truth of the image.

        Returns:
            ImageResult with one FaceResult per predicted face, in order.
        """
        image_result = ImageResult(filename=ground_truth.filename)
        scores: List[Optional[FaceScore]] = []
        for face in faces:
            result, score = self.score_face(face, ground_truth)
            image_result.faces.append(result)
            scores.append(score)

        if self._writer is not None:
            outcomes = self._writer.write(faces, ground_truth, scores)
            for result, outcome in zip(image_result.faces, outcomes):
                result.saved_path = outcome.path
                result.image_error = outcome.error
        return image_result

    def run(
        self,
        samples: Iterable[Sample],
        cancel: Optional[threading.Event] = None,
    ) -> EvaluationSummary:
        """Evaluate a batch of images.

        Args:
            samples: ``(predicted_faces, ground_truth)`` pairs.
            cancel: When set, the batch stops before the next image.

        Returns:
            EvaluationSummary over all processed images.
        """
        summary = EvaluationSummary()
        for faces, ground_truth in samples:
            if cancel is not None and cancel.is_set():
                logger.info("Evaluation cancelled after %d images", summary.images)
                summary.cancelled = True
                break
            summary.add(self.evaluate(faces, ground_truth))

        mean_error = summary.mean_error
        logger.info(
            "Evaluated %d faces in %d images: %d scored, %d unscoreable, %d hard "
            "(measure=%s, database=%s, threshold=%.1f, mean error=%s)",
            summary.faces, summary.images, summary.scored, summary.unscoreable, summary.hard,
            self.config.measure.value, self.config.database, self._threshold,
            f"{mean_error:.4f}" if mean_error is not None else "n/a",
        )
        return summary


__all__ = [
    "STATUS_SCORED",
    "STATUS_UNSCOREABLE",
    "FaceResult",
    "ImageResult",
    "EvaluationSummary",
    "Evaluator",
]
