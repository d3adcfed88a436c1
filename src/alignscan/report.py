"""Plain-text per-landmark error report.

One line per predicted face::

    <label> <gt_filename> <id> <err> <occ_gt> <occ_pred> <id> <err> ...

Occlusion columns carry the raw occlusion degree of the first landmark
with that id on each side, or ``-1`` when that side has no such landmark,
so every record has ``4 * n + 2`` columns.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional, TextIO

from alignscan.exceptions import EmptyMatchError, EvaluationError
from alignscan.matching import LandmarkIndex
from alignscan.metrics import NormalizedErrors, get_normalized_errors
from alignscan.normalize import CORNER_IDS, PUPIL_IDS
from alignscan.types import FaceAnnotation, Measure

logger = logging.getLogger(__name__)

DEFAULT_LABEL = "alignscan"
NO_MATCH = -1.0


def _fmt(value: float) -> str:
    return f"{value:g}"


class ReportWriter:
    """Append per-face error records to a caller-owned text stream.

    The stream is never closed by the writer.

    Args:
        stream: Writable text stream.
        label: First column of every record, identifying the evaluated component.
        pupil_ids: Eye-center ids for ``Measure.PUPILS``.
        corner_ids: Eye-corner ids for ``Measure.CORNERS``.
    """

    def __init__(
        self,
        stream: TextIO,
        label: str = DEFAULT_LABEL,
        *,
        pupil_ids: tuple[int, int] = PUPIL_IDS,
        corner_ids: tuple[int, int] = CORNER_IDS,
    ):
        if not label or any(c.isspace() for c in label):
            raise ValueError(f"Report label must be a non-empty single token: {label!r}")
        self._stream = stream
        self._label = label
        self._pupil_ids = pupil_ids
        self._corner_ids = corner_ids

    @property
    def label(self) -> str:
        return self._label

    def format_record(
        self,
        face: FaceAnnotation,
        ground_truth: FaceAnnotation,
        errors: NormalizedErrors,
    ) -> str:
        """Build one record (without line terminator)."""
        gt_index = LandmarkIndex.from_annotation(ground_truth)
        pred_index = LandmarkIndex.from_annotation(face)

        tokens = [self._label, ground_truth.filename]
        for idx, err in errors.pairs():
            gt_lm = gt_index.get(idx)
            pred_lm = pred_index.get(idx)
            tokens.append(str(idx))
            tokens.append(_fmt(err))
            tokens.append(_fmt(gt_lm.occluded if gt_lm is not None else NO_MATCH))
            tokens.append(_fmt(pred_lm.occluded if pred_lm is not None else NO_MATCH))
        return " ".join(tokens)

    def write_face(
        self,
        face: FaceAnnotation,
        ground_truth: FaceAnnotation,
        measure: Measure,
        errors: Optional[NormalizedErrors] = None,
    ) -> NormalizedErrors:
        """Write the record of one predicted face.

        Args:
            face: Predicted face.
            ground_truth: Ground truth of the same image.
            measure: Normalization basis.
            errors: Precomputed errors for ``face``; computed when omitted.

        Returns:
            The errors that were written.

        Raises:
            NormalizationError: The measure is undefined for ``ground_truth``.
            EmptyMatchError: No landmark id is shared; nothing is written.
        """
        if errors is None:
            errors = get_normalized_errors(
                face, ground_truth, measure,
                pupil_ids=self._pupil_ids, corner_ids=self._corner_ids,
            )
        if len(errors) == 0:
            raise EmptyMatchError(f"no landmark ids matched for {ground_truth.filename}")
        self._stream.write(self.format_record(face, ground_truth, errors) + "\n")
        return errors

    def write(
        self,
        faces: Iterable[FaceAnnotation],
        ground_truth: FaceAnnotation,
        measure: Measure,
    ) -> int:
        """Write one record per predicted face, in order.

        Unscoreable faces (undefined normalization or no shared landmark
        ids) are skipped and logged.

        Returns:
            Number of records written.
        """
        written = 0
        for face in faces:
            try:
                self.write_face(face, ground_truth, measure)
            except EvaluationError as e:
                logger.warning("Skipping report record for %s: %s", ground_truth.filename, e)
                continue
            written += 1
        return written


@dataclass(frozen=True)
class ReportEntry:
    feature_idx: int
    error: float
    occluded_gt: float
    occluded_pred: float


@dataclass(frozen=True)
class ReportRecord:
    label: str
    filename: str
    entries: tuple[ReportEntry, ...] = ()


def parse_report_line(line: str) -> ReportRecord:
    """Parse a record written by :class:`ReportWriter`.

    The filename must not contain whitespace.

    Raises:
        ValueError: Malformed record.
    """
    tokens = line.split()
    if len(tokens) < 2 or (len(tokens) - 2) % 4 != 0:
        raise ValueError(f"Malformed report record: {line!r}")

    entries = []
    for i in range(2, len(tokens), 4):
        idx, err, occ_gt, occ_pred = tokens[i:i + 4]
        entries.append(ReportEntry(
            feature_idx=int(idx),
            error=float(err),
            occluded_gt=float(occ_gt),
            occluded_pred=float(occ_pred),
        ))
    return ReportRecord(label=tokens[0], filename=tokens[1], entries=tuple(entries))


__all__ = [
    "DEFAULT_LABEL",
    "NO_MATCH",
    "ReportWriter",
    "ReportEntry",
    "ReportRecord",
    "parse_report_line",
]
