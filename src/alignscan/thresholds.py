"""Per-face mean error and hard-case classification.

Thresholds are an ordered rule list: the first rule matching the
(measure, database) pair wins, otherwise ``DEFAULT_THRESHOLD`` applies.

    ======================  =========
    rule                    threshold
    ======================  =========
    database == "wflw"      10.0
    measure == height       4.0
    measure == diagonal     3.0
    (default)               8.0
    ======================  =========
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional, Sequence

from alignscan.metrics import NormalizedErrors, get_normalized_errors
from alignscan.normalize import CORNER_IDS, PUPIL_IDS
from alignscan.types import FaceAnnotation, Measure

logger = logging.getLogger(__name__)

DEFAULT_THRESHOLD = 8.0


@dataclass(frozen=True)
class ThresholdRule:
    """One row of the threshold table.

    A rule matches when every condition it sets matches; unset
    conditions (None) match anything.
    """

    threshold: float
    database: Optional[str] = None
    measure: Optional[Measure] = None

    def matches(self, measure: Measure, database: str) -> bool:
        if self.database is not None and self.database != database:
            return False
        if self.measure is not None and self.measure is not measure:
            return False
        return True


DEFAULT_RULES: tuple[ThresholdRule, ...] = (
    ThresholdRule(threshold=10.0, database="wflw"),
    ThresholdRule(threshold=4.0, measure=Measure.HEIGHT),
    ThresholdRule(threshold=3.0, measure=Measure.DIAGONAL),
)


def hard_case_threshold(
    measure: Measure,
    database: str,
    rules: Sequence[ThresholdRule] = DEFAULT_RULES,
    default: float = DEFAULT_THRESHOLD,
) -> float:
    """Look up the hard-case threshold for a (measure, database) pair."""
    for rule in rules:
        if rule.matches(measure, database):
            return rule.threshold
    return default


@dataclass(frozen=True)
class FaceScore:
    """Score of one predicted face against its ground truth."""

    mean_error: float
    is_hard: bool
    threshold: float
    errors: NormalizedErrors


def score_errors(errors: NormalizedErrors, threshold: float) -> FaceScore:
    """Aggregate the errors of one face against a threshold.

    Raises:
        EmptyMatchError: ``errors`` is empty.
    """
    mean_error = errors.mean()
    return FaceScore(
        mean_error=mean_error,
        is_hard=mean_error > threshold,
        threshold=threshold,
        errors=errors,
    )


def classify(
    predicted: FaceAnnotation,
    ground_truth: FaceAnnotation,
    measure: Measure,
    database: str,
    *,
    rules: Sequence[ThresholdRule] = DEFAULT_RULES,
    pupil_ids: tuple[int, int] = PUPIL_IDS,
    corner_ids: tuple[int, int] = CORNER_IDS,
) -> FaceScore:
    """Average the normalized errors of a face and decide if it is hard.

    Raises:
        NormalizationError: The measure is undefined for ``ground_truth``.
        EmptyMatchError: No landmark was matched.
    """
    errors = get_normalized_errors(
        predicted, ground_truth, measure, pupil_ids=pupil_ids, corner_ids=corner_ids
    )
    score = score_errors(errors, hard_case_threshold(measure, database, rules))
    logger.debug(
        "%s: %d landmarks, mean error %.4f (threshold %.1f, hard=%s)",
        ground_truth.filename, len(errors), score.mean_error, score.threshold, score.is_hard,
    )
    return score


__all__ = [
    "DEFAULT_THRESHOLD",
    "DEFAULT_RULES",
    "ThresholdRule",
    "FaceScore",
    "hard_case_threshold",
    "score_errors",
    "classify",
]
