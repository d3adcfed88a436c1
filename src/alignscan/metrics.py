"""Per-landmark normalized error between a prediction and its ground truth."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterator

import numpy as np

from alignscan.exceptions import EmptyMatchError
from alignscan.matching import LandmarkIndex
from alignscan.normalize import CORNER_IDS, PUPIL_IDS, normalize
from alignscan.types import FaceAnnotation, Measure


@dataclass(frozen=True)
class NormalizedErrors:
    """Parallel sequences: ``errors[i]`` belongs to landmark ``indices[i]``.

    Unpacks as a pair::

        indices, errors = get_normalized_errors(pred, gt, Measure.HEIGHT)
    """

    indices: tuple[int, ...] = ()
    errors: tuple[float, ...] = ()

    def __iter__(self) -> Iterator[tuple]:
        return iter((self.indices, self.errors))

    def __len__(self) -> int:
        return len(self.indices)

    def pairs(self) -> Iterator[tuple[int, float]]:
        return zip(self.indices, self.errors)

    def mean(self) -> float:
        """Arithmetic mean of the errors.

        Raises:
            EmptyMatchError: No landmark was matched.
        """
        if not self.errors:
            raise EmptyMatchError("no landmark ids matched between prediction and ground truth")
        return float(np.mean(self.errors))


def get_normalized_errors(
    predicted: FaceAnnotation,
    ground_truth: FaceAnnotation,
    measure: Measure,
    *,
    pupil_ids: tuple[int, int] = PUPIL_IDS,
    corner_ids: tuple[int, int] = CORNER_IDS,
) -> NormalizedErrors:
    """Compute normalized error for every landmark present on both sides.

    Landmarks the prediction does not carry are skipped, not penalized.
    Output follows ground-truth iteration order.

    Args:
        predicted: Predicted face.
        ground_truth: Ground-truth face of the same image.
        measure: Normalization basis.
        pupil_ids: Eye-center ids for ``Measure.PUPILS``.
        corner_ids: Eye-corner ids for ``Measure.CORNERS``.

    Returns:
        NormalizedErrors, possibly empty.

    Raises:
        NormalizationError: The measure is undefined for ``ground_truth``.
    """
    distance = normalize(ground_truth, measure, pupil_ids=pupil_ids, corner_ids=corner_ids)
    pred_index = LandmarkIndex.from_annotation(predicted)

    indices: list[int] = []
    errors: list[float] = []
    seen: set[int] = set()
    for gt_lm in ground_truth.landmarks():
        idx = gt_lm.feature_idx
        if idx in seen:
            continue
        seen.add(idx)
        pred_lm = pred_index.get(idx)
        if pred_lm is None:
            continue
        dist = math.hypot(pred_lm.pos[0] - gt_lm.pos[0], pred_lm.pos[1] - gt_lm.pos[1])
        indices.append(idx)
        errors.append(dist / distance)

    return NormalizedErrors(indices=tuple(indices), errors=tuple(errors))


__all__ = ["NormalizedErrors", "get_normalized_errors"]
