"""Face-level scale distance used to normalize landmark error.

Example:
    >>> from alignscan.normalize import normalize
    >>> from alignscan.types import Measure
    >>> distance = normalize(ground_truth, Measure.HEIGHT)
"""

from __future__ import annotations

import math

from alignscan.exceptions import NormalizationError
from alignscan.matching import find_landmark
from alignscan.types import FaceAnnotation, Measure

# (left, right) eye-center landmark ids
PUPIL_IDS: tuple[int, int] = (9, 13)
# (left, right) outer eye-corner landmark ids
CORNER_IDS: tuple[int, int] = (7, 12)


def _landmark_distance(face: FaceAnnotation, ids: tuple[int, int], measure: Measure) -> float:
    first = find_landmark(face.parts, ids[0])
    second = find_landmark(face.parts, ids[1])
    missing = [idx for idx, lm in zip(ids, (first, second)) if lm is None]
    if missing:
        raise NormalizationError(
            f"{measure.value} measure needs landmarks {ids}, "
            f"missing {missing} in {face.filename}"
        )
    return math.hypot(first.pos[0] - second.pos[0], first.pos[1] - second.pos[1])


def normalize(
    face: FaceAnnotation,
    measure: Measure,
    *,
    pupil_ids: tuple[int, int] = PUPIL_IDS,
    corner_ids: tuple[int, int] = CORNER_IDS,
) -> float:
    """Compute the normalization distance of a ground-truth face.

    Args:
        face: Ground-truth annotation.
        measure: Normalization basis.
        pupil_ids: Eye-center landmark ids for ``Measure.PUPILS``.
        corner_ids: Eye-corner landmark ids for ``Measure.CORNERS``.

    Returns:
        Strictly positive distance in pixels.

    Raises:
        NormalizationError: A defining landmark is missing, or the
            resulting distance is not positive.
    """
    if measure is Measure.PUPILS:
        distance = _landmark_distance(face, pupil_ids, measure)
    elif measure is Measure.CORNERS:
        distance = _landmark_distance(face, corner_ids, measure)
    elif measure is Measure.HEIGHT:
        distance = float(face.bbox.height)
    else:
        distance = face.bbox.diagonal

    if not distance > 0.0:
        raise NormalizationError(
            f"{measure.value} distance is {distance} for {face.filename}"
        )
    return distance


__all__ = ["PUPIL_IDS", "CORNER_IDS", "normalize"]
