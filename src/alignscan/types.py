"""Face annotation domain types.

Ground truth and predictions share the same types. All values are frozen:
the evaluation engine only derives new values from them.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator

logger = logging.getLogger(__name__)

# Occlusion degree at or above which a landmark counts as occluded.
OCCLUSION_THRESHOLD = 0.5


class Measure(Enum):
    """Normalization basis for landmark error."""

    PUPILS = "pupils"
    CORNERS = "corners"
    HEIGHT = "height"
    DIAGONAL = "diagonal"

    @classmethod
    def from_string(cls, name: str) -> "Measure":
        """Parse a measure name.

        Unrecognized names log a warning and resolve to DIAGONAL.
        """
        try:
            return cls(name.strip().lower())
        except ValueError:
            logger.warning("Unknown measure %r, falling back to %s", name, cls.DIAGONAL.value)
            return cls.DIAGONAL


@dataclass(frozen=True)
class Landmark:
    """A single annotated or predicted facial point.

    Attributes:
        feature_idx: Landmark identity, stable across ground truth and prediction.
        pos: Pixel position (x, y).
        occluded: Occlusion degree in [0, 1].
    """

    feature_idx: int
    pos: tuple[float, float]
    occluded: float = 0.0

    @property
    def is_occluded(self) -> bool:
        return self.occluded >= OCCLUSION_THRESHOLD


@dataclass(frozen=True)
class FacePart:
    """Ordered landmarks of one facial region (eye, mouth, jaw, ...).

    Consecutive landmarks are connected when drawn.
    """

    label: str
    landmarks: tuple[Landmark, ...] = ()


@dataclass(frozen=True)
class BBox:
    """Face bounding box in pixels."""

    x: float
    y: float
    width: float
    height: float

    @property
    def diagonal(self) -> float:
        return math.hypot(self.width, self.height)


@dataclass(frozen=True)
class FaceAnnotation:
    """Landmark set of one face in one image.

    Exactly one ground-truth annotation exists per image; any number of
    predicted annotations may share its ``filename``.
    """

    filename: str
    bbox: BBox
    parts: tuple[FacePart, ...] = field(default_factory=tuple)

    def landmarks(self) -> Iterator[Landmark]:
        """Yield every landmark in part order."""
        for part in self.parts:
            yield from part.landmarks


__all__ = [
    "OCCLUSION_THRESHOLD",
    "Measure",
    "Landmark",
    "FacePart",
    "BBox",
    "FaceAnnotation",
]
