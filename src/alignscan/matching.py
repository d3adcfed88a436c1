"""Landmark lookup by identity.

Ground-truth and predicted landmarks are matched on ``feature_idx`` alone,
never by position or order. A missing id is a valid outcome.
"""

from __future__ import annotations

from typing import Dict, Iterable, Iterator, Optional

from alignscan.types import FaceAnnotation, FacePart, Landmark


def find_landmark(parts: Iterable[FacePart], feature_idx: int) -> Optional[Landmark]:
    """Return the first landmark with ``feature_idx``, scanning parts in order.

    Args:
        parts: Face parts to search.
        feature_idx: Landmark identity.

    Returns:
        The matching landmark, or None if the face does not carry it.
    """
    for part in parts:
        for landmark in part.landmarks:
            if landmark.feature_idx == feature_idx:
                return landmark
    return None


class LandmarkIndex:
    """Id -> landmark mapping built once per face.

    Same semantics as :func:`find_landmark`: when an id repeats, the first
    occurrence in part order wins.

    Example:
        >>> index = LandmarkIndex.from_annotation(face)
        >>> lm = index.get(9)
    """

    def __init__(self, parts: Iterable[FacePart]):
        self._by_id: Dict[int, Landmark] = {}
        for part in parts:
            for landmark in part.landmarks:
                self._by_id.setdefault(landmark.feature_idx, landmark)

    @classmethod
    def from_annotation(cls, face: FaceAnnotation) -> "LandmarkIndex":
        return cls(face.parts)

    def get(self, feature_idx: int) -> Optional[Landmark]:
        return self._by_id.get(feature_idx)

    def __contains__(self, feature_idx: object) -> bool:
        return feature_idx in self._by_id

    def __len__(self) -> int:
        return len(self._by_id)

    def __iter__(self) -> Iterator[int]:
        return iter(self._by_id)


__all__ = ["find_landmark", "LandmarkIndex"]
