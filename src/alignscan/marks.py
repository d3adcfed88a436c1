"""Declarative overlay mark types.

Marks describe *what* to draw, not *how*. :mod:`alignscan.renderer`
turns them into pixels.

All Mark types are frozen dataclasses, so overlays can be compared
with ``==`` in tests without rendering anything.

Example:
    >>> from alignscan.marks import SegmentMark, PointMark
    >>> marks = [
    ...     SegmentMark(p1=(10.0, 10.0), p2=(20.0, 10.0), color=(0, 255, 0)),
    ...     PointMark(center=(10.0, 10.0), color=(0, 255, 0)),
    ... ]
"""

from dataclasses import dataclass


@dataclass(frozen=True)
class SegmentMark:
    """Line between two pixel positions."""

    p1: tuple[float, float]
    p2: tuple[float, float]
    color: tuple[int, int, int]
    thickness: int = 2


@dataclass(frozen=True)
class PointMark:
    """Filled circle at a pixel position."""

    center: tuple[float, float]
    color: tuple[int, int, int]
    radius: int = 3


@dataclass(frozen=True)
class LabelMark:
    """Text label. ``y`` may be negative to anchor from the bottom edge."""

    text: str
    x: int
    y: int
    color: tuple[int, int, int] = (255, 255, 255)
    font_scale: float = 1.0
    thickness: int = 1


Mark = SegmentMark | PointMark | LabelMark

__all__ = ["Mark", "SegmentMark", "PointMark", "LabelMark"]
