"""Mark renderer: draws Mark objects onto images using cv2.

All rendering is done on a copy of the input image.

Example:
    >>> from alignscan.renderer import render_marks
    >>> output = render_marks(image, marks)
"""

from __future__ import annotations

from typing import Sequence

import cv2
import numpy as np

from alignscan.marks import LabelMark, Mark, PointMark, SegmentMark

FONT = cv2.FONT_HERSHEY_SIMPLEX


def _pt(p: tuple[float, float]) -> tuple[int, int]:
    return int(round(p[0])), int(round(p[1]))


def render_marks(image: np.ndarray, marks: Sequence[Mark]) -> np.ndarray:
    """Render a list of marks onto an image.

    Args:
        image: BGR image (H, W, 3). A copy is made internally.
        marks: Marks in drawing order; later marks paint over earlier ones.

    Returns:
        Annotated image (copy), or ``image`` itself when there are no marks.
    """
    if not marks:
        return image

    output = image.copy()
    rows = output.shape[0]

    for mark in marks:
        if isinstance(mark, SegmentMark):
            cv2.line(output, _pt(mark.p1), _pt(mark.p2), mark.color, mark.thickness)
        elif isinstance(mark, PointMark):
            cv2.circle(output, _pt(mark.center), mark.radius, mark.color, -1)
        elif isinstance(mark, LabelMark):
            y = mark.y if mark.y >= 0 else rows + mark.y
            cv2.putText(
                output, mark.text, (mark.x, y), FONT,
                mark.font_scale, mark.color, mark.thickness,
            )

    return output


__all__ = ["render_marks"]
