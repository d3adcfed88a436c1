"""Occlusion-aware skeleton overlays for ground truth and predictions.

Each landmark set is drawn as a skeleton: consecutive landmarks of a part
are joined by a segment and every landmark gets a filled point. Colors come
from a :class:`Palette` keyed by :class:`Role`:

- a point takes the occluded tone when the landmark itself is occluded;
- a segment takes the occluded tone when either endpoint is occluded.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, List, Mapping

from alignscan.marks import LabelMark, Mark, PointMark, SegmentMark
from alignscan.types import FaceAnnotation, Landmark


class Source(Enum):
    GROUND_TRUTH = "gt"
    PREDICTION = "pred"


class Role(Enum):
    """Drawing role of a segment or point."""

    GT_VISIBLE = "gt_visible"
    GT_OCCLUDED = "gt_occluded"
    PRED_VISIBLE = "pred_visible"
    PRED_OCCLUDED = "pred_occluded"


# BGR
DEFAULT_COLORS: Dict[Role, tuple[int, int, int]] = {
    Role.GT_VISIBLE: (255, 122, 0),     # cyan-ish
    Role.GT_OCCLUDED: (255, 0, 0),      # blue
    Role.PRED_VISIBLE: (0, 255, 0),     # green
    Role.PRED_OCCLUDED: (0, 0, 255),    # red
}

ERROR_TEXT_COLOR = (0, 0, 255)


@dataclass(frozen=True)
class Palette:
    """Role -> BGR color lookup, injected as configuration."""

    colors: Mapping[Role, tuple[int, int, int]] = field(
        default_factory=lambda: dict(DEFAULT_COLORS)
    )
    text_color: tuple[int, int, int] = ERROR_TEXT_COLOR

    def __post_init__(self) -> None:
        missing = [r.value for r in Role if r not in self.colors]
        if missing:
            raise ValueError(f"Palette is missing colors for roles: {missing}")

    def color(self, role: Role) -> tuple[int, int, int]:
        return tuple(self.colors[role])

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> "Palette":
        """Build a palette from ``{"gt_visible": [b, g, r], ...}``.

        Roles not listed keep their default color.
        """
        colors = dict(DEFAULT_COLORS)
        text_color = ERROR_TEXT_COLOR
        for key, value in data.items():
            if key == "text":
                text_color = tuple(int(c) for c in value)
            else:
                colors[Role(key)] = tuple(int(c) for c in value)
        return cls(colors=colors, text_color=text_color)

    def to_dict(self) -> Dict[str, list]:
        data = {role.value: list(color) for role, color in self.colors.items()}
        data["text"] = list(self.text_color)
        return data


def point_role(landmark: Landmark, source: Source) -> Role:
    if source is Source.GROUND_TRUTH:
        return Role.GT_OCCLUDED if landmark.is_occluded else Role.GT_VISIBLE
    return Role.PRED_OCCLUDED if landmark.is_occluded else Role.PRED_VISIBLE


def edge_role(a: Landmark, b: Landmark, source: Source) -> Role:
    occluded = a.is_occluded or b.is_occluded
    if source is Source.GROUND_TRUTH:
        return Role.GT_OCCLUDED if occluded else Role.GT_VISIBLE
    return Role.PRED_OCCLUDED if occluded else Role.PRED_VISIBLE


def stroke_size(bbox_height: float) -> tuple[int, int]:
    """Point radius and line thickness scaled to the face size."""
    radius = max(int(round(bbox_height * 0.01)), 3)
    thickness = max(int(round(bbox_height * 0.005)), 2)
    return radius, thickness


def skeleton_marks(
    face: FaceAnnotation,
    source: Source,
    palette: Palette,
    radius: int,
    thickness: int,
) -> List[Mark]:
    """Build segment and point marks for every part of a face."""
    marks: List[Mark] = []
    for part in face.parts:
        lms = part.landmarks
        for a, b in zip(lms, lms[1:]):
            marks.append(SegmentMark(
                p1=a.pos,
                p2=b.pos,
                color=palette.color(edge_role(a, b, source)),
                thickness=thickness,
            ))
        for lm in lms:
            marks.append(PointMark(
                center=lm.pos,
                color=palette.color(point_role(lm, source)),
                radius=radius,
            ))
    return marks


def error_label(mean_error: float, palette: Palette) -> LabelMark:
    """Mean-error text anchored 10 px from the bottom-left corner."""
    return LabelMark(text=f"{mean_error:.6f}", x=10, y=-10, color=palette.text_color)


__all__ = [
    "Source",
    "Role",
    "DEFAULT_COLORS",
    "Palette",
    "point_role",
    "edge_role",
    "stroke_size",
    "skeleton_marks",
    "error_label",
]
