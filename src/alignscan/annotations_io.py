"""JSON interchange for face annotations.

Ground truth and predictions are exchanged in the same layout::

    {
      "annotations": [
        {
          "filename": "images/0001.jpg",
          "bbox": [x, y, width, height],
          "parts": [
            {"label": "leye", "landmarks": [{"id": 7, "x": 10.0, "y": 20.0, "occluded": 0.0}, ...]},
            ...
          ]
        },
        ...
      ]
    }
"""

from __future__ import annotations

import json
from collections import OrderedDict
from pathlib import Path
from typing import Any, Dict, List

from alignscan.types import BBox, FaceAnnotation, FacePart, Landmark


def _landmark_from_dict(data: Dict[str, Any]) -> Landmark:
    return Landmark(
        feature_idx=int(data["id"]),
        pos=(float(data["x"]), float(data["y"])),
        occluded=float(data.get("occluded", 0.0)),
    )


def annotation_from_dict(data: Dict[str, Any]) -> FaceAnnotation:
    """Build a FaceAnnotation from its JSON dict.

    Raises:
        KeyError: A required field is missing.
        ValueError: A field has the wrong shape or type.
    """
    bbox = data["bbox"]
    if len(bbox) != 4:
        raise ValueError(f"bbox must be [x, y, width, height], got {bbox!r}")
    parts = tuple(
        FacePart(
            label=str(p.get("label", "")),
            landmarks=tuple(_landmark_from_dict(lm) for lm in p.get("landmarks", [])),
        )
        for p in data.get("parts", [])
    )
    return FaceAnnotation(
        filename=str(data["filename"]),
        bbox=BBox(*(float(v) for v in bbox)),
        parts=parts,
    )


def annotation_to_dict(face: FaceAnnotation) -> Dict[str, Any]:
    return {
        "filename": face.filename,
        "bbox": [face.bbox.x, face.bbox.y, face.bbox.width, face.bbox.height],
        "parts": [
            {
                "label": part.label,
                "landmarks": [
                    {"id": lm.feature_idx, "x": lm.pos[0], "y": lm.pos[1], "occluded": lm.occluded}
                    for lm in part.landmarks
                ],
            }
            for part in face.parts
        ],
    }


def load_annotations(path: str | Path) -> List[FaceAnnotation]:
    """Load annotations from a JSON file.

    Raises:
        FileNotFoundError: If the file does not exist.
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Annotation file not found: {path}")

    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    return [annotation_from_dict(item) for item in data.get("annotations", [])]


def save_annotations(faces: List[FaceAnnotation], path: str | Path) -> None:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8") as f:
        json.dump({"annotations": [annotation_to_dict(face) for face in faces]}, f, indent=2)


def group_by_filename(faces: List[FaceAnnotation]) -> "OrderedDict[str, List[FaceAnnotation]]":
    """Group faces per image, keeping first-seen image order."""
    groups: "OrderedDict[str, List[FaceAnnotation]]" = OrderedDict()
    for face in faces:
        groups.setdefault(face.filename, []).append(face)
    return groups


__all__ = [
    "annotation_from_dict",
    "annotation_to_dict",
    "load_annotations",
    "save_annotations",
    "group_by_filename",
]
