"""Shared fixtures for alignscan tests.

All annotations and images are synthetic. NO datasets needed.
"""

import cv2
import numpy as np
import pytest

from alignscan.types import BBox, FaceAnnotation, FacePart, Landmark


def _face(filename, landmarks, bbox=(0.0, 0.0, 100.0, 100.0), label="face"):
    """Build a one-part face from ``(id, (x, y), occluded)`` triples."""
    lms = tuple(
        Landmark(feature_idx=idx, pos=(float(pos[0]), float(pos[1])), occluded=float(occ))
        for idx, pos, occ in landmarks
    )
    return FaceAnnotation(
        filename=str(filename),
        bbox=BBox(*bbox),
        parts=(FacePart(label=label, landmarks=lms),),
    )


@pytest.fixture
def make_face():
    """Factory fixture: ``make_face(filename, [(id, (x, y), occ), ...], bbox=...)``."""
    return _face


@pytest.fixture
def ground_truth():
    """Two landmarks, bbox height 100."""
    return _face("img/0001.jpg", [(1, (0, 0), 0.0), (2, (10, 0), 0.0)], bbox=(0, 0, 0, 100))


@pytest.fixture
def prediction():
    """One pixel off on each landmark of ``ground_truth``."""
    return _face("img/0001.jpg", [(1, (1, 0), 0.0), (2, (10, 1), 0.0)], bbox=(0, 0, 0, 100))


@pytest.fixture
def eye_face():
    """Face carrying eye-corner (7, 12) and eye-center (9, 13) landmarks."""
    return FaceAnnotation(
        filename="img/eyes.jpg",
        bbox=BBox(0.0, 0.0, 120.0, 160.0),
        parts=(
            FacePart("leye", (
                Landmark(7, (20.0, 50.0)),
                Landmark(9, (30.0, 50.0)),
            )),
            FacePart("reye", (
                Landmark(13, (70.0, 50.0)),
                Landmark(12, (80.0, 50.0)),
            )),
        ),
    )


@pytest.fixture
def image_file(tmp_path):
    """Factory fixture writing a gray 200x200 JPEG and returning its path."""
    def _make(name: str = "face.jpg", size=(200, 200)) -> str:
        path = tmp_path / "images" / name
        path.parent.mkdir(parents=True, exist_ok=True)
        image = np.full((size[1], size[0], 3), 128, dtype=np.uint8)
        assert cv2.imwrite(str(path), image)
        return str(path)
    return _make
