"""HardCaseWriter - Save annotated overlays of hard predicted faces."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Sequence

import cv2
import numpy as np

from alignscan.exceptions import ImageIOError, ImageReadError, ImageWriteError
from alignscan.overlay import Palette, Source, error_label, skeleton_marks, stroke_size
from alignscan.paths import reserve_hard_case_path
from alignscan.renderer import render_marks
from alignscan.thresholds import FaceScore
from alignscan.types import FaceAnnotation

logger = logging.getLogger(__name__)


def read_image(filename: str | Path) -> np.ndarray:
    """Decode a BGR image.

    Raises:
        ImageReadError: The file is missing or cannot be decoded.
    """
    image = cv2.imread(str(filename), cv2.IMREAD_COLOR)
    if image is None:
        raise ImageReadError(f"Cannot read image: {filename}")
    return image


@dataclass(frozen=True)
class SaveOutcome:
    """Image sink result for one predicted face.

    Attributes:
        path: Saved hard-case image, None when nothing was saved.
        error: Read or write fault that prevented saving, if any.
    """

    path: Optional[Path] = None
    error: str = ""

    @property
    def saved(self) -> bool:
        return self.path is not None


class HardCaseWriter:
    """Draw both landmark sets over the source image and keep hard cases.

    The ground-truth skeleton is drawn once per image; each predicted face
    gets its own copy with its skeleton and mean error on top. Only faces
    whose score is hard are written, as ``<output_dir>/<n>_<basename>``.

    Args:
        output_dir: Directory for hard-case images.
        palette: Role colors. Defaults to :class:`Palette`.
    """

    def __init__(self, output_dir: str | Path, palette: Optional[Palette] = None):
        self._output_dir = Path(output_dir)
        self._palette = palette or Palette()

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def draw_ground_truth(self, image: np.ndarray, ground_truth: FaceAnnotation) -> np.ndarray:
        radius, thickness = stroke_size(ground_truth.bbox.height)
        marks = skeleton_marks(ground_truth, Source.GROUND_TRUTH, self._palette, radius, thickness)
        return render_marks(image, marks)

    def draw_prediction(
        self,
        image: np.ndarray,
        face: FaceAnnotation,
        ground_truth: FaceAnnotation,
        score: FaceScore,
    ) -> np.ndarray:
        radius, thickness = stroke_size(ground_truth.bbox.height)
        marks = skeleton_marks(face, Source.PREDICTION, self._palette, radius, thickness)
        marks.append(error_label(score.mean_error, self._palette))
        return render_marks(image, marks)

    def save(self, image: np.ndarray, filename: str | Path) -> Path:
        """Write ``image`` under the first free hard-case name for ``filename``.

        Raises:
            ImageWriteError: The image could not be encoded or written.
        """
        try:
            path = reserve_hard_case_path(self._output_dir, filename)
        except OSError as e:
            raise ImageWriteError(f"Cannot create hard-case file in {self._output_dir}: {e}") from e

        try:
            ok = cv2.imwrite(str(path), image)
        except cv2.error as e:
            path.unlink(missing_ok=True)
            raise ImageWriteError(f"Cannot encode {path}: {e}") from e
        if not ok:
            path.unlink(missing_ok=True)
            raise ImageWriteError(f"Cannot write {path}")
        return path

    def prepare(self, ground_truth: FaceAnnotation) -> np.ndarray:
        """Decode the source image and draw the ground-truth skeleton.

        Raises:
            ImageReadError: The source image cannot be decoded.
        """
        return self.draw_ground_truth(read_image(ground_truth.filename), ground_truth)

    def write_face(
        self,
        base: np.ndarray,
        face: FaceAnnotation,
        ground_truth: FaceAnnotation,
        score: FaceScore,
    ) -> Optional[Path]:
        """Save one predicted face over ``base`` if it is hard.

        Args:
            base: Output of :meth:`prepare`; left untouched.
            face: Predicted face.
            ground_truth: Ground truth of the image.
            score: Score of ``face``.

        Returns:
            Saved path, or None when the face is not hard.

        Raises:
            ImageWriteError: The image could not be written.
        """
        if not score.is_hard:
            return None
        image = self.draw_prediction(base, face, ground_truth, score)
        path = self.save(image, face.filename)
        logger.info(
            "Hard case %s (mean error %.4f > %.1f) -> %s",
            face.filename, score.mean_error, score.threshold, path,
        )
        return path

    def write(
        self,
        faces: Sequence[FaceAnnotation],
        ground_truth: FaceAnnotation,
        scores: Sequence[Optional[FaceScore]],
    ) -> List[SaveOutcome]:
        """Save every hard face of one image.

        The source image is decoded only when at least one face is hard.
        Read and write faults are logged and reported per face; they are
        never raised.

        Args:
            faces: Predicted faces of the image.
            ground_truth: Ground truth of the image.
            scores: One score per face; None for faces that could not be scored.

        Returns:
            One SaveOutcome per face, in order.
        """
        if len(faces) != len(scores):
            raise ValueError(f"Got {len(faces)} faces but {len(scores)} scores")

        outcomes = [SaveOutcome()] * len(faces)
        hard = [i for i, score in enumerate(scores) if score is not None and score.is_hard]
        if not hard:
            return outcomes

        try:
            base = self.prepare(ground_truth)
        except ImageIOError as e:
            logger.warning("Hard cases of %s not saved: %s", ground_truth.filename, e)
            for i in hard:
                outcomes[i] = SaveOutcome(error=str(e))
            return outcomes

        for i in hard:
            try:
                outcomes[i] = SaveOutcome(path=self.write_face(base, faces[i], ground_truth, scores[i]))
            except ImageIOError as e:
                logger.warning("Hard case of %s not saved: %s", faces[i].filename, e)
                outcomes[i] = SaveOutcome(error=str(e))
        return outcomes


__all__ = ["read_image", "SaveOutcome", "HardCaseWriter"]
