"""Configuration for an evaluation run.

Example:
    >>> from alignscan.config import EvalConfig
    >>> from alignscan.types import Measure
    >>>
    >>> config = EvalConfig(measure=Measure.PUPILS, database="wflw", output_dir="./hard")
    >>>
    >>> # or from YAML
    >>> config = EvalConfig.from_yaml("eval.yaml")

YAML layout::

    measure: corners
    database: 300w_public
    output_dir: output/err
    label: my_detector
    palette:
      pred_visible: [0, 255, 0]
    thresholds:
      - {database: wflw, threshold: 10.0}
      - {measure: height, threshold: 4.0}
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from alignscan.normalize import CORNER_IDS, PUPIL_IDS
from alignscan.overlay import Palette
from alignscan.report import DEFAULT_LABEL
from alignscan.thresholds import DEFAULT_RULES, ThresholdRule
from alignscan.types import Measure

logger = logging.getLogger(__name__)

DEFAULT_MEASURE = Measure.HEIGHT
DEFAULT_DATABASE = "aflw"

# Database tags with known annotation conventions. Other tags are accepted
# and only affect threshold lookup.
KNOWN_DATABASES = (
    "300w_public", "300w_private", "cofw", "aflw", "wflw",
    "ls3dw", "300wlp", "menpo", "3dmenpo", "all",
)


@dataclass
class EvalConfig:
    """Options of an evaluation run.

    Attributes:
        measure: Normalization basis.
        database: Dataset tag used for threshold lookup.
        output_dir: Hard-case image directory. No images are written when None.
        label: First column of every report record.
        palette: Overlay colors.
        pupil_ids: Eye-center landmark ids for the pupils measure.
        corner_ids: Eye-corner landmark ids for the corners measure.
        rules: Ordered hard-case threshold rules.
    """

    measure: Measure = DEFAULT_MEASURE
    database: str = DEFAULT_DATABASE
    output_dir: Optional[str] = None
    label: str = DEFAULT_LABEL
    palette: Palette = field(default_factory=Palette)
    pupil_ids: tuple[int, int] = PUPIL_IDS
    corner_ids: tuple[int, int] = CORNER_IDS
    rules: tuple[ThresholdRule, ...] = DEFAULT_RULES

    def __post_init__(self) -> None:
        if isinstance(self.measure, str):
            self.measure = Measure.from_string(self.measure)
        if self.database not in KNOWN_DATABASES:
            logger.debug("Database %r has no dedicated conventions", self.database)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "EvalConfig":
        """Create an EvalConfig from a dictionary.

        Missing keys keep their defaults.
        """
        rules = DEFAULT_RULES
        if "thresholds" in data:
            rules = tuple(
                ThresholdRule(
                    threshold=float(r["threshold"]),
                    database=r.get("database"),
                    measure=Measure.from_string(r["measure"]) if r.get("measure") else None,
                )
                for r in data["thresholds"]
            )

        output_dir = data.get("output_dir")
        return cls(
            measure=Measure.from_string(str(data.get("measure", DEFAULT_MEASURE.value))),
            database=str(data.get("database", DEFAULT_DATABASE)),
            output_dir=str(output_dir) if output_dir is not None else None,
            label=str(data.get("label", DEFAULT_LABEL)),
            palette=Palette.from_dict(data.get("palette", {})),
            pupil_ids=tuple(data.get("pupil_ids", PUPIL_IDS)),
            corner_ids=tuple(data.get("corner_ids", CORNER_IDS)),
            rules=rules,
        )

    @classmethod
    def from_yaml(cls, yaml_path: str | Path) -> "EvalConfig":
        """Load an EvalConfig from a YAML file.

        Raises:
            FileNotFoundError: If the file doesn't exist.
        """
        with open(yaml_path, encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
        return cls.from_dict(data)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a dictionary accepted by :meth:`from_dict`."""
        return {
            "measure": self.measure.value,
            "database": self.database,
            "output_dir": self.output_dir,
            "label": self.label,
            "palette": self.palette.to_dict(),
            "pupil_ids": list(self.pupil_ids),
            "corner_ids": list(self.corner_ids),
            "thresholds": [
                {
                    "threshold": r.threshold,
                    "database": r.database,
                    "measure": r.measure.value if r.measure else None,
                }
                for r in self.rules
            ],
        }


__all__ = ["DEFAULT_MEASURE", "DEFAULT_DATABASE", "KNOWN_DATABASES", "EvalConfig"]
