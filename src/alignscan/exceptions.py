"""Exceptions raised by the evaluation engine.

Every fault here is face- or image-scoped. The batch driver catches them,
logs, and keeps going.
"""


class AlignScanError(Exception):
    """Base class for alignscan errors."""


class EvaluationError(AlignScanError):
    """A predicted face cannot be scored."""


class NormalizationError(EvaluationError):
    """The selected measure is undefined for a ground-truth face."""


class EmptyMatchError(EvaluationError):
    """No landmark id is present in both ground truth and prediction."""


class ImageIOError(AlignScanError, IOError):
    """Source image cannot be read or an overlay cannot be written."""


class ImageReadError(ImageIOError):
    pass


class ImageWriteError(ImageIOError):
    pass


__all__ = [
    "AlignScanError",
    "EvaluationError",
    "NormalizationError",
    "EmptyMatchError",
    "ImageIOError",
    "ImageReadError",
    "ImageWriteError",
]
