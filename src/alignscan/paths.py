"""Collision-free output paths for hard-case images.

Hard cases are stored as ``<output_dir>/<n>_<basename>`` where ``n`` is the
smallest non-negative integer whose path does not exist yet::

    0_image.jpg  ->  1_image.jpg  ->  2_image.jpg  -> ...

The path is claimed with an exclusive create, so two writers probing the
same directory never get the same ``n``.
"""

from __future__ import annotations

import os
from pathlib import Path


def hard_case_name(filename: str | Path, n: int) -> str:
    """``<n>_<basename>`` for a source image path."""
    return f"{n}_{Path(filename).name}"


def reserve_hard_case_path(output_dir: str | Path, filename: str | Path) -> Path:
    """Claim the first free ``<n>_<basename>`` path in ``output_dir``.

    An empty placeholder file is created at the returned path; the caller
    overwrites it with the image, or removes it on failure.

    Args:
        output_dir: Target directory (created if missing).
        filename: Source image path; only its basename is used.

    Returns:
        Absolute path of the claimed file.
    """
    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    n = 0
    while True:
        candidate = output_dir / hard_case_name(filename, n)
        try:
            fd = os.open(candidate, os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            n += 1
            continue
        os.close(fd)
        return candidate.resolve()


__all__ = ["hard_case_name", "reserve_hard_case_path"]
