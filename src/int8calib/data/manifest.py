"""Calibration manifest loading and the shuffled image list."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator, List, Optional, Sequence

import numpy as np

from ..errors import ManifestNotFound, ManifestUnreadable

LOGGER = logging.getLogger(__name__)


class CalibrationImageList(Sequence[str]):
    """Ordered calibration image paths, permuted exactly once before use."""

    def __init__(self, paths: Sequence[str]) -> None:
        self._paths: List[str] = list(paths)
        self._shuffled = False

    def __len__(self) -> int:
        return len(self._paths)

    def __getitem__(self, index):  # type: ignore[override]
        return self._paths[index]

    def __iter__(self) -> Iterator[str]:
        return iter(self._paths)

    @property
    def shuffled(self) -> bool:
        return self._shuffled

    def shuffle(self, rng: np.random.Generator) -> None:
        """Apply a single in-place random permutation."""
        if self._shuffled:
            raise RuntimeError("Calibration image list has already been shuffled.")
        order = rng.permutation(len(self._paths))
        self._paths[:] = [self._paths[i] for i in order]
        self._shuffled = True
        LOGGER.debug("Shuffled %d calibration images", len(self._paths))


def load_image_list(manifest_path: Path, image_root: Optional[Path] = None) -> CalibrationImageList:
    """
    Read a manifest with one image path per line.

    Blank lines and ``#`` comments are ignored. Relative entries are joined onto
    ``image_root`` when one is given and kept verbatim otherwise.
    """

    manifest_path = Path(manifest_path)
    if not manifest_path.is_file():
        raise ManifestNotFound(f"Calibration manifest not found: {manifest_path}")
    try:
        text = manifest_path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise ManifestUnreadable(f"Unable to read calibration manifest {manifest_path}: {exc}") from exc

    paths: List[str] = []
    for line in text.splitlines():
        entry = line.strip()
        if not entry or entry.startswith("#"):
            continue
        if image_root is not None and not Path(entry).is_absolute():
            entry = str(image_root / entry)
        paths.append(entry)

    if not paths:
        LOGGER.warning("Calibration manifest %s is empty; no batches will be produced", manifest_path)
    else:
        LOGGER.info("Loaded %d calibration images from %s", len(paths), manifest_path)
    return CalibrationImageList(paths)
