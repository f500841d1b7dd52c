"""Spectrum and peak containers.

Every m/z sequence handled by alphazooms is a float64 NumPy array sorted
ascending, so that the Numba kernels can rely on binary search without
re-validating their inputs.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, NamedTuple

import numpy as np


class Peak(NamedTuple):
    """A single (m/z, intensity) sample extracted from a spectrum."""

    mz: float
    intensity: float


@dataclass(frozen=True)
class Spectrum:
    """A parsed mass spectrum.

    Parameters
    ----------
    id : str
        Identifier, unique within a batch
    filename : str
        Source file name (reported in errors and exports)
    mz : np.ndarray (float64)
        m/z values, non-decreasing
    intensity : np.ndarray (float64)
        Non-negative intensities, parallel to ``mz``
    centroided : bool
        Whether the trace is already reduced to peak apexes; analysis then
        uses every sample as a peak instead of running peak picking

    Raises
    ------
    ValueError
        If the arrays differ in length or ``mz`` is not sorted.
    """

    id: str
    filename: str
    mz: np.ndarray
    intensity: np.ndarray
    centroided: bool = False

    def __post_init__(self):
        mz = np.ascontiguousarray(self.mz, dtype=np.float64)
        intensity = np.ascontiguousarray(self.intensity, dtype=np.float64)

        if mz.shape != intensity.shape or mz.ndim != 1:
            raise ValueError(
                f"Spectrum {self.id} ({self.filename}): m/z and intensity arrays must be "
                f"1-D and of equal length, got {mz.shape} and {intensity.shape}"
            )
        if len(mz) > 1 and np.any(np.diff(mz) < 0):
            raise ValueError(f"Spectrum {self.id} ({self.filename}): m/z values are not sorted")

        mz.setflags(write=False)
        intensity.setflags(write=False)
        object.__setattr__(self, "mz", mz)
        object.__setattr__(self, "intensity", intensity)

    def __len__(self) -> int:
        return len(self.mz)


@dataclass(frozen=True)
class PeakList:
    """Detected peaks as parallel arrays sorted by m/z."""

    mz: np.ndarray
    intensity: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, "mz", np.ascontiguousarray(self.mz, dtype=np.float64))
        object.__setattr__(self, "intensity", np.ascontiguousarray(self.intensity, dtype=np.float64))

    @classmethod
    def empty(cls) -> "PeakList":
        return cls(np.empty(0, dtype=np.float64), np.empty(0, dtype=np.float64))

    @classmethod
    def from_peaks(cls, peaks) -> "PeakList":
        """Build a sorted peak list from an iterable of ``(mz, intensity)`` pairs."""
        pairs = list(peaks)
        if not pairs:
            return cls.empty()
        arr = np.asarray(pairs, dtype=np.float64)
        order = np.argsort(arr[:, 0], kind="stable")
        return cls(arr[order, 0], arr[order, 1])

    def __len__(self) -> int:
        return len(self.mz)

    def __iter__(self) -> Iterator[Peak]:
        for mz, intensity in zip(self.mz, self.intensity):
            yield Peak(float(mz), float(intensity))

    def __getitem__(self, idx: int) -> Peak:
        return Peak(float(self.mz[idx]), float(self.intensity[idx]))
