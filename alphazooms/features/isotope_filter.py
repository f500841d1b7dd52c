"""
Monoisotopic peak filtering for singly charged MALDI peptide spectra.

Removes isotope satellites (M+1, M+2, ...) from a peak list so that each
isotope envelope is represented by its lowest-mass peak. This is a pragmatic
alternative to full isotope-pattern deconvolution: no charge states, no
intensity-ratio checks, only mass spacing.
"""

from dataclasses import dataclass

import numpy as np
from numba import njit

from ..config import MonoisotopicParams
from ..constants import AVERAGINE_ISOTOPE_SPACING
from ..spectrum import PeakList


@dataclass
class IsotopeFilterStats:
    """Summary of one filtering pass."""

    n_input: int = 0
    n_kept: int = 0

    @property
    def n_removed(self) -> int:
        return self.n_input - self.n_kept


@njit
def find_monoisotopic_mask(
    mz_array: np.ndarray,
    tolerance_da: float,
    distance_da: float,
    max_isotopes: int,
) -> np.ndarray:
    """Flag peaks that anchor an isotope series.

    Scans ascending. Every peak not yet removed is kept and removes later
    peaks within ``tolerance_da`` of ``mz + k * distance_da`` for
    k = 1..max_isotopes. Removal does not cascade: a removed peak never
    removes anything itself.

    Args:
        mz_array: Peak m/z values (MUST BE SORTED)
        tolerance_da: Absolute tolerance around each expected isotope position
        distance_da: Isotope spacing (Da)
        max_isotopes: Number of isotope positions checked per anchor

    Returns:
        Boolean mask, True for kept peaks
    """
    n = len(mz_array)
    removed = np.zeros(n, dtype=np.bool_)
    keep = np.zeros(n, dtype=np.bool_)

    for i in range(n):
        if removed[i]:
            continue
        keep[i] = True
        anchor = mz_array[i]

        for k in range(1, max_isotopes + 1):
            target = anchor + k * distance_da
            for j in range(i + 1, n):
                if mz_array[j] > target + tolerance_da:
                    break
                if abs(mz_array[j] - target) <= tolerance_da:
                    removed[j] = True

    return keep


def keep_monoisotopic_peaks(
    peaks: PeakList,
    tolerance_da: float = 0.2,
    distance_da: float = AVERAGINE_ISOTOPE_SPACING,
    max_isotopes: int = 10,
) -> PeakList:
    """Keep only monoisotopic peaks.

    Args:
        peaks: Peak list (sorted by m/z on return, regardless of input order)
        tolerance_da: Absolute tolerance around each isotope position
        distance_da: Isotope spacing (Da)
        max_isotopes: Isotope positions checked per anchor peak

    Returns:
        Surviving peaks in ascending m/z order
    """
    if len(peaks) == 0:
        return PeakList.empty()

    order = np.argsort(peaks.mz, kind="stable")
    mz_sorted = np.ascontiguousarray(peaks.mz[order])
    intensity_sorted = peaks.intensity[order]

    mask = find_monoisotopic_mask(mz_sorted, tolerance_da, distance_da, max_isotopes)
    return PeakList(mz_sorted[mask], intensity_sorted[mask])


def filter_isotopes(peaks: PeakList, params: MonoisotopicParams) -> tuple:
    """Apply the monoisotopic filter if enabled.

    Returns:
        Tuple of (PeakList, IsotopeFilterStats)
    """
    stats = IsotopeFilterStats(n_input=len(peaks), n_kept=len(peaks))
    if not params.enabled:
        return peaks, stats

    kept = keep_monoisotopic_peaks(
        peaks, params.tolerance_da, params.distance_da, params.max_isotopes
    )
    stats.n_kept = len(kept)
    return kept, stats
