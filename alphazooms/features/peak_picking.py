"""Peak detection on profile or centroided MALDI spectra.

Peaks are local maxima above a threshold relative to the base peak. A single
sweep over the m/z-sorted candidates then enforces a minimum peak distance,
keeping the most intense peak of every cluster.

Performance
-----------
- Candidate detection: O(n), numba-compiled
- Distance filter: O(k) over k candidates
"""

import logging

import numpy as np
from numba import njit

from ..config import PeakPickingParams
from ..spectrum import PeakList

logger = logging.getLogger(__name__)


@njit
def find_local_maxima(intensity: np.ndarray, threshold: float) -> np.ndarray:
    """Indices of interior local maxima with intensity >= threshold.

    Parameters
    ----------
    intensity : np.ndarray
        Intensities along a sorted m/z axis
    threshold : float
        Absolute intensity threshold

    Returns
    -------
    np.ndarray (int64)
        Candidate indices, ascending. Endpoints are never candidates.

    Notes
    -----
    Uses ``>=`` against both neighbours, so every sample of a flat plateau
    qualifies; the distance filter then keeps the first one.
    """
    n = len(intensity)
    out = np.empty(max(n - 2, 0), dtype=np.int64)
    n_found = 0
    for i in range(1, n - 1):
        y = intensity[i]
        if y >= threshold and y >= intensity[i - 1] and y >= intensity[i + 1]:
            out[n_found] = i
            n_found += 1
    return out[:n_found]


@njit
def enforce_min_distance(
    mz: np.ndarray,
    intensity: np.ndarray,
    min_distance: float,
) -> np.ndarray:
    """Left-to-right sweep keeping peaks at least ``min_distance`` apart.

    Parameters
    ----------
    mz : np.ndarray
        Candidate m/z values (MUST BE SORTED)
    intensity : np.ndarray
        Candidate intensities
    min_distance : float
        Minimum separation in Da

    Returns
    -------
    np.ndarray (int64)
        Indices of kept candidates

    Notes
    -----
    A candidate closer than ``min_distance`` to the last kept peak replaces it
    only when strictly more intense.
    """
    n = len(mz)
    kept = np.empty(n, dtype=np.int64)
    n_kept = 0
    for i in range(n):
        if n_kept == 0:
            kept[0] = i
            n_kept = 1
            continue
        last = kept[n_kept - 1]
        if abs(mz[i] - mz[last]) >= min_distance:
            kept[n_kept] = i
            n_kept += 1
        elif intensity[i] > intensity[last]:
            kept[n_kept - 1] = i
    return kept[:n_kept]


def pick_peaks(
    mz: np.ndarray,
    intensity: np.ndarray,
    min_relative_intensity: float,
    min_peak_distance_da: float,
) -> PeakList:
    """Detect peaks as local maxima above a relative threshold.

    Parameters
    ----------
    mz : np.ndarray
        Sorted m/z values
    intensity : np.ndarray
        Intensities parallel to ``mz``
    min_relative_intensity : float
        Threshold as a fraction of the maximum intensity
    min_peak_distance_da : float
        Minimum separation between reported peaks

    Returns
    -------
    PeakList
        Peaks sorted by m/z

    Examples
    --------
    >>> peaks = pick_peaks(mz, intensity, 0.05, 0.8)
    >>> len(peaks)
    """
    if len(intensity) < 3:
        return PeakList.empty()

    threshold = float(np.max(intensity)) * min_relative_intensity
    candidates = find_local_maxima(np.ascontiguousarray(intensity, dtype=np.float64), threshold)

    cand_mz = mz[candidates]
    cand_intensity = intensity[candidates]
    order = np.argsort(cand_mz, kind="stable")
    cand_mz = np.ascontiguousarray(cand_mz[order], dtype=np.float64)
    cand_intensity = np.ascontiguousarray(cand_intensity[order], dtype=np.float64)

    kept = enforce_min_distance(cand_mz, cand_intensity, min_peak_distance_da)
    logger.debug(f"Peak picking: {len(candidates):,} candidates -> {len(kept):,} peaks")
    return PeakList(cand_mz[kept], cand_intensity[kept])


def samples_as_peaks(mz: np.ndarray, intensity: np.ndarray) -> PeakList:
    """Treat every sample as a peak (identity passthrough)."""
    return PeakList(np.array(mz, dtype=np.float64), np.array(intensity, dtype=np.float64))


def detect_peaks(mz: np.ndarray, intensity: np.ndarray, params: PeakPickingParams) -> PeakList:
    """Run peak picking if enabled, otherwise pass every sample through."""
    if not params.enabled:
        return samples_as_peaks(mz, intensity)
    return pick_peaks(mz, intensity, params.min_relative_intensity, params.min_peak_distance_da)
