"""Spectrum cropping, SNIP baseline removal and normalization.

High-performance implementations of:
- m/z window cropping (binary search on the sorted m/z axis)
- SNIP baseline estimation (numba-optimized iterative clipping)
- Baseline subtraction floored at zero
- Normalization to the base peak

All functions are pure: inputs are never modified, new arrays are returned.
"""

import logging
from typing import NamedTuple

import numpy as np
from numba import njit

from ..config import AnalysisParams

logger = logging.getLogger(__name__)


class ProcessedSpectrum(NamedTuple):
    """Cropped raw trace (for display) and processed trace (for detection)."""

    raw_mz: np.ndarray
    raw_intensity: np.ndarray
    mz: np.ndarray
    intensity: np.ndarray


def crop_spectrum(
    mz: np.ndarray,
    intensity: np.ndarray,
    mz_min: float,
    mz_max: float,
) -> tuple:
    """Crop a spectrum to ``mz_min <= mz <= mz_max``.

    Args:
        mz: Sorted m/z values
        intensity: Intensities parallel to ``mz``
        mz_min: Lower bound (inclusive)
        mz_max: Upper bound (inclusive)

    Returns:
        (mz, intensity) copies restricted to the window

    Examples:
        >>> mz, intensity = crop_spectrum(mz, intensity, 500.0, 3500.0)
    """
    start = int(np.searchsorted(mz, mz_min, side="left"))
    end = int(np.searchsorted(mz, mz_max, side="right"))
    if end < start:
        end = start
    return (
        np.array(mz[start:end], dtype=np.float64),
        np.array(intensity[start:end], dtype=np.float64),
    )


def clamp_snip_iterations(iterations: int, n_points: int) -> int:
    """Clamp SNIP iterations to ``[1, floor(n/2) - 1]``.

    Returns 0 when the trace is too short for any clipping window.
    """
    upper = n_points // 2 - 1
    if upper < 1:
        return 0
    return max(1, min(int(iterations), upper))


@njit
def _snip_clip(log_intensity: np.ndarray, iterations: int) -> np.ndarray:
    """Iterative min-filter on log-transformed intensities.

    At half-width k, every interior point is replaced by the smaller of itself
    and the mean of its neighbours k points away. Each pass reads the estimate
    left by the previous pass.
    """
    n = len(log_intensity)
    estimate = log_intensity.copy()
    work = log_intensity.copy()

    for k in range(1, iterations + 1):
        for i in range(k, n - k):
            clipped = 0.5 * (estimate[i - k] + estimate[i + k])
            if clipped < estimate[i]:
                work[i] = clipped
            else:
                work[i] = estimate[i]
        for i in range(k, n - k):
            estimate[i] = work[i]

    return estimate


def snip_baseline(intensity: np.ndarray, iterations: int) -> np.ndarray:
    """Estimate a smooth baseline with the SNIP algorithm.

    Args:
        intensity: Non-negative intensities
        iterations: Maximum clipping half-width (clamped to what the trace supports)

    Returns:
        Baseline estimate, same length as ``intensity``. A trace shorter than
        four points gets a zero baseline.

    Notes:
        - Works on log1p(intensity) so that tall peaks do not dominate
        - Baseline is converted back with expm1
    """
    n = len(intensity)
    n_iter = clamp_snip_iterations(iterations, n)
    if n_iter != iterations:
        logger.debug(f"SNIP iterations clamped from {iterations} to {n_iter} (n={n})")
    if n_iter == 0:
        return np.zeros(n, dtype=np.float64)

    log_intensity = np.log1p(np.maximum(intensity, 0.0)).astype(np.float64)
    return np.expm1(_snip_clip(log_intensity, n_iter))


def subtract_baseline(intensity: np.ndarray, baseline: np.ndarray) -> np.ndarray:
    """Subtract a baseline, flooring the result at zero."""
    if len(intensity) != len(baseline):
        raise ValueError(
            f"Baseline length {len(baseline)} does not match intensity length {len(intensity)}"
        )
    return np.maximum(intensity - baseline, 0.0)


def normalize_to_max(intensity: np.ndarray) -> np.ndarray:
    """Scale intensities so that the base peak equals 1.

    Returns a copy of the input unchanged when the maximum is not positive.
    """
    if len(intensity) == 0:
        return np.array(intensity, dtype=np.float64)
    max_intensity = float(np.max(intensity))
    if max_intensity <= 0:
        return np.array(intensity, dtype=np.float64)
    return intensity / max_intensity


def preprocess_spectrum(
    mz: np.ndarray,
    intensity: np.ndarray,
    params: AnalysisParams,
) -> ProcessedSpectrum:
    """Crop and optionally baseline-correct and normalize a spectrum.

    Args:
        mz: Sorted m/z values
        intensity: Intensities parallel to ``mz``
        params: Analysis parameters (window and ``preprocess`` section)

    Returns:
        ProcessedSpectrum with the cropped raw trace and the processed trace
    """
    raw_mz, raw_intensity = crop_spectrum(mz, intensity, params.mz_min, params.mz_max)

    processed = raw_intensity
    settings = params.preprocess
    if settings.enabled:
        if settings.baseline_subtract.enabled:
            baseline = snip_baseline(processed, settings.baseline_subtract.iterations)
            processed = subtract_baseline(processed, baseline)
        if settings.normalize_to_max:
            processed = normalize_to_max(processed)

    return ProcessedSpectrum(raw_mz, raw_intensity, raw_mz, processed)
