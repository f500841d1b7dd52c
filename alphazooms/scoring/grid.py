"""Binary mass-grid vectorization and correlation scoring.

The mass axis is cut into ``n = floor((end - start) / step)`` bins. The
sample and every reference taxon are painted onto this grid as
presence/absence vectors, and taxa are ranked by the Pearson correlation of
their vector with the sample vector.

Key Features
------------
- Sample peaks are painted with an asymmetric ``[-1.3, +0.3]`` Da window
- Markers use ``[-0.3, +0.3]`` Da, or ``[-1.3, +0.3]`` Da when deamidation-sensitive
- Correlation from sufficient statistics (counts of 1-cells and of shared 1-cells)
- Degenerate vectors (all 0 or all 1) score exactly 0
- Numba-compiled painting and scoring; taxon vectors can be precomputed as a matrix

Examples
--------
>>> x = build_sample_vector(peaks, params)
>>> y = build_taxon_vector(taxon, params)
>>> r = pearson_correlation_binary(x, y)
>>> ranked = score_taxa(peaks, db.taxa, params)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

import numpy as np
from numba import njit

from ..config import AnalysisParams, GridParams
from ..database.reference import ReferenceTaxon
from ..spectrum import PeakList


@dataclass(frozen=True)
class TaxonScore:
    """Correlation of the sample with one taxon."""

    taxon_id: str
    taxon_label: str
    correlation: float


# =============================================================================
# Vectorization
# =============================================================================

@njit
def paint_windows(
    n_bins: int,
    start_mz: float,
    step_mz: float,
    centers: np.ndarray,
    left_da: np.ndarray,
    right_da: np.ndarray,
) -> np.ndarray:
    """Paint ``[center + left, center + right]`` windows onto a binary grid.

    Args:
        n_bins: Grid length
        start_mz: Mass of bin 0
        step_mz: Bin width
        centers: Masses to paint
        left_da: Lower offset per mass
        right_da: Upper offset per mass

    Returns:
        uint8 vector of length ``n_bins``

    Notes:
        Window bounds map to ``ceil((lo - start) / step)`` and
        ``floor((hi - start) / step)``, both clamped to ``[0, n_bins - 1]``.
    """
    grid = np.zeros(n_bins, dtype=np.uint8)
    if n_bins <= 0:
        return grid
    for k in range(len(centers)):
        i0 = int(np.ceil((centers[k] + left_da[k] - start_mz) / step_mz))
        i1 = int(np.floor((centers[k] + right_da[k] - start_mz) / step_mz))
        i0 = min(max(i0, 0), n_bins - 1)
        i1 = min(max(i1, 0), n_bins - 1)
        for i in range(i0, i1 + 1):
            grid[i] = 1
    return grid


def _require_bins(grid: GridParams) -> int:
    n_bins = grid.n_bins
    if n_bins <= 0:
        raise ValueError(
            f"Scoring grid has no bins (start={grid.start_mz}, end={grid.end_mz}, step={grid.step_mz})"
        )
    return n_bins


def build_sample_vector(peaks: PeakList, params: AnalysisParams) -> np.ndarray:
    """Binary grid vector of the detected peaks."""
    n_bins = _require_bins(params.grid)
    n = len(peaks)
    centers = np.ascontiguousarray(peaks.mz, dtype=np.float64)
    left = np.full(n, params.windows.sample_left, dtype=np.float64)
    right = np.full(n, params.windows.sample_right, dtype=np.float64)
    return paint_windows(n_bins, params.grid.start_mz, params.grid.step_mz, centers, left, right)


def build_taxon_vector(taxon: ReferenceTaxon, params: AnalysisParams) -> np.ndarray:
    """Binary grid vector of a taxon's markers."""
    n_bins = _require_bins(params.grid)
    windows = params.windows
    centers = np.array([m.mz for m in taxon.markers], dtype=np.float64)
    left = np.array(
        [windows.deamidation_left if m.deamidation_sensitive else windows.marker_left for m in taxon.markers],
        dtype=np.float64,
    )
    right = np.array(
        [windows.deamidation_right if m.deamidation_sensitive else windows.marker_right for m in taxon.markers],
        dtype=np.float64,
    )
    return paint_windows(n_bins, params.grid.start_mz, params.grid.step_mz, centers, left, right)


def build_taxon_matrix(taxa: Sequence[ReferenceTaxon], params: AnalysisParams) -> np.ndarray:
    """Stack taxon vectors into a ``(n_taxa, n_bins)`` uint8 matrix."""
    n_bins = _require_bins(params.grid)
    matrix = np.zeros((len(taxa), n_bins), dtype=np.uint8)
    for row, taxon in enumerate(taxa):
        matrix[row] = build_taxon_vector(taxon, params)
    return matrix


# =============================================================================
# Correlation
# =============================================================================

@njit
def _pearson_binary(x: np.ndarray, y: np.ndarray) -> float:
    n = len(x)
    if n == 0:
        return 0.0

    sum_x = 0
    sum_y = 0
    sum_xy = 0
    for i in range(n):
        xi = x[i]
        yi = y[i]
        sum_x += xi
        sum_y += yi
        sum_xy += xi & yi

    mean_x = sum_x / n
    mean_y = sum_y / n
    var_x = mean_x - mean_x * mean_x
    var_y = mean_y - mean_y * mean_y
    if var_x <= 0.0 or var_y <= 0.0:
        return 0.0

    cov = sum_xy / n - mean_x * mean_y
    r = cov / np.sqrt(var_x * var_y)
    # rounding can push identical vectors past 1
    return min(1.0, max(-1.0, r))


@njit
def correlate_rows(x: np.ndarray, matrix: np.ndarray) -> np.ndarray:
    """Binary correlation of ``x`` with every row of ``matrix``."""
    n_rows = matrix.shape[0]
    out = np.zeros(n_rows, dtype=np.float64)
    for r in range(n_rows):
        out[r] = _pearson_binary(x, matrix[r])
    return out


def pearson_correlation_binary(x: np.ndarray, y: np.ndarray) -> float:
    """Population Pearson correlation of two 0/1 vectors.

    Parameters
    ----------
    x, y : np.ndarray (uint8)
        Binary vectors of equal length

    Returns
    -------
    float
        Correlation in [-1, 1]; 0 when either vector is constant

    Raises
    ------
    ValueError
        If the vectors differ in length

    Notes
    -----
    For 0/1 variables ``var = mean - mean**2`` and
    ``cov = mean(x & y) - mean(x) * mean(y)``.
    """
    if len(x) != len(y):
        raise ValueError(f"Vector length mismatch: {len(x)} != {len(y)}")
    return float(_pearson_binary(
        np.ascontiguousarray(x, dtype=np.uint8), np.ascontiguousarray(y, dtype=np.uint8)
    ))


def score_taxa(
    peaks: PeakList,
    taxa: Sequence[ReferenceTaxon],
    params: AnalysisParams,
    taxon_matrix: np.ndarray | None = None,
) -> list[TaxonScore]:
    """Rank taxa by correlation with the sample.

    Parameters
    ----------
    peaks : PeakList
        Detected peaks
    taxa : Sequence[ReferenceTaxon]
        Reference taxa
    params : AnalysisParams
        Grid and window parameters
    taxon_matrix : np.ndarray, optional
        Precomputed :func:`build_taxon_matrix` result for ``taxa``

    Returns
    -------
    list[TaxonScore]
        Sorted by correlation, descending; ties keep database order
    """
    if not taxa:
        return []
    x = build_sample_vector(peaks, params)
    if taxon_matrix is None:
        taxon_matrix = build_taxon_matrix(taxa, params)
    elif taxon_matrix.shape != (len(taxa), len(x)):
        raise ValueError(
            f"Taxon matrix shape {taxon_matrix.shape} does not match ({len(taxa)}, {len(x)})"
        )

    correlations = correlate_rows(x, taxon_matrix)
    scores = [
        TaxonScore(taxon.id, taxon.label, float(r))
        for taxon, r in zip(taxa, correlations)
    ]
    scores.sort(key=lambda s: s.correlation, reverse=True)
    return scores
