"""Sorted mass index with binary-search lookups.

One lookup primitive serves three callers:
1. Marker and contaminant matching (closest peak inside an asymmetric window)
2. Decoy placement against real marker masses (any mass within tolerance)
3. Decoy placement against already placed decoy masses (same check, growing index)

Performance targets:
- Lookup: O(log n)
- Insertion: O(n) (array copy), fine for per-taxon marker sets
"""

import numpy as np
import numba


# =============================================================================
# Binary Search (Core Algorithm)
# =============================================================================

@numba.jit(nopython=True, cache=True)
def lower_bound(sorted_mz: np.ndarray, value: float) -> int:
    """Index of the first element >= value (len(sorted_mz) if none).

    Parameters
    ----------
    sorted_mz : np.ndarray
        Sorted m/z array
        CRITICAL: Must be sorted ascending! No validation for speed.
    value : float
        Query mass

    Returns
    -------
    int
        Insertion point that keeps the array sorted
    """
    left, right = 0, len(sorted_mz)
    while left < right:
        mid = (left + right) // 2
        if sorted_mz[mid] < value:
            left = mid + 1
        else:
            right = mid
    return left


@numba.jit(nopython=True, cache=True)
def nearest_within(
    sorted_mz: np.ndarray,
    target_mz: float,
    left_da: float,
    right_da: float,
) -> int:
    """Find the closest mass inside ``[target + left_da, target + right_da]``.

    Parameters
    ----------
    sorted_mz : np.ndarray
        Sorted m/z array
    target_mz : float
        Expected mass
    left_da : float
        Lower window offset (usually negative)
    right_da : float
        Upper window offset

    Returns
    -------
    int
        Index of the closest mass, -1 if the window is empty

    Notes
    -----
    Ties in absolute distance go to the lowest index.

    Examples
    --------
    >>> masses = np.array([699.5, 700.05, 700.2])
    >>> nearest_within(masses, 700.0, -0.3, 0.3)
    1
    """
    n = len(sorted_mz)
    start_idx = lower_bound(sorted_mz, target_mz + left_da)
    mz_max = target_mz + right_da

    best_idx = -1
    best_dist = np.inf
    idx = start_idx
    while idx < n and sorted_mz[idx] <= mz_max:
        dist = abs(sorted_mz[idx] - target_mz)
        if dist < best_dist:
            best_dist = dist
            best_idx = idx
        idx += 1
    return best_idx


@numba.jit(nopython=True, cache=True)
def any_within(sorted_mz: np.ndarray, value: float, tol: float) -> bool:
    """True if some mass lies within ``tol`` (inclusive) of ``value``.

    Only the two neighbours of the insertion point need checking.
    """
    n = len(sorted_mz)
    if n == 0:
        return False
    idx = lower_bound(sorted_mz, value)
    if idx < n and abs(sorted_mz[idx] - value) <= tol:
        return True
    if idx > 0 and abs(sorted_mz[idx - 1] - value) <= tol:
        return True
    return False


@numba.jit(nopython=True, cache=True)
def nearest_within_batch(
    sorted_mz: np.ndarray,
    target_mz: np.ndarray,
    left_da: np.ndarray,
    right_da: np.ndarray,
) -> np.ndarray:
    """Vectorized :func:`nearest_within` over many targets (-1 where unmatched)."""
    n_targets = len(target_mz)
    out = np.full(n_targets, -1, dtype=np.int64)
    for i in range(n_targets):
        out[i] = nearest_within(sorted_mz, target_mz[i], left_da[i], right_da[i])
    return out


# =============================================================================
# Sorted Mass Index
# =============================================================================

class SortedMassIndex:
    """Growable sorted float64 mass array with tolerance lookups.

    Examples
    --------
    >>> index = SortedMassIndex([900.0, 600.0])
    >>> index.is_near(600.25, 0.3)
    True
    >>> index.insert(750.0)
    >>> index.values
    array([600., 750., 900.])
    """

    def __init__(self, masses=None):
        if masses is None:
            self._mz = np.empty(0, dtype=np.float64)
        else:
            self._mz = np.sort(np.asarray(masses, dtype=np.float64))

    @property
    def values(self) -> np.ndarray:
        return self._mz

    def __len__(self) -> int:
        return len(self._mz)

    def insert(self, mz: float) -> None:
        idx = lower_bound(self._mz, mz)
        self._mz = np.insert(self._mz, idx, mz)

    def is_near(self, mz: float, tol: float) -> bool:
        return any_within(self._mz, mz, tol)
