"""Mass lookup and marker matching.

Core algorithms:
- Binary search on m/z-sorted arrays (O(log n))
- Closest-peak matching inside asymmetric marker windows
- Contaminant matching with a symmetric tolerance
"""

from .mass_index import (
    SortedMassIndex,
    any_within,
    lower_bound,
    nearest_within,
    nearest_within_batch,
)

from .marker_matching import (
    ContaminantHit,
    MarkerMatch,
    count_matched,
    marker_window,
    match_contaminants,
    match_markers,
    matched_peak_mz_set,
)

__all__ = [
    # Mass index
    "SortedMassIndex",
    "any_within",
    "lower_bound",
    "nearest_within",
    "nearest_within_batch",
    # Marker matching
    "ContaminantHit",
    "MarkerMatch",
    "count_matched",
    "marker_window",
    "match_contaminants",
    "match_markers",
    "matched_peak_mz_set",
]
