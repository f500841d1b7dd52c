"""Peak-level feature detection.

This module provides:
- Local-maximum peak picking with a minimum peak distance
- Identity passthrough for already centroided spectra
- Monoisotopic filtering (removal of isotope satellites)
"""

from .peak_picking import (
    detect_peaks,
    enforce_min_distance,
    find_local_maxima,
    pick_peaks,
    samples_as_peaks,
)

from .isotope_filter import (
    IsotopeFilterStats,
    filter_isotopes,
    find_monoisotopic_mask,
    keep_monoisotopic_peaks,
)

__all__ = [
    # Peak picking
    'detect_peaks',
    'enforce_min_distance',
    'find_local_maxima',
    'pick_peaks',
    'samples_as_peaks',

    # Isotope filtering
    'IsotopeFilterStats',
    'filter_isotopes',
    'find_monoisotopic_mask',
    'keep_monoisotopic_peaks',
]
