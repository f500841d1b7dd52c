"""Spectrum preprocessing.

Crops a spectrum to the analysis window and optionally removes a SNIP
baseline and rescales intensities to the base peak.
"""

from .processing import (
    ProcessedSpectrum,
    clamp_snip_iterations,
    crop_spectrum,
    normalize_to_max,
    preprocess_spectrum,
    snip_baseline,
    subtract_baseline,
)

__all__ = [
    "ProcessedSpectrum",
    "clamp_snip_iterations",
    "crop_spectrum",
    "normalize_to_max",
    "preprocess_spectrum",
    "snip_baseline",
    "subtract_baseline",
]
