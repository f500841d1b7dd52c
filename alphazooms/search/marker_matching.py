"""Per-marker and contaminant matching against a detected peak list.

For every reference mass, the closest detected peak inside the marker's
window is reported. Windows are asymmetric for deamidation-sensitive markers
(``[-1.3, +0.3]`` Da by default) and symmetric otherwise; contaminants use a
symmetric ``±tolerance`` window.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

import numpy as np

from ..config import ScoringWindows
from ..database.reference import Contaminant, ReferenceTaxon
from ..spectrum import PeakList
from .mass_index import nearest_within, nearest_within_batch


@dataclass(frozen=True)
class MarkerMatch:
    """Match status of one reference marker."""

    marker_name: str
    expected_mz: float
    matched: bool
    matched_peak_mz: Optional[float] = None
    matched_peak_intensity: Optional[float] = None

    @property
    def delta_da(self) -> Optional[float]:
        if self.matched_peak_mz is None:
            return None
        return self.matched_peak_mz - self.expected_mz

    @property
    def ppm_error(self) -> Optional[float]:
        if self.matched_peak_mz is None:
            return None
        return (self.matched_peak_mz - self.expected_mz) / self.expected_mz * 1e6


@dataclass(frozen=True)
class ContaminantHit:
    """A contaminant mass explained by a detected peak."""

    name: str
    expected_mz: float
    matched_peak_mz: float
    delta_da: float
    intensity: float


def _sorted_peaks(peaks: PeakList) -> tuple:
    order = np.argsort(peaks.mz, kind="stable")
    return np.ascontiguousarray(peaks.mz[order]), peaks.intensity[order]


def marker_window(marker, windows: ScoringWindows) -> tuple:
    """(left, right) offsets for a reference marker."""
    if marker.deamidation_sensitive:
        return windows.deamidation_left, windows.deamidation_right
    return windows.marker_left, windows.marker_right


def match_markers(
    peaks: PeakList,
    taxon: ReferenceTaxon,
    windows: ScoringWindows = ScoringWindows(),
) -> list[MarkerMatch]:
    """Match every marker of a taxon to its closest peak.

    Parameters
    ----------
    peaks : PeakList
        Detected peaks
    taxon : ReferenceTaxon
        Reference taxon
    windows : ScoringWindows
        Window offsets for standard and deamidation-sensitive markers

    Returns
    -------
    list[MarkerMatch]
        One row per marker, in the taxon's marker order

    Examples
    --------
    >>> rows = match_markers(peaks, taxon)
    >>> n_matched = sum(r.matched for r in rows)
    """
    if not taxon.markers:
        return []

    peak_mz, peak_intensity = _sorted_peaks(peaks)
    target = np.array([m.mz for m in taxon.markers], dtype=np.float64)
    offsets = np.array([marker_window(m, windows) for m in taxon.markers], dtype=np.float64)
    hits = nearest_within_batch(
        peak_mz, target,
        np.ascontiguousarray(offsets[:, 0]), np.ascontiguousarray(offsets[:, 1]),
    )

    rows = []
    for marker, idx in zip(taxon.markers, hits):
        if idx < 0:
            rows.append(MarkerMatch(marker.name, marker.mz, False))
        else:
            rows.append(MarkerMatch(
                marker.name, marker.mz, True,
                float(peak_mz[idx]), float(peak_intensity[idx]),
            ))
    return rows


def match_contaminants(
    peaks: PeakList,
    contaminants: list[Contaminant],
    tolerance_da: float,
) -> list[ContaminantHit]:
    """Find contaminant masses explained by detected peaks.

    Returns
    -------
    list[ContaminantHit]
        Matched contaminants only, sorted by peak intensity (descending)
    """
    peak_mz, peak_intensity = _sorted_peaks(peaks)

    hits = []
    for contaminant in contaminants:
        idx = nearest_within(peak_mz, contaminant.mz, -tolerance_da, tolerance_da)
        if idx < 0:
            continue
        matched_mz = float(peak_mz[idx])
        hits.append(ContaminantHit(
            name=contaminant.name,
            expected_mz=contaminant.mz,
            matched_peak_mz=matched_mz,
            delta_da=matched_mz - contaminant.mz,
            intensity=float(peak_intensity[idx]),
        ))

    hits.sort(key=lambda h: h.intensity, reverse=True)
    return hits


def count_matched(matches: list[MarkerMatch]) -> int:
    return sum(1 for m in matches if m.matched)


def matched_peak_mz_set(matches: list[MarkerMatch]) -> set[float]:
    """Matched peak masses rounded to 4 decimals (explained peaks)."""
    return {round(m.matched_peak_mz, 4) for m in matches if m.matched and m.matched_peak_mz is not None}
