"""Analysis parameters for ZooMS spectrum scoring.

All parameter sections are frozen dataclasses. A parameter bundle is never
mutated during an analysis; derive variants with :func:`dataclasses.replace`
or build them from plain mappings with :meth:`AnalysisParams.from_dict`.

Examples
--------
>>> from alphazooms.config import AnalysisParams
>>> params = AnalysisParams()
>>> params.grid.n_bins
30000
>>> params = AnalysisParams.from_dict({"mzMin": 800, "fdr": {"nDecoys": 50}})
>>> params.fdr.n_decoys
50
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any, Mapping

from .constants import (
    AVERAGINE_ISOTOPE_SPACING,
    DEAMIDATION_WINDOW_LEFT,
    DEAMIDATION_WINDOW_RIGHT,
    MARKER_WINDOW_LEFT,
    MARKER_WINDOW_RIGHT,
    SAMPLE_WINDOW_LEFT,
    SAMPLE_WINDOW_RIGHT,
)


@dataclass(frozen=True)
class BaselineParams:
    """SNIP baseline removal."""

    enabled: bool = False
    iterations: int = 20


@dataclass(frozen=True)
class PreprocessParams:
    enabled: bool = True
    normalize_to_max: bool = True
    baseline_subtract: BaselineParams = field(default_factory=BaselineParams)


@dataclass(frozen=True)
class PeakPickingParams:
    enabled: bool = True
    min_relative_intensity: float = 0.05
    min_peak_distance_da: float = 0.8


@dataclass(frozen=True)
class MonoisotopicParams:
    """Isotope envelope collapsing (keep the monoisotopic peak)."""

    enabled: bool = True
    tolerance_da: float = 0.2
    distance_da: float = AVERAGINE_ISOTOPE_SPACING
    max_isotopes: int = 5


@dataclass(frozen=True)
class GridParams:
    """Binary scoring grid covering ``[start_mz, end_mz)`` in ``step_mz`` bins."""

    start_mz: float = 500.0
    end_mz: float = 3500.0
    step_mz: float = 0.1

    @property
    def n_bins(self) -> int:
        if self.step_mz <= 0:
            return 0
        return int(math.floor((self.end_mz - self.start_mz) / self.step_mz))


@dataclass(frozen=True)
class ScoringWindows:
    """Window offsets (Da) used to paint masses onto the scoring grid.

    Offsets are relative to the painted mass, so a window covers
    ``[mz + left, mz + right]``. The asymmetric defaults model a possible
    deamidation shift without knowing which observed peaks are affected.
    """

    sample_left: float = SAMPLE_WINDOW_LEFT
    sample_right: float = SAMPLE_WINDOW_RIGHT
    marker_left: float = MARKER_WINDOW_LEFT
    marker_right: float = MARKER_WINDOW_RIGHT
    deamidation_left: float = DEAMIDATION_WINDOW_LEFT
    deamidation_right: float = DEAMIDATION_WINDOW_RIGHT


@dataclass(frozen=True)
class FDRParams:
    """Decoy generation and sample-level FDR estimation."""

    enabled: bool = True
    n_decoys: int = 200
    max_decoys: int = 1000
    seed: int = 1337
    tolerance_da: float = 0.3

    @property
    def effective_n_decoys(self) -> int:
        return max(0, min(self.n_decoys, self.max_decoys))


@dataclass(frozen=True)
class AnalysisParams:
    """Complete parameter bundle for one analysis run.

    Attributes
    ----------
    mz_min, mz_max : float
        Analysis window; the spectrum is cropped to ``mz_min <= mz <= mz_max``.
    preprocess : PreprocessParams
        Baseline removal and normalization.
    peak_picking : PeakPickingParams
        Local-maximum peak detection.
    monoisotopic : MonoisotopicParams
        Isotope envelope collapsing.
    grid : GridParams
        Binary scoring grid shared by the sample and every taxon.
    windows : ScoringWindows
        Window offsets used for vectorization and marker matching.
    contaminants_tolerance_da : float
        Symmetric window for contaminant matching.
    fdr : FDRParams
        Decoy generation and q-value estimation.
    """

    mz_min: float = 500.0
    mz_max: float = 3500.0
    preprocess: PreprocessParams = field(default_factory=PreprocessParams)
    peak_picking: PeakPickingParams = field(default_factory=PeakPickingParams)
    monoisotopic: MonoisotopicParams = field(default_factory=MonoisotopicParams)
    grid: GridParams = field(default_factory=GridParams)
    windows: ScoringWindows = field(default_factory=ScoringWindows)
    contaminants_tolerance_da: float = 0.3
    fdr: FDRParams = field(default_factory=FDRParams)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnalysisParams":
        """Build parameters from a (possibly partial) nested mapping.

        Keys may be camelCase (``minRelativeIntensity``) or snake_case
        (``min_relative_intensity``). Missing keys keep their defaults.

        Raises
        ------
        ValueError
            If a key does not name a known parameter.
        """
        return _from_mapping(cls, data, path="")

    def to_dict(self) -> dict[str, Any]:
        """Return a nested mapping with camelCase keys."""
        return _to_mapping(self)


# =============================================================================
# Mapping helpers
# =============================================================================

def _snake_case(key: str) -> str:
    key = re.sub(r"(?<=[a-z0-9])([A-Z])", r"_\1", key)
    return key.lower()


def _camel_case(name: str) -> str:
    head, *tail = name.split("_")
    return head + "".join(part[:1].upper() + part[1:] for part in tail)


def _from_mapping(cls, data: Mapping[str, Any], path: str):
    if not isinstance(data, Mapping):
        raise ValueError(f"Expected a mapping for '{path or cls.__name__}', got {type(data).__name__}")

    known = {f.name: f for f in fields(cls)}
    kwargs = {}
    for raw_key, value in data.items():
        name = _snake_case(raw_key)
        if name not in known:
            raise ValueError(f"Unknown parameter '{path}{raw_key}' for {cls.__name__}")

        default = getattr(cls(), name)
        if is_dataclass(default):
            kwargs[name] = _from_mapping(type(default), value, path=f"{path}{raw_key}.")
        else:
            kwargs[name] = value
    return cls(**kwargs)


def _to_mapping(obj) -> dict[str, Any]:
    out = {}
    for f in fields(obj):
        value = getattr(obj, f.name)
        if is_dataclass(value):
            value = _to_mapping(value)
        out[_camel_case(f.name)] = value
    return out
