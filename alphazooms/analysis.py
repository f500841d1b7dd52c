"""Single-spectrum ZooMS analysis.

Pipeline
--------
1. Crop, baseline-correct and normalize the spectrum
2. Detect peaks (or pass centroids through)
3. Collapse isotope envelopes to monoisotopic peaks
4. Rank reference taxa by binary-grid correlation
5. Match markers of the top ranked taxa and contaminant masses
6. Score decoy taxa and estimate the sample q-value
7. Classify the confidence of the top call

:func:`analyze_spectrum` is a pure function of its inputs: the reference
database, contaminants and decoys are read-only and the result is never
mutated afterwards. Re-running a spectrum produces a new result.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Sequence

import numpy as np

from .config import AnalysisParams
from .constants import TOP_N_MARKER_MATCHES
from .database.decoys import build_decoy_taxa
from .database.reference import Contaminant, ReferenceDatabase, ReferenceTaxon
from .features.isotope_filter import filter_isotopes
from .features.peak_picking import detect_peaks, samples_as_peaks
from .preprocessing.processing import preprocess_spectrum
from .scoring.confidence import ConfidenceResult, compute_confidence
from .scoring.fdr import DecoySummary, score_decoys
from .scoring.grid import TaxonScore, score_taxa
from .search.marker_matching import ContaminantHit, MarkerMatch, count_matched, match_contaminants, match_markers
from .spectrum import PeakList, Spectrum

logger = logging.getLogger(__name__)


class SpectrumInputError(ValueError):
    """A spectrum cannot be analyzed (empty window, empty database, empty grid).

    Carries the spectrum id and file name so that batch operators can tell
    which item failed.
    """

    def __init__(self, message: str, spectrum_id: str = "", filename: str = ""):
        self.spectrum_id = spectrum_id
        self.filename = filename
        self.reason = message
        super().__init__(f"{filename or spectrum_id}: {message}")


@dataclass(frozen=True)
class QCSummary:
    mz_min: float
    mz_max: float
    max_intensity: float
    peak_count: int
    raw_points: int = 0


@dataclass(frozen=True)
class AnalysisResult:
    """Everything computed for one spectrum. Array attributes are read-only.

    Attributes
    ----------
    raw_mz, raw_intensity : np.ndarray
        Cropped input trace (display)
    processed_mz, processed_intensity : np.ndarray
        Trace used for peak detection
    peaks : PeakList
        Monoisotopic peaks used for scoring
    ranked_taxa : list[TaxonScore]
        All reference taxa, best first
    taxon_matches : dict[str, list[MarkerMatch]]
        Marker detail for the top ranked taxa only, keyed by taxon id
    contaminants : list[ContaminantHit]
        Matched contaminants, most intense first
    fdr : DecoySummary
        Decoy statistics (NaN when no decoys)
    confidence : ConfidenceResult
        Confidence of the top call
    qc : QCSummary
        Window, base peak and peak count
    """

    spectrum_id: str
    filename: str
    params: AnalysisParams
    raw_mz: np.ndarray
    raw_intensity: np.ndarray
    processed_mz: np.ndarray
    processed_intensity: np.ndarray
    peaks: PeakList
    ranked_taxa: List[TaxonScore]
    taxon_matches: Dict[str, List[MarkerMatch]]
    contaminants: List[ContaminantHit]
    fdr: DecoySummary
    confidence: ConfidenceResult
    qc: QCSummary
    n_isotopes_removed: int = field(default=0)

    def __post_init__(self):
        # raw and processed traces are one array when preprocessing is off
        for arr in (self.raw_mz, self.raw_intensity, self.processed_mz,
                    self.processed_intensity, self.peaks.mz, self.peaks.intensity):
            arr.setflags(write=False)

    @property
    def top_taxon(self) -> Optional[TaxonScore]:
        return self.ranked_taxa[0] if self.ranked_taxa else None

    @property
    def second_taxon(self) -> Optional[TaxonScore]:
        return self.ranked_taxa[1] if len(self.ranked_taxa) > 1 else None

    @property
    def top_matches(self) -> List[MarkerMatch]:
        top = self.top_taxon
        if top is None:
            return []
        return self.taxon_matches.get(top.taxon_id, [])


def decoys_for_params(db: ReferenceDatabase, params: AnalysisParams) -> List[ReferenceTaxon]:
    """Generate the decoy taxa configured by ``params.fdr`` (empty if disabled)."""
    fdr = params.fdr
    if not fdr.enabled:
        return []
    return build_decoy_taxa(
        db,
        n_decoys=fdr.n_decoys,
        max_decoys=fdr.max_decoys,
        seed=fdr.seed,
        mz_min=params.mz_min,
        mz_max=params.mz_max,
        tolerance_da=fdr.tolerance_da,
    )


def analyze_spectrum(
    spectrum: Spectrum,
    db: ReferenceDatabase,
    contaminants: Sequence[Contaminant],
    params: AnalysisParams,
    decoy_taxa: Optional[Sequence[ReferenceTaxon]] = None,
    taxon_matrix: Optional[np.ndarray] = None,
    decoy_matrix: Optional[np.ndarray] = None,
) -> AnalysisResult:
    """Identify the taxon of origin of one spectrum.

    Parameters
    ----------
    spectrum : Spectrum
        Parsed spectrum
    db : ReferenceDatabase
        Reference taxa (read-only)
    contaminants : Sequence[Contaminant]
        Known interfering masses (read-only)
    params : AnalysisParams
        Analysis parameters
    decoy_taxa : Sequence[ReferenceTaxon], optional
        Decoys to score against. When None, decoys are generated from
        ``params.fdr`` (none if FDR is disabled). Pass ``[]`` to skip FDR.
    taxon_matrix, decoy_matrix : np.ndarray, optional
        Precomputed grid matrices for ``db.taxa`` and ``decoy_taxa``

    Returns
    -------
    AnalysisResult

    Raises
    ------
    SpectrumInputError
        If the database is empty, the grid has no bins or no data points
        remain after cropping.
    """
    def fail(message):
        return SpectrumInputError(message, spectrum_id=spectrum.id, filename=spectrum.filename)

    if len(db.taxa) == 0:
        raise fail(f"reference database '{db.label}' has no taxa")
    if params.grid.n_bins <= 0:
        raise fail(
            f"scoring grid has no bins (start={params.grid.start_mz}, "
            f"end={params.grid.end_mz}, step={params.grid.step_mz})"
        )

    # 1. Preprocessing
    processed = preprocess_spectrum(spectrum.mz, spectrum.intensity, params)
    if len(processed.raw_mz) == 0:
        raise fail(f"no data points between m/z {params.mz_min} and {params.mz_max}")

    # 2-3. Peaks (centroided inputs are already peak apexes)
    if spectrum.centroided:
        peaks = samples_as_peaks(processed.mz, processed.intensity)
    else:
        peaks = detect_peaks(processed.mz, processed.intensity, params.peak_picking)
    peaks, isotope_stats = filter_isotopes(peaks, params.monoisotopic)
    logger.debug(
        f"{spectrum.filename}: {len(peaks):,} peaks "
        f"({isotope_stats.n_removed:,} isotope peaks removed)"
    )

    # 4. Taxon ranking
    ranked = score_taxa(peaks, db.taxa, params, taxon_matrix=taxon_matrix)
    best_real = ranked[0].correlation if ranked else math.nan

    # 5. Marker detail for the top hits
    taxon_matches = {}
    for score in ranked[:TOP_N_MARKER_MATCHES]:
        taxon = db.get_taxon(score.taxon_id)
        if taxon is None:
            continue
        taxon_matches[score.taxon_id] = match_markers(peaks, taxon, params.windows)

    contaminant_hits = match_contaminants(peaks, list(contaminants), params.contaminants_tolerance_da)

    # 6. Decoy FDR
    if decoy_taxa is None:
        decoy_taxa = decoys_for_params(db, params)
    fdr = score_decoys(peaks, decoy_taxa, best_real, params, decoy_matrix=decoy_matrix)

    # 7. Confidence
    top = ranked[0] if ranked else None
    second = ranked[1] if len(ranked) > 1 else None
    matched = count_matched(taxon_matches.get(top.taxon_id, [])) if top else None
    confidence = compute_confidence(
        best_score=top.correlation if top else None,
        best_decoy_score=fdr.best_decoy_score,
        q_sample=fdr.q_sample,
        second_score=second.correlation if second else None,
        best_label=top.taxon_label if top else None,
        second_label=second.taxon_label if second else None,
        matched_markers=matched,
    )

    qc = QCSummary(
        mz_min=float(processed.raw_mz[0]),
        mz_max=float(processed.raw_mz[-1]),
        max_intensity=float(np.max(processed.raw_intensity)),
        peak_count=len(peaks),
        raw_points=len(processed.raw_mz),
    )

    return AnalysisResult(
        spectrum_id=spectrum.id,
        filename=spectrum.filename,
        params=params,
        raw_mz=processed.raw_mz,
        raw_intensity=processed.raw_intensity,
        processed_mz=processed.mz,
        processed_intensity=processed.intensity,
        peaks=peaks,
        ranked_taxa=ranked,
        taxon_matches=taxon_matches,
        contaminants=contaminant_hits,
        fdr=fdr,
        confidence=confidence,
        qc=qc,
        n_isotopes_removed=isotope_stats.n_removed,
    )
