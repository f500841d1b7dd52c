"""Batch analysis of many spectra.

Spectra are analyzed one after another. Decoy taxa and the taxon/decoy grid
matrices are built once per batch and shared read-only by every spectrum.

:func:`iter_analyze_batch` is a generator: control returns to the caller
after every spectrum, which is the cooperative yield point for hosts that
must stay responsive. Stopping the iteration cancels the remaining items and
leaves completed results untouched. A failing spectrum is reported as an
error item and never aborts its siblings. Spectrum ids must be unique within
a batch: a repeated id is reported as an error and never replaces the
result of the first spectrum that used it.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Sequence

from .analysis import AnalysisResult, analyze_spectrum, decoys_for_params
from .config import AnalysisParams
from .database.reference import Contaminant, ReferenceDatabase, ReferenceTaxon
from .scoring.grid import build_taxon_matrix
from .spectrum import Spectrum

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BatchError:
    spectrum_id: str
    filename: str
    message: str


@dataclass(frozen=True)
class BatchItem:
    """Outcome of one spectrum: exactly one of ``result`` / ``error`` is set."""

    spectrum_id: str
    filename: str
    result: Optional[AnalysisResult] = None
    error: Optional[BatchError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class BatchResult:
    results: Dict[str, AnalysisResult] = field(default_factory=dict)
    errors: List[BatchError] = field(default_factory=list)
    cancelled: bool = False

    @property
    def n_done(self) -> int:
        return len(self.results) + len(self.errors)


def iter_analyze_batch(
    spectra: Iterable[Spectrum],
    db: ReferenceDatabase,
    contaminants: Sequence[Contaminant],
    params: AnalysisParams,
    decoy_taxa: Optional[Sequence[ReferenceTaxon]] = None,
) -> Iterator[BatchItem]:
    """Analyze spectra one by one, yielding a :class:`BatchItem` for each.

    Parameters
    ----------
    spectra : Iterable[Spectrum]
        Spectra to analyze (consumed lazily)
    db : ReferenceDatabase
        Reference taxa
    contaminants : Sequence[Contaminant]
        Contaminant masses
    params : AnalysisParams
        Analysis parameters shared by every spectrum
    decoy_taxa : Sequence[ReferenceTaxon], optional
        Decoys; generated once from ``params.fdr`` when None

    Yields
    ------
    BatchItem
    """
    if decoy_taxa is None:
        decoy_taxa = decoys_for_params(db, params)

    taxon_matrix = None
    decoy_matrix = None
    if params.grid.n_bins > 0:
        taxon_matrix = build_taxon_matrix(db.taxa, params) if db.taxa else None
        decoy_matrix = build_taxon_matrix(decoy_taxa, params) if decoy_taxa else None

    seen = {}
    for spectrum in spectra:
        if spectrum.id in seen:
            message = (
                f"{spectrum.filename}: duplicate spectrum id '{spectrum.id}' "
                f"(already used by {seen[spectrum.id]})"
            )
            logger.warning(message)
            error = BatchError(spectrum.id, spectrum.filename, message)
            yield BatchItem(spectrum.id, spectrum.filename, error=error)
            continue
        seen[spectrum.id] = spectrum.filename

        try:
            result = analyze_spectrum(
                spectrum, db, contaminants, params,
                decoy_taxa=decoy_taxa,
                taxon_matrix=taxon_matrix,
                decoy_matrix=decoy_matrix,
            )
        except ValueError as e:
            logger.warning(f"Analysis failed for {spectrum.filename}: {e}")
            error = BatchError(spectrum.id, spectrum.filename, str(e))
            yield BatchItem(spectrum.id, spectrum.filename, error=error)
            continue
        yield BatchItem(spectrum.id, spectrum.filename, result=result)


def analyze_batch(
    spectra: Sequence[Spectrum],
    db: ReferenceDatabase,
    contaminants: Sequence[Contaminant],
    params: AnalysisParams,
    decoy_taxa: Optional[Sequence[ReferenceTaxon]] = None,
    cancel=None,
    progress_every: int = 5,
) -> BatchResult:
    """Analyze a batch of spectra, collecting results and per-item errors.

    Parameters
    ----------
    spectra : Sequence[Spectrum]
        Spectra to analyze
    db, contaminants, params, decoy_taxa
        See :func:`iter_analyze_batch`
    cancel : optional
        Object with an ``is_set()`` method (e.g. ``threading.Event``),
        checked between spectra. Completed results are kept on cancellation.
    progress_every : int
        Log progress every this many spectra

    Returns
    -------
    BatchResult
    """
    n_total = len(spectra)
    logger.info(f"Analyzing {n_total:,} spectra against {len(db.taxa):,} taxa...")

    batch = BatchResult()
    items = iter_analyze_batch(spectra, db, contaminants, params, decoy_taxa)
    try:
        while True:
            if cancel is not None and cancel.is_set() and batch.n_done < n_total:
                batch.cancelled = True
                logger.info(f"Batch cancelled after {batch.n_done:,}/{n_total:,} spectra")
                break

            item = next(items, None)
            if item is None:
                break
            if item.ok:
                batch.results[item.spectrum_id] = item.result
            else:
                batch.errors.append(item.error)

            if progress_every > 0 and batch.n_done % progress_every == 0:
                logger.info(f"  Progress: {batch.n_done:,}/{n_total:,} spectra")
    finally:
        items.close()

    logger.info(
        f"✓ Batch complete: {len(batch.results):,} analyzed, {len(batch.errors):,} failed"
    )
    return batch
