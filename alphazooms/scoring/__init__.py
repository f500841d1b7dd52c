"""Scoring and statistical validation of ZooMS taxon calls.

This module provides:
- Binary mass-grid vectorization of samples and reference taxa
- Pearson correlation scoring and taxon ranking
- Decoy-based sample-level FDR (q-value) estimation
- Confidence classification of the top call

Key Features
------------
- Numba-accelerated painting and correlation
- Pure NumPy/Numba implementation
- Degenerate inputs resolve to sentinels (0 correlation, NaN FDR, Unknown)

Examples
--------
>>> from alphazooms.scoring import score_taxa, score_decoys, compute_confidence
>>>
>>> ranked = score_taxa(peaks, db.taxa, params)
>>> fdr = score_decoys(peaks, decoys, ranked[0].correlation, params)
>>> conf = compute_confidence(ranked[0].correlation, fdr.best_decoy_score, fdr.q_sample)
"""

from .grid import (
    TaxonScore,
    build_sample_vector,
    build_taxon_matrix,
    build_taxon_vector,
    correlate_rows,
    paint_windows,
    pearson_correlation_binary,
    score_taxa,
)
from .fdr import (
    DecoySummary,
    calculate_sample_qvalue,
    count_at_or_above,
    score_decoys,
    summarize_decoy_scores,
)
from .confidence import (
    ConfidenceLevel,
    ConfidenceResult,
    compute_confidence,
)

__all__ = [
    # Grid scoring
    "TaxonScore",
    "build_sample_vector",
    "build_taxon_matrix",
    "build_taxon_vector",
    "correlate_rows",
    "paint_windows",
    "pearson_correlation_binary",
    "score_taxa",
    # FDR
    "DecoySummary",
    "calculate_sample_qvalue",
    "count_at_or_above",
    "score_decoys",
    "summarize_decoy_scores",
    # Confidence
    "ConfidenceLevel",
    "ConfidenceResult",
    "compute_confidence",
]
