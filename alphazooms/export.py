"""CSV export of marker matches and batch QC summaries.

Column names follow the camelCase headers used by ZooMS screening
spreadsheets so that exported files can be merged with existing sheets.
"""

from __future__ import annotations

import csv
import logging
import math
from pathlib import Path
from typing import Dict, List, Optional, Sequence

import numpy as np

from .analysis import AnalysisResult
from .batch import BatchError, BatchResult
from .scoring.confidence import ConfidenceLevel
from .search.marker_matching import MarkerMatch

logger = logging.getLogger(__name__)

MARKER_COLUMNS = [
    "markerName",
    "expectedMz",
    "matched",
    "matchedPeakMz",
    "matchedPeakIntensity",
]

QC_COLUMNS = [
    "spectrumId",
    "filename",
    "rawPoints",
    "peakCount",
    "topTaxon",
    "topScore",
    "secondTaxon",
    "secondScore",
    "markersMatched",
    "markersTotal",
    "markerFraction",
    "ppmMean",
    "ppmMedian",
    "ppmMaxAbs",
    "contaminantHits",
    "nDecoys",
    "bestDecoyScore",
    "decoyGap",
    "qSample",
    "confidence",
    "qcFlag",
    "error",
]

# QC flag rules, first match wins
MIN_PEAKS_FOR_QC = 10
QC_PASS = "PASS"
QC_REVIEW = "REVIEW"
QC_LOW_PEAKS = "LOW_PEAKS"
QC_NO_MARKERS = "NO_MARKERS"
QC_CONTAMINATED = "CONTAMINATED"
QC_FAIL = "FAIL"


def marker_match_rows(matches: Sequence[MarkerMatch]) -> List[Dict]:
    """One export row per marker."""
    return [
        {
            "markerName": m.marker_name,
            "expectedMz": m.expected_mz,
            "matched": m.matched,
            "matchedPeakMz": m.matched_peak_mz,
            "matchedPeakIntensity": m.matched_peak_intensity,
        }
        for m in matches
    ]


def ppm_statistics(matches: Sequence[MarkerMatch]) -> Dict[str, float]:
    """Mean, median and maximum absolute ppm error of matched markers (NaN if none)."""
    errors = np.array([m.ppm_error for m in matches if m.matched], dtype=np.float64)
    if len(errors) == 0:
        return {"ppmMean": math.nan, "ppmMedian": math.nan, "ppmMaxAbs": math.nan}
    return {
        "ppmMean": float(np.mean(errors)),
        "ppmMedian": float(np.median(errors)),
        "ppmMaxAbs": float(np.max(np.abs(errors))),
    }


def qc_flag(result: AnalysisResult) -> str:
    """Triage flag for one analyzed spectrum."""
    matches = result.top_matches
    n_matched = sum(1 for m in matches if m.matched)

    if result.qc.peak_count < MIN_PEAKS_FOR_QC:
        return QC_LOW_PEAKS
    if n_matched == 0:
        return QC_NO_MARKERS
    if len(result.contaminants) > n_matched:
        return QC_CONTAMINATED
    if result.confidence.level not in (ConfidenceLevel.HIGH, ConfidenceLevel.MEDIUM):
        return QC_REVIEW
    return QC_PASS


def qc_summary_row(result: AnalysisResult) -> Dict:
    """Per-sample QC summary row."""
    top = result.top_taxon
    second = result.second_taxon
    matches = result.top_matches
    n_matched = sum(1 for m in matches if m.matched)

    row = {
        "spectrumId": result.spectrum_id,
        "filename": result.filename,
        "rawPoints": result.qc.raw_points,
        "peakCount": result.qc.peak_count,
        "topTaxon": top.taxon_label if top else "",
        "topScore": top.correlation if top else math.nan,
        "secondTaxon": second.taxon_label if second else "",
        "secondScore": second.correlation if second else math.nan,
        "markersMatched": n_matched,
        "markersTotal": len(matches),
        "markerFraction": n_matched / len(matches) if matches else math.nan,
        "contaminantHits": len(result.contaminants),
        "nDecoys": result.fdr.n_decoys,
        "bestDecoyScore": result.fdr.best_decoy_score,
        "decoyGap": result.fdr.decoy_gap,
        "qSample": result.fdr.q_sample,
        "confidence": result.confidence.level.value,
        "qcFlag": qc_flag(result),
        "error": "",
    }
    row.update(ppm_statistics(matches))
    return row


def error_summary_row(error: BatchError) -> Dict:
    row = {column: "" for column in QC_COLUMNS}
    row.update({
        "spectrumId": error.spectrum_id,
        "filename": error.filename,
        "qcFlag": QC_FAIL,
        "error": error.message,
    })
    return row


def _format(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "TRUE" if value else "FALSE"
    if isinstance(value, float):
        return "" if not math.isfinite(value) else f"{value:.6g}"
    return str(value)


def write_rows_csv(path, rows: Sequence[Dict], columns: Sequence[str]) -> Path:
    path = Path(path)
    with open(path, "w", newline="") as f:
        writer = csv.DictWriter(f, fieldnames=list(columns))
        writer.writeheader()
        for row in rows:
            writer.writerow({c: _format(row.get(c)) for c in columns})
    return path


def write_marker_matches_csv(path, matches: Sequence[MarkerMatch]) -> Path:
    """Write per-marker match rows to CSV."""
    return write_rows_csv(path, marker_match_rows(matches), MARKER_COLUMNS)


def write_qc_summary_csv(path, batch: BatchResult, order: Optional[Sequence[str]] = None) -> Path:
    """Write the batch QC summary: analyzed spectra first, then failures.

    ``order`` optionally lists spectrum ids in the desired row order.
    """
    ids = list(order) if order is not None else list(batch.results)
    rows = [qc_summary_row(batch.results[i]) for i in ids if i in batch.results]
    rows.extend(error_summary_row(e) for e in batch.errors)
    path = write_rows_csv(path, rows, QC_COLUMNS)
    logger.info(f"✓ Wrote QC summary for {len(rows):,} spectra to {path.name}")
    return path
