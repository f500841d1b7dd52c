#!/usr/bin/env python
"""Identify the species of origin of ZooMS spectra.

Runs the full alphazooms pipeline on a batch of two-column spectrum exports
and writes a QC summary CSV (one row per spectrum) plus, optionally, the
marker matches of the top taxon for every spectrum.

Usage:
    python scripts/identify_species.py --db mammals.csv spectra/*.txt --out qc.csv
"""

import argparse
import logging
from dataclasses import replace
from pathlib import Path

from alphazooms.batch import analyze_batch
from alphazooms.config import AnalysisParams, BaselineParams
from alphazooms.database import load_contaminants, load_reference_database
from alphazooms.export import write_marker_matches_csv, write_qc_summary_csv
from alphazooms.io import read_spectrum_text

logger = logging.getLogger("identify_species")


def build_params(args) -> AnalysisParams:
    params = AnalysisParams()
    params = replace(params, fdr=replace(
        params.fdr,
        enabled=not args.no_fdr,
        n_decoys=args.n_decoys,
        seed=args.seed,
    ))
    if args.centroided:
        params = replace(params, peak_picking=replace(params.peak_picking, enabled=False))
    if args.baseline:
        params = replace(params, preprocess=replace(
            params.preprocess,
            baseline_subtract=BaselineParams(enabled=True, iterations=args.baseline),
        ))
    return params


def unique_spectrum_id(path, used) -> str:
    """File stem, suffixed with ``_2``, ``_3``... when another input has the same stem."""
    stem = Path(path).stem
    spectrum_id = stem
    n = 2
    while spectrum_id in used:
        spectrum_id = f"{stem}_{n}"
        n += 1
    used.add(spectrum_id)
    return spectrum_id


def main():
    parser = argparse.ArgumentParser(description=__doc__.split("\n")[1])
    parser.add_argument("spectra", nargs="+", help="Two-column spectrum files")
    parser.add_argument("--db", required=True, help="Reference marker database (CSV)")
    parser.add_argument("--contaminants", help="Contaminant table (CSV)")
    parser.add_argument("--out", default="zooms_qc_summary.csv", help="QC summary CSV")
    parser.add_argument("--markers-dir", help="Write top-taxon marker matches per spectrum here")
    parser.add_argument("--seed", type=int, default=1337, help="Decoy generation seed")
    parser.add_argument("--n-decoys", type=int, default=200, help="Number of decoy taxa")
    parser.add_argument("--no-fdr", action="store_true", help="Skip decoy FDR estimation")
    parser.add_argument("--baseline", type=int, default=0,
                        help="SNIP baseline iterations (0 = no baseline removal)")
    parser.add_argument("--centroided", action="store_true", help="Inputs are peak lists")
    parser.add_argument("-v", "--verbose", action="store_true")
    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    db = load_reference_database(args.db)
    contaminants = load_contaminants(args.contaminants) if args.contaminants else []
    params = build_params(args)

    spectra = []
    used_ids = set()
    for path in args.spectra:
        try:
            spectrum_id = unique_spectrum_id(path, used_ids)
            spectra.append(read_spectrum_text(path, spectrum_id=spectrum_id, centroided=args.centroided))
        except (OSError, ValueError) as e:
            logger.error(f"Skipping {path}: {e}")

    batch = analyze_batch(spectra, db, contaminants, params)
    write_qc_summary_csv(args.out, batch, order=[s.id for s in spectra])

    if args.markers_dir:
        out_dir = Path(args.markers_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        for spectrum_id, result in batch.results.items():
            write_marker_matches_csv(out_dir / f"{spectrum_id}_markers.csv", result.top_matches)

    for spectrum_id, result in batch.results.items():
        top = result.top_taxon
        label = top.taxon_label if top else "-"
        print(f"{result.filename}\t{label}\t{result.confidence.level.value}")


if __name__ == "__main__":
    main()
