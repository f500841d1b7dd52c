"""Decoy taxon generation for sample-level FDR estimation.

A decoy taxon is a synthetic marker set with no biological meaning. Its
masses are drawn near real marker masses (so they cover the same mass range
and density) but kept clear of every real marker, so that a sample can only
correlate with a decoy by chance.

Design principles:
1. Realistic density: decoy marker counts follow the real taxa's marker counts
2. Realistic mass range: each decoy mass is a real marker mass shifted by 5-50 Da
3. No overlap with reality: decoy masses stay > 2x tolerance from every real marker
4. No self-overlap: decoy masses within one taxon stay > tolerance apart
5. Reproducible: fully determined by the seed
"""

import logging
from typing import List, Optional

import numpy as np

from ..constants import DECOY_MAX_ATTEMPTS, DECOY_MAX_SHIFT_DA, DECOY_MIN_SHIFT_DA
from ..search.mass_index import SortedMassIndex
from .reference import ReferenceDatabase, ReferenceMarker, ReferenceTaxon

logger = logging.getLogger(__name__)


def decoy_marker_name(decoy_number: int, marker_number: int) -> str:
    """Name of a decoy marker, e.g. ``DECOY_007_03``."""
    return f"DECOY_{decoy_number:03d}_{marker_number:02d}"


def place_decoy_mass(
    rng: np.random.Generator,
    marker_pool: np.ndarray,
    real_index: SortedMassIndex,
    decoy_index: SortedMassIndex,
    mz_min: float,
    mz_max: float,
    tolerance_da: float,
    max_attempts: int = DECOY_MAX_ATTEMPTS,
) -> Optional[float]:
    """Draw one decoy mass, or None if every attempt collided.

    Parameters
    ----------
    rng : np.random.Generator
        Seeded generator (consumed in a fixed order: base, shift, sign)
    marker_pool : np.ndarray
        Real marker masses to start from
    real_index : SortedMassIndex
        All real marker masses
    decoy_index : SortedMassIndex
        Masses already placed in the current decoy taxon
    mz_min, mz_max : float
        Clamp range for decoy masses
    tolerance_da : float
        Matching tolerance; real markers are avoided by twice this value
    max_attempts : int
        Attempts before giving up

    Returns
    -------
    float or None
    """
    min_sep_real = 2.0 * tolerance_da

    for _ in range(max_attempts):
        base = marker_pool[int(rng.integers(len(marker_pool)))]
        shift = DECOY_MIN_SHIFT_DA + rng.random() * (DECOY_MAX_SHIFT_DA - DECOY_MIN_SHIFT_DA)
        sign = -1.0 if rng.random() < 0.5 else 1.0

        mz = min(max(base + sign * shift, mz_min), mz_max)

        if real_index.is_near(mz, min_sep_real):
            continue
        if decoy_index.is_near(mz, tolerance_da):
            continue
        return float(mz)

    return None


def build_decoy_taxa(
    db: ReferenceDatabase,
    n_decoys: Optional[int] = None,
    max_decoys: int = 1000,
    seed: int = 1337,
    mz_min: Optional[float] = None,
    mz_max: Optional[float] = None,
    tolerance_da: float = 0.3,
) -> List[ReferenceTaxon]:
    """Generate synthetic decoy taxa from a reference database.

    Parameters
    ----------
    db : ReferenceDatabase
        Real reference taxa (never modified)
    n_decoys : int, optional
        Number of decoy taxa (default: max(200, number of real taxa)),
        capped at ``max_decoys``
    max_decoys : int
        Upper bound on the number of decoys
    seed : int
        Random seed; identical inputs and seed give identical decoys
    mz_min, mz_max : float, optional
        Clamp range (default: range of the real marker masses)
    tolerance_da : float
        Matching tolerance (Da)

    Returns
    -------
    List[ReferenceTaxon]
        Decoy taxa with ids ``decoy_<n>``. Empty if the database has no markers.

    Notes
    -----
    A decoy taxon whose marker placement fails early is still emitted with
    the markers placed so far. Decoy markers are never deamidation-sensitive.

    Examples
    --------
    >>> decoys = build_decoy_taxa(db, n_decoys=200, seed=1337, mz_min=500, mz_max=3500)
    >>> len(decoys)
    200
    """
    marker_pool = db.marker_mz_pool()
    marker_counts = db.marker_counts()
    if len(marker_pool) == 0 or len(marker_counts) == 0:
        logger.info("No reference markers available, no decoys generated")
        return []

    if n_decoys is None:
        n_decoys = max(200, len(db.taxa))
    n_decoys = max(0, min(n_decoys, max_decoys))
    mz_min = float(np.min(marker_pool)) if mz_min is None else mz_min
    mz_max = float(np.max(marker_pool)) if mz_max is None else mz_max

    logger.info(f"Generating {n_decoys:,} decoy taxa (seed: {seed})...")

    real_index = SortedMassIndex(marker_pool)
    rng = np.random.default_rng(seed)

    decoys = []
    n_short = 0
    for i in range(n_decoys):
        target_count = int(marker_counts[int(rng.integers(len(marker_counts)))])
        decoy_index = SortedMassIndex()
        markers = []

        for m in range(target_count):
            mz = place_decoy_mass(
                rng, marker_pool, real_index, decoy_index, mz_min, mz_max, tolerance_da
            )
            if mz is None:
                break
            decoy_index.insert(mz)
            markers.append(ReferenceMarker(decoy_marker_name(i + 1, m + 1), mz))

        if len(markers) < target_count:
            n_short += 1
        decoys.append(ReferenceTaxon(id=f"decoy_{i + 1}", label=f"Decoy {i + 1}", markers=tuple(markers)))

    if n_short:
        logger.warning(f"{n_short:,} decoy taxa received fewer markers than targeted")
    logger.info(f"✓ Generated {len(decoys):,} decoy taxa")

    return decoys
