"""Confidence classification of the top taxon call.

A deterministic decision procedure, not a statistical model. It combines the
top score, the runner-up, decoy statistics and the number of matched markers
into one of High / Medium / Low / Rejected / Unknown.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Optional

# Ratio tiers are only used when the best decoy score is informative
DECOY_MIN = 0.01
SCORE_FLOOR_HIGH = 0.03
SCORE_FLOOR_MED = 0.02
RATIO_HIGH = 2.5
RATIO_MED = 1.8
RATIO_LOW = 1.3

# Absolute decoy-gap tiers
GAP_HIGH = 0.15
GAP_MED = 0.10
GAP_LOW = 0.05

Q_REJECT = 0.05
Q_STRONG = 0.01
TARGET_GAP_AMBIGUOUS = 0.01
MIN_MATCHED_MARKERS = 3


class ConfidenceLevel(Enum):
    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"
    REJECTED = "Rejected"
    UNKNOWN = "Unknown"

    def downgrade(self) -> "ConfidenceLevel":
        """One tier down; Low, Rejected and Unknown stay unchanged."""
        if self is ConfidenceLevel.HIGH:
            return ConfidenceLevel.MEDIUM
        if self is ConfidenceLevel.MEDIUM:
            return ConfidenceLevel.LOW
        return self


@dataclass(frozen=True)
class ConfidenceResult:
    level: ConfidenceLevel
    ratio: Optional[float] = None
    decoy_gap: Optional[float] = None
    target_gap: Optional[float] = None
    notes: str = ""


def _finite(value) -> Optional[float]:
    if value is None:
        return None
    value = float(value)
    return value if math.isfinite(value) else None


def compute_confidence(
    best_score: Optional[float],
    best_decoy_score: Optional[float],
    q_sample: Optional[float],
    second_score: Optional[float] = None,
    best_label: Optional[str] = None,
    second_label: Optional[str] = None,
    matched_markers: Optional[int] = None,
) -> ConfidenceResult:
    """Classify the confidence of a top taxon call.

    Parameters
    ----------
    best_score : float or None
        Correlation of the top real taxon
    best_decoy_score : float or None
        Best decoy correlation
    q_sample : float or None
        Sample-level q-value
    second_score : float, optional
        Correlation of the runner-up taxon
    best_label, second_label : str, optional
        Labels of the top two taxa; the ambiguity rule only applies when they differ
    matched_markers : int, optional
        Number of matched markers of the top taxon

    Returns
    -------
    ConfidenceResult
        Tier plus ratio, decoy gap, target gap and notes on the rules that fired

    Notes
    -----
    1. Missing or non-finite best score, decoy score or q-value -> Unknown
    2. q > 0.05 -> Rejected
    3. Tier from best/decoy ratio when the decoy score is >= 0.01, else from
       the absolute decoy gap
    4. decoy gap >= 0.15 with q <= 0.01 forces High (strong separation)
    5. Ambiguous top call (different labels, target gap < 0.01) downgrades
       one tier unless rule 4 applied
    6. Fewer than 3 matched markers downgrades one tier
    """
    notes = []
    best = _finite(best_score)
    second = _finite(second_score)
    decoy = _finite(best_decoy_score)
    q = _finite(q_sample)
    best_label = (best_label or "").strip()
    second_label = (second_label or "").strip()

    ratio = best / decoy if best is not None and decoy is not None and decoy > 0 else None
    decoy_gap = best - decoy if best is not None and decoy is not None else None
    target_gap = best - second if best is not None and second is not None else None

    def result(level):
        return ConfidenceResult(level, ratio, decoy_gap, target_gap, "; ".join(notes))

    if best is None or decoy is None or q is None:
        notes.append("Decoys unavailable for confidence scoring.")
        return result(ConfidenceLevel.UNKNOWN)

    if q > Q_REJECT:
        notes.append(f"qSample > {Q_REJECT} (FDR reject).")
        return result(ConfidenceLevel.REJECTED)

    strong_separation = q <= Q_STRONG and decoy_gap >= GAP_HIGH

    tier = ConfidenceLevel.REJECTED
    if decoy >= DECOY_MIN and ratio is not None:
        if ratio >= RATIO_HIGH and best >= SCORE_FLOOR_HIGH:
            tier = ConfidenceLevel.HIGH
        elif ratio >= RATIO_MED and best >= SCORE_FLOOR_MED:
            tier = ConfidenceLevel.MEDIUM
        elif ratio >= RATIO_LOW:
            tier = ConfidenceLevel.LOW
    elif decoy_gap >= GAP_HIGH:
        tier = ConfidenceLevel.HIGH
    elif decoy_gap >= GAP_MED:
        tier = ConfidenceLevel.MEDIUM
    elif decoy_gap >= GAP_LOW:
        tier = ConfidenceLevel.LOW

    if strong_separation and tier is not ConfidenceLevel.HIGH:
        tier = ConfidenceLevel.HIGH
        notes.append("Strong separation from decoys.")

    if tier is ConfidenceLevel.REJECTED:
        notes.append("Insufficient separation from decoys.")
        return result(tier)

    if (
        not strong_separation
        and target_gap is not None
        and target_gap < TARGET_GAP_AMBIGUOUS
        and best_label != second_label
    ):
        tier = tier.downgrade()
        notes.append("Top hit close to second-best (ambiguous).")

    if matched_markers is not None and matched_markers < MIN_MATCHED_MARKERS:
        tier = tier.downgrade()
        notes.append(f"Limited marker support (<{MIN_MATCHED_MARKERS}).")

    return result(tier)
