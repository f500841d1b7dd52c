"""Constants for ZooMS marker scoring.

Window offsets, isotope spacing and the default set of deamidation-sensitive
collagen markers used throughout alphazooms.

Window offsets are expressed in Da relative to a mass ``m`` so that a window
covers ``[m + left, m + right]``. They are defaults only: every offset can be
overridden through :class:`alphazooms.config.ScoringWindows`.
"""

# =============================================================================
# Isotope spacing
# =============================================================================

# Average spacing of peptide isotope peaks at z=1 (MALDI).
# Slightly below the pure 13C-12C difference (1.003355) because heavier
# isotopes of N, O and S contribute to the envelope of collagen peptides.
AVERAGINE_ISOTOPE_SPACING = 1.00235  # Da

# =============================================================================
# Scoring windows (Da)
# =============================================================================

# Observed peaks are painted asymmetrically towards lower masses so that a
# deamidated peptide (+0.984 Da) still overlaps its reference mass.
SAMPLE_WINDOW_LEFT = -1.3
SAMPLE_WINDOW_RIGHT = 0.3

# Standard reference marker window
MARKER_WINDOW_LEFT = -0.3
MARKER_WINDOW_RIGHT = 0.3

# Deamidation-sensitive reference marker window
DEAMIDATION_WINDOW_LEFT = -1.3
DEAMIDATION_WINDOW_RIGHT = 0.3

# Collagen markers whose reported mass is prone to deamidation shifts.
DEFAULT_DEAMIDATION_MARKERS = frozenset({
    "COL1a1_586___618",
    "COL1a1_586___618_16",
    "COL1_1_508_519",
    "COL1a2_502___519",
    "COL1a2_793___816",
})

# =============================================================================
# Reporting limits
# =============================================================================

# Marker-level detail is only computed for the best ranked taxa
TOP_N_MARKER_MATCHES = 15

# Maximum placement attempts per decoy marker
DECOY_MAX_ATTEMPTS = 200

# Random offset range used to move a real marker mass into decoy territory
DECOY_MIN_SHIFT_DA = 5.0
DECOY_MAX_SHIFT_DA = 50.0
