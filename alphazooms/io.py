"""Reading two-column spectrum exports.

Instrument software commonly exports MALDI spectra as plain text with one
``m/z intensity`` pair per line (whitespace, comma, tab or semicolon
separated). Lines that do not start with two numbers (headers, comments)
are skipped.
"""

import logging
import re
from pathlib import Path

import numpy as np

from .spectrum import Spectrum

logger = logging.getLogger(__name__)

_SEPARATORS = re.compile(r"[\s,;]+")


def parse_spectrum_lines(lines) -> tuple:
    """Parse text lines into sorted (mz, intensity) arrays."""
    mz = []
    intensity = []
    for line in lines:
        fields = [f for f in _SEPARATORS.split(line.strip()) if f]
        if len(fields) < 2:
            continue
        try:
            x = float(fields[0])
            y = float(fields[1])
        except ValueError:
            continue
        if not (np.isfinite(x) and np.isfinite(y)):
            continue
        mz.append(x)
        intensity.append(max(y, 0.0))

    mz = np.array(mz, dtype=np.float64)
    intensity = np.array(intensity, dtype=np.float64)
    order = np.argsort(mz, kind="stable")
    return mz[order], intensity[order]


def read_spectrum_text(path, spectrum_id: str = None, centroided: bool = False) -> Spectrum:
    """Read a two-column text spectrum.

    Args:
        path: Text file (.txt, .csv, .tsv, .xy)
        spectrum_id: Identifier (defaults to the file stem)
        centroided: Whether the file holds a peak list rather than a profile

    Returns:
        Spectrum sorted by m/z; negative intensities are clipped to zero

    Raises:
        FileNotFoundError: If the file does not exist
        ValueError: If no numeric data lines were found
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Spectrum file not found: {path}")

    with open(path, encoding="utf-8", errors="replace") as f:
        mz, intensity = parse_spectrum_lines(f)

    if len(mz) == 0:
        raise ValueError(f"No m/z-intensity pairs found in {path.name}")

    logger.debug(f"Read {len(mz):,} points from {path.name}")
    return Spectrum(
        id=spectrum_id or path.stem,
        filename=path.name,
        mz=mz,
        intensity=intensity,
        centroided=centroided,
    )
