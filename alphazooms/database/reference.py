"""ZooMS reference marker database and contaminant table.

Reads the tabular reference files shipped with ZooMS screening workflows:

- Reference database: one row per taxon, optional ``order``/``family``/
  ``species``/``zooms_taxon`` columns, every column after the rightmost of
  ``zooms_taxon``/``species`` is a marker column named by its header.
- Contaminant table: a name-like column and a mass-like column.

Malformed cells never raise: a non-numeric marker cell simply means the
taxon has no marker at that column.
"""

from __future__ import annotations

import csv
import io
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Sequence

import numpy as np

from ..constants import DEFAULT_DEAMIDATION_MARKERS

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReferenceMarker:
    """One diagnostic peptide mass of a taxon."""

    name: str
    mz: float
    deamidation_sensitive: bool = False


@dataclass(frozen=True)
class ReferenceTaxon:
    """A reference taxon and its marker peptides."""

    id: str
    label: str
    markers: tuple = ()
    order: str | None = None
    family: str | None = None
    species: str | None = None

    @property
    def marker_mz(self) -> np.ndarray:
        return np.array([m.mz for m in self.markers], dtype=np.float64)


@dataclass(frozen=True)
class ReferenceDatabase:
    """Labeled collection of reference taxa."""

    label: str
    taxa: tuple = ()
    marker_names: tuple = ()
    source: str = ""

    def __len__(self) -> int:
        return len(self.taxa)

    def marker_mz_pool(self) -> np.ndarray:
        """All marker masses of all taxa (duplicates kept)."""
        pool = [m.mz for taxon in self.taxa for m in taxon.markers]
        return np.array(pool, dtype=np.float64)

    def marker_counts(self) -> np.ndarray:
        """Marker count of every taxon that has at least one marker."""
        counts = [len(taxon.markers) for taxon in self.taxa if taxon.markers]
        return np.array(counts, dtype=np.int64)

    def get_taxon(self, taxon_id: str) -> ReferenceTaxon | None:
        for taxon in self.taxa:
            if taxon.id == taxon_id:
                return taxon
        return None


@dataclass(frozen=True)
class Contaminant:
    """A known interfering mass (keratin, trypsin autolysis, ...)."""

    name: str
    mz: float


# =============================================================================
# Cell parsing
# =============================================================================

def to_number(cell: str | None) -> float | None:
    """Parse a table cell as a finite float, None otherwise."""
    text = (cell or "").strip()
    if not text:
        return None
    try:
        value = float(text)
    except ValueError:
        return None
    if not np.isfinite(value):
        return None
    return value


def parse_csv_text(text: str) -> list[list[str]]:
    """Split CSV text into rows (quoted fields, CRLF and LF line endings)."""
    return [row for row in csv.reader(io.StringIO(text))]


def _read_rows(path: str | Path) -> list[list[str]]:
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Table not found: {path}")
    return parse_csv_text(path.read_text(encoding="utf-8-sig"))


def _column(header: Sequence[str], *names: str) -> int:
    for idx, cell in enumerate(header):
        if cell in names:
            return idx
    return -1


def _cell(row: Sequence[str], idx: int) -> str:
    if idx < 0 or idx >= len(row):
        return ""
    return (row[idx] or "").strip()


# =============================================================================
# Reference database
# =============================================================================

def parse_reference_table(
    rows: Iterable[Sequence[str]],
    label: str = "reference",
    source: str = "",
    deamidation_markers: Iterable[str] = DEFAULT_DEAMIDATION_MARKERS,
) -> ReferenceDatabase:
    """Build a reference database from table rows (header first).

    Parameters
    ----------
    rows : Iterable[Sequence[str]]
        Table rows, the first one being the header
    label : str
        Display label of the database
    source : str
        Source file name (metadata only)
    deamidation_markers : Iterable[str]
        Marker names flagged as deamidation-sensitive

    Returns
    -------
    ReferenceDatabase

    Raises
    ------
    ValueError
        If the table has no data rows.

    Notes
    -----
    Taxon label is ``zooms_taxon`` if present and non-empty, else
    ``species``, else ``"Unknown"``. Taxon ids are ``taxon_<row>``.
    """
    table = [list(r) for r in rows]
    table = [r for r in table if any((c or "").strip() for c in r)]
    if len(table) < 2:
        raise ValueError(f"Reference database {source or label} looks empty")

    header = [(h or "").strip() for h in table[0]]
    lowered = [h.lower() for h in header]
    idx_order = _column(lowered, "order")
    idx_family = _column(lowered, "family")
    idx_species = _column(lowered, "species")
    idx_taxon = _column(lowered, "zooms_taxon")

    start = max(idx_taxon, idx_species) + 1
    marker_cols = [c for c in range(start, len(header)) if header[c]]
    deamidation = frozenset(deamidation_markers)

    taxa = []
    for row_idx, row in enumerate(table[1:], start=1):
        species = _cell(row, idx_species) if idx_species >= 0 else None
        zooms_taxon = _cell(row, idx_taxon)

        markers = []
        for col in marker_cols:
            mz = to_number(_cell(row, col))
            if mz is None:
                continue
            name = header[col]
            markers.append(ReferenceMarker(name, mz, name in deamidation))

        taxa.append(ReferenceTaxon(
            id=f"taxon_{row_idx}",
            label=zooms_taxon or species or "Unknown",
            markers=tuple(markers),
            order=_cell(row, idx_order) if idx_order >= 0 else None,
            family=_cell(row, idx_family) if idx_family >= 0 else None,
            species=species,
        ))

    return ReferenceDatabase(
        label=label,
        taxa=tuple(taxa),
        marker_names=tuple(header[c] for c in marker_cols),
        source=source,
    )


def load_reference_database(
    path: str | Path,
    label: str | None = None,
    deamidation_markers: Iterable[str] = DEFAULT_DEAMIDATION_MARKERS,
) -> ReferenceDatabase:
    """Load a reference marker database from a CSV file.

    Parameters
    ----------
    path : str or Path
        CSV file
    label : str, optional
        Display label (defaults to the file stem)
    deamidation_markers : Iterable[str]
        Marker names flagged as deamidation-sensitive

    Returns
    -------
    ReferenceDatabase

    Raises
    ------
    FileNotFoundError
        If the file does not exist
    ValueError
        If the table has no data rows
    """
    path = Path(path)
    logger.info(f"Reading reference database: {path.name}")
    db = parse_reference_table(
        _read_rows(path),
        label=label or path.stem,
        source=path.name,
        deamidation_markers=deamidation_markers,
    )
    n_markers = sum(len(t.markers) for t in db.taxa)
    logger.info(f"✓ Read {len(db.taxa):,} taxa with {n_markers:,} markers from {path.name}")
    return db


# =============================================================================
# Contaminants
# =============================================================================

def parse_contaminant_table(rows: Iterable[Sequence[str]]) -> list[Contaminant]:
    """Build contaminants from table rows (header first).

    Without a recognized mass column, the first numeric cell of each row is
    used as the mass. Rows without any mass are skipped.
    """
    table = [list(r) for r in rows]
    if len(table) < 2:
        return []

    header = [(h or "").strip().lower() for h in table[0]]
    idx_name = _column(header, "name", "contaminant", "label")
    idx_mz = _column(header, "mz", "m/z", "mass")

    contaminants = []
    for row in table[1:]:
        if idx_mz >= 0:
            mz = to_number(_cell(row, idx_mz))
        else:
            mz = next((v for v in (to_number(c) for c in row) if v is not None), None)
        if mz is None:
            continue
        name = _cell(row, idx_name) if idx_name >= 0 else ""
        contaminants.append(Contaminant(name or "Contaminant", mz))
    return contaminants


def load_contaminants(path: str | Path) -> list[Contaminant]:
    """Load a contaminant table; a missing file yields an empty list."""
    path = Path(path)
    if not path.exists():
        logger.warning(f"Contaminant table not found: {path} (continuing without contaminants)")
        return []
    contaminants = parse_contaminant_table(_read_rows(path))
    logger.info(f"✓ Read {len(contaminants):,} contaminants from {path.name}")
    return contaminants
