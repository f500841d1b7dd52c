"""Reference marker database, contaminants and decoy taxa.

Key Features
------------
- Tabular ZooMS reference databases (order/family/species/zooms_taxon + marker columns)
- Per-marker deamidation flag, filled from an injectable marker-name set
- Contaminant tables with flexible name/mass column detection
- Seeded decoy taxon generation for sample-level FDR

Examples
--------
>>> from alphazooms.database import load_reference_database, build_decoy_taxa
>>>
>>> db = load_reference_database("speciescan_mammals.csv")
>>> decoys = build_decoy_taxa(db, n_decoys=200, seed=1337)
"""

from .reference import (
    Contaminant,
    ReferenceDatabase,
    ReferenceMarker,
    ReferenceTaxon,
    load_contaminants,
    load_reference_database,
    parse_contaminant_table,
    parse_csv_text,
    parse_reference_table,
    to_number,
)
from .decoys import (
    build_decoy_taxa,
    decoy_marker_name,
    place_decoy_mass,
)

__all__ = [
    # Reference data
    "Contaminant",
    "ReferenceDatabase",
    "ReferenceMarker",
    "ReferenceTaxon",
    "load_contaminants",
    "load_reference_database",
    "parse_contaminant_table",
    "parse_csv_text",
    "parse_reference_table",
    "to_number",
    # Decoys
    "build_decoy_taxa",
    "decoy_marker_name",
    "place_decoy_mass",
]
