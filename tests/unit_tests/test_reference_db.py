"""Tests for reference database and contaminant table parsing.

Tests cover:
1. Column detection and taxon labels
2. Marker extraction (non-numeric cells, deamidation flags)
3. Loading from CSV files
4. Contaminant tables and the missing-file fallback
"""

import numpy as np
import pytest

from alphazooms.database import (
    load_contaminants,
    load_reference_database,
    parse_contaminant_table,
    parse_csv_text,
    parse_reference_table,
    to_number,
)


REFERENCE_CSV = (
    "order,family,species,zooms_taxon,COL1a1_586___618,P1,P2\r\n"
    "Artiodactyla,Bovidae,Bos taurus,Bos,1105.58,1192.6,\r\n"
    "Artiodactyla,Bovidae,Ovis aries,,1105.58,n/a,1427.7\r\n"
    "Carnivora,Canidae,,,,,\r\n"
)


class TestToNumber:
    """Test cell parsing."""

    def test_numbers(self):
        assert to_number("1105.58") == pytest.approx(1105.58)
        assert to_number(" 42 ") == 42.0

    def test_non_numbers(self):
        assert to_number("") is None
        assert to_number(None) is None
        assert to_number("n/a") is None
        assert to_number("nan") is None
        assert to_number("inf") is None


class TestParseReferenceTable:
    """Test reference table parsing."""

    def test_taxa_and_labels(self):
        db = parse_reference_table(parse_csv_text(REFERENCE_CSV), label="mammals")

        assert db.label == "mammals"
        assert len(db) == 3
        assert [t.label for t in db.taxa] == ["Bos", "Ovis aries", "Unknown"]
        assert [t.id for t in db.taxa] == ["taxon_1", "taxon_2", "taxon_3"]

    def test_taxonomy_columns(self):
        db = parse_reference_table(parse_csv_text(REFERENCE_CSV))
        bos = db.get_taxon("taxon_1")

        assert bos.order == "Artiodactyla"
        assert bos.family == "Bovidae"
        assert bos.species == "Bos taurus"

    def test_marker_columns(self):
        db = parse_reference_table(parse_csv_text(REFERENCE_CSV))

        assert db.marker_names == ("COL1a1_586___618", "P1", "P2")

    def test_non_numeric_cells_skipped(self):
        db = parse_reference_table(parse_csv_text(REFERENCE_CSV))

        bos, ovis, unknown = db.taxa
        assert [m.name for m in bos.markers] == ["COL1a1_586___618", "P1"]
        assert [m.name for m in ovis.markers] == ["COL1a1_586___618", "P2"]
        assert unknown.markers == ()

    def test_deamidation_flags(self):
        db = parse_reference_table(parse_csv_text(REFERENCE_CSV))
        bos = db.taxa[0]

        assert bos.markers[0].deamidation_sensitive
        assert not bos.markers[1].deamidation_sensitive

    def test_custom_deamidation_set(self):
        db = parse_reference_table(parse_csv_text(REFERENCE_CSV), deamidation_markers={"P1"})
        bos = db.taxa[0]

        assert not bos.markers[0].deamidation_sensitive
        assert bos.markers[1].deamidation_sensitive

    def test_marker_pool_and_counts(self):
        db = parse_reference_table(parse_csv_text(REFERENCE_CSV))

        np.testing.assert_allclose(
            np.sort(db.marker_mz_pool()), [1105.58, 1105.58, 1192.6, 1427.7]
        )
        np.testing.assert_array_equal(db.marker_counts(), [2, 2])

    def test_markers_start_after_species_without_zooms_taxon(self):
        rows = [["species", "A", "B"], ["Bos taurus", "700.0", "800.0"]]

        db = parse_reference_table(rows)

        assert db.marker_names == ("A", "B")
        assert db.taxa[0].label == "Bos taurus"

    def test_empty_table_raises(self):
        with pytest.raises(ValueError):
            parse_reference_table([["species", "A"]])

    def test_blank_rows_ignored(self):
        rows = [["species", "A"], ["", ""], ["Bos", "700"]]

        db = parse_reference_table(rows)

        assert len(db) == 1


class TestLoadReferenceDatabase:
    """Test loading from disk."""

    def test_load(self, tmp_path):
        path = tmp_path / "mammals.csv"
        path.write_text(REFERENCE_CSV, encoding="utf-8")

        db = load_reference_database(path)

        assert db.label == "mammals"
        assert db.source == "mammals.csv"
        assert len(db) == 3

    def test_utf8_bom(self, tmp_path):
        path = tmp_path / "bom.csv"
        path.write_text("\ufeff" + REFERENCE_CSV, encoding="utf-8")

        db = load_reference_database(path, label="bom")

        assert db.taxa[0].order == "Artiodactyla"

    def test_quoted_fields(self, tmp_path):
        path = tmp_path / "quoted.csv"
        path.write_bytes(b'species,zooms_taxon,P1\r\n"Bos taurus, domestic",Bos,1105.58\r\n')

        db = load_reference_database(path)

        assert db.taxa[0].species == "Bos taurus, domestic"
        assert db.taxa[0].markers[0].mz == pytest.approx(1105.58)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_reference_database(tmp_path / "missing.csv")


class TestContaminants:
    """Test contaminant tables."""

    def test_named_columns(self):
        rows = [["name", "mz"], ["Keratin", "1000.5"], ["Trypsin", "842.51"]]

        contaminants = parse_contaminant_table(rows)

        assert [c.name for c in contaminants] == ["Keratin", "Trypsin"]
        assert contaminants[1].mz == pytest.approx(842.51)

    def test_alternative_headers(self):
        rows = [["Contaminant", "Mass"], ["Keratin", "1000.5"]]

        contaminants = parse_contaminant_table(rows)

        assert contaminants[0].name == "Keratin"
        assert contaminants[0].mz == pytest.approx(1000.5)

    def test_first_numeric_cell_fallback(self):
        rows = [["what", "value"], ["Keratin", "1000.5"], ["broken", "x"]]

        contaminants = parse_contaminant_table(rows)

        assert len(contaminants) == 1
        assert contaminants[0].name == "Contaminant"
        assert contaminants[0].mz == pytest.approx(1000.5)

    def test_missing_file_is_empty(self, tmp_path, caplog):
        contaminants = load_contaminants(tmp_path / "missing.csv")

        assert contaminants == []
        assert "not found" in caplog.text

    def test_load(self, tmp_path):
        path = tmp_path / "contaminants.csv"
        path.write_text("name,mz\nKeratin,1000.5\n", encoding="utf-8")

        contaminants = load_contaminants(path)

        assert len(contaminants) == 1
