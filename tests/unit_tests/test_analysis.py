"""End-to-end tests for single-spectrum analysis.

Tests cover:
1. Marker hit and miss on a single-marker database
2. Contaminant detection
3. Behaviour without decoys
4. Full pipeline on profile data with generated decoys
5. Centroided input (no peak picking)
6. Read-only results
7. Input errors (empty window, empty database, empty grid)
"""

import math

import numpy as np
import pytest

from alphazooms import AnalysisParams, SpectrumInputError, analyze_spectrum
from alphazooms.analysis import decoys_for_params
from alphazooms.database import ReferenceDatabase
from alphazooms.scoring import ConfidenceLevel
from alphazooms.spectrum import Spectrum


class TestSingleMarker:
    """One taxon with one marker at 700.0."""

    def test_peak_inside_window(self, single_marker_db, centroid_spectrum, centroid_params):
        spectrum = centroid_spectrum([700.05], [1.0])

        result = analyze_spectrum(spectrum, single_marker_db, [], centroid_params)

        assert result.top_taxon.taxon_label == "Bos"
        assert result.top_taxon.correlation > 0
        match = result.top_matches[0]
        assert match.matched
        assert match.matched_peak_mz == pytest.approx(700.05)

    def test_peak_outside_window(self, single_marker_db, centroid_spectrum, centroid_params):
        hit = analyze_spectrum(centroid_spectrum([700.05], [1.0]), single_marker_db, [], centroid_params)
        miss = analyze_spectrum(centroid_spectrum([705.0], [1.0]), single_marker_db, [], centroid_params)

        match = miss.top_matches[0]
        assert not match.matched
        assert match.matched_peak_mz is None
        assert miss.top_taxon.correlation < hit.top_taxon.correlation
        assert miss.top_taxon.correlation < 0

    def test_deamidated_marker_exact_peak(self, taxon_factory, centroid_spectrum, centroid_params):
        taxon = taxon_factory("t1", "Bos", [700.0], deamidated=(0,))
        db = ReferenceDatabase(label="single", taxa=(taxon,))

        result = analyze_spectrum(centroid_spectrum([700.0], [1.0]), db, [], centroid_params)

        assert result.top_taxon.correlation == pytest.approx(1.0)


class TestContaminants:
    """Contaminant hits in the result."""

    def test_keratin(self, single_marker_db, centroid_spectrum, centroid_params, keratin):
        spectrum = centroid_spectrum([700.05, 1000.1], [1.0, 0.5])

        result = analyze_spectrum(spectrum, single_marker_db, keratin, centroid_params)

        assert len(result.contaminants) == 1
        assert result.contaminants[0].name == "Keratin"
        assert result.contaminants[0].delta_da == pytest.approx(0.1)


class TestWithoutDecoys:
    """No decoys: FDR is undefined and confidence Unknown."""

    def test_zero_decoys(self, single_marker_db, centroid_spectrum, centroid_params):
        result = analyze_spectrum(
            centroid_spectrum([700.05], [1.0]), single_marker_db, [], centroid_params, decoy_taxa=[],
        )

        assert result.fdr.n_decoys == 0
        assert not math.isfinite(result.fdr.best_decoy_score)
        assert not math.isfinite(result.fdr.q_sample)
        assert result.confidence.level is ConfidenceLevel.UNKNOWN

    def test_fdr_disabled_generates_nothing(self, single_marker_db, centroid_params):
        assert decoys_for_params(single_marker_db, centroid_params) == []


class TestFullPipeline:
    """Profile spectrum through every stage."""

    @pytest.fixture
    def params(self):
        return AnalysisParams.from_dict({"fdr": {"nDecoys": 50}})

    def test_identifies_taxon(self, three_taxa_db, profile_spectrum, params):
        bos = three_taxa_db.taxa[0]
        spectrum = profile_spectrum(bos.marker_mz, np.linspace(1.0, 0.4, 6), noise=0.005)

        result = analyze_spectrum(spectrum, three_taxa_db, [], params)

        assert result.top_taxon.taxon_label == "Bos"
        assert result.second_taxon is not None
        assert result.fdr.n_decoys == 50
        assert result.fdr.q_sample < 0.05
        assert result.confidence.level in (ConfidenceLevel.HIGH, ConfidenceLevel.MEDIUM)
        assert all(m.matched for m in result.top_matches)

    def test_marker_detail_for_every_ranked_taxon(self, three_taxa_db, profile_spectrum, params):
        spectrum = profile_spectrum([1105.58, 1427.70], [1.0, 0.8])

        result = analyze_spectrum(spectrum, three_taxa_db, [], params)

        assert set(result.taxon_matches) == {"t1", "t2", "t3"}
        assert len(result.ranked_taxa) == 3

    def test_isotope_peaks_removed(self, three_taxa_db, profile_spectrum, params):
        mono = 1105.58
        spectrum = profile_spectrum([mono, mono + 1.00235, mono + 2.0047], [1.0, 0.6, 0.2])

        result = analyze_spectrum(spectrum, three_taxa_db, [], params)

        assert result.n_isotopes_removed == 2
        assert len(result.peaks) == 1
        assert result.qc.peak_count == 1

    def test_qc_summary(self, three_taxa_db, profile_spectrum, params):
        spectrum = profile_spectrum([1105.58], [250.0], mz_min=400.0, mz_max=3600.0)

        result = analyze_spectrum(spectrum, three_taxa_db, [], params)

        assert result.qc.mz_min >= 500.0
        assert result.qc.mz_max <= 3500.0
        assert result.qc.max_intensity == pytest.approx(250.0, rel=1e-2)
        assert result.qc.raw_points == len(result.raw_mz)
        assert np.max(result.processed_intensity) == 1.0

    def test_repeatable(self, three_taxa_db, profile_spectrum, params):
        spectrum = profile_spectrum([1105.58, 1192.60], [1.0, 0.5])

        first = analyze_spectrum(spectrum, three_taxa_db, [], params)
        second = analyze_spectrum(spectrum, three_taxa_db, [], params)

        assert first.ranked_taxa == second.ranked_taxa
        assert first.fdr == second.fdr
        assert first.confidence == second.confidence


class TestCentroidedInput:
    """Centroids are peaks already; only profile traces go through peak picking."""

    MZ = [700.0, 700.5, 900.0, 1500.0]
    HEIGHT = [0.5, 1.0, 0.3, 0.8]

    @pytest.fixture
    def params(self):
        return AnalysisParams.from_dict({"monoisotopic": {"enabled": False}, "fdr": {"enabled": False}})

    def test_keeps_every_centroid(self, single_marker_db, centroid_spectrum, params):
        result = analyze_spectrum(centroid_spectrum(self.MZ, self.HEIGHT), single_marker_db, [], params)

        assert len(result.peaks) == 4
        np.testing.assert_allclose(result.peaks.mz, self.MZ)
        assert result.top_matches[0].matched

    def test_profile_flag_picks_peaks(self, single_marker_db, params):
        spectrum = Spectrum(id="trace", filename="trace.txt", mz=self.MZ, intensity=self.HEIGHT)

        result = analyze_spectrum(spectrum, single_marker_db, [], params)

        assert len(result.peaks) == 1
        assert result.peaks.mz[0] == pytest.approx(700.5)


class TestReadOnlyResult:
    """Result arrays cannot be modified in place."""

    def test_arrays_read_only(self, single_marker_db, centroid_spectrum, centroid_params):
        result = analyze_spectrum(centroid_spectrum([700.05], [1.0]), single_marker_db, [], centroid_params)

        for arr in (result.raw_mz, result.raw_intensity, result.processed_mz,
                    result.processed_intensity, result.peaks.mz, result.peaks.intensity):
            assert not arr.flags.writeable

        with pytest.raises(ValueError):
            result.processed_intensity[0] = 5.0
        assert result.raw_intensity[0] == 1.0


class TestInputErrors:
    """Errors carry the spectrum identity."""

    def test_empty_window(self, single_marker_db, centroid_spectrum, centroid_params):
        spectrum = centroid_spectrum([100.0, 200.0], [1.0, 1.0], spectrum_id="bone_07")

        with pytest.raises(SpectrumInputError) as excinfo:
            analyze_spectrum(spectrum, single_marker_db, [], centroid_params)

        assert excinfo.value.filename == "bone_07.txt"
        assert excinfo.value.spectrum_id == "bone_07"
        assert "bone_07.txt" in str(excinfo.value)

    def test_empty_database(self, centroid_spectrum, centroid_params):
        with pytest.raises(SpectrumInputError):
            analyze_spectrum(centroid_spectrum([700.0], [1.0]), ReferenceDatabase(label="empty"), [],
                             centroid_params)

    def test_empty_grid(self, single_marker_db, centroid_spectrum):
        params = AnalysisParams.from_dict({"grid": {"stepMz": 0.0}, "fdr": {"enabled": False}})

        with pytest.raises(SpectrumInputError):
            analyze_spectrum(centroid_spectrum([700.0], [1.0]), single_marker_db, [], params)

    def test_is_value_error(self):
        assert issubclass(SpectrumInputError, ValueError)
