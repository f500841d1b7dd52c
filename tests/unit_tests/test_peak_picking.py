"""Tests for peak picking.

Tests cover:
1. Local-maximum detection (threshold, plateaus, endpoints)
2. Minimum-distance enforcement
3. Relative-threshold peak picking on profile data
4. Passthrough for centroided input
"""

import numpy as np
import pytest

from alphazooms.config import PeakPickingParams
from alphazooms.features import (
    detect_peaks,
    enforce_min_distance,
    find_local_maxima,
    pick_peaks,
    samples_as_peaks,
)


class TestFindLocalMaxima:
    """Test candidate detection."""

    def test_simple_maxima(self):
        intensity = np.array([0.0, 1.0, 0.0, 2.0, 0.0])

        idx = find_local_maxima(intensity, 0.5)

        np.testing.assert_array_equal(idx, [1, 3])

    def test_threshold(self):
        intensity = np.array([0.0, 1.0, 0.0, 2.0, 0.0])

        idx = find_local_maxima(intensity, 1.5)

        np.testing.assert_array_equal(idx, [3])

    def test_endpoints_excluded(self):
        intensity = np.array([5.0, 1.0, 2.0, 1.0, 5.0])

        idx = find_local_maxima(intensity, 0.0)

        np.testing.assert_array_equal(idx, [2])

    def test_plateau_all_samples_qualify(self):
        intensity = np.array([0.0, 3.0, 3.0, 3.0, 0.0])

        idx = find_local_maxima(intensity, 1.0)

        np.testing.assert_array_equal(idx, [1, 2, 3])

    def test_too_short(self):
        assert len(find_local_maxima(np.array([1.0, 2.0]), 0.0)) == 0


class TestEnforceMinDistance:
    """Test the minimum peak distance sweep."""

    def test_far_apart_all_kept(self):
        mz = np.array([500.0, 502.0, 504.0])
        intensity = np.array([1.0, 1.0, 1.0])

        kept = enforce_min_distance(mz, intensity, 0.8)

        np.testing.assert_array_equal(kept, [0, 1, 2])

    def test_stronger_neighbour_replaces(self):
        mz = np.array([500.0, 500.3, 502.0])
        intensity = np.array([1.0, 5.0, 1.0])

        kept = enforce_min_distance(mz, intensity, 0.8)

        np.testing.assert_array_equal(kept, [1, 2])

    def test_equal_intensity_keeps_first(self):
        mz = np.array([500.0, 500.3])
        intensity = np.array([2.0, 2.0])

        kept = enforce_min_distance(mz, intensity, 0.8)

        np.testing.assert_array_equal(kept, [0])

    def test_empty(self):
        kept = enforce_min_distance(np.empty(0), np.empty(0), 0.8)

        assert len(kept) == 0


class TestPickPeaks:
    """Test relative-threshold peak picking."""

    def test_gaussian_peaks(self, profile_spectrum):
        spectrum = profile_spectrum([1000.0, 1500.0, 2000.0], [100.0, 50.0, 20.0])

        peaks = pick_peaks(spectrum.mz, spectrum.intensity, 0.05, 0.8)

        assert len(peaks) == 3
        np.testing.assert_allclose(peaks.mz, [1000.0, 1500.0, 2000.0], atol=0.01)
        np.testing.assert_allclose(peaks.intensity, [100.0, 50.0, 20.0], rtol=1e-2)

    def test_relative_threshold_drops_small_peaks(self, profile_spectrum):
        spectrum = profile_spectrum([1000.0, 1500.0], [100.0, 2.0])

        peaks = pick_peaks(spectrum.mz, spectrum.intensity, 0.05, 0.8)

        assert len(peaks) == 1
        assert peaks[0].mz == pytest.approx(1000.0, abs=0.01)

    def test_min_distance_holds(self, profile_spectrum):
        centers = [1000.0, 1000.5, 1001.0, 1001.6, 1003.0]
        spectrum = profile_spectrum(centers, [10.0, 30.0, 20.0, 5.0, 10.0], sigma=0.03)

        peaks = pick_peaks(spectrum.mz, spectrum.intensity, 0.05, 0.8)

        assert np.all(np.diff(peaks.mz) >= 0.8)

    def test_sorted_output(self, profile_spectrum):
        spectrum = profile_spectrum([3000.0, 800.0, 1700.0], [1.0, 1.0, 1.0])

        peaks = pick_peaks(spectrum.mz, spectrum.intensity, 0.05, 0.8)

        assert np.all(np.diff(peaks.mz) > 0)

    def test_short_input(self):
        peaks = pick_peaks(np.array([500.0, 501.0]), np.array([1.0, 2.0]), 0.05, 0.8)

        assert len(peaks) == 0


class TestDetectPeaks:
    """Test the enabled/disabled switch."""

    def test_disabled_passes_samples_through(self):
        mz = np.array([700.0, 800.0, 900.0])
        intensity = np.array([1.0, 0.5, 0.25])

        peaks = detect_peaks(mz, intensity, PeakPickingParams(enabled=False))

        np.testing.assert_array_equal(peaks.mz, mz)
        np.testing.assert_array_equal(peaks.intensity, intensity)

    def test_passthrough_copies(self):
        mz = np.array([700.0, 800.0])
        intensity = np.array([1.0, 0.5])

        peaks = samples_as_peaks(mz, intensity)

        assert peaks.mz is not mz
        assert len(peaks) == 2

    def test_enabled_picks(self, profile_spectrum):
        spectrum = profile_spectrum([1200.0], [10.0])

        peaks = detect_peaks(spectrum.mz, spectrum.intensity, PeakPickingParams())

        assert len(peaks) == 1
