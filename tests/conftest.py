"""Pytest configuration for alphazooms tests.

Common fixtures: small reference databases, default parameters and a
synthetic MALDI profile spectrum builder. Everything is computed in memory;
file-based tests use pytest's ``tmp_path``.
"""

import numpy as np
import pytest

from alphazooms.config import AnalysisParams
from alphazooms.database.reference import (
    Contaminant,
    ReferenceDatabase,
    ReferenceMarker,
    ReferenceTaxon,
)
from alphazooms.spectrum import PeakList, Spectrum


def make_profile_spectrum(peak_mz, peak_height, mz_min=500.0, mz_max=3500.0, step=0.01,
                          sigma=0.05, spectrum_id="sample", noise=0.0, seed=0):
    """Gaussian peaks on a regular m/z axis."""
    mz = np.arange(mz_min, mz_max, step)
    intensity = np.zeros_like(mz)
    for center, height in zip(peak_mz, peak_height):
        window = np.abs(mz - center) < 6 * sigma
        intensity[window] += height * np.exp(-0.5 * ((mz[window] - center) / sigma) ** 2)
    if noise > 0:
        rng = np.random.default_rng(seed)
        intensity += np.abs(rng.normal(0.0, noise, len(mz)))
    return Spectrum(id=spectrum_id, filename=f"{spectrum_id}.txt", mz=mz, intensity=intensity)


def make_centroid_spectrum(peak_mz, peak_height, spectrum_id="centroids"):
    """Sparse spectrum with one sample per peak."""
    order = np.argsort(peak_mz)
    return Spectrum(
        id=spectrum_id,
        filename=f"{spectrum_id}.txt",
        mz=np.asarray(peak_mz, dtype=np.float64)[order],
        intensity=np.asarray(peak_height, dtype=np.float64)[order],
        centroided=True,
    )


def make_taxon(taxon_id, label, masses, deamidated=()):
    markers = tuple(
        ReferenceMarker(f"{taxon_id}_m{i + 1}", mz, (i in deamidated))
        for i, mz in enumerate(masses)
    )
    return ReferenceTaxon(id=taxon_id, label=label, markers=markers)


@pytest.fixture
def default_params():
    return AnalysisParams()


@pytest.fixture
def centroid_params():
    """Parameters for already centroided inputs (every sample is a peak)."""
    return AnalysisParams.from_dict({
        "preprocess": {"enabled": False},
        "peakPicking": {"enabled": False},
        "monoisotopic": {"enabled": False},
        "fdr": {"enabled": False},
    })


@pytest.fixture
def single_marker_db():
    taxon = make_taxon("t1", "Bos", [700.0])
    return ReferenceDatabase(label="single", taxa=(taxon,), marker_names=("t1_m1",))


@pytest.fixture
def three_taxa_db():
    taxa = (
        make_taxon("t1", "Bos", [1105.58, 1192.60, 1427.70, 1580.80, 2131.10, 2883.40]),
        make_taxon("t2", "Ovis", [1105.58, 1180.60, 1427.70, 1550.80, 2145.10, 2883.40]),
        make_taxon("t3", "Sus", [1105.58, 1453.70, 1566.80, 2121.10, 2853.40, 3017.50]),
    )
    names = tuple(m.name for t in taxa for m in t.markers)
    return ReferenceDatabase(label="toy", taxa=taxa, marker_names=names)


@pytest.fixture
def decoy_test_db():
    taxa = (
        make_taxon("t1", "T1", [600.0, 700.0]),
        make_taxon("t2", "T2", [800.0, 900.0, 1000.0]),
        make_taxon("t3", "T3", [1100.0]),
    )
    names = tuple(m.name for t in taxa for m in t.markers)
    return ReferenceDatabase(label="test", taxa=taxa, marker_names=names)


@pytest.fixture
def keratin():
    return [Contaminant("Keratin", 1000.0)]


@pytest.fixture
def peak_list():
    return PeakList.from_peaks([(700.05, 1.0), (1000.1, 0.5), (1500.0, 0.2)])


@pytest.fixture
def profile_spectrum():
    """Factory for synthetic profile spectra."""
    return make_profile_spectrum


@pytest.fixture
def centroid_spectrum():
    """Factory for centroided spectra."""
    return make_centroid_spectrum


@pytest.fixture
def taxon_factory():
    """Factory for reference taxa."""
    return make_taxon
