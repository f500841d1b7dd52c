"""alphazooms - ZooMS species identification from MALDI peptide spectra.

Identifies the taxon of origin of a bone or collagen sample by correlating
its detected peptide peaks with reference marker tables on a shared binary
mass grid, estimates a sample-level FDR against synthetic decoy taxa and
classifies the confidence of the top call.

Numba-compiled kernels cover the inner loops (baseline clipping, peak
picking, isotope filtering, grid painting, correlation, mass lookups).
"""

__version__ = "0.1.0"

from alphazooms.config import AnalysisParams
from alphazooms.spectrum import Peak, PeakList, Spectrum
from alphazooms.analysis import AnalysisResult, SpectrumInputError, analyze_spectrum
from alphazooms.batch import BatchResult, analyze_batch, iter_analyze_batch

# Import main submodules for convenient access
from alphazooms import preprocessing
from alphazooms import features
from alphazooms import search
from alphazooms import scoring
from alphazooms import database

__all__ = [
    "AnalysisParams",
    "AnalysisResult",
    "BatchResult",
    "Peak",
    "PeakList",
    "Spectrum",
    "SpectrumInputError",
    "analyze_batch",
    "analyze_spectrum",
    "iter_analyze_batch",
    "preprocessing",
    "features",
    "search",
    "scoring",
    "database",
]
