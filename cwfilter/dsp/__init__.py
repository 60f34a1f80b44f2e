"""Digital filter design and application.

This package provides:
- Analog ZPK prototypes (RC, Butterworth, Chebyshev I), s-domain
  topology transforms and the bilinear transform
- FIR filters (windowed sinc, Savitzky-Golay, Gaussian, box, difference)
- Direct-form IIR filtering and filter series
- Frequency response (amplitude, phase, group delay)
- Window shapes
"""

from .conv import EdgeBehavior, direct_convolve
from .filters import DigitalFilter, FilterSeries
from .fir import (
    BoxFilter,
    DifferenceFilter,
    FIRFilter,
    GaussianFilter,
    SavitzkyGolayFilter,
    SincFilter,
    savitzky_golay_coefficients,
)
from .iir import (
    ButterworthFilter,
    ChebyshevIFilter,
    IIRFilter,
    RCFilter,
    TransformedZPKFilter,
    lfilter,
)
from .response import FrequencyResponse, ResponseCurve, freqz, frequency_response
from .utils import check_1d_array, interpolate_uniform, next_pow2, poly, unwrap
from .windows import (
    BlackmanWindow,
    HammingWindow,
    HannWindow,
    RectangularWindow,
    Window,
    blackman,
    hamming,
    hann,
    rectangular,
)
from .zpk import (
    FilterTopology,
    ZeroPoleGain,
    bilinear,
    butterworth_prototype,
    chebyshev1_prototype,
    rc_prototype,
    transform,
    zpk_to_coefficients,
)

__all__ = [
    # Utils
    "check_1d_array",
    "next_pow2",
    "poly",
    "unwrap",
    "interpolate_uniform",
    # Windows
    "Window",
    "HannWindow",
    "HammingWindow",
    "BlackmanWindow",
    "RectangularWindow",
    "hann",
    "hamming",
    "blackman",
    "rectangular",
    # Convolution
    "EdgeBehavior",
    "direct_convolve",
    # Filters
    "DigitalFilter",
    "FilterSeries",
    # FIR
    "FIRFilter",
    "SincFilter",
    "SavitzkyGolayFilter",
    "savitzky_golay_coefficients",
    "GaussianFilter",
    "BoxFilter",
    "DifferenceFilter",
    # IIR
    "lfilter",
    "IIRFilter",
    "TransformedZPKFilter",
    "RCFilter",
    "ButterworthFilter",
    "ChebyshevIFilter",
    # Analog design
    "FilterTopology",
    "ZeroPoleGain",
    "rc_prototype",
    "butterworth_prototype",
    "chebyshev1_prototype",
    "transform",
    "bilinear",
    "zpk_to_coefficients",
    # Response
    "freqz",
    "frequency_response",
    "FrequencyResponse",
    "ResponseCurve",
]
