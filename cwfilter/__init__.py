"""cwfilter - digital filters and CW interference removal for sampled traces."""

__version__ = "0.1.0"

# Continuous-wave removal
from .cw import (
    SineComponent,
    SineFitter,
    SineSubtract,
    SineSubtractConfig,
    SineSubtractResult,
)

# Filter design and application
from .dsp import (
    ButterworthFilter,
    ChebyshevIFilter,
    DigitalFilter,
    FilterSeries,
    FilterTopology,
    FIRFilter,
    IIRFilter,
    RCFilter,
    frequency_response,
)

# Logging
from .logging import configure_logging, get_logger, set_log_level

__all__ = [
    "__version__",
    # CW removal
    "SineComponent",
    "SineFitter",
    "SineSubtract",
    "SineSubtractConfig",
    "SineSubtractResult",
    # Filters
    "DigitalFilter",
    "FilterSeries",
    "FilterTopology",
    "FIRFilter",
    "IIRFilter",
    "RCFilter",
    "ButterworthFilter",
    "ChebyshevIFilter",
    "frequency_response",
    # Logging
    "get_logger",
    "set_log_level",
    "configure_logging",
]
