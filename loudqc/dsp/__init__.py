"""DSP modules for loudqc."""

from loudqc.dsp.channels import (
    ChannelRole,
    channel_weight,
    channel_weights,
    default_channel_roles,
)
from loudqc.dsp.kweighting import (
    BiquadCoefficients,
    BiquadState,
    KWeightingFilterBank,
    k_weighting_coefficients,
)
from loudqc.dsp.oversampling import TruePeakDetector, design_interpolator

__all__ = [
    "ChannelRole",
    "channel_weight",
    "channel_weights",
    "default_channel_roles",
    "BiquadCoefficients",
    "BiquadState",
    "KWeightingFilterBank",
    "k_weighting_coefficients",
    "TruePeakDetector",
    "design_interpolator",
]
