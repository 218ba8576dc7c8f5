"""
loudqc - Loudness Quality Control

ITU-R BS.1770 / EBU R128 loudness and true-peak metering for checking audio
against podcast and broadcast delivery targets.
"""
from loudqc.version import __version__
from loudqc.types import (
    Status,
    AudioBuffer,
    LoudnessMeasurement,
    ThresholdResult,
    ComplianceDecision,
    MeterConfig,
    LoudnessProfile,
)
from loudqc.meter import Meter

__all__ = [
    "__version__",
    "Status",
    "AudioBuffer",
    "LoudnessMeasurement",
    "ThresholdResult",
    "ComplianceDecision",
    "MeterConfig",
    "LoudnessProfile",
    "Meter",
]
