from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
import numbers
import numpy as np

class Status(str, Enum):
    PASS = "pass"
    WARN = "warn"
    FAIL = "fail"

@dataclass(frozen=True)
class AudioBuffer:
    samples: np.ndarray
    fs: float
    duration: float
    channels: int = 1
    backend: str = "unknown"
    warnings: list[str] = field(default_factory=list)

@dataclass(frozen=True)
class LoudnessMeasurement:
    sample_rate: float
    channels: int
    duration_seconds: float
    integrated_lufs: float | None
    loudness_range_lu: float | None
    max_momentary_lufs: float | None
    max_short_term_lufs: float | None
    short_term_lufs: list[float]
    true_peaks_dbtp: list[float]
    sample_peaks_dbfs: list[float]

    @property
    def max_true_peak_dbtp(self) -> float:
        if not self.true_peaks_dbtp:
            return float("-inf")
        return max(self.true_peaks_dbtp)

@dataclass(frozen=True)
class ThresholdResult:
    metric: str
    value: float | None
    units: str
    status: Status
    pass_limit: float
    warn_limit: float
    notes: str = ""

@dataclass(frozen=True)
class ComplianceDecision:
    profile_name: str
    status: Status
    results: list[ThresholdResult]

@dataclass(frozen=True)
class MeterConfig:
    absolute_gate_lufs: float = -70.0
    relative_gate_lu: float = -10.0
    short_term_gate: str = "absolute"
    oversample: int = 4
    channel_roles: tuple[str, ...] | None = None
    lra_relative_gate_lu: float = -20.0
    lra_low_percentile: float = 10.0
    lra_high_percentile: float = 95.0

    def __post_init__(self):
        if self.short_term_gate not in ("absolute", "none"):
            raise ValueError(
                f"short_term_gate must be 'absolute' or 'none', got {self.short_term_gate!r}."
            )
        if self.relative_gate_lu > 0 or self.lra_relative_gate_lu > 0:
            raise ValueError("Relative gates are offsets below the mean and must be <= 0.")
        if (
            not isinstance(self.oversample, numbers.Integral)
            or isinstance(self.oversample, bool)
            or not 2 <= self.oversample <= 16
        ):
            raise ValueError(f"oversample must be an integer between 2 and 16, got {self.oversample!r}.")
        if not 0.0 <= self.lra_low_percentile < self.lra_high_percentile <= 100.0:
            raise ValueError("LRA percentiles must satisfy 0 <= low < high <= 100.")

@dataclass(frozen=True)
class LoudnessProfile:
    name: str
    kind: str
    target_lufs_i: float
    tolerance_lu: float
    warn_margin_lu: float
    max_true_peak_dbtp: float
    true_peak_warn_margin_db: float
    meter: MeterConfig = field(default_factory=MeterConfig)
