from __future__ import annotations
import math
from loudqc.types import (
    Status,
    ThresholdResult,
    ComplianceDecision,
    LoudnessMeasurement,
    LoudnessProfile,
)


def _status_abs(value_abs: float, pass_lim: float, warn_lim: float) -> Status:
    """Evaluate status based on absolute value thresholds."""
    if value_abs <= pass_lim:
        return Status.PASS
    if value_abs <= warn_lim:
        return Status.WARN
    return Status.FAIL


def _status_high_is_bad(value: float, pass_lim: float, warn_lim: float) -> Status:
    """Evaluate status where higher values are worse (e.g., true peak)."""
    if value <= pass_lim:
        return Status.PASS
    if value <= warn_lim:
        return Status.WARN
    return Status.FAIL


def _explain(
    *,
    metric: str,
    value: float,
    units: str,
    status: Status,
    pass_lim: float,
    warn_lim: float,
    compare: str
) -> str:
    """Build a short, human-readable explanation for WARN/FAIL."""
    if status == Status.PASS:
        return ""
    thr = f"pass<= {pass_lim:g} {units}, warn<= {warn_lim:g} {units}"
    return f"{metric} is {compare} threshold: {value:.3f} {units} ({thr})."


def _evaluate_integrated(m: LoudnessMeasurement, p: LoudnessProfile) -> ThresholdResult:
    pass_lim = p.tolerance_lu
    warn_lim = p.tolerance_lu + p.warn_margin_lu
    value = m.integrated_lufs
    if value is None or math.isnan(value):
        return ThresholdResult(
            metric="integrated_loudness",
            value=value,
            units="LUFS",
            status=Status.FAIL,
            pass_limit=pass_lim,
            warn_limit=warn_lim,
            notes="no measurable content" if value is None else "non-finite loudness"
        )
    deviation = value - p.target_lufs_i
    status = _status_abs(abs(deviation), pass_lim, warn_lim)
    return ThresholdResult(
        metric="integrated_loudness",
        value=value,
        units="LUFS",
        status=status,
        pass_limit=pass_lim,
        warn_limit=warn_lim,
        notes=_explain(
            metric="integrated_loudness deviation from target",
            value=deviation,
            units="LU",
            status=status,
            pass_lim=pass_lim,
            warn_lim=warn_lim,
            compare="outside absolute"
        )
    )


def _evaluate_true_peak(m: LoudnessMeasurement, p: LoudnessProfile) -> ThresholdResult:
    pass_lim = p.max_true_peak_dbtp
    warn_lim = p.max_true_peak_dbtp + p.true_peak_warn_margin_db
    value = m.max_true_peak_dbtp
    if any(math.isnan(v) for v in m.true_peaks_dbtp):
        return ThresholdResult(
            metric="true_peak",
            value=float("nan"),
            units="dBTP",
            status=Status.FAIL,
            pass_limit=pass_lim,
            warn_limit=warn_lim,
            notes="non-finite true peak"
        )
    status = _status_high_is_bad(value, pass_lim, warn_lim)
    return ThresholdResult(
        metric="true_peak",
        value=value,
        units="dBTP",
        status=status,
        pass_limit=pass_lim,
        warn_limit=warn_lim,
        notes=_explain(
            metric="true_peak",
            value=value,
            units="dBTP",
            status=status,
            pass_lim=pass_lim,
            warn_lim=warn_lim,
            compare="above"
        )
    )


def evaluate_compliance(
    measurement: LoudnessMeasurement,
    profile: LoudnessProfile
) -> ComplianceDecision:
    """
    Check a measurement against a loudness profile.

    Integrated loudness passes within `tolerance_lu` of the target and warns
    within a further `warn_margin_lu`. True peak passes at or below the
    ceiling and warns within `true_peak_warn_margin_db` above it. Missing
    integrated loudness is a failure.

    Returns:
        ComplianceDecision with the worst per-metric status overall
    """
    results = [
        _evaluate_integrated(measurement, profile),
        _evaluate_true_peak(measurement, profile),
    ]
    if any(r.status == Status.FAIL for r in results):
        status = Status.FAIL
    elif any(r.status == Status.WARN for r in results):
        status = Status.WARN
    else:
        status = Status.PASS
    return ComplianceDecision(profile_name=profile.name, status=status, results=results)
