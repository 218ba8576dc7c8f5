"""
Gated loudness over block energy series (ITU-R BS.1770-4, EBU Tech 3342).

These are pure functions: they read an energy series and never modify it.
"""
from __future__ import annotations

from typing import Iterable, Iterator

import numpy as np

from loudqc.metrics.levels import energy_to_lufs

ABSOLUTE_GATE_LUFS = -70.0
RELATIVE_GATE_LU = -10.0
LRA_RELATIVE_GATE_LU = -20.0
LRA_LOW_PERCENTILE = 10.0
LRA_HIGH_PERCENTILE = 95.0

SHORT_TERM_GATE_MODES = ("absolute", "none")


def _energies(energies: Iterable[float]) -> np.ndarray:
    if not isinstance(energies, (np.ndarray, list, tuple)):
        energies = list(energies)
    e = np.asarray(energies, dtype=np.float64)
    if e.ndim != 1:
        raise ValueError("Expected a 1D energy series.")
    return e


def _absolute_gated(e: np.ndarray, absolute_gate: float) -> tuple[np.ndarray, np.ndarray]:
    loudness = np.asarray(energy_to_lufs(e))
    return loudness, loudness >= absolute_gate


def relative_threshold(
    energies: Iterable[float],
    *,
    absolute_gate: float = ABSOLUTE_GATE_LUFS,
    relative_gate: float = RELATIVE_GATE_LU
) -> float | None:
    """
    Compute the relative gating threshold in LKFS.

    Returns None when no block passes the absolute gate and NaN when the
    series contains NaN.
    """
    e = _energies(energies)
    if e.size == 0:
        return None
    if np.isnan(e).any():
        return float("nan")
    _, passed = _absolute_gated(e, absolute_gate)
    if not passed.any():
        return None
    return float(energy_to_lufs(np.mean(e[passed]))) + float(relative_gate)


def integrated_loudness(
    energies: Iterable[float],
    *,
    absolute_gate: float = ABSOLUTE_GATE_LUFS,
    relative_gate: float = RELATIVE_GATE_LU
) -> float | None:
    """
    Two-stage gated integrated loudness.

    1. Drop blocks below the absolute gate (-70 LKFS).
    2. Average the remaining energies (energy domain, not dB).
    3. Drop blocks more than 10 LU below that average.
    4. Average the survivors and convert to LKFS.

    Args:
        energies: Weighted 400 ms block energies in arrival order
        absolute_gate: Absolute gate in LKFS
        relative_gate: Relative gate offset in LU (negative)

    Returns:
        Integrated loudness in LKFS, or None when there is no measurable
        content (no block survives the absolute gate).
    """
    e = _energies(energies)
    threshold = relative_threshold(
        e, absolute_gate=absolute_gate, relative_gate=relative_gate
    )
    if threshold is None:
        return None
    if np.isnan(threshold):
        return float("nan")
    loudness, passed = _absolute_gated(e, absolute_gate)
    passed &= loudness >= threshold
    if not passed.any():
        return None
    return float(energy_to_lufs(np.mean(e[passed])))


def gated_short_term(
    energies: Iterable[float],
    *,
    mode: str = "absolute",
    absolute_gate: float = ABSOLUTE_GATE_LUFS
) -> Iterator[float]:
    """
    Lazily convert short-term window energies to LKFS.

    With mode "absolute" windows below the absolute gate are skipped; with
    mode "none" every window is yielded, silent ones as -inf. NaN is always
    yielded.
    """
    if mode not in SHORT_TERM_GATE_MODES:
        raise ValueError(
            f"Unknown short-term gate mode {mode!r} (expected one of {SHORT_TERM_GATE_MODES})."
        )
    return _iter_short_term(energies, mode, float(absolute_gate))


def _iter_short_term(energies: Iterable[float], mode: str, absolute_gate: float) -> Iterator[float]:
    for energy in energies:
        value = float(energy_to_lufs(energy))
        if mode == "none" or np.isnan(value) or value >= absolute_gate:
            yield value


def loudness_range(
    short_term_energies: Iterable[float],
    *,
    absolute_gate: float = ABSOLUTE_GATE_LUFS,
    relative_gate: float = LRA_RELATIVE_GATE_LU,
    low_percentile: float = LRA_LOW_PERCENTILE,
    high_percentile: float = LRA_HIGH_PERCENTILE
) -> float | None:
    """
    Loudness range (LRA) in LU per EBU Tech 3342.

    Short-term values are gated at -70 LKFS and then 20 LU below their
    energy mean; LRA is the spread between the 10th and 95th percentile of
    the survivors. None when nothing survives.
    """
    e = _energies(short_term_energies)
    threshold = relative_threshold(
        e, absolute_gate=absolute_gate, relative_gate=relative_gate
    )
    if threshold is None:
        return None
    if np.isnan(threshold):
        return float("nan")
    loudness, passed = _absolute_gated(e, absolute_gate)
    passed &= loudness >= threshold
    kept = loudness[passed]
    if kept.size == 0:
        return None
    high = np.percentile(kept, high_percentile)
    low = np.percentile(kept, low_percentile)
    return float(high - low)
