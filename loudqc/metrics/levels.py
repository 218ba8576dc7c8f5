"""Level and loudness unit conversions."""
from __future__ import annotations

import numpy as np

# BS.1770 calibration: a 0 dBFS 997 Hz sine on one front channel reads -3.01 LKFS.
LOUDNESS_OFFSET_DB = -0.691


def amplitude_to_db(x):
    """
    Convert linear amplitude(s) to dB (20*log10).

    Zero maps to -inf; NaN and inf pass through unchanged.
    """
    a = np.asarray(x, dtype=np.float64)
    with np.errstate(divide="ignore"):
        out = 20.0 * np.log10(np.abs(a))
    if out.ndim == 0:
        return float(out)
    return out


def energy_to_lufs(energy):
    """
    Convert weighted mean-square energy to loudness in LKFS.

    Zero energy maps to -inf rather than raising.
    """
    e = np.asarray(energy, dtype=np.float64)
    with np.errstate(divide="ignore"):
        out = LOUDNESS_OFFSET_DB + 10.0 * np.log10(e)
    if out.ndim == 0:
        return float(out)
    return out


def lufs_to_energy(lufs):
    """Inverse of energy_to_lufs."""
    out = 10.0 ** ((np.asarray(lufs, dtype=np.float64) - LOUDNESS_OFFSET_DB) / 10.0)
    if out.ndim == 0:
        return float(out)
    return out
