from __future__ import annotations

import sys
from pathlib import Path

import numpy as np

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))


def sine(
    freq_hz: float,
    seconds: float,
    fs: float = 48000,
    *,
    dbfs: float = 0.0,
    phase: float = 0.0
) -> np.ndarray:
    """Sine with peak amplitude at `dbfs`."""
    t = np.arange(int(round(seconds * fs))) / fs
    amp = 10.0 ** (dbfs / 20.0)
    return amp * np.sin(2.0 * np.pi * freq_hz * t + phase)


def noise(seconds: float, fs: float = 48000, channels: int = 1, *, seed: int = 0, amp: float = 0.1) -> np.ndarray:
    """Reproducible white noise of shape (frames, channels)."""
    rng = np.random.default_rng(seed)
    return amp * rng.standard_normal((int(round(seconds * fs)), channels))
