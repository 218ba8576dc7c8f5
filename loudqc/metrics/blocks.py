"""
Block energy accumulation for BS.1770 gating blocks.

Filtered audio is cut into 100 ms segments. Each completed segment leaves a
per-channel sum of squares in a ring of the last 30 segments; a 400 ms
gating block is the last 4 segments (75% overlap) and a 3 s short-term
window is the last 30. Until 30 segments exist the short-term window is
zero-padded, so short-term values start with the first gating block.
"""
from __future__ import annotations

import math
from collections import deque

import numpy as np

from loudqc.metrics.levels import energy_to_lufs

SEGMENT_SECONDS = 0.1
MOMENTARY_SEGMENTS = 4
SHORT_TERM_SEGMENTS = 30


def segment_length(fs: float) -> int:
    """Samples per 100 ms hop, rounded half up."""
    fs = float(fs)
    if fs <= 0:
        raise ValueError("Sample rate must be positive.")
    return max(1, int(math.floor(fs * SEGMENT_SECONDS + 0.5)))


class BlockEnergyAccumulator:
    """
    Streams K-weighted frames into momentary (400 ms) and short-term (3 s)
    weighted energy series.

    Energies are `sum_c weight_c * mean(x_c ** 2)`; convert with
    `energy_to_lufs`. `full_short_term_energies` holds only complete 3 s
    windows. Every series only ever grows.
    """

    def __init__(self, sample_rate: float, weights: np.ndarray):
        w = np.asarray(weights, dtype=np.float64)
        if w.ndim != 1 or w.size < 1:
            raise ValueError("weights must be a non-empty 1D array.")
        self.sample_rate = float(sample_rate)
        self.hop = segment_length(self.sample_rate)
        self.weights = w
        self.channels = int(w.size)
        self._pending = np.zeros((self.hop, self.channels), dtype=np.float64)
        self._pending_len = 0
        self._segments: deque[np.ndarray] = deque(maxlen=SHORT_TERM_SEGMENTS)
        self.segments_completed = 0
        self.momentary_energies: list[float] = []
        self.short_term_energies: list[float] = []
        self.full_short_term_energies: list[float] = []

    def push(self, filtered: np.ndarray) -> None:
        """Accumulate K-weighted frames of shape (n_frames, channels)."""
        x = np.ascontiguousarray(filtered, dtype=np.float64)
        if x.ndim != 2 or x.shape[1] != self.channels:
            raise ValueError(
                f"Expected frames of shape (n, {self.channels}), got {x.shape}."
            )
        n = x.shape[0]
        pos = 0
        if self._pending_len:
            take = min(self.hop - self._pending_len, n)
            self._pending[self._pending_len:self._pending_len + take] = x[:take]
            self._pending_len += take
            pos = take
            if self._pending_len == self.hop:
                self._close_segment(self._pending)
                self._pending_len = 0
        while n - pos >= self.hop:
            self._close_segment(x[pos:pos + self.hop])
            pos += self.hop
        rest = n - pos
        if rest:
            self._pending[:rest] = x[pos:]
            self._pending_len = rest

    def _close_segment(self, segment: np.ndarray) -> None:
        self._segments.append(np.sum(np.square(segment), axis=0))
        self.segments_completed += 1
        if len(self._segments) < MOMENTARY_SEGMENTS:
            return
        self.momentary_energies.append(self._window_energy(MOMENTARY_SEGMENTS))
        short_term = self._window_energy(SHORT_TERM_SEGMENTS)
        self.short_term_energies.append(short_term)
        if len(self._segments) == SHORT_TERM_SEGMENTS:
            self.full_short_term_energies.append(short_term)

    def _window_energy(self, n_segments: int) -> float:
        # Missing segments count as silence.
        recent = list(self._segments)[-n_segments:]
        sums = np.sum(np.stack(recent, axis=0), axis=0)
        mean_square = sums / float(n_segments * self.hop)
        return float(np.dot(self.weights, mean_square))

    def momentary_loudness(self) -> np.ndarray:
        """Ungated loudness of every 400 ms block so far, in LKFS."""
        return np.asarray(energy_to_lufs(np.array(self.momentary_energies, dtype=np.float64)))
