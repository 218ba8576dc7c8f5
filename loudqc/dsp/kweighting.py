"""
K-weighting filter bank (ITU-R BS.1770-4).

Two cascaded biquads per channel: a high-frequency shelf (stage 1) and the
RLB high-pass (stage 2). Filter history is kept in explicit direct-form-I
states so a stream can be fed in arbitrary chunks.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass

import numpy as np
from scipy.signal import lfilter, lfiltic

logger = logging.getLogger(__name__)

REFERENCE_RATE_HZ = 48000.0

# Analog prototype parameters shared by libebur128 and pyloudnorm.
SHELF_F0_HZ = 1681.974450955533
SHELF_GAIN_DB = 3.999843853973347
SHELF_Q = 0.7071752369554196
HIGHPASS_F0_HZ = 38.13547087602444
HIGHPASS_Q = 0.5003270373238773


@dataclass(frozen=True)
class BiquadCoefficients:
    """Normalized biquad coefficients (a0 == 1)."""
    b0: float
    b1: float
    b2: float
    a1: float
    a2: float

    @property
    def b(self) -> np.ndarray:
        return np.array([self.b0, self.b1, self.b2], dtype=np.float64)

    @property
    def a(self) -> np.ndarray:
        return np.array([1.0, self.a1, self.a2], dtype=np.float64)


@dataclass
class BiquadState:
    """Direct-form-I history: last two inputs and last two outputs."""
    x1: float = 0.0
    x2: float = 0.0
    y1: float = 0.0
    y2: float = 0.0

    def reset(self) -> None:
        self.x1 = self.x2 = self.y1 = self.y2 = 0.0


# Published ITU-R BS.1770-4 coefficients at 48 kHz.
ITU_SHELF_48K = BiquadCoefficients(
    b0=1.53512485958697,
    b1=-2.69169618940638,
    b2=1.19839281085285,
    a1=-1.69065929318241,
    a2=0.73248077421585,
)
ITU_HIGHPASS_48K = BiquadCoefficients(
    b0=1.0,
    b1=-2.0,
    b2=1.0,
    a1=-1.99004745483398,
    a2=0.99007225036621,
)


def shelf_coefficients(fs: float) -> BiquadCoefficients:
    """Derive the stage 1 shelving filter for a sample rate via the bilinear transform."""
    k = math.tan(math.pi * SHELF_F0_HZ / fs)
    vh = 10.0 ** (SHELF_GAIN_DB / 20.0)
    vb = vh ** 0.4996667741545416
    a0 = 1.0 + k / SHELF_Q + k * k
    return BiquadCoefficients(
        b0=(vh + vb * k / SHELF_Q + k * k) / a0,
        b1=2.0 * (k * k - vh) / a0,
        b2=(vh - vb * k / SHELF_Q + k * k) / a0,
        a1=2.0 * (k * k - 1.0) / a0,
        a2=(1.0 - k / SHELF_Q + k * k) / a0,
    )


def highpass_coefficients(fs: float) -> BiquadCoefficients:
    """Derive the stage 2 RLB high-pass filter for a sample rate."""
    k = math.tan(math.pi * HIGHPASS_F0_HZ / fs)
    a0 = 1.0 + k / HIGHPASS_Q + k * k
    # Numerator is left unnormalized, as in the published table.
    return BiquadCoefficients(
        b0=1.0,
        b1=-2.0,
        b2=1.0,
        a1=2.0 * (k * k - 1.0) / a0,
        a2=(1.0 - k / HIGHPASS_Q + k * k) / a0,
    )


def k_weighting_coefficients(fs: float) -> tuple[BiquadCoefficients, BiquadCoefficients]:
    """
    Return (shelf, highpass) coefficients for a sample rate.

    The published table is used at exactly 48 kHz; every other rate is
    derived from the analog prototype.
    """
    fs = float(fs)
    if fs <= 0:
        raise ValueError("Sample rate must be positive.")
    if fs == REFERENCE_RATE_HZ:
        return ITU_SHELF_48K, ITU_HIGHPASS_48K
    # Both prototypes need their corner below Nyquist.
    if SHELF_F0_HZ >= fs / 2.0:
        raise ValueError(f"Sample rate {fs:g} Hz is too low for K-weighting.")
    logger.debug("Deriving K-weighting coefficients for %g Hz", fs)
    return shelf_coefficients(fs), highpass_coefficients(fs)


def response_db(coeffs: BiquadCoefficients, freq_hz: float, fs: float) -> float:
    """Magnitude response of a biquad in dB at one frequency."""
    z1 = np.exp(-1j * 2.0 * np.pi * freq_hz / fs)
    z2 = z1 * z1
    num = coeffs.b0 + coeffs.b1 * z1 + coeffs.b2 * z2
    den = 1.0 + coeffs.a1 * z1 + coeffs.a2 * z2
    return float(20.0 * np.log10(np.abs(num / den)))


def _run_biquad(x: np.ndarray, coeffs: BiquadCoefficients, state: BiquadState) -> np.ndarray:
    """Filter a 1D block, continuing from and then advancing `state`."""
    if x.size == 0:
        return x.copy()
    b = coeffs.b
    a = coeffs.a
    zi = lfiltic(b, a, y=[state.y1, state.y2], x=[state.x1, state.x2])
    y, _ = lfilter(b, a, x, zi=zi)
    if x.size >= 2:
        state.x1, state.x2 = float(x[-1]), float(x[-2])
        state.y1, state.y2 = float(y[-1]), float(y[-2])
    else:
        state.x2, state.x1 = state.x1, float(x[0])
        state.y2, state.y1 = state.y1, float(y[0])
    return y


def _step_biquad(x: float, coeffs: BiquadCoefficients, state: BiquadState) -> float:
    y = (
        coeffs.b0 * x
        + coeffs.b1 * state.x1
        + coeffs.b2 * state.x2
        - coeffs.a1 * state.y1
        - coeffs.a2 * state.y2
    )
    state.x2, state.x1 = state.x1, x
    state.y2, state.y1 = state.y1, y
    return y


class KWeightingFilterBank:
    """Per-channel K-weighting filters with explicit state."""

    def __init__(self, sample_rate: float, channels: int):
        if channels < 1:
            raise ValueError("channels must be >= 1.")
        self.sample_rate = float(sample_rate)
        self.channels = int(channels)
        self.shelf, self.highpass = k_weighting_coefficients(self.sample_rate)
        self.shelf_states = [BiquadState() for _ in range(self.channels)]
        self.highpass_states = [BiquadState() for _ in range(self.channels)]

    def process(self, frames: np.ndarray) -> np.ndarray:
        """
        K-weight a block of frames.

        Args:
            frames: float array of shape (n_frames, channels)

        Returns:
            New array of the same shape; the input is not modified.
        """
        x = np.asarray(frames, dtype=np.float64)
        if x.ndim != 2 or x.shape[1] != self.channels:
            raise ValueError(
                f"Expected frames of shape (n, {self.channels}), got {x.shape}."
            )
        out = np.empty_like(x)
        for ch in range(self.channels):
            y = _run_biquad(x[:, ch], self.shelf, self.shelf_states[ch])
            out[:, ch] = _run_biquad(y, self.highpass, self.highpass_states[ch])
        return out

    def filter_sample(self, x: float, channel: int) -> float:
        """K-weight a single sample on one channel."""
        y = _step_biquad(float(x), self.shelf, self.shelf_states[channel])
        return _step_biquad(y, self.highpass, self.highpass_states[channel])

    def reset(self) -> None:
        for state in self.shelf_states + self.highpass_states:
            state.reset()
