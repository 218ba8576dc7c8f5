"""
Loudness meter: K-weighting, block energies, gating and true peak.

A Meter is bound to one sample rate and channel count. Feed it audio with
`ingest` in as many chunks as convenient, then query results. The first
query seals the meter; ingesting afterwards raises RuntimeError.
"""
from __future__ import annotations

import logging
import math
import numbers
from typing import Iterator, Sequence

import numpy as np

from loudqc.dsp.channels import ChannelRole, channel_weights, default_channel_roles, parse_channel_role
from loudqc.dsp.kweighting import KWeightingFilterBank
from loudqc.dsp.oversampling import TruePeakDetector
from loudqc.metrics.blocks import BlockEnergyAccumulator
from loudqc.metrics.gating import gated_short_term, integrated_loudness, loudness_range
from loudqc.types import LoudnessMeasurement, MeterConfig

logger = logging.getLogger(__name__)


class Meter:
    """
    BS.1770 / EBU R128 loudness and true-peak meter.

    Args:
        sample_rate: Sample rate in Hz (> 0)
        channels: Number of channels (>= 1)
        config: Gating and oversampling options; defaults to MeterConfig()
    """

    def __init__(self, sample_rate: float, channels: int, *, config: MeterConfig | None = None):
        config = config or MeterConfig()
        try:
            fs = float(sample_rate)
        except (TypeError, ValueError):
            raise ValueError(f"Invalid sample rate: {sample_rate!r}.") from None
        if not math.isfinite(fs) or fs <= 0:
            raise ValueError(f"Sample rate must be positive, got {sample_rate!r}.")
        if (
            not isinstance(channels, numbers.Integral)
            or isinstance(channels, bool)
            or channels < 1
        ):
            raise ValueError(f"Channel count must be a positive integer, got {channels!r}.")
        channels = int(channels)

        if config.channel_roles is None:
            roles = default_channel_roles(channels)
        else:
            roles = tuple(parse_channel_role(r) for r in config.channel_roles)
            if len(roles) != channels:
                raise ValueError(
                    f"channel_roles has {len(roles)} entries for {channels} channels."
                )

        self.sample_rate = fs
        self.channels = channels
        self.config = config
        self.channel_roles: tuple[ChannelRole, ...] = roles
        self.filter_bank = KWeightingFilterBank(fs, channels)
        self.accumulator = BlockEnergyAccumulator(fs, channel_weights(roles))
        self.true_peak = TruePeakDetector(channels, oversample=config.oversample)
        self._frames = 0
        self._sealed = False
        logger.debug(
            "Meter created: %g Hz, %d channel(s), roles=%s",
            fs, channels, ",".join(r.value for r in roles)
        )

    @property
    def frames_ingested(self) -> int:
        return self._frames

    @property
    def duration_seconds(self) -> float:
        return self._frames / self.sample_rate

    @property
    def sealed(self) -> bool:
        """True once any result has been queried."""
        return self._sealed

    def _as_frames(self, samples) -> np.ndarray:
        x = np.asarray(samples, dtype=np.float64)
        if x.ndim == 1:
            if x.size % self.channels:
                raise ValueError(
                    f"Interleaved buffer of {x.size} samples is not a multiple of "
                    f"{self.channels} channels."
                )
            return x.reshape(-1, self.channels)
        if x.ndim == 2 and x.shape[1] == self.channels:
            return x
        raise ValueError(
            f"Expected interleaved samples of shape (n,) or (n, {self.channels}), got {x.shape}."
        )

    def ingest(self, samples) -> None:
        """
        Feed interleaved samples.

        Accepts a 1D interleaved buffer or a 2D (frames, channels) array of
        floats normalized to +/-1.0 full scale. The caller's buffer is not
        modified. Zero-length buffers are ignored.
        """
        if self._sealed:
            raise RuntimeError(
                "Meter results were already queried; create a new Meter to measure more audio."
            )
        frames = self._as_frames(samples)
        if frames.shape[0] == 0:
            return
        self.true_peak.process(frames)
        self.accumulator.push(self.filter_bank.process(frames))
        self._frames += frames.shape[0]

    def ingest_planar(self, planes: Sequence) -> None:
        """Feed one sample sequence per channel (all of equal length)."""
        arrays = [np.asarray(p, dtype=np.float64) for p in planes]
        if len(arrays) != self.channels:
            raise ValueError(f"Expected {self.channels} channel planes, got {len(arrays)}.")
        if any(a.ndim != 1 for a in arrays):
            raise ValueError("Channel planes must be 1D.")
        if len({a.size for a in arrays}) > 1:
            raise ValueError("Channel planes must all have the same length.")
        self.ingest(np.stack(arrays, axis=1))

    def _seal(self) -> None:
        if not self._sealed:
            self._sealed = True
            logger.debug(
                "Meter sealed after %d frames (%d blocks, %d short-term windows)",
                self._frames,
                len(self.accumulator.momentary_energies),
                len(self.accumulator.short_term_energies),
            )

    def integrated_lufs(self) -> float | None:
        """Gated integrated loudness in LUFS; None when nothing is measurable."""
        self._seal()
        return integrated_loudness(
            self.accumulator.momentary_energies,
            absolute_gate=self.config.absolute_gate_lufs,
            relative_gate=self.config.relative_gate_lu,
        )

    def short_term_lufs_sequence(self) -> Iterator[float]:
        """
        Short-term (3 s) loudness, one value per 100 ms hop.

        Returns a one-shot iterator. Gating follows `config.short_term_gate`.
        """
        self._seal()
        return gated_short_term(
            tuple(self.accumulator.short_term_energies),
            mode=self.config.short_term_gate,
            absolute_gate=self.config.absolute_gate_lufs,
        )

    def momentary_lufs_sequence(self) -> Iterator[float]:
        """Ungated momentary (400 ms) loudness, one value per 100 ms hop."""
        self._seal()
        return iter([float(v) for v in self.accumulator.momentary_loudness()])

    def loudness_range(self) -> float | None:
        """Loudness range (LRA) in LU over complete 3 s windows; None when none pass the gates."""
        self._seal()
        return loudness_range(
            self.accumulator.full_short_term_energies,
            absolute_gate=self.config.absolute_gate_lufs,
            relative_gate=self.config.lra_relative_gate_lu,
            low_percentile=self.config.lra_low_percentile,
            high_percentile=self.config.lra_high_percentile,
        )

    def true_peaks(self) -> list[float]:
        """Per-channel true peak in dBTP (-inf for silent channels)."""
        self._seal()
        return self.true_peak.true_peaks_dbtp()

    def sample_peaks(self) -> list[float]:
        """Per-channel sample peak in dBFS (-inf for silent channels)."""
        self._seal()
        return self.true_peak.sample_peaks_dbfs()

    def _max_gated(self, energies: list[float]) -> float | None:
        values = list(gated_short_term(
            energies, mode="absolute", absolute_gate=self.config.absolute_gate_lufs
        ))
        if not values:
            return None
        return float(np.max(values))

    def measure(self) -> LoudnessMeasurement:
        """Collect every result into one snapshot."""
        self._seal()
        return LoudnessMeasurement(
            sample_rate=self.sample_rate,
            channels=self.channels,
            duration_seconds=self.duration_seconds,
            integrated_lufs=self.integrated_lufs(),
            loudness_range_lu=self.loudness_range(),
            max_momentary_lufs=self._max_gated(self.accumulator.momentary_energies),
            max_short_term_lufs=self._max_gated(self.accumulator.short_term_energies),
            short_term_lufs=list(self.short_term_lufs_sequence()),
            true_peaks_dbtp=self.true_peaks(),
            sample_peaks_dbfs=self.sample_peaks(),
        )
