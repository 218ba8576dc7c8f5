"""Audio I/O module."""
from __future__ import annotations
import logging
import warnings as py_warnings
import numpy as np
from loudqc.meter import Meter
from loudqc.types import AudioBuffer, LoudnessMeasurement, MeterConfig

logger = logging.getLogger(__name__)

DEFAULT_BLOCK_FRAMES = 65536


def _soundfile():
    try:
        import soundfile as sf
    except Exception as exc:
        raise RuntimeError("soundfile backend not available.") from exc
    return sf


def _decode_soundfile(path: str) -> tuple[np.ndarray, float, list[str]]:
    """Decode using soundfile (libsndfile)."""
    sf = _soundfile()
    with py_warnings.catch_warnings(record=True) as w:
        py_warnings.simplefilter("always")
        data, fs = sf.read(path, always_2d=True, dtype="float64")
    warn_list = [str(wi.message) for wi in w]
    return data, float(fs), warn_list


def load_audio(path: str) -> AudioBuffer:
    """
    Load an audio file as float64 frames of shape (n_frames, channels).

    Supports whatever libsndfile decodes (WAV, FLAC, AIFF, OGG, MP3 on
    recent builds). Channels are kept as-is; loudness needs every one.
    """
    data, fs, warnings_list = _decode_soundfile(path)
    for msg in warnings_list:
        logger.warning("%s: %s", path, msg)
    data = np.asarray(data, dtype=np.float64)
    duration = data.shape[0] / float(fs)
    return AudioBuffer(
        samples=data,
        fs=float(fs),
        duration=duration,
        channels=int(data.shape[1]),
        backend="soundfile",
        warnings=warnings_list
    )


def measure_buffer(audio: AudioBuffer, config: MeterConfig | None = None) -> LoudnessMeasurement:
    """Measure an in-memory AudioBuffer."""
    meter = Meter(audio.fs, audio.channels, config=config)
    meter.ingest(audio.samples)
    return meter.measure()


def measure_file(
    path: str,
    config: MeterConfig | None = None,
    *,
    block_frames: int = DEFAULT_BLOCK_FRAMES
) -> LoudnessMeasurement:
    """
    Stream an audio file through a Meter in bounded blocks.

    Only `block_frames` frames of decoded audio are held at a time.
    """
    if block_frames <= 0:
        raise ValueError("block_frames must be positive.")
    sf = _soundfile()
    info = sf.info(path)
    logger.debug(
        "%s: %s, %d Hz, %d channel(s), %d frames",
        path, info.format, info.samplerate, info.channels, info.frames
    )
    meter = Meter(info.samplerate, info.channels, config=config)
    with py_warnings.catch_warnings(record=True) as w:
        py_warnings.simplefilter("always")
        for block in sf.blocks(path, blocksize=block_frames, always_2d=True, dtype="float64"):
            meter.ingest(block)
    for wi in w:
        logger.warning("%s: %s", path, wi.message)
    return meter.measure()
