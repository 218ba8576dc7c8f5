#!/usr/bin/env python
"""
Synthesize loudness reference vectors modelled on EBU Tech 3341.

Each vector is a 1 kHz tone sequence with a known integrated loudness.
Run with --check to measure every vector and print the deviation.
"""
from __future__ import annotations
import argparse
import sys
from pathlib import Path

import numpy as np
import soundfile as sf

FS = 48000

# name -> (channel levels in dBFS, [(seconds, offset dB), ...], expected LUFS)
VECTORS: dict[str, tuple[list[float], list[tuple[float, float]], float]] = {
    "v0001_stereo_-23dbfs_20s": ([-23.0, -23.0], [(20.0, 0.0)], -23.0),
    "v0002_stereo_-33dbfs_20s": ([-33.0, -33.0], [(20.0, 0.0)], -33.0),
    "v0003_relative_gate": (
        [-23.0, -23.0], [(10.0, -13.0), (60.0, 0.0), (10.0, -13.0)], -23.0
    ),
    "v0004_absolute_gate": (
        [-23.0, -23.0],
        [(10.0, -49.0), (10.0, -13.0), (60.0, 0.0), (10.0, -13.0), (10.0, -49.0)],
        -23.0
    ),
    "v0005_five_channel": ([-28.0, -28.0, -24.0, -30.0, -30.0], [(20.0, 0.0)], -23.0),
}


def db_to_linear(db: float) -> float:
    """Convert dB to linear amplitude."""
    return 10.0 ** (db / 20.0)


def gen_sine(freq_hz: float, duration_s: float, fs: int, amp: float = 1.0) -> np.ndarray:
    """Generate a sine wave."""
    t = np.arange(int(duration_s * fs)) / fs
    return amp * np.sin(2.0 * np.pi * freq_hz * t)


def render(levels: list[float], sections: list[tuple[float, float]], fs: int = FS) -> np.ndarray:
    """Render a tone sequence as (frames, channels)."""
    parts = []
    for seconds, offset in sections:
        tone = gen_sine(1000.0, seconds, fs)
        parts.append(np.stack([tone * db_to_linear(lv + offset) for lv in levels], axis=1))
    return np.concatenate(parts, axis=0)


def main(argv: list[str] | None = None) -> int:
    """Generate all vectors, optionally measuring them."""
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--out-dir",
        default=str(Path(__file__).parent.parent / "validation" / "vectors"),
        help="Destination directory"
    )
    parser.add_argument("--check", action="store_true", help="Measure each vector after writing")
    args = parser.parse_args(argv)

    base_dir = Path(args.out_dir)
    print("Generating loudness vectors...")
    worst = 0.0
    for name, (levels, sections, expected) in VECTORS.items():
        path = base_dir / name / "input.wav"
        path.parent.mkdir(parents=True, exist_ok=True)
        sf.write(path, render(levels, sections), FS, subtype="FLOAT")
        line = f"  Created: {path}"
        if args.check:
            from loudqc.io.audio import measure_file

            measured = measure_file(str(path)).integrated_lufs
            if measured is None:
                line += " (no measurable content)"
                worst = float("inf")
            else:
                worst = max(worst, abs(measured - expected))
                line += f" ({measured:.2f} LUFS, expected {expected:.1f})"
        print(line)

    print(f"\nGenerated {len(VECTORS)} vectors in: {base_dir}")
    if args.check and worst > 0.1:
        print(f"Largest deviation {worst:.2f} LU exceeds 0.1 LU", file=sys.stderr)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
