"""loudqc CLI - loudness and true-peak compliance checks."""
from __future__ import annotations
import argparse
import json
import logging
import sys
from pathlib import Path

from loudqc.version import __version__
from loudqc.types import Status, LoudnessMeasurement, ComplianceDecision
from loudqc.io.audio import measure_file, DEFAULT_BLOCK_FRAMES
from loudqc.profiles.loader import BUILTIN_PROFILES, load_meter_config, load_profile
from loudqc.thresholds.evaluator import evaluate_compliance
from loudqc.utils.quantize import json_number


EXIT_PASS = 0
EXIT_WARN = 10
EXIT_FAIL = 20
EXIT_BAD_ARGS = 2
EXIT_DECODE_ERROR = 3
EXIT_PROFILE_ERROR = 4
EXIT_INTERNAL_ERROR = 5

logger = logging.getLogger(__name__)


def _exit_code_for_status(status: Status) -> int:
    if status == Status.FAIL:
        return EXIT_FAIL
    if status == Status.WARN:
        return EXIT_WARN
    return EXIT_PASS


def measurement_to_dict(m: LoudnessMeasurement, *, include_short_term: bool = False) -> dict:
    """Convert a measurement to a JSON-ready dict."""
    out = {
        "sample_rate_hz": m.sample_rate,
        "channels": m.channels,
        "duration_s": json_number(m.duration_seconds, 0.001),
        "integrated_lufs": json_number(m.integrated_lufs),
        "loudness_range_lu": json_number(m.loudness_range_lu),
        "max_momentary_lufs": json_number(m.max_momentary_lufs),
        "max_short_term_lufs": json_number(m.max_short_term_lufs),
        "true_peak_dbtp": [json_number(v) for v in m.true_peaks_dbtp],
        "max_true_peak_dbtp": json_number(m.max_true_peak_dbtp),
        "sample_peak_dbfs": [json_number(v) for v in m.sample_peaks_dbfs],
    }
    if include_short_term:
        out["short_term_lufs"] = [json_number(v) for v in m.short_term_lufs]
    return out


def decision_to_dict(d: ComplianceDecision) -> dict:
    return {
        "profile": d.profile_name,
        "status": d.status.value,
        "results": [
            {
                "metric": r.metric,
                "value": json_number(r.value),
                "units": r.units,
                "status": r.status.value,
                "pass_limit": r.pass_limit,
                "warn_limit": r.warn_limit,
                "notes": r.notes,
            }
            for r in d.results
        ],
    }


def cmd_analyze(args) -> int:
    """Handle analyze command."""
    try:
        profile = load_profile(args.profile) if args.profile else None
        if args.config:
            config = load_meter_config(args.config)
        else:
            config = profile.meter if profile else None
    except FileNotFoundError as e:
        print(f"Error: Profile not found - {e}", file=sys.stderr)
        return EXIT_PROFILE_ERROR
    except json.JSONDecodeError as e:
        print(f"Error: Invalid profile JSON - {e}", file=sys.stderr)
        return EXIT_PROFILE_ERROR
    except KeyError as e:
        print(f"Error: Missing profile key - {e}", file=sys.stderr)
        return EXIT_PROFILE_ERROR
    except ValueError as e:
        print(f"Error: Invalid configuration - {e}", file=sys.stderr)
        return EXIT_PROFILE_ERROR

    try:
        measurement = measure_file(
            args.audio_path, config, block_frames=args.block_frames
        )
    except FileNotFoundError as e:
        print(f"Error: File not found - {e}", file=sys.stderr)
        return EXIT_DECODE_ERROR
    except (RuntimeError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return EXIT_DECODE_ERROR
    except Exception as e:
        logger.debug("Unexpected failure", exc_info=True)
        print(f"Internal error: {e}", file=sys.stderr)
        return EXIT_INTERNAL_ERROR

    report = {
        "engine": {"name": "loudqc", "version": __version__},
        "input": {"path": str(args.audio_path)},
        "measurement": measurement_to_dict(
            measurement, include_short_term=args.short_term
        ),
    }
    exit_code = EXIT_PASS
    if profile is not None:
        decision = evaluate_compliance(measurement, profile)
        report["compliance"] = decision_to_dict(decision)
        exit_code = _exit_code_for_status(decision.status)

    output_json = json.dumps(report, indent=2)
    if args.out:
        Path(args.out).write_text(output_json, encoding="utf-8")
        print(f"Report written to: {args.out}", file=sys.stderr)
    else:
        print(output_json)
    return exit_code


def cmd_profiles(args) -> int:
    """Handle profiles command."""
    for name in sorted(BUILTIN_PROFILES):
        p = load_profile(name)
        print(
            f"{p.name}: {p.target_lufs_i:g} LUFS +/-{p.tolerance_lu:g} LU, "
            f"true peak <= {p.max_true_peak_dbtp:g} dBTP ({p.kind})"
        )
    return EXIT_PASS


def main(argv: list[str] | None = None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        prog="loudqc",
        description="loudqc - BS.1770 loudness and true-peak compliance"
    )
    parser.add_argument(
        "--version", action="version",
        version=f"loudqc {__version__}"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    analyze_parser = subparsers.add_parser(
        "analyze",
        help="Measure loudness and true peak of an audio file"
    )
    analyze_parser.add_argument(
        "audio_path",
        help="Path to audio file (anything libsndfile decodes)"
    )
    analyze_parser.add_argument(
        "--profile", "-p",
        help=f"Built-in profile ({', '.join(sorted(BUILTIN_PROFILES))}) or profile JSON path"
    )
    analyze_parser.add_argument(
        "--config", "-c",
        help="Meter config JSON (overrides the profile's meter section)"
    )
    analyze_parser.add_argument(
        "--block-frames",
        type=int,
        default=DEFAULT_BLOCK_FRAMES,
        help=f"Frames decoded per chunk (default: {DEFAULT_BLOCK_FRAMES})"
    )
    analyze_parser.add_argument(
        "--short-term",
        action="store_true",
        help="Include the short-term loudness series in the output"
    )
    analyze_parser.add_argument(
        "--out", "-o",
        help="Output path for the JSON report"
    )
    analyze_parser.set_defaults(func=cmd_analyze)

    profiles_parser = subparsers.add_parser(
        "profiles",
        help="List built-in loudness profiles"
    )
    profiles_parser.set_defaults(func=cmd_profiles)

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s"
    )

    if getattr(args, "block_frames", 1) <= 0:
        print("Error: --block-frames must be positive.", file=sys.stderr)
        sys.exit(EXIT_BAD_ARGS)

    if hasattr(args, "func"):
        sys.exit(args.func(args))
    else:
        parser.print_help()
        sys.exit(EXIT_BAD_ARGS)


if __name__ == "__main__":
    main()
