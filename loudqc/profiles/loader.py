from __future__ import annotations
import json
from pathlib import Path
from loudqc.types import LoudnessProfile, MeterConfig

BUILTIN_PROFILES: dict[str, dict] = {
    "podcast": {
        "profile": {"name": "podcast", "kind": "podcast"},
        "targets": {
            "integrated_lufs": -16.0,
            "tolerance_lu": 1.0,
            "warn_margin_lu": 1.0,
            "max_true_peak_dbtp": -1.0,
            "true_peak_warn_margin_db": 0.5
        }
    },
    "streaming": {
        "profile": {"name": "streaming", "kind": "streaming"},
        "targets": {
            "integrated_lufs": -14.0,
            "tolerance_lu": 1.0,
            "warn_margin_lu": 1.0,
            "max_true_peak_dbtp": -1.0,
            "true_peak_warn_margin_db": 0.5
        }
    },
    "ebu_r128": {
        "profile": {"name": "ebu_r128", "kind": "broadcast"},
        "targets": {
            "integrated_lufs": -23.0,
            "tolerance_lu": 0.5,
            "warn_margin_lu": 0.5,
            "max_true_peak_dbtp": -1.0,
            "true_peak_warn_margin_db": 0.5
        }
    },
    "atsc_a85": {
        "profile": {"name": "atsc_a85", "kind": "broadcast"},
        "targets": {
            "integrated_lufs": -24.0,
            "tolerance_lu": 2.0,
            "warn_margin_lu": 1.0,
            "max_true_peak_dbtp": -2.0,
            "true_peak_warn_margin_db": 0.5
        }
    },
}


def meter_config_from_dict(j: dict) -> MeterConfig:
    """
    Build a MeterConfig from the "meter" section of a config or profile.

    Missing keys fall back to the BS.1770 defaults.
    """
    defaults = MeterConfig()
    lra = j.get("lra", {})
    roles = j.get("channel_roles")
    return MeterConfig(
        absolute_gate_lufs=float(j.get("absolute_gate_lufs", defaults.absolute_gate_lufs)),
        relative_gate_lu=float(j.get("relative_gate_lu", defaults.relative_gate_lu)),
        short_term_gate=str(j.get("short_term_gate", defaults.short_term_gate)),
        oversample=j.get("oversample", defaults.oversample),
        channel_roles=tuple(str(r) for r in roles) if roles is not None else None,
        lra_relative_gate_lu=float(lra.get("relative_gate_lu", defaults.lra_relative_gate_lu)),
        lra_low_percentile=float(lra.get("low_percentile", defaults.lra_low_percentile)),
        lra_high_percentile=float(lra.get("high_percentile", defaults.lra_high_percentile)),
    )


def load_meter_config(path: str) -> MeterConfig:
    """
    Load meter options from a JSON file.

    The file holds a top-level "meter" object; an empty file section gives
    the defaults.
    """
    with open(path, "r", encoding="utf-8") as f:
        j = json.load(f)
    return meter_config_from_dict(j.get("meter", {}))


def profile_from_dict(j: dict) -> LoudnessProfile:
    """Build a LoudnessProfile from its JSON structure."""
    targets = j["targets"]
    tolerance = float(targets.get("tolerance_lu", 1.0))
    warn_margin = float(targets.get("warn_margin_lu", 1.0))
    tp_margin = float(targets.get("true_peak_warn_margin_db", 0.5))
    if tolerance < 0 or warn_margin < 0 or tp_margin < 0:
        raise ValueError("Profile tolerances and margins must be non-negative.")
    return LoudnessProfile(
        name=j["profile"]["name"],
        kind=j["profile"].get("kind", "custom"),
        target_lufs_i=float(targets["integrated_lufs"]),
        tolerance_lu=tolerance,
        warn_margin_lu=warn_margin,
        max_true_peak_dbtp=float(targets["max_true_peak_dbtp"]),
        true_peak_warn_margin_db=tp_margin,
        meter=meter_config_from_dict(j.get("meter", {})),
    )


def load_profile(name_or_path: str) -> LoudnessProfile:
    """
    Load a loudness profile by built-in name or from a JSON file.

    Args:
        name_or_path: One of BUILTIN_PROFILES or a path to a profile JSON

    Returns:
        LoudnessProfile with targets and meter options
    """
    if name_or_path in BUILTIN_PROFILES:
        return profile_from_dict(BUILTIN_PROFILES[name_or_path])
    path = Path(name_or_path)
    if not path.is_file():
        known = ", ".join(sorted(BUILTIN_PROFILES))
        raise FileNotFoundError(
            f"{name_or_path} is neither a built-in profile ({known}) nor a file."
        )
    with open(path, "r", encoding="utf-8") as f:
        j = json.load(f)
    return profile_from_dict(j)
