from __future__ import annotations

import json

import pytest

from loudqc.profiles.loader import (
    BUILTIN_PROFILES,
    load_meter_config,
    load_profile,
    meter_config_from_dict,
)
from loudqc.thresholds.evaluator import evaluate_compliance
from loudqc.types import LoudnessMeasurement, MeterConfig, Status


def _measurement(integrated, true_peak=-3.0):
    return LoudnessMeasurement(
        sample_rate=48000.0,
        channels=2,
        duration_seconds=10.0,
        integrated_lufs=integrated,
        loudness_range_lu=3.0,
        max_momentary_lufs=None,
        max_short_term_lufs=None,
        short_term_lufs=[],
        true_peaks_dbtp=[true_peak, true_peak - 1.0],
        sample_peaks_dbfs=[true_peak - 0.5, true_peak - 1.5],
    )


def _write_json(tmp_path, name, obj):
    path = tmp_path / name
    path.write_text(json.dumps(obj), encoding="utf-8")
    return path


@pytest.mark.parametrize("name", sorted(BUILTIN_PROFILES))
def test_builtin_profiles_load(name):
    profile = load_profile(name)
    assert profile.name == name
    assert profile.meter == MeterConfig()


def test_builtin_targets():
    ebu = load_profile("ebu_r128")
    assert ebu.target_lufs_i == -23.0
    assert ebu.tolerance_lu == 0.5
    assert load_profile("atsc_a85").max_true_peak_dbtp == -2.0


def test_profile_from_file_with_meter_section(tmp_path):
    path = _write_json(tmp_path, "audiobook.json", {
        "profile": {"name": "audiobook", "kind": "spoken"},
        "targets": {"integrated_lufs": -20.0, "max_true_peak_dbtp": -3.0},
        "meter": {"short_term_gate": "none", "oversample": 8, "lra": {"high_percentile": 90}},
    })
    profile = load_profile(str(path))
    assert profile.name == "audiobook"
    assert profile.tolerance_lu == 1.0
    assert profile.meter.short_term_gate == "none"
    assert profile.meter.oversample == 8
    assert profile.meter.lra_high_percentile == 90.0
    assert profile.meter.lra_low_percentile == 10.0


def test_load_meter_config(tmp_path):
    path = _write_json(tmp_path, "meter.json", {
        "meter": {"channel_roles": ["left", "right", "center", "lfe", "left_surround", "right_surround"]}
    })
    config = load_meter_config(str(path))
    assert config.channel_roles[3] == "lfe"
    assert config.short_term_gate == "absolute"
    assert load_meter_config(str(_write_json(tmp_path, "empty.json", {}))) == MeterConfig()


def test_invalid_meter_values_rejected():
    with pytest.raises(ValueError, match="short_term_gate"):
        meter_config_from_dict({"short_term_gate": "relative"})
    with pytest.raises(ValueError):
        meter_config_from_dict({"oversample": 1})
    with pytest.raises(ValueError, match="integer"):
        meter_config_from_dict({"oversample": 2.5})


def test_negative_tolerance_rejected(tmp_path):
    path = _write_json(tmp_path, "bad.json", {
        "profile": {"name": "bad"},
        "targets": {"integrated_lufs": -16.0, "max_true_peak_dbtp": -1.0, "tolerance_lu": -1.0},
    })
    with pytest.raises(ValueError):
        load_profile(str(path))


def test_unknown_profile_name():
    with pytest.raises(FileNotFoundError, match="built-in"):
        load_profile("no_such_profile")


def test_compliance_pass_warn_fail():
    profile = load_profile("podcast")
    assert evaluate_compliance(_measurement(-16.4), profile).status == Status.PASS
    assert evaluate_compliance(_measurement(-17.5), profile).status == Status.WARN

    decision = evaluate_compliance(_measurement(-20.0), profile)
    assert decision.status == Status.FAIL
    assert decision.profile_name == "podcast"
    integrated = decision.results[0]
    assert integrated.metric == "integrated_loudness"
    assert "deviation" in integrated.notes


def test_true_peak_limits():
    profile = load_profile("podcast")
    assert evaluate_compliance(_measurement(-16.0, true_peak=-1.0), profile).status == Status.PASS
    assert evaluate_compliance(_measurement(-16.0, true_peak=-0.7), profile).status == Status.WARN
    decision = evaluate_compliance(_measurement(-16.0, true_peak=0.2), profile)
    assert decision.status == Status.FAIL
    assert decision.results[1].value == pytest.approx(0.2)


def test_unmeasurable_loudness_fails():
    profile = load_profile("streaming")
    decision = evaluate_compliance(_measurement(None, true_peak=float("-inf")), profile)
    assert decision.status == Status.FAIL
    assert decision.results[0].notes == "no measurable content"
    assert decision.results[1].status == Status.PASS


def test_nan_loudness_fails():
    decision = evaluate_compliance(_measurement(float("nan")), load_profile("podcast"))
    assert decision.status == Status.FAIL
