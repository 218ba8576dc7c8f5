from __future__ import annotations

import numpy as np
import pytest

from loudqc.dsp.kweighting import (
    ITU_HIGHPASS_48K,
    ITU_SHELF_48K,
    KWeightingFilterBank,
    highpass_coefficients,
    k_weighting_coefficients,
    response_db,
    shelf_coefficients,
)
from tests.conftest import noise


def _coeff_array(c):
    return np.array([c.b0, c.b1, c.b2, c.a1, c.a2])


def _cascade_db(fs, freq):
    shelf, hp = k_weighting_coefficients(fs)
    return response_db(shelf, freq, fs) + response_db(hp, freq, fs)


def test_reference_rate_uses_published_table():
    shelf, hp = k_weighting_coefficients(48000)
    assert shelf == ITU_SHELF_48K
    assert hp == ITU_HIGHPASS_48K


def test_derivation_reproduces_published_table_at_48k():
    assert np.allclose(_coeff_array(shelf_coefficients(48000.0)), _coeff_array(ITU_SHELF_48K), atol=1e-5)
    assert np.allclose(_coeff_array(highpass_coefficients(48000.0)), _coeff_array(ITU_HIGHPASS_48K), atol=1e-5)


def test_other_rates_are_rederived_not_copied():
    shelf, hp = k_weighting_coefficients(44100)
    assert not np.isclose(shelf.b0, ITU_SHELF_48K.b0, atol=1e-3)
    assert not np.isclose(hp.a1, ITU_HIGHPASS_48K.a1, atol=1e-5)


@pytest.mark.parametrize("fs", [44100, 48000, 96000])
def test_response_shape_is_rate_independent(fs):
    assert np.isclose(_cascade_db(fs, 1000.0), 0.69, atol=0.1)
    assert np.isclose(_cascade_db(fs, 10000.0), 4.0, atol=0.3)
    assert _cascade_db(fs, 20.0) < -10.0


def test_invalid_rates_rejected():
    with pytest.raises(ValueError):
        k_weighting_coefficients(0)
    with pytest.raises(ValueError):
        k_weighting_coefficients(2000)
    with pytest.raises(ValueError, match="too low"):
        KWeightingFilterBank(3000, 1)
    assert k_weighting_coefficients(4000)[0].b0 > 1.0


def test_chunked_processing_matches_per_sample():
    x = noise(0.05, channels=2, seed=3)
    by_sample = KWeightingFilterBank(48000, 2)
    expected = np.array([
        [by_sample.filter_sample(x[i, ch], ch) for ch in range(2)]
        for i in range(x.shape[0])
    ])

    chunked = KWeightingFilterBank(48000, 2)
    parts = []
    start = 0
    for size in (1, 7, 300, 1):
        parts.append(chunked.process(x[start:start + size]))
        start += size
    parts.append(chunked.process(x[start:]))
    out = np.concatenate(parts, axis=0)
    assert np.allclose(out, expected, rtol=1e-8, atol=1e-10)


def test_state_holds_last_inputs_and_outputs():
    bank = KWeightingFilterBank(48000, 1)
    x = np.array([[0.1], [0.2], [0.3]])
    bank.process(x)
    st = bank.shelf_states[0]
    assert st.x1 == pytest.approx(0.3)
    assert st.x2 == pytest.approx(0.2)
    assert st.y1 != 0.0
    bank.reset()
    assert (st.x1, st.x2, st.y1, st.y2) == (0.0, 0.0, 0.0, 0.0)


def test_input_is_not_modified_and_shape_checked():
    bank = KWeightingFilterBank(48000, 2)
    x = noise(0.01, channels=2)
    before = x.copy()
    bank.process(x)
    assert np.array_equal(x, before)
    with pytest.raises(ValueError):
        bank.process(np.zeros((10, 3)))


def test_nan_propagates():
    bank = KWeightingFilterBank(48000, 1)
    x = np.zeros((10, 1))
    x[3, 0] = np.nan
    out = bank.process(x)
    assert np.all(np.isfinite(out[:3]))
    assert np.all(np.isnan(out[3:]))
