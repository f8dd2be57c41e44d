import numpy as np
import pytest

from grucpu.inference import (
    GRUWeights,
    build_x_t,
    gru_forward,
    inference,
    init_weights,
    sigmoid,
)


def _zero_weights(vec_len, hidden):
    square = np.zeros((hidden, hidden))
    wide = np.zeros((vec_len, hidden))
    bias = np.zeros(hidden)
    return GRUWeights(wide, wide, wide, square, square, square, bias, bias, bias, bias)


def test_sigmoid_at_zero():
    assert sigmoid(0.0) == pytest.approx(0.5)


def test_sigmoid_symmetry_and_range():
    values = np.linspace(-20, 20, 41)
    out = sigmoid(values)
    np.testing.assert_allclose(out + sigmoid(-values), 1.0)
    assert np.all((out >= 0) & (out <= 1))


def test_sigmoid_large_negative_no_error():
    assert sigmoid(np.float32(-1000.0)) == pytest.approx(0.0)


def test_weights_shape_validation():
    weights = _zero_weights(3, 2)
    with pytest.raises(ValueError):
        GRUWeights(weights.w_z, weights.w_r, weights.w_h, np.zeros((3, 3)), weights.u_r,
                   weights.u_h, weights.b_z, weights.b_r, weights.b_h, weights.dense)


def test_weights_dimensions():
    weights = _zero_weights(5, 4)
    assert weights.vec_len == 5
    assert weights.hidden_unit == 4


def test_init_weights_ranges_and_zero_biases():
    weights = init_weights(6, 4, np.random.default_rng(1))
    assert weights.w_z.shape == (6, 4)
    assert weights.u_h.shape == (4, 4)
    for bias in (weights.b_z, weights.b_r, weights.b_h):
        np.testing.assert_array_equal(bias, np.zeros(4))
    assert np.all(np.abs(weights.w_h) <= 1e-3)
    assert np.all(np.abs(weights.dense) <= 1e-3)


def test_init_weights_reproducible():
    first = init_weights(3, 2, np.random.default_rng(9))
    second = init_weights(3, 2, np.random.default_rng(9))
    np.testing.assert_array_equal(first.u_r, second.u_r)
    np.testing.assert_array_equal(first.dense, second.dense)


def test_build_x_t_rows_and_padding():
    data = np.arange(20, dtype=np.float32).reshape(4, 5)
    x_t = build_x_t(data, start=1, batch=2, batch_size=3, step=1, vec_len=3)
    np.testing.assert_array_equal(x_t[0], data[1, 1:4])
    np.testing.assert_array_equal(x_t[1], data[2, 1:4])
    np.testing.assert_array_equal(x_t[2], np.zeros(3))


def test_build_x_t_wraps_into_next_row():
    data = np.arange(20, dtype=np.float32).reshape(4, 5)
    x_t = build_x_t(data, start=0, batch=1, batch_size=1, step=3, vec_len=4)
    np.testing.assert_array_equal(x_t[0], data.reshape(-1)[3:7])


def test_build_x_t_past_end_raises():
    data = np.zeros((2, 3), dtype=np.float32)
    with pytest.raises(IndexError):
        build_x_t(data, start=1, batch=1, batch_size=1, step=1, vec_len=3)


def test_build_x_t_batch_larger_than_batch_size():
    with pytest.raises(ValueError):
        build_x_t(np.zeros((4, 4)), start=0, batch=3, batch_size=2, step=0, vec_len=2)


def test_gru_forward_zero_weights_halves_state():
    weights = _zero_weights(3, 2)
    old = np.array([[0.2, -0.4]], dtype=np.float32)
    out = gru_forward(np.zeros((1, 3)), old, weights)
    np.testing.assert_allclose(out.z_t, 0.5)
    np.testing.assert_allclose(out.r_t, 0.5)
    np.testing.assert_allclose(out.h_hat, 0.0)
    np.testing.assert_allclose(out.new_h_t, 0.5 * old)


def test_gru_forward_state_is_convex_combination():
    rng = np.random.default_rng(3)
    weights = GRUWeights(*(rng.normal(size=s) for s in [(4, 3)] * 3 + [(3, 3)] * 3 + [(3,)] * 4))
    old = rng.uniform(-1, 1, size=(5, 3)).astype(np.float32)
    out = gru_forward(rng.normal(size=(5, 4)), old, weights)
    assert np.all((out.z_t > 0) & (out.z_t < 1))
    assert np.all((out.r_t > 0) & (out.r_t < 1))
    assert np.all(np.abs(out.h_hat) <= 1)
    low = np.minimum(old, out.h_hat) - 1e-6
    high = np.maximum(old, out.h_hat) + 1e-6
    assert np.all((out.new_h_t >= low) & (out.new_h_t <= high))


def test_gru_forward_shape_mismatch():
    weights = _zero_weights(3, 2)
    with pytest.raises(ValueError):
        gru_forward(np.zeros((2, 3)), np.zeros((1, 2)), weights)


def test_inference_zero_dense_gives_zero_predictions(capsys):
    weights = init_weights(3, 4, np.random.default_rng(0))
    weights.dense[:] = 0
    data = np.random.default_rng(1).normal(size=(7, 5)).astype(np.float32)
    predictions = inference(data, weights, num_data=7, batch_size=3, window_size=2)
    assert predictions.shape == (7,)
    np.testing.assert_array_equal(predictions, np.zeros(7))
    assert "CPU Overall:" in capsys.readouterr().out


def test_inference_first_batch_ignores_later_rows():
    weights = init_weights(3, 4, np.random.default_rng(2))
    data = np.random.default_rng(4).normal(size=(6, 5)).astype(np.float32)
    changed = data.copy()
    changed[3:] += 10.0
    first = inference(data, weights, num_data=6, batch_size=3, window_size=3)
    second = inference(changed, weights, num_data=6, batch_size=3, window_size=3)
    np.testing.assert_array_equal(first[:3], second[:3])
    assert not np.allclose(first[3:], second[3:])


def test_inference_partial_batch_matches_full_batch_rows():
    weights = init_weights(2, 3, np.random.default_rng(6))
    data = np.random.default_rng(7).normal(size=(5, 4)).astype(np.float32)
    full = inference(data, weights, num_data=5, batch_size=5, window_size=3)
    partial = inference(data, weights, num_data=3, batch_size=5, window_size=3)
    np.testing.assert_allclose(partial, full[:3], rtol=1e-6)


def test_inference_bad_initial_state():
    weights = _zero_weights(2, 3)
    with pytest.raises(ValueError):
        inference(np.zeros((4, 4)), weights, 4, 2, 1, h_t=np.zeros((3, 3)))


def test_inference_rejects_non_positive_batch():
    weights = _zero_weights(2, 3)
    with pytest.raises(ValueError):
        inference(np.zeros((4, 4)), weights, 4, 0, 1)