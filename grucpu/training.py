"""Training of the GRU model: forward pass, loss, dense update and backward pass."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

import numpy as np

from grucpu.inference import GRUWeights, build_x_t, gru_forward
from grucpu.timer import current_seconds

_RECURRENT = ("u_z", "u_r", "u_h")


@dataclass(eq=False)
class ForwardCache:
    """Values recorded at every forward time step of one batch.

    z holds the update gate, r the reset gate times the incoming state,
    h_hat the update gate times the candidate state and h_prev the
    incoming hidden state.
    """

    z: list[np.ndarray] = field(default_factory=list)
    r: list[np.ndarray] = field(default_factory=list)
    h_hat: list[np.ndarray] = field(default_factory=list)
    h_prev: list[np.ndarray] = field(default_factory=list)


@dataclass(frozen=True)
class TrainingTimes:
    """Seconds spent in the whole run and in each of its phases."""

    overall: float
    forward: float
    inference: float
    backward: float


def calculate_loss(y, predict) -> float:
    """Return the mean squared difference between y and the first len(y) predictions."""
    labels = np.asarray(y, dtype=np.float32).reshape(-1)
    batch = labels.size
    if batch == 0:
        raise ValueError("no labels to compare against")
    values = np.asarray(predict, dtype=np.float32).reshape(-1)
    if values.size < batch:
        raise ValueError(f"{values.size} predictions for {batch} labels")
    diff = labels - values[:batch]
    return float(np.sum(diff * diff, dtype=np.float32) / np.float32(batch))


def update_dense_and_grad_h_t(weights: GRUWeights, h_t, predict, y, loss: float,
                              batch_size: int, step_size: float) -> np.ndarray:
    """Return the gradient for the final hidden state and update the dense vector.

    The gradient of each prediction is scaled by twice the loss over the
    batch.  The hidden state enters the dense gradient read as hidden_unit
    rows of batch_size values, and the dense step uses the step size
    truncated towards zero to a whole number.
    """
    labels = np.asarray(y, dtype=np.float32).reshape(-1)
    batch = labels.size
    if batch == 0 or batch > batch_size:
        raise ValueError(f"batch of {batch} labels does not fit batch size {batch_size}")
    hidden = weights.hidden_unit
    state = np.asarray(h_t, dtype=np.float32)
    if state.shape != (batch_size, hidden):
        raise ValueError(f"h_t has shape {state.shape}, expected {(batch_size, hidden)}")
    values = np.asarray(predict, dtype=np.float32).reshape(-1)
    if values.size < batch:
        raise ValueError(f"{values.size} predictions for {batch} labels")

    scale = np.float32(2) * np.float32(loss) / np.float32(batch)
    grad_predict = np.zeros(batch_size, dtype=np.float32)
    grad_predict[:batch] = (values[:batch] - labels) * scale

    grad_h_t = np.outer(grad_predict, weights.dense).astype(np.float32)

    transposed = state.reshape(hidden, batch_size).T.reshape(hidden, batch_size)
    grad_dense = transposed @ grad_predict
    weights.dense -= np.float32(int(step_size)) * grad_dense
    return grad_h_t


def _recurrent_sums(grad_u: Mapping[str, np.ndarray] | None, hidden: int) -> dict[str, np.ndarray]:
    shape = (hidden, hidden)
    if grad_u is None:
        return {name: np.zeros(shape, dtype=np.float32) for name in _RECURRENT}
    missing = [name for name in _RECURRENT if name not in grad_u]
    if missing:
        raise ValueError(f"grad_u lacks {', '.join(missing)}")
    sums = {name: np.asarray(grad_u[name], dtype=np.float32) for name in _RECURRENT}
    for name, value in sums.items():
        if value.shape != shape:
            raise ValueError(f"grad_u[{name!r}] has shape {value.shape}, expected {shape}")
    return sums


def gru_backward(weights: GRUWeights, grad_h_t, h_t, x_t, z_t, r_t, h_hat, h_t_1,
                 grad_u: Mapping[str, np.ndarray] | None, step_size: float) -> dict[str, np.ndarray]:
    """Run the backward pass of one time step.

    z_t, r_t, h_hat and h_t_1 are the values a ForwardCache records for
    the step; h_t is the hidden state taken as the step's output.  The
    input and bias weights are updated in place; the recurrent gradients
    are returned added to grad_u (zeros when it is None), which is left
    unchanged.
    """
    hidden = weights.hidden_unit
    grad = np.asarray(grad_h_t, dtype=np.float32)
    if grad.ndim != 2 or grad.shape[1] != hidden:
        raise ValueError(f"grad_h_t must have {hidden} columns")
    states = {
        "h_t": np.asarray(h_t, dtype=np.float32),
        "z_t": np.asarray(z_t, dtype=np.float32),
        "r_t": np.asarray(r_t, dtype=np.float32),
        "h_hat": np.asarray(h_hat, dtype=np.float32),
        "h_t_1": np.asarray(h_t_1, dtype=np.float32),
    }
    for name, value in states.items():
        if value.shape != grad.shape:
            raise ValueError(f"{name} has shape {value.shape}, expected {grad.shape}")
    x = np.asarray(x_t, dtype=np.float32)
    if x.shape != (grad.shape[0], weights.vec_len):
        raise ValueError(f"x_t has shape {x.shape}, expected {(grad.shape[0], weights.vec_len)}")
    sums = _recurrent_sums(grad_u, hidden)

    state, z, r, cand, h1 = (states[name] for name in ("h_t", "z_t", "r_t", "h_hat", "h_t_1"))
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        grad_z = grad * (cand - state)
        grad_h_hat = grad * z
        grad_h_hat_pre = grad_h_hat * (1 - grad_h_hat)
        reset_state = r * h1
        grad_r = (reset_state + grad_h_hat_pre @ weights.u_h.T) / h1
        grad_r_pre = grad_r * (1 - grad_r)
        grad_z_pre = grad_z * (1 - grad_z)

        step = np.float32(step_size)
        weights.w_z -= step * (x.T @ grad_z_pre)
        weights.w_r -= step * (x.T @ grad_r_pre)
        weights.w_h -= step * (x.T @ grad_h_hat_pre)
        weights.b_z -= step * grad_z_pre.sum(axis=0)
        weights.b_r -= step * grad_r_pre.sum(axis=0)
        weights.b_h -= step * grad_h_hat_pre.sum(axis=0)

        return {
            "u_z": sums["u_z"] + h1.T @ grad_z_pre,
            "u_r": sums["u_r"] + h1.T @ grad_r_pre,
            "u_h": sums["u_h"] + reset_state.T @ grad_h_hat_pre,
        }


def run_model(arr_data, y, weights: GRUWeights, num_data: int, batch_size: int,
              window_size: int, step_size: float, iterations: int,
              h_t=None) -> TrainingTimes:
    """Train the weights in place over the data and print the time of each phase.

    The hidden state and the predictions carry over from batch to batch;
    the backward pass covers every time step but the first.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    data = np.asarray(arr_data, dtype=np.float32)
    if data.ndim != 2:
        raise ValueError("arr_data must be a 2-D array")
    labels = np.asarray(y, dtype=np.float32).reshape(-1)
    if labels.size < num_data:
        raise ValueError(f"{labels.size} labels for {num_data} data rows")
    shape = (batch_size, weights.hidden_unit)
    if h_t is None:
        state = np.zeros(shape, dtype=np.float32)
    else:
        state = np.array(h_t, dtype=np.float32)
        if state.shape != shape:
            raise ValueError(f"h_t has shape {state.shape}, expected {shape}")

    predict = np.zeros(batch_size, dtype=np.float32)
    step = np.float32(step_size)
    forward_time = inference_time = backward_time = 0.0

    start_time = current_seconds()
    for iteration in range(iterations):
        print(f"begin iter {iteration}")
        for start in range(0, num_data, batch_size):
            batch = min(num_data, start + batch_size) - start
            batch_labels = labels[start:start + batch]
            cache = ForwardCache()

            phase_start = current_seconds()
            for position in range(window_size):
                x_t = build_x_t(data, start, batch, batch_size, position, weights.vec_len)
                gates = gru_forward(x_t, state, weights)
                cache.z.append(gates.z_t)
                cache.r.append(gates.r_t * state)
                cache.h_hat.append(gates.z_t * gates.h_hat)
                cache.h_prev.append(state)
                state = gates.new_h_t
            forward_time += current_seconds() - phase_start

            phase_start = current_seconds()
            predict += state @ weights.dense
            loss = calculate_loss(batch_labels, predict)
            inference_time += current_seconds() - phase_start

            phase_start = current_seconds()
            grad_h_t = update_dense_and_grad_h_t(
                weights, state, predict, batch_labels, loss, batch_size, step_size
            )
            recurrent = None
            for position in range(window_size - 1, 0, -1):
                x_t = build_x_t(data, start, batch, batch_size, position, weights.vec_len)
                if position != window_size - 1:
                    state = np.full(shape, cache.h_prev[position + 1].flat[0], dtype=np.float32)
                recurrent = gru_backward(
                    weights, grad_h_t, state, x_t,
                    cache.z[position], cache.r[position],
                    cache.h_hat[position], cache.h_prev[position],
                    recurrent, step_size,
                )
            if recurrent is not None:
                weights.u_z -= step * recurrent["u_z"]
                weights.u_r -= step * recurrent["u_r"]
                weights.u_h -= step * recurrent["u_h"]
            backward_time += current_seconds() - phase_start
    overall = current_seconds() - start_time

    print(f"CPU Overall: {1000.0 * overall:.3f} ms")
    print(f"CPU Forward: {1000.0 * forward_time:.3f} ms")
    print(f"CPU Inference: {1000.0 * inference_time:.3f} ms")
    print(f"CPU Backward: {1000.0 * backward_time:.3f} ms")
    return TrainingTimes(
        overall=overall, forward=forward_time, inference=inference_time, backward=backward_time
    )