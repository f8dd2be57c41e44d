"""Forward pass of a single-layer GRU followed by a dense output unit."""

from __future__ import annotations

from dataclasses import dataclass, fields

import numpy as np

from grucpu.data import random_weights
from grucpu.timer import current_seconds


@dataclass(eq=False)
class GRUWeights:
    """Gate weights, recurrent weights, biases and the dense output vector."""

    w_z: np.ndarray
    w_r: np.ndarray
    w_h: np.ndarray
    u_z: np.ndarray
    u_r: np.ndarray
    u_h: np.ndarray
    b_z: np.ndarray
    b_r: np.ndarray
    b_h: np.ndarray
    dense: np.ndarray

    def __post_init__(self) -> None:
        for field in fields(self):
            setattr(self, field.name, np.asarray(getattr(self, field.name), dtype=np.float32))
        if self.w_z.ndim != 2:
            raise ValueError("w_z must be a 2-D array")
        vec_len, hidden = self.w_z.shape
        expected = {
            "w_z": (vec_len, hidden),
            "w_r": (vec_len, hidden),
            "w_h": (vec_len, hidden),
            "u_z": (hidden, hidden),
            "u_r": (hidden, hidden),
            "u_h": (hidden, hidden),
            "b_z": (hidden,),
            "b_r": (hidden,),
            "b_h": (hidden,),
            "dense": (hidden,),
        }
        for name, shape in expected.items():
            actual = getattr(self, name).shape
            if actual != shape:
                raise ValueError(f"{name} has shape {actual}, expected {shape}")

    @property
    def vec_len(self) -> int:
        return self.w_z.shape[0]

    @property
    def hidden_unit(self) -> int:
        return self.w_z.shape[1]


@dataclass(eq=False)
class GateOutputs:
    """Update gate, reset gate, candidate state and new hidden state of one step."""

    z_t: np.ndarray
    r_t: np.ndarray
    h_hat: np.ndarray
    new_h_t: np.ndarray


def init_weights(vec_len: int, hidden_unit: int, rng: np.random.Generator | None = None) -> GRUWeights:
    """Return small random weights with zero biases."""
    generator = rng if rng is not None else np.random.default_rng()
    w_z = random_weights((vec_len, hidden_unit), generator)
    w_r = random_weights((vec_len, hidden_unit), generator)
    w_h = random_weights((vec_len, hidden_unit), generator)
    u_z = random_weights((hidden_unit, hidden_unit), generator)
    u_r = random_weights((hidden_unit, hidden_unit), generator)
    u_h = random_weights((hidden_unit, hidden_unit), generator)
    dense = random_weights(hidden_unit, generator)
    zeros = np.zeros(hidden_unit, dtype=np.float32)
    return GRUWeights(w_z, w_r, w_h, u_z, u_r, u_h, zeros.copy(), zeros.copy(), zeros.copy(), dense)


def sigmoid(a):
    """Return the logistic function of a, elementwise."""
    with np.errstate(over="ignore"):
        return 1 / (1 + np.exp(-a))


def build_x_t(arr_data: np.ndarray, start: int, batch: int, batch_size: int,
              step: int, vec_len: int) -> np.ndarray:
    """Return the input of one time step for a batch of sliding windows.

    Row m holds vec_len values read from the flattened data, beginning at
    column step of row start + m; rows from batch up to batch_size are zero.
    """
    if start < 0 or step < 0 or batch < 0:
        raise ValueError("start, step and batch must not be negative")
    if batch > batch_size:
        raise ValueError(f"batch {batch} exceeds batch size {batch_size}")
    data = np.asarray(arr_data, dtype=np.float32)
    width = data.shape[1] if data.ndim == 2 else data.size
    flat = data.reshape(-1)
    x_t = np.zeros((batch_size, vec_len), dtype=np.float32)
    if batch == 0 or vec_len == 0:
        return x_t
    index = (start + np.arange(batch))[:, None] * width + step + np.arange(vec_len)[None, :]
    if index.max() >= flat.size:
        raise IndexError("window reaches past the end of the data")
    x_t[:batch] = flat[index]
    return x_t


def gru_forward(x_t: np.ndarray, old_h_t: np.ndarray, weights: GRUWeights) -> GateOutputs:
    """Run one GRU time step and return the gates and the new hidden state."""
    x_t = np.asarray(x_t, dtype=np.float32)
    old_h_t = np.asarray(old_h_t, dtype=np.float32)
    if x_t.ndim != 2 or x_t.shape[1] != weights.vec_len:
        raise ValueError(f"x_t must have {weights.vec_len} columns")
    if old_h_t.shape != (x_t.shape[0], weights.hidden_unit):
        raise ValueError(
            f"old_h_t has shape {old_h_t.shape}, expected {(x_t.shape[0], weights.hidden_unit)}"
        )
    z_t = sigmoid(x_t @ weights.w_z + old_h_t @ weights.u_z + weights.b_z)
    r_t = sigmoid(x_t @ weights.w_r + old_h_t @ weights.u_r + weights.b_r)
    h_hat = np.tanh(x_t @ weights.w_h + (r_t * old_h_t) @ weights.u_h + weights.b_h)
    new_h_t = (1 - z_t) * old_h_t + z_t * h_hat
    return GateOutputs(z_t=z_t, r_t=r_t, h_hat=h_hat, new_h_t=new_h_t)


def inference(arr_data: np.ndarray, weights: GRUWeights, num_data: int, batch_size: int,
              window_size: int, h_t: np.ndarray | None = None) -> np.ndarray:
    """Predict one value per data row and print the time taken.

    The hidden state carries over from one batch to the next, starting from
    h_t or from zeros.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")
    data = np.asarray(arr_data, dtype=np.float32)
    if data.ndim != 2:
        raise ValueError("arr_data must be a 2-D array")
    shape = (batch_size, weights.hidden_unit)
    if h_t is None:
        state = np.zeros(shape, dtype=np.float32)
    else:
        state = np.array(h_t, dtype=np.float32)
        if state.shape != shape:
            raise ValueError(f"h_t has shape {state.shape}, expected {shape}")

    predictions = []
    start_time = current_seconds()
    for start in range(0, num_data, batch_size):
        batch = min(num_data, start + batch_size) - start
        for step in range(window_size):
            x_t = build_x_t(data, start, batch, batch_size, step, weights.vec_len)
            state = gru_forward(x_t, state, weights).new_h_t
        predictions.append((state @ weights.dense)[:batch])
    end_time = current_seconds()
    print(f"CPU Overall: {1000.0 * (end_time - start_time):.3f} ms")

    if not predictions:
        return np.zeros(0, dtype=np.float32)
    return np.concatenate(predictions).astype(np.float32)