# grucpu

A single-layer GRU (gated recurrent unit) network written with NumPy
and run sequentially on the CPU. It reads a sliding-window time series
from comma-separated files. Each sample goes through the GRU for a
fixed number of time steps, and a dense vector maps the final hidden
state to one prediction. The training side adds a mean-squared-error
loss and a backward pass over the time steps.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Commands

Two commands are installed:

- `grucpu-infer` runs forward inference over the data and prints
  `CPU Overall: <ms> ms`.
- `grucpu-train` trains the network. It prints `begin iter <n>` for
  each pass, then the overall, forward, inference and backward times.

Each command prints `Using CPU...` before it starts. It then draws
small random weights from a seeded generator and reads the data as
comma-separated rows. `grucpu-train` also reads the labels.

Options common to both commands:

| Option | Default | Meaning |
| --- | --- | --- |
| `-g`, `--gpu <INT>` | `0` | any non-zero value reports that no GPU device is available and exits with status 1 |
| `-?`, `--help` | | print a short usage message and exit with status 1 |
| `--data <PATH>` | `../data/data_sliding.csv` | sliding-window data file |
| `--num-data <INT>` | `3000` | number of samples to process |
| `--window-size <INT>` | `20` | time steps per sample |
| `--vec-len <INT>` | `280` | values read per time step |
| `--batch-size <INT>` | `500` | samples per batch |
| `--hidden-unit <INT>` | `100` | hidden units |
| `--seed <INT>` | `1` | seed for the initial weights |

Options of `grucpu-train` only:

| Option | Default | Meaning |
| --- | --- | --- |
| `-i`, `--iter <INT>` | `1` | passes over the data |
| `--labels <PATH>` | `../data/y.csv` | label file |
| `--step-size <FLOAT>` | `0.01` | step size of the weight updates |

The `-g` and `-i` values are read like C's `atoi`: the leading integer
counts, and text with no leading integer counts as 0. A bad option, a
file that is missing or cannot be read, or data too short for the
windows that were asked for prints a message and exits with status 1.
`python -m grucpu.cli` runs the training command.

## Library use

```python
import numpy as np

from grucpu.data import load_matrix, load_labels
from grucpu.inference import init_weights, inference
from grucpu.training import run_model

rng = np.random.default_rng(0)
arr_data = load_matrix("data_sliding.csv")
y = load_labels("y.csv")

weights = init_weights(280, 100, rng)

predictions = inference(arr_data, weights, 3000, 500, 20)
times = run_model(arr_data, y, weights, 3000, 500, 20, 0.01, 1)
print(times.overall, times.forward, times.inference, times.backward)
```

- `grucpu.data`
  - `parse_rows` splits the input into whitespace-separated tokens. It
    reads each token as a comma-separated row and stops a row at its
    first non-numeric field.
  - `load_matrix` returns a 2-D float32 array sized by the file's first
    row. It raises `ValueError` for an empty file or a shorter row.
  - `load_labels` returns every number in the file as a flat array.
  - `random_weights` draws float32 values uniformly from
    [-0.001, 0.001].
- `grucpu.inference`
  - `GRUWeights` holds the gate, recurrent and bias weights and the
    dense vector, and checks their shapes.
  - `init_weights` returns random weights with zero biases.
  - `sigmoid` computes the logistic function.
  - `build_x_t` builds the input of one time step for a batch.
  - `gru_forward` runs one step and returns a `GateOutputs`.
  - `inference` returns one prediction per sample. The hidden state
    carries over from batch to batch.
- `grucpu.training`
  - `calculate_loss` returns the mean squared error.
  - `update_dense_and_grad_h_t` updates the dense vector and returns
    the gradient for the final hidden state.
  - `gru_backward` runs one backward time step. It updates the input
    and bias weights in place and returns the accumulated recurrent
    gradients.
  - `run_model` trains the weights in place and returns a
    `TrainingTimes`. `ForwardCache` holds the per-step values it
    records.
- `grucpu.timer` provides tick and second counters: `current_ticks`,
  `current_seconds`, `seconds_per_tick`, `ticks_per_second`,
  `ms_per_tick` and `tick_units`.
  - The tick length comes from the clock rate in `/proc/cpuinfo`, read
    with `parse_cpuinfo`.
  - When no clock rate is found, a tick is one nanosecond.

## What it does not do

All computation runs on the CPU with NumPy; there is no GPU path. The
package does not save trained weights or predictions to disk. The
commands only report timings.