"""Command-line entry points for GRU inference and training."""

from __future__ import annotations

import argparse
import re
import sys

import numpy as np

from grucpu.data import load_labels, load_matrix
from grucpu.inference import inference, init_weights
from grucpu.training import run_model

DATA_PATH = "../data/data_sliding.csv"
LABELS_PATH = "../data/y.csv"

NUM_DATA = 3000
WINDOW_SIZE = 20
VEC_LEN = 280
BATCH_SIZE = 500
HIDDEN_UNIT = 100
STEP_SIZE = 0.01
DEFAULT_SEED = 1

_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


class _UsageError(Exception):
    """Raised when the command line cannot be parsed."""


class _Parser(argparse.ArgumentParser):
    def error(self, message):  # noqa: D401 - argparse hook
        raise _UsageError(message)


def _atoi(text: str) -> int:
    """Read a leading integer the way atoi does, giving 0 when there is none."""
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else 0


def build_parser(training: bool) -> argparse.ArgumentParser:
    """Return the option parser of the training or the inference command."""
    parser = _Parser(add_help=False)
    parser.add_argument("-g", "--gpu", type=_atoi, default=0)
    if training:
        parser.add_argument("-i", "--iter", type=_atoi, default=1)
    parser.add_argument("-?", "--help", action="store_true")
    parser.add_argument("--data", default=DATA_PATH)
    if training:
        parser.add_argument("--labels", default=LABELS_PATH)
        parser.add_argument("--step-size", type=float, default=STEP_SIZE)
    parser.add_argument("--num-data", type=int, default=NUM_DATA)
    parser.add_argument("--window-size", type=int, default=WINDOW_SIZE)
    parser.add_argument("--vec-len", type=int, default=VEC_LEN)
    parser.add_argument("--batch-size", type=int, default=BATCH_SIZE)
    parser.add_argument("--hidden-unit", type=int, default=HIDDEN_UNIT)
    parser.add_argument("--seed", type=int, default=DEFAULT_SEED)
    return parser


def _usage(prog: str, training: bool) -> None:
    lines = [
        f"Usage: {prog} [options]",
        "Program Options:",
        "  -g  --gpu <BOOL>  whether to use GPU",
    ]
    if training:
        lines.append("  -i  --iter <INT>  number of passes over the data")
    lines.append("  -?  --help             This message")
    print("\n".join(lines))


def _run(argv, training: bool) -> int:
    parser = build_parser(training)
    try:
        args = parser.parse_args(argv)
    except _UsageError:
        _usage(parser.prog, training)
        return 1
    if args.help:
        _usage(parser.prog, training)
        return 1
    if args.gpu:
        print(f"{parser.prog}: no GPU device is available", file=sys.stderr)
        return 1

    try:
        arr_data = load_matrix(args.data)
        labels = load_labels(args.labels) if training else None
    except (OSError, ValueError) as exc:
        print(f"{parser.prog}: {exc}", file=sys.stderr)
        return 1

    rng = np.random.default_rng(args.seed)
    weights = init_weights(args.vec_len, args.hidden_unit, rng)

    print("Using CPU...")
    try:
        if training:
            run_model(arr_data, labels, weights, args.num_data, args.batch_size,
                      args.window_size, args.step_size, args.iter)
        else:
            inference(arr_data, weights, args.num_data, args.batch_size, args.window_size)
    except (ValueError, IndexError) as exc:
        print(f"{parser.prog}: {exc}", file=sys.stderr)
        return 1
    return 0


def inference_main(argv=None) -> int:
    """Run the inference command and return its exit status."""
    return _run(argv, training=False)


def training_main(argv=None) -> int:
    """Run the training command and return its exit status."""
    return _run(argv, training=True)


if __name__ == "__main__":
    sys.exit(training_main())