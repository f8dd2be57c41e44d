"""Sequential GRU training and inference on the CPU with NumPy."""

__version__ = "0.1.0"