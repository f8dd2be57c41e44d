[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "grucpu"
version = "0.1.0"
description = "Sequential GRU training and inference on the CPU with NumPy"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["gru", "recurrent neural network", "time series", "machine learning", "numpy"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
grucpu-infer = "grucpu.cli:inference_main"
grucpu-train = "grucpu.cli:training_main"

[tool.hatch.build.targets.wheel]
packages = ["grucpu"]

[tool.pytest.ini_options]
addopts = "-ra"
