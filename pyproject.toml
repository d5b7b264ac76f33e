[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dnkit"
version = "0.1.0"
description = "Weight files, softmax, normalization and route layers, and helpers for dreaming, character RNNs and grid detection"
requires-python = ">=3.10"
dependencies = [
    "numpy",
]
keywords = ["neural-network", "weights", "softmax", "lrn", "yolo", "char-rnn"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
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

[tool.hatch.build.targets.wheel]
packages = ["dnkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
