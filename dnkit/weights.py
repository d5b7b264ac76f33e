"""Binary weight files: header, per-layer parameter blocks, saving and loading."""

from __future__ import annotations

import struct
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Optional, Sequence, Union

import numpy as np

_FLOAT = np.dtype("<f4")
_HEADER = struct.Struct("<4i")
_DOUBLE_HEADER = struct.Struct("<3fi")


def _array(values: Optional[Sequence[float]], count: int, name: str) -> np.ndarray:
    if values is None:
        return np.zeros(count, dtype=np.float32)
    arr = np.array(values, dtype=np.float32).ravel()
    if arr.size != count:
        raise ValueError(f"{name} must hold {count} values, got {arr.size}")
    return arr


def _write(stream: BinaryIO, values: np.ndarray) -> None:
    stream.write(np.asarray(values, dtype=_FLOAT).tobytes())


def _read_into(stream: BinaryIO, target: np.ndarray) -> int:
    """Fill ``target`` from ``stream``; a short read leaves the tail untouched."""
    data = stream.read(target.size * _FLOAT.itemsize)
    count = len(data) // _FLOAT.itemsize
    if count:
        target[:count] = np.frombuffer(data[: count * _FLOAT.itemsize], dtype=_FLOAT)
    return count


@dataclass
class WeightsHeader:
    """Version numbers and images-seen counter at the start of a weights file."""

    major: int = 0
    minor: int = 1
    revision: int = 0
    seen: int = 0

    @property
    def transposed(self) -> bool:
        """Whether connected weights in this file are stored transposed."""
        return self.major > 1000 or self.minor > 1000


@dataclass(eq=False)
class ConvolutionalWeights:
    """Parameters of a convolutional layer: ``n`` filters of ``c*size*size`` values."""

    n: int
    c: int
    size: int
    batch_normalize: bool = False
    flipped: bool = False
    dontload: bool = False
    dontloadscales: bool = False
    biases: Optional[np.ndarray] = None
    filters: Optional[np.ndarray] = None
    scales: Optional[np.ndarray] = None
    rolling_mean: Optional[np.ndarray] = None
    rolling_variance: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        self.biases = _array(self.biases, self.n, "biases")
        self.filters = _array(self.filters, self.num_weights, "filters")
        self.scales = _array(self.scales, self.n, "scales")
        self.rolling_mean = _array(self.rolling_mean, self.n, "rolling_mean")
        self.rolling_variance = _array(self.rolling_variance, self.n, "rolling_variance")

    @property
    def filter_size(self) -> int:
        """Number of values in one filter."""
        return self.c * self.size * self.size

    @property
    def num_weights(self) -> int:
        """Number of values in all filters."""
        return self.n * self.filter_size


@dataclass(eq=False)
class ConnectedWeights:
    """Parameters of a fully connected layer of ``inputs`` by ``outputs``."""

    inputs: int
    outputs: int
    batch_normalize: bool = False
    dontload: bool = False
    dontloadscales: bool = False
    biases: Optional[np.ndarray] = None
    weights: Optional[np.ndarray] = None
    scales: Optional[np.ndarray] = None
    rolling_mean: Optional[np.ndarray] = None
    rolling_variance: Optional[np.ndarray] = None

    def __post_init__(self) -> None:
        self.biases = _array(self.biases, self.outputs, "biases")
        self.weights = _array(self.weights, self.inputs * self.outputs, "weights")
        self.scales = _array(self.scales, self.outputs, "scales")
        self.rolling_mean = _array(self.rolling_mean, self.outputs, "rolling_mean")
        self.rolling_variance = _array(self.rolling_variance, self.outputs, "rolling_variance")


LayerWeights = Union[ConvolutionalWeights, ConnectedWeights]
LayerEntry = Union[LayerWeights, Sequence[LayerWeights], None]


def transpose_matrix(values: Sequence[float], rows: int, cols: int) -> np.ndarray:
    """Transpose a flat row-major ``rows`` x ``cols`` matrix into a new flat array."""
    arr = np.asarray(values, dtype=np.float32).ravel()
    if arr.size != rows * cols:
        raise ValueError(f"matrix needs {rows * cols} values, got {arr.size}")
    return arr.reshape(rows, cols).T.ravel().copy()


def read_header(stream: BinaryIO) -> WeightsHeader:
    """Read the 16-byte header of a weights file."""
    data = stream.read(_HEADER.size)
    if len(data) < _HEADER.size:
        raise EOFError("weights file is too short for its header")
    return WeightsHeader(*_HEADER.unpack(data))


def write_header(stream: BinaryIO, header: WeightsHeader) -> None:
    """Write the 16-byte header of a weights file."""
    stream.write(_HEADER.pack(header.major, header.minor, header.revision, header.seen))


def write_convolutional(stream: BinaryIO, layer: ConvolutionalWeights) -> None:
    """Write biases, batch-norm statistics when present, then filters."""
    _write(stream, layer.biases)
    if layer.batch_normalize:
        _write(stream, layer.scales)
        _write(stream, layer.rolling_mean)
        _write(stream, layer.rolling_variance)
    _write(stream, layer.filters)


def read_convolutional(stream: BinaryIO, layer: ConvolutionalWeights) -> None:
    """Fill ``layer`` from ``stream`` in the order :func:`write_convolutional` uses."""
    _read_into(stream, layer.biases)
    if layer.batch_normalize and not layer.dontloadscales:
        _read_into(stream, layer.scales)
        _read_into(stream, layer.rolling_mean)
        _read_into(stream, layer.rolling_variance)
    _read_into(stream, layer.filters)
    if layer.flipped:
        layer.filters = transpose_matrix(layer.filters, layer.filter_size, layer.n)


def write_connected(stream: BinaryIO, layer: ConnectedWeights) -> None:
    """Write biases, weights, then batch-norm statistics when present."""
    _write(stream, layer.biases)
    _write(stream, layer.weights)
    if layer.batch_normalize:
        _write(stream, layer.scales)
        _write(stream, layer.rolling_mean)
        _write(stream, layer.rolling_variance)


def read_connected(stream: BinaryIO, layer: ConnectedWeights, transpose: bool = False) -> None:
    """Fill ``layer`` from ``stream``; ``transpose`` flips weights stored inputs-major."""
    _read_into(stream, layer.biases)
    _read_into(stream, layer.weights)
    if transpose:
        layer.weights = transpose_matrix(layer.weights, layer.inputs, layer.outputs)
    if layer.batch_normalize and not layer.dontloadscales:
        _read_into(stream, layer.scales)
        _read_into(stream, layer.rolling_mean)
        _read_into(stream, layer.rolling_variance)


def _parts(entry: LayerEntry) -> Sequence[LayerWeights]:
    if entry is None:
        return ()
    if isinstance(entry, (ConvolutionalWeights, ConnectedWeights)):
        return (entry,)
    return tuple(entry)


def _limit(layers: Sequence[LayerEntry], cutoff: Optional[int]) -> Sequence[LayerEntry]:
    return layers if cutoff is None else layers[: max(cutoff, 0)]


def save_weights(
    path: Union[str, Path],
    layers: Sequence[LayerEntry],
    seen: int = 0,
    cutoff: Optional[int] = None,
) -> None:
    """Save the parameters of the first ``cutoff`` layers (all by default).

    An entry may be a layer, a sequence of sub-layers saved in order, or
    None for a layer without parameters.
    """
    print(f"Saving weights to {path}", file=sys.stderr)
    with open(path, "wb") as stream:
        write_header(stream, WeightsHeader(seen=seen))
        for entry in _limit(layers, cutoff):
            for layer in _parts(entry):
                if isinstance(layer, ConvolutionalWeights):
                    write_convolutional(stream, layer)
                else:
                    write_connected(stream, layer)


def load_weights(
    path: Union[str, Path],
    layers: Sequence[LayerEntry],
    cutoff: Optional[int] = None,
) -> WeightsHeader:
    """Load parameters into the first ``cutoff`` layers and return the file header.

    Layers marked ``dontload`` are skipped without consuming data.
    """
    print(f"Loading weights from {path}...", end="", file=sys.stderr)
    with open(path, "rb") as stream:
        header = read_header(stream)
        for entry in _limit(layers, cutoff):
            for layer in _parts(entry):
                if layer.dontload:
                    continue
                if isinstance(layer, ConvolutionalWeights):
                    read_convolutional(stream, layer)
                else:
                    read_connected(stream, layer, header.transposed)
    print("Done!", file=sys.stderr)
    return header


def save_weights_double(
    path: Union[str, Path],
    layers: Sequence[LayerEntry],
    learning_rate: float,
    momentum: float,
    decay: float,
    seen: int = 0,
) -> None:
    """Save convolutional layers widened to twice their filters and twice their inputs.

    Each filter is written once padded after with zeros and once padded
    before with zeros; biases are written twice. Other layers are skipped.
    """
    print(f"Saving doubled weights to {path}", file=sys.stderr)
    with open(path, "wb") as stream:
        stream.write(_DOUBLE_HEADER.pack(learning_rate, momentum, decay, seen))
        for entry in layers:
            if not isinstance(entry, ConvolutionalWeights):
                continue
            k = entry.filter_size
            zeros = np.zeros(k, dtype=np.float32)
            filters = entry.filters.reshape(entry.n, k)
            _write(stream, entry.biases)
            _write(stream, entry.biases)
            for row in filters:
                _write(stream, row)
                _write(stream, zeros)
            for row in filters:
                _write(stream, zeros)
                _write(stream, row)