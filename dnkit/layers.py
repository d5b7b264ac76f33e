"""Softmax, local response normalization and route layers."""

from __future__ import annotations

import math
import sys
from typing import Mapping, MutableMapping, Sequence, Union

import numpy as np

ArrayLike = Union[Sequence[float], np.ndarray]
LayerArrays = Union[Sequence[np.ndarray], Mapping[int, np.ndarray]]
MutableLayerArrays = Union[Sequence[np.ndarray], MutableMapping[int, np.ndarray]]


def _flat(values: ArrayLike) -> np.ndarray:
    return np.asarray(values, dtype=np.float32).ravel()


def softmax_array(values: ArrayLike, temp: float = 1.0) -> np.ndarray:
    """Softmax of ``values`` at temperature ``temp``, computed stably."""
    x = np.asarray(values, dtype=np.float64).ravel()
    if x.size == 0:
        return np.zeros(0, dtype=np.float32)
    largest = float(x.max())
    total = float(np.exp(x / temp - largest / temp).sum())
    if total:
        shift = largest / temp + math.log(total)
    else:
        shift = largest - 100
    return np.exp(x / temp - shift).astype(np.float32)


class SoftmaxLayer:
    """Softmax over each of ``groups`` equal slices of every batch item."""

    def __init__(self, batch: int, inputs: int, groups: int = 1, temperature: float = 1.0) -> None:
        if groups <= 0 or inputs % groups != 0:
            raise ValueError(f"inputs ({inputs}) must divide into {groups} groups")
        print(f"Softmax Layer: {inputs} inputs", file=sys.stderr)
        self.batch = batch
        self.inputs = inputs
        self.outputs = inputs
        self.groups = groups
        self.temperature = temperature
        self.output = np.zeros(inputs * batch, dtype=np.float32)
        self.delta = np.zeros(inputs * batch, dtype=np.float32)

    def forward(self, inputs: ArrayLike) -> np.ndarray:
        """Apply the softmax to ``inputs`` and return the layer output."""
        x = _flat(inputs)
        expected = self.inputs * self.batch
        if x.size != expected:
            raise ValueError(f"expected {expected} inputs, got {x.size}")
        size = self.inputs // self.groups
        rows = x.reshape(self.batch * self.groups, size)
        self.output = np.concatenate(
            [softmax_array(row, self.temperature) for row in rows]
        ).astype(np.float32)
        return self.output

    def backward(self, delta: ArrayLike) -> np.ndarray:
        """Return ``delta`` with this layer's delta added to it."""
        d = _flat(delta)
        if d.size != self.delta.size:
            raise ValueError(f"expected {self.delta.size} deltas, got {d.size}")
        return d + self.delta


class NormalizationLayer:
    """Local response normalization across channels."""

    def __init__(
        self,
        batch: int,
        w: int,
        h: int,
        c: int,
        size: int = 5,
        alpha: float = 0.0001,
        beta: float = 0.75,
        kappa: float = 1.0,
    ) -> None:
        print(
            f"Local Response Normalization Layer: {w} x {h} x {c} image, {size} size",
            file=sys.stderr,
        )
        self.batch = batch
        self.c = self.out_c = c
        self.size = size
        self.alpha = alpha
        self.beta = beta
        self.kappa = kappa
        self.resize(w, h)

    def resize(self, w: int, h: int) -> None:
        """Change the spatial size and reallocate the buffers."""
        self.w = self.out_w = w
        self.h = self.out_h = h
        self.inputs = w * h * self.c
        self.outputs = self.inputs
        total = self.inputs * self.batch
        self.output = np.zeros(total, dtype=np.float32)
        self.delta = np.zeros(total, dtype=np.float32)
        self.squared = np.zeros(total, dtype=np.float32)
        self.norms = np.zeros(total, dtype=np.float32)

    def forward(self, inputs: ArrayLike) -> np.ndarray:
        """Normalize ``inputs`` and return the layer output."""
        x = _flat(inputs)
        total = self.inputs * self.batch
        if x.size != total:
            raise ValueError(f"expected {total} inputs, got {x.size}")
        plane = self.w * self.h
        cube = x.reshape(self.batch, self.c, plane)
        squared = cube * cube
        norms = np.empty_like(squared)
        half = self.size // 2
        back = (self.size - 1) // 2 + 1
        for b in range(self.batch):
            norms[b, 0] = self.kappa
            for k in range(min(half, self.c)):
                norms[b, 0] += self.alpha * squared[b, k]
            for k in range(1, self.c):
                norms[b, k] = norms[b, k - 1]
                prev = k - back
                nxt = k + half
                if prev >= 0:
                    norms[b, k] -= self.alpha * squared[b, prev]
                if nxt < self.c:
                    norms[b, k] += self.alpha * squared[b, nxt]
        self.squared = squared.ravel().astype(np.float32)
        self.norms = norms.ravel().astype(np.float32)
        self.output = (np.power(self.norms, -self.beta) * x).astype(np.float32)
        return self.output

    def backward(self) -> np.ndarray:
        """Approximate input delta: this layer's delta scaled by ``norms ** -beta``."""
        return (np.power(self.norms, -self.beta) * self.delta).astype(np.float32)


class RouteLayer:
    """Concatenation of the outputs of earlier layers, batch item by batch item."""

    def __init__(self, batch: int, input_layers: Sequence[int], input_sizes: Sequence[int]) -> None:
        if len(input_layers) != len(input_sizes):
            raise ValueError("input_layers and input_sizes must have the same length")
        print("Route Layer: " + " ".join(str(i) for i in input_layers), file=sys.stderr)
        self.batch = batch
        self.input_layers = list(input_layers)
        self.input_sizes = list(input_sizes)
        self.n = len(self.input_layers)
        self.outputs = sum(self.input_sizes)
        self.inputs = self.outputs
        self.output = np.zeros(self.outputs * batch, dtype=np.float32)
        self.delta = np.zeros(self.outputs * batch, dtype=np.float32)

    def _slices(self):
        offset = 0
        for index, size in zip(self.input_layers, self.input_sizes):
            for j in range(self.batch):
                start = offset + j * self.outputs
                yield index, slice(j * size, (j + 1) * size), slice(start, start + size)
            offset += size

    def forward(self, outputs: LayerArrays) -> np.ndarray:
        """Gather the routed layers' outputs, indexed by layer number, into this output."""
        for index, source, target in self._slices():
            self.output[target] = _flat(outputs[index])[source]
        return self.output

    def backward(self, deltas: MutableLayerArrays) -> None:
        """Add this layer's delta into the routed layers' delta arrays in place."""
        for index, source, target in self._slices():
            array = deltas[index]
            if not isinstance(array, np.ndarray):
                raise TypeError(f"delta of layer {index} must be a numpy array")
            array[source] += self.delta[target]