"""Image optimisation helpers: gradient masking, smoothing and output naming."""

from __future__ import annotations

import math
from typing import Optional, Sequence, Union

import numpy as np

from dnkit.utils import mean_array, variance_array

ArrayLike = Union[Sequence[float], np.ndarray]


def abs_mean(values: ArrayLike) -> float:
    """Mean of the absolute values of ``values``."""
    arr = np.asarray(values, dtype=np.float64).ravel()
    if arr.size == 0:
        raise ValueError("abs_mean of an empty array")
    return float(np.abs(arr).sum() / arr.size)


def calculate_loss(output: ArrayLike, delta: ArrayLike, thresh: float) -> np.ndarray:
    """Keep ``output`` where ``delta`` is above mean + thresh * std of ``output``.

    Entries of ``delta`` at or below that level become zero; the result is
    a new array.
    """
    out = np.asarray(output, dtype=np.float32).ravel()
    d = np.asarray(delta, dtype=np.float32).ravel()
    if out.size != d.size:
        raise ValueError(f"output has {out.size} values but delta has {d.size}")
    if out.size == 0:
        raise ValueError("calculate_loss of an empty array")
    values = out.tolist()
    mean = mean_array(values)
    var = variance_array(values)
    level = mean + thresh * math.sqrt(var)
    return np.where(d > level, out, np.float32(0)).astype(np.float32)


def smooth(recon: np.ndarray, update: np.ndarray, lam: float, num: int) -> np.ndarray:
    """Return ``update`` plus ``lam`` times each pixel's differences to its neighbours.

    ``recon`` and ``update`` are arrays of shape (channels, height, width).
    Each pixel gathers ``recon[neighbour] - recon[pixel]`` over the square
    window of radius ``num`` clipped to the image, within its own channel.
    """
    r = np.asarray(recon, dtype=np.float32)
    result = np.array(update, dtype=np.float32, copy=True)
    if r.ndim != 3:
        raise ValueError("recon must have shape (channels, height, width)")
    if result.shape != r.shape:
        raise ValueError(f"update shape {result.shape} does not match recon shape {r.shape}")
    _, h, w = r.shape
    for dy in range(-num, num + 1):
        y0, y1 = max(0, -dy), min(h, h - dy)
        if y0 >= y1:
            continue
        for dx in range(-num, num + 1):
            x0, x1 = max(0, -dx), min(w, w - dx)
            if x0 >= x1:
                continue
            here = r[:, y0:y1, x0:x1]
            there = r[:, y0 + dy : y1 + dy, x0 + dx : x1 + dx]
            result[:, y0:y1, x0:x1] += lam * (there - here)
    return result


def output_name(
    imbase: str,
    cfgbase: str,
    max_layer: int,
    round_index: int,
    prefix: Optional[str] = None,
) -> str:
    """File name, without extension, for the image saved after a round."""
    name = f"{imbase}_{cfgbase}_{max_layer}_{round_index:06d}"
    return name if prefix is None else f"{prefix}/{name}"