"""Character-level recurrent network helpers: batches, sampling and perplexity."""

from __future__ import annotations

import random
from typing import Optional, Sequence, Tuple, Union

import numpy as np

TextLike = Union[bytes, bytearray, str, Sequence[int]]


def _as_bytes(text: TextLike) -> bytes:
    if isinstance(text, str):
        return text.encode("latin-1")
    return bytes(text)


def get_rnn_data(
    text: TextLike,
    characters: int,
    batch: int,
    steps: int,
    rng: Optional[random.Random] = None,
) -> Tuple[np.ndarray, np.ndarray]:
    """One-hot inputs and next-character targets for ``batch`` random windows.

    Both arrays have shape ``(steps * batch, characters)``; row
    ``step * batch + item`` holds the character at that step of that item.
    """
    data = _as_bytes(text)
    span = len(data) - steps - 1
    if span <= 0:
        raise ValueError(f"text of {len(data)} bytes is too short for {steps} steps")
    source = rng if rng is not None else random
    x = np.zeros((steps * batch, characters), dtype=np.float32)
    y = np.zeros((steps * batch, characters), dtype=np.float32)
    for item in range(batch):
        start = source.randrange(span)
        for step in range(steps):
            current = data[start + step]
            following = data[start + step + 1]
            if current == 0 or following == 0:
                raise ValueError(f"Bad char at offset {start + step}")
            if current >= characters or following >= characters:
                raise ValueError(
                    f"character {max(current, following)} does not fit in {characters} inputs"
                )
            row = step * batch + item
            x[row, current] = 1.0
            y[row, following] = 1.0
    return x, y


def sample_index(probabilities: Sequence[float], r: float) -> int:
    """First index whose running sum of ``probabilities`` exceeds ``r``.

    Returns ``len(probabilities)`` when the total never exceeds ``r``.
    """
    total = 0.0
    count = 0
    for count, p in enumerate(probabilities):
        total += float(p)
        if total > r:
            return count
    return len(probabilities)


def perplexity(log2_probabilities: Sequence[float]) -> float:
    """Perplexity ``2 ** (-mean)`` of per-character log2 probabilities."""
    values = [float(v) for v in log2_probabilities]
    if not values:
        raise ValueError("perplexity needs at least one probability")
    return float(2.0 ** (-sum(values) / len(values)))