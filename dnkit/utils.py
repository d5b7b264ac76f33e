"""Numeric, string and command-line helpers shared across the package."""

from __future__ import annotations

import math
import random
import re
from typing import Any, List, MutableSequence, Optional, Sequence

_INT_PREFIX = re.compile(r"\s*([+-]?\d+)")
_FLOAT_BODY = (
    r"[+-]?(?:(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?|inf(?:inity)?|nan)"
)
_FLOAT_PREFIX = re.compile(r"\s*(" + _FLOAT_BODY + ")", re.IGNORECASE)
_FLOAT_FULL = re.compile(r"\s*(" + _FLOAT_BODY + ")", re.IGNORECASE)


def _atoi(text: str) -> int:
    """Read the leading integer of ``text``; 0 when there is none."""
    match = _INT_PREFIX.match(text)
    return int(match.group(1)) if match else 0


def _atof(text: str) -> float:
    """Read the leading float of ``text``; 0.0 when there is none."""
    match = _FLOAT_PREFIX.match(text)
    return float(match.group(1)) if match else 0.0


def _rng(rng: Optional[random.Random]) -> Any:
    return rng if rng is not None else random


def shuffle(items: MutableSequence[Any], rng: Optional[random.Random] = None) -> None:
    """Shuffle ``items`` in place with a forward Fisher-Yates pass."""
    source = _rng(rng)
    n = len(items)
    for i in range(n - 1):
        j = i + source.randrange(n - i)
        items[i], items[j] = items[j], items[i]


def sorta_shuffle(
    items: MutableSequence[Any], sections: int, rng: Optional[random.Random] = None
) -> None:
    """Shuffle each of ``sections`` consecutive slices of ``items`` in place."""
    n = len(items)
    for i in range(sections):
        start = n * i // sections
        end = n * (i + 1) // sections
        part = list(items[start:end])
        shuffle(part, rng)
        items[start:end] = part


def find_arg(argv: List[str], arg: str) -> bool:
    """Remove the flag ``arg`` from ``argv``; report whether it was present."""
    if arg in argv:
        argv.remove(arg)
        return True
    return False


def _take_value(argv: List[str], arg: str) -> Optional[str]:
    try:
        position = argv.index(arg, 0, len(argv) - 1)
    except ValueError:
        return None
    value = argv[position + 1]
    del argv[position : position + 2]
    return value


def find_int_arg(argv: List[str], arg: str, default: int) -> int:
    """Take ``arg <int>`` out of ``argv``, or return ``default``."""
    value = _take_value(argv, arg)
    return default if value is None else _atoi(value)


def find_float_arg(argv: List[str], arg: str, default: float) -> float:
    """Take ``arg <float>`` out of ``argv``, or return ``default``."""
    value = _take_value(argv, arg)
    return default if value is None else _atof(value)


def find_str_arg(argv: List[str], arg: str, default: Optional[str]) -> Optional[str]:
    """Take ``arg <text>`` out of ``argv``, or return ``default``."""
    value = _take_value(argv, arg)
    return default if value is None else value


def basecfg(path: str) -> str:
    """File name of ``path`` without directories and without anything from the first dot."""
    name = path.rsplit("/", 1)[-1]
    return name.split(".", 1)[0]


def alphanum_to_int(c: str) -> int:
    """Map ``0-9`` to 0..9 and ``a-z`` to 10..35."""
    code = ord(c)
    return code - 48 if code < 58 else code - 87


def int_to_alphanum(i: int) -> str:
    """Inverse of :func:`alphanum_to_int`; 36 maps to ``'.'``."""
    if i == 36:
        return "."
    return chr(i + 48) if i < 10 else chr(i + 87)


def find_replace(text: str, orig: str, rep: str) -> str:
    """Replace the first occurrence of ``orig`` in ``text`` with ``rep``."""
    return text.replace(orig, rep, 1)


def top_k(values: Sequence[float], k: int) -> List[int]:
    """Indices of the ``k`` largest values, largest first; -1 fills unused slots."""
    index = [-1] * k
    for i in range(len(values)):
        curr = i
        for j in range(k):
            if index[j] < 0 or values[curr] > values[index[j]]:
                index[j], curr = curr, index[j]
    return index


def strip(text: str) -> str:
    """Remove every space, tab and newline from ``text``."""
    return "".join(ch for ch in text if ch not in " \t\n")


def strip_char(text: str, bad: str) -> str:
    """Remove every occurrence of the character ``bad`` from ``text``."""
    return "".join(ch for ch in text if ch != bad)


def split_str(text: str, delim: str) -> List[str]:
    """Split ``text`` at every ``delim``, keeping empty pieces."""
    return text.split(delim)


def parse_csv_line(line: str) -> List[str]:
    """Split a CSV line at commas outside double quotes; quotes are kept."""
    fields: List[str] = []
    start = 0
    inside = False
    for position, ch in enumerate(line):
        if ch == '"':
            inside = not inside
        elif ch == "," and not inside:
            fields.append(line[start:position])
            start = position + 1
    fields.append(line[start:])
    return fields


def count_fields(line: str) -> int:
    """Number of comma-separated fields in ``line``."""
    return line.count(",") + 1


def _parse_field(raw: str) -> float:
    if not raw:
        return math.nan
    body = raw[:-1] if raw.endswith("\r") else raw
    if not body:
        return 0.0
    match = _FLOAT_FULL.fullmatch(body)
    return float(match.group(1)) if match else math.nan


def parse_fields(line: str) -> List[float]:
    """Parse comma-separated numbers; empty or malformed fields become NaN."""
    return [_parse_field(raw) for raw in line.split(",")]


def sum_array(values: Sequence[float]) -> float:
    """Sum of ``values``."""
    return float(sum(values))


def mean_array(values: Sequence[float]) -> float:
    """Arithmetic mean of ``values``."""
    return sum_array(values) / len(values)


def mean_arrays(arrays: Sequence[Sequence[float]]) -> List[float]:
    """Element-wise mean of equally long arrays."""
    count = len(arrays)
    return [sum(column) / count for column in zip(*arrays)]


def variance_array(values: Sequence[float]) -> float:
    """Population variance of ``values``."""
    mean = mean_array(values)
    return sum((v - mean) * (v - mean) for v in values) / len(values)


def constrain(lo: float, hi: float, value: float) -> float:
    """Clamp ``value`` into ``[lo, hi]``."""
    if value < lo:
        return lo
    if value > hi:
        return hi
    return value


def mse_array(values: Sequence[float]) -> float:
    """Root of the mean of squares of ``values``."""
    return math.sqrt(sum(v * v for v in values) / len(values))


def normalize_array(values: Sequence[float]) -> List[float]:
    """Shift and scale ``values`` to zero mean and unit variance."""
    mu = mean_array(values)
    sigma = math.sqrt(variance_array(values))
    return [(v - mu) / sigma for v in values]


def mag_array(values: Sequence[float]) -> float:
    """Euclidean length of ``values``."""
    return math.sqrt(sum(v * v for v in values))


def max_index(values: Sequence[float]) -> int:
    """Index of the first largest value, or -1 for an empty sequence."""
    if not values:
        return -1
    best = 0
    for position, value in enumerate(values):
        if value > values[best]:
            best = position
    return best


def rand_int(lo: int, hi: int, rng: Optional[random.Random] = None) -> int:
    """Uniform integer in ``[lo, hi]``."""
    return _rng(rng).randint(lo, hi)


def rand_uniform(lo: float, hi: float, rng: Optional[random.Random] = None) -> float:
    """Uniform float between ``lo`` and ``hi``."""
    return _rng(rng).random() * (hi - lo) + lo


def rand_normal(rng: Optional[random.Random] = None) -> float:
    """Standard normal sample by the Box-Muller transform."""
    source = _rng(rng)
    u1 = max(source.random(), 1e-100)
    u2 = source.random() * 2.0 * math.pi
    return math.sqrt(-2.0 * math.log(u1)) * math.cos(u2)


def one_hot_encode(values: Sequence[float], k: int) -> List[List[float]]:
    """One row of ``k`` zeros per value, with a 1 at ``int(value)``."""
    rows = []
    for value in values:
        row = [0.0] * k
        row[int(value)] = 1.0
        rows.append(row)
    return rows