import math
from typing import Iterable, Union

import numpy as np

Number = Union[int, float]


def round_half_up(value: float, digits: int = 0) -> Number:
    """
    Rounds with .5 going towards positive infinity (2.5 -> 3, -2.5 -> -2),
    the convention the dashboards were built around. Python's round()
    would send 2.5 to 2.

    Returns an int when digits == 0.
    """
    factor  = 10 ** digits
    rounded = math.floor(value * factor + 0.5)

    if digits == 0:
        return int(rounded)

    return rounded / factor


def mean(values: Iterable[Number]) -> float:
    """Arithmetic mean as a Python float, 0.0 for an empty input."""
    array = np.fromiter(values, dtype=np.float64)

    if array.size == 0:
        return 0.0

    return float(np.mean(array))


def percentage(part: Number, whole: Number) -> int:
    """round(100 * part / whole), 0 when whole is 0."""
    if not whole:
        return 0
    return int(round_half_up(part / whole * 100))
