"""
Easing functions for transition frames.

An easing maps the interpolation fraction x in [0, 1] to a progress value
in [0, 1] with ease(0) = 0 and ease(1) = 1, non-decreasing in between.
"""

from typing import Callable, Union

import numpy as np

Easing = Callable[[float], float]


def linear(x: float) -> float:
    return float(np.clip(x, 0.0, 1.0))


def tanh_ease(x: float, steepness: float = 6.0) -> float:
    """
    Hyperbolic-tangent ramp centered at x = 0.5.

    The raw curve (tanh(s * (x - 0.5)) + 1) / 2 never quite reaches 0 or 1,
    so it is rescaled to hit both ends exactly. Larger ``steepness`` means a
    slower start and finish with a faster middle.
    """
    if steepness <= 0:
        raise ValueError("steepness must be > 0.")
    x = float(np.clip(x, 0.0, 1.0))
    half = np.tanh(steepness / 2.0)
    return float((np.tanh(steepness * (x - 0.5)) + half) / (2.0 * half))


_EASINGS: dict[str, Easing] = {
    "linear": linear,
    "tanh": tanh_ease,
}


def get_easing(name: Union[str, Easing]) -> Easing:
    if callable(name):
        return name
    key = str(name).strip().lower()
    if key not in _EASINGS:
        raise ValueError(f"Unknown easing: {name} (choose from: {', '.join(_EASINGS)})")
    return _EASINGS[key]
