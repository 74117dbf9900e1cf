"""Rounding and tolerance comparison helpers."""

from __future__ import annotations

import math

import numpy as np


def _round_with_sign(value: float, sign: int) -> int:
    whole = int(value)
    return whole + sign if value - whole >= 0.5 else whole


def round_half_away(a):
    """Round a positive number half-up; negative numbers are truncated toward zero."""
    a = float(np.float32(a))
    return _round_with_sign(a, 1 if a > 0.0 else -1)


def cmp_float(a, b, digits):
    """Return True if ``a`` and ``b`` agree once rounded to ``digits`` decimals.

    Both values are taken at single precision before comparing.
    """
    a = float(np.float32(a))
    b = float(np.float32(b))
    if not (math.isfinite(a) and math.isfinite(b)):
        return a == b
    scale = 10.0 ** digits
    ai = _round_with_sign(a * scale, 1 if a > 0.0 else -1)
    bi = _round_with_sign(b * scale, 1 if b > 0.0 else -1)
    return ai == bi


def matrix_cmp(a, b, digits):
    """Return True if every element of ``a`` matches ``b`` to ``digits`` decimals."""
    a = np.asarray(a, dtype=np.float32)
    b = np.asarray(b, dtype=np.float32)
    if a.shape != b.shape:
        raise ValueError(f"shape mismatch: {a.shape} vs {b.shape}")
    return all(cmp_float(x, y, digits) for x, y in zip(a.ravel(), b.ravel()))