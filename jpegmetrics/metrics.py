"""Mean squared error and peak signal-to-noise ratio for 8-bit images."""

from __future__ import annotations

import math

import numpy as np

_PEAK_SQUARED = 255 * 255


def _as_pair(ref, cmp) -> tuple[np.ndarray, np.ndarray]:
    ref = np.asarray(ref)
    cmp = np.asarray(cmp)
    if ref.ndim != 2 or cmp.ndim != 2:
        raise ValueError("images must be 2-D arrays")
    if ref.shape != cmp.shape:
        raise ValueError(f"image shapes differ: {ref.shape} vs {cmp.shape}")
    if ref.size == 0:
        raise ValueError("images must not be empty")
    return ref, cmp


def mse(ref, cmp):
    """Return the mean squared error between two images of equal shape."""
    ref, cmp = _as_pair(ref, cmp)
    diff = ref.astype(np.int64) - cmp.astype(np.int64)
    total = int((diff * diff).sum())
    return float(np.float32(total / ref.size))


def psnr(ref, cmp):
    """Return the PSNR in decibels for 8-bit samples; identical images give infinity."""
    error = mse(ref, cmp)
    if error == 0.0:
        return math.inf
    return float(np.float32(10.0 * math.log10(_PEAK_SQUARED / error)))