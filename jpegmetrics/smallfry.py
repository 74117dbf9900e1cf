"""The SmallFry perceptual quality metric for 8-bit luma images."""

from __future__ import annotations

import math

import numpy as np

PSNR_WEIGHT = 37.1891885161239
AAE_WEIGHT = 78.5328607296973


def _validate(original, compressed) -> tuple[np.ndarray, np.ndarray]:
    original = np.asarray(original)
    compressed = np.asarray(compressed)
    if original.ndim != 2 or compressed.ndim != 2:
        raise ValueError("images must be 2-D arrays")
    if original.shape != compressed.shape:
        raise ValueError(f"image shapes differ: {original.shape} vs {compressed.shape}")
    if original.size == 0:
        raise ValueError("images must not be empty")
    return original.astype(np.int64), compressed.astype(np.int64)


def _psnr_factor(original: np.ndarray, compressed: np.ndarray, peak: int) -> float:
    diff = original - compressed
    total = int((diff * diff).sum())
    if total == 0:
        ret = math.inf
    else:
        ret = 10.0 * math.log10(65025.0 / (total / original.size))

    if peak > 128:
        ret /= 50.0
    else:
        ret /= 0.0016 * float(peak * peak) - (0.38 * float(peak) + 72.5)
    return max(min(ret, 1.0), 0.0)


def _block_scores(calc: np.ndarray) -> float:
    return float(np.where(calc > 5.0, 1.0, np.where(calc > 2.0, (calc - 2.0) / 3.0, 0.0)).sum())


def _aae_factor(original: np.ndarray, compressed: np.ndarray, peak: int) -> float:
    h, w = original.shape
    d = np.abs(original - compressed)

    # Horizontal block edges. The last tap may run one sample past the row,
    # onto the start of the next one; past the final row it reads zero.
    flat = np.append(d.ravel(), 0)
    cols = np.arange(7, w - 1, 8)
    idx = np.arange(h)[:, None] * w + cols[None, :]
    centre, right, left, far = flat[idx], flat[idx + 1], flat[idx - 1], flat[idx + 2]
    calc_h = np.abs(centre - right) / (
        (np.abs(left - centre) + np.abs(right - far) + 0.0001) / 2.0
    )

    # Vertical block edges.
    rows = np.arange(7, h - 2, 8)
    centre, below, above, far = d[rows], d[rows + 1], d[rows - 1], d[rows + 2]
    calc_v = np.abs(centre - below) / (
        (np.abs(above - centre) + np.abs(below - far) + 0.0001) / 2.0
    )

    count = calc_h.size + calc_v.size
    if count == 0:
        raise ValueError(f"image of {w}x{h} is too small for block analysis")
    total = _block_scores(calc_h) + _block_scores(calc_v)

    ret = 1.0 - total / count
    if peak > 128:
        cfmax = 0.65
    else:
        cfmax = 0.65 + 0.35 * ((128.0 - peak) / 128.0)
    ratio = math.inf if total == 0.0 else 1000.0 * count / total
    cf = max(cfmax, min(1.0, 0.25 + ratio))
    return ret * cf


def smallfry_metric(original, compressed):
    """Return the SmallFry score of ``compressed`` against ``original``.

    Both are 2-D 8-bit luma images of equal shape; higher means closer.
    """
    orig, comp = _validate(original, compressed)
    peak = int(orig.max())
    p = _psnr_factor(orig, comp, peak)
    a = _aae_factor(orig, comp, peak)
    return p * PSNR_WEIGHT + a * AAE_WEIGHT