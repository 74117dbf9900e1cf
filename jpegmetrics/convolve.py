"""Kernels, boundary handling and 2-D convolution over float images."""

from __future__ import annotations

from dataclasses import dataclass, field
from itertools import product
from typing import Callable, Optional

import numpy as np

BoundFn = Callable[[np.ndarray, object, object, float], object]


def _as_image(img) -> np.ndarray:
    arr = np.asarray(img, dtype=np.float32)
    if arr.ndim != 2:
        raise ValueError(f"expected a 2-D image, got shape {arr.shape}")
    return arr


def _scalarize(value):
    value = np.asarray(value)
    return value[()] if value.ndim == 0 else value


def bound_symmetric(img, x, y, bnd_const=0.0):
    """Sample ``img`` at (x, y), mirroring coordinates that fall outside it.

    ``x`` and ``y`` may be integers or integer arrays of matching shape.
    """
    img = np.asarray(img)
    h, w = img.shape
    x = np.asarray(x)
    y = np.asarray(y)
    x = np.where(x < 0, -1 - x, np.where(x >= w, 2 * w - x - 1, x))
    y = np.where(y < 0, -1 - y, np.where(y >= h, 2 * h - y - 1, y))
    return _scalarize(img[y, x])


def bound_replicate(img, x, y, bnd_const=0.0):
    """Sample ``img`` at (x, y), clamping coordinates to the nearest edge."""
    img = np.asarray(img)
    h, w = img.shape
    x = np.clip(np.asarray(x), 0, w - 1)
    y = np.clip(np.asarray(y), 0, h - 1)
    return _scalarize(img[y, x])


def bound_constant(img, x, y, bnd_const=0.0):
    """Sample ``img`` at (x, y).

    Negative coordinates are clamped to zero; coordinates past the right or
    bottom edge yield ``bnd_const``.
    """
    img = np.asarray(img)
    h, w = img.shape
    x = np.maximum(np.asarray(x), 0)
    y = np.maximum(np.asarray(y), 0)
    outside = (x >= w) | (y >= h)
    values = img[np.minimum(y, h - 1), np.minimum(x, w - 1)]
    return _scalarize(np.where(outside, np.float32(bnd_const), values))


def _direct(img, x, y, bnd_const=0.0):
    """Sample without any boundary handling; coordinates must lie inside."""
    h, w = img.shape
    x = np.asarray(x)
    y = np.asarray(y)
    if np.any(x < 0) or np.any(y < 0) or np.any(x >= w) or np.any(y >= h):
        raise ValueError("kernel reaches outside the image and has no boundary option")
    return img[y, x]


@dataclass
class Kernel:
    """A 2-D filter kernel with its boundary behaviour."""

    kernel: np.ndarray
    normalized: bool = True
    bnd_opt: Optional[BoundFn] = field(default=bound_symmetric)
    bnd_const: float = 0.0

    def __post_init__(self) -> None:
        arr = np.asarray(self.kernel, dtype=np.float32)
        if arr.ndim != 2 or arr.size == 0:
            raise ValueError(f"kernel must be a non-empty 2-D array, got shape {arr.shape}")
        self.kernel = arr

    @property
    def width(self) -> int:
        return self.kernel.shape[1]

    @property
    def height(self) -> int:
        return self.kernel.shape[0]

    def scale(self) -> float:
        """Factor that normalizes the kernel's sum to one (1.0 if already normalized)."""
        if self.normalized:
            return 1.0
        total = float(self.kernel.astype(np.float64).sum())
        if total != 0.0:
            return float(np.float32(1.0 / total))
        return 1.0


def _offsets(kernel: Kernel):
    """Yield (row, col, dy, dx) for every kernel tap relative to its centre."""
    uc = kernel.width // 2
    vc = kernel.height // 2
    rows = enumerate(range(-vc, vc - (1 - kernel.height % 2) + 1))
    cols = list(enumerate(range(-uc, uc - (1 - kernel.width % 2) + 1)))
    for (row, dy), (col, dx) in product(rows, cols):
        yield row, col, dy, dx


def _filter_points(img: np.ndarray, xs, ys, kernel: Kernel, scale: float) -> np.ndarray:
    """Apply ``kernel`` centred on each (xs, ys) point, honouring its boundary option."""
    xs = np.asarray(xs)
    ys = np.asarray(ys)
    sample = kernel.bnd_opt if kernel.bnd_opt is not None else _direct
    acc = np.zeros(np.broadcast(xs, ys).shape, dtype=np.float64)
    for row, col, dy, dx in _offsets(kernel):
        values = np.asarray(sample(img, xs + dx, ys + dy, kernel.bnd_const), dtype=np.float32)
        acc += values * kernel.kernel[row, col]
    return (acc * scale).astype(np.float32)


def convolve(img, kernel):
    """Convolve ``img`` with ``kernel`` wherever the kernel fits entirely inside.

    Returns a new image of shape (h - kh + 1, w - kw + 1).
    """
    img = _as_image(img)
    h, w = img.shape
    dst_h = h - kernel.height + 1
    dst_w = w - kernel.width + 1
    if dst_h <= 0 or dst_w <= 0:
        raise ValueError("kernel is larger than the image")
    acc = np.zeros((dst_h, dst_w), dtype=np.float64)
    for row, col in product(range(kernel.height), range(kernel.width)):
        acc += img[row:row + dst_h, col:col + dst_w] * kernel.kernel[row, col]
    return (acc * kernel.scale()).astype(np.float32)


def img_filter(img, kernel):
    """Filter every pixel of ``img``, using the kernel's boundary option at the edges.

    Returns a new image of the same shape.
    """
    if kernel is None or kernel.bnd_opt is None:
        raise ValueError("filtering needs a kernel with a boundary option")
    img = _as_image(img)
    h, w = img.shape
    ys, xs = np.mgrid[0:h, 0:w]
    return _filter_points(img, xs, ys, kernel, kernel.scale())


def filter_pixel(img, x, y, kernel, scale):
    """Return the filtered value of a single pixel, or the pixel itself without a kernel."""
    img = _as_image(img)
    if kernel is None:
        return float(img[y, x])
    return float(_filter_points(img, x, y, kernel, scale))