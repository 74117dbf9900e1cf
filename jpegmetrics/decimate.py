"""Downsampling of float images through a low-pass kernel."""

from __future__ import annotations

import numpy as np

from .convolve import _as_image, _filter_points


def decimate(img, factor, kernel):
    """Downsample ``img`` by an integer ``factor``, filtering each kept pixel.

    The kernel is applied without its normalization scale. Without a kernel
    the pixels are sampled directly. Returns a new image whose width is
    ``w // factor + (w & 1)`` and height ``h // factor + (h & 1)``.
    """
    if factor < 1:
        raise ValueError("decimation factor must be at least 1")
    img = _as_image(img)
    h, w = img.shape
    sw = w // factor + (w & 1)
    sh = h // factor + (h & 1)
    ys, xs = np.mgrid[0:sh, 0:sw]
    xs = xs * factor
    ys = ys * factor
    if kernel is None:
        return img[ys, xs].astype(np.float32)
    return _filter_points(img, xs, ys, kernel, 1.0)