"""Structural similarity (SSIM) index and its luminance/contrast/structure terms."""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from .convolve import Kernel, _as_image, bound_symmetric, convolve
from .decimate import decimate
from .math_utils import round_half_away

GAUSSIAN_LEN = 11
GAUSSIAN_SIGMA = 1.5
SQUARE_LEN = 8


@dataclass
class SsimArgs:
    """Tunable SSIM parameters; ``f`` of 0 chooses the downscale factor automatically."""

    alpha: float = 1.0
    beta: float = 1.0
    gamma: float = 1.0
    L: int = 255
    K1: float = 0.01
    K2: float = 0.03
    f: int = 0


def gaussian_window():
    """Return the normalized 11x11 Gaussian window (sigma 1.5)."""
    coords = np.arange(GAUSSIAN_LEN, dtype=np.float64) - GAUSSIAN_LEN // 2
    g = np.exp(-(coords ** 2) / (2.0 * GAUSSIAN_SIGMA ** 2))
    window = np.outer(g, g)
    window /= window.sum()
    return Kernel(window.astype(np.float32), normalized=True, bnd_opt=bound_symmetric)


def square_window():
    """Return the normalized 8x8 uniform window."""
    window = np.full((SQUARE_LEN, SQUARE_LEN), 1.0 / (SQUARE_LEN * SQUARE_LEN), dtype=np.float32)
    return Kernel(window, normalized=True, bnd_opt=bound_symmetric)


def _prepare(ref, cmp):
    ref = _as_image(ref)
    cmp = _as_image(cmp)
    if ref.shape != cmp.shape:
        raise ValueError(f"image shapes differ: {ref.shape} vs {cmp.shape}")
    return ref, cmp


def _local_stats(ref, cmp, window):
    """Windowed means, variances and covariance, all float32 of the valid-region shape."""
    ref_mu = convolve(ref, window)
    cmp_mu = convolve(cmp, window)
    ref_sq = convolve(ref * ref, window) - ref_mu * ref_mu
    cmp_sq = convolve(cmp * cmp, window) - cmp_mu * cmp_mu
    both = convolve(ref * cmp, window) - ref_mu * cmp_mu
    return ref_mu, cmp_mu, ref_sq, cmp_sq, both


def _constants(args: SsimArgs):
    k1l = np.float32(args.K1) * np.float32(args.L)
    k2l = np.float32(args.K2) * np.float32(args.L)
    c1 = np.float32(k1l * k1l)
    c2 = np.float32(k2l * k2l)
    c3 = np.float32(c2 / np.float32(2.0))
    return c1, c2, c3


def _signed_power(values: np.ndarray, exponent: float) -> np.ndarray:
    exponent = float(np.float32(exponent))
    if exponent == 1.0:
        return values
    sign = np.where(values < 0.0, -1.0, 1.0)
    return sign * np.power(np.abs(values), exponent)


def ssim_components(ref, cmp, window, args=None):
    """Return per-pixel (luminance, contrast, structure) arrays for the valid region.

    Each term has its exponent from ``args`` applied. With zero stabilization
    constants, flat regions are given the values that MS-SSIM* expects.
    """
    args = args if args is not None else SsimArgs()
    ref, cmp = _prepare(ref, cmp)
    ref_mu, cmp_mu, ref_sq, cmp_sq, both = _local_stats(ref, cmp, window)
    c1, c2, c3 = _constants(args)

    ref_sq = np.maximum(ref_sq, np.float32(0.0))
    cmp_sq = np.maximum(cmp_sq, np.float32(0.0))
    root = np.sqrt((ref_sq * cmp_sq).astype(np.float64))

    mu1 = ref_mu.astype(np.float64)
    mu2 = cmp_mu.astype(np.float64)
    mu1_sq = ref_mu * ref_mu
    mu2_sq = cmp_mu * cmp_mu
    var_sum = ref_sq + cmp_sq

    with np.errstate(divide="ignore", invalid="ignore"):
        lum = (2.0 * mu1 * mu2 + float(c1)) / (mu1_sq + mu2_sq + c1).astype(np.float64)
        con = (2.0 * root + float(c2)) / (var_sum + c2).astype(np.float64)
        struct = (both.astype(np.float64) + float(c3)) / (root + float(c3))

        lum = _signed_power(lum, args.alpha)
        con = _signed_power(con, args.beta)
        struct = _signed_power(struct, args.gamma)

    if c1 == 0.0:
        lum = np.where((mu1_sq == 0) & (mu2_sq == 0), 1.0, lum)
    if c2 == 0.0:
        con = np.where(var_sum == 0, 1.0, con)
    if c3 == 0.0:
        flat = root == 0
        both_zero = (ref_sq == 0) & (cmp_sq == 0)
        one_zero = (ref_sq == 0) | (cmp_sq == 0)
        struct = np.where(flat & both_zero, 1.0, np.where(flat & one_zero, 0.0, struct))
    return lum, con, struct


def ssim_core(ref, cmp, window, args=None):
    """Return the mean SSIM of two float images over the window's valid region.

    Without ``args`` the classic combined formula is used; with ``args`` the
    separate luminance, contrast and structure terms are multiplied.
    """
    ref, cmp = _prepare(ref, cmp)
    if args is not None:
        lum, con, struct = ssim_components(ref, cmp, window, args)
        return float(np.float32((lum * con * struct).sum() / lum.size))

    ref_mu, cmp_mu, ref_sq, cmp_sq, both = _local_stats(ref, cmp, window)
    c1, c2, _ = _constants(SsimArgs())
    mu1 = ref_mu.astype(np.float64)
    mu2 = cmp_mu.astype(np.float64)
    numerator = (2.0 * mu1 * mu2 + float(c1)) * (2.0 * both.astype(np.float64) + float(c2))
    denominator = ((ref_mu * ref_mu + cmp_mu * cmp_mu + c1) * (ref_sq + cmp_sq + c2)).astype(np.float64)
    with np.errstate(divide="ignore", invalid="ignore"):
        total = (numerator / denominator).sum()
    return float(np.float32(total / numerator.size))


def ssim(ref, cmp, gaussian=True, args=None):
    """Return the mean SSIM of two 8-bit images.

    Large images are first downscaled by roughly min(w, h) / 256, unless
    ``args.f`` fixes the factor.
    """
    ref_f, cmp_f = _prepare(ref, cmp)
    h, w = ref_f.shape
    scale = max(1, round_half_away(np.float32(min(w, h)) / np.float32(256.0)))
    if args is not None and args.f:
        scale = args.f
    window = gaussian_window() if gaussian else square_window()

    if scale > 1:
        low_pass = Kernel(
            np.full((scale, scale), 1.0 / (scale * scale), dtype=np.float32),
            normalized=False,
            bnd_opt=bound_symmetric,
        )
        ref_f = decimate(ref_f, scale, low_pass)
        cmp_f = decimate(cmp_f, scale, low_pass)

    return ssim_core(ref_f, cmp_f, window, args)