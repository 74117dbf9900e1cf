"""Multi-scale structural similarity (MS-SSIM and the Rouse/Hemami MS-SSIM*)."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional, Sequence

import numpy as np

from .convolve import Kernel, bound_symmetric
from .decimate import decimate
from .ssim import (
    GAUSSIAN_LEN,
    SsimArgs,
    _prepare,
    gaussian_window,
    square_window,
    ssim_components,
)

DEFAULT_SCALES = 5
LPF_LEN = 9

# 9/7 biorthogonal wavelet low-pass filter used between scales.
_LPF = np.array(
    [
        [0.000714, -0.000450, -0.002090, 0.007132, 0.016114, 0.007132, -0.002090, -0.000450, 0.000714],
        [-0.000450, 0.000283, 0.001316, -0.004490, -0.010146, -0.004490, 0.001316, 0.000283, -0.000450],
        [-0.002090, 0.001316, 0.006115, -0.020867, -0.047149, -0.020867, 0.006115, 0.001316, -0.002090],
        [0.007132, -0.004490, -0.020867, 0.071207, 0.160885, 0.071207, -0.020867, -0.004490, 0.007132],
        [0.016114, -0.010146, -0.047149, 0.160885, 0.363505, 0.160885, -0.047149, -0.010146, 0.016114],
        [0.007132, -0.004490, -0.020867, 0.071207, 0.160885, 0.071207, -0.020867, -0.004490, 0.007132],
        [-0.002090, 0.001316, 0.006115, -0.020867, -0.047149, -0.020867, 0.006115, 0.001316, -0.002090],
        [-0.000450, 0.000283, 0.001316, -0.004490, -0.010146, -0.004490, 0.001316, 0.000283, -0.000450],
        [0.000714, -0.000450, -0.002090, 0.007132, 0.016114, 0.007132, -0.002090, -0.000450, 0.000714],
    ],
    dtype=np.float32,
)

_ALPHAS = (0.0000, 0.0000, 0.0000, 0.0000, 0.1333)
_BETAS = (0.0448, 0.2856, 0.3001, 0.2363, 0.1333)
_GAMMAS = (0.0448, 0.2856, 0.3001, 0.2363, 0.1333)


@dataclass
class MsSsimArgs:
    """MS-SSIM options.

    ``wang`` selects the original algorithm with stabilization constants;
    otherwise MS-SSIM* (constants forced to zero) is used. ``gaussian``
    picks the 11x11 Gaussian window over the 8x8 square one. Exponent
    sequences default to the published per-scale weights.
    """

    wang: bool = False
    gaussian: bool = True
    scales: int = DEFAULT_SCALES
    alphas: Optional[Sequence[float]] = None
    betas: Optional[Sequence[float]] = None
    gammas: Optional[Sequence[float]] = None


def _exponents(given, default, scales, name):
    values = tuple(default if given is None else given)
    if len(values) < scales:
        raise ValueError(f"{name} needs at least {scales} values, got {len(values)}")
    return values


def _reduce(lum, con, struct, alpha, beta, gamma) -> np.float32:
    size = float(lum.size)
    with np.errstate(invalid="ignore", divide="ignore"):
        l_term = np.power(lum.sum() / size, float(np.float32(alpha)))
        c_term = np.power(con.sum() / size, float(np.float32(beta)))
        s_term = np.power(abs(struct.sum() / size), float(np.float32(gamma)))
    return np.float32(l_term * c_term * s_term)


def ms_ssim(ref, cmp, args=None):
    """Return the multi-scale SSIM of two 8-bit images of equal shape.

    Raises ValueError if the images would shrink below the window size
    before the last scale, or if the exponent lists are too short.
    """
    args = args if args is not None else MsSsimArgs()
    scales = args.scales
    if scales < 1:
        raise ValueError("at least one scale is required")
    alphas = _exponents(args.alphas, _ALPHAS, scales, "alphas")
    betas = _exponents(args.betas, _BETAS, scales, "betas")
    gammas = _exponents(args.gammas, _GAMMAS, scales, "gammas")

    ref_f, cmp_f = _prepare(ref, cmp)
    h, w = ref_f.shape

    min_len = GAUSSIAN_LEN if args.gaussian else LPF_LEN
    cur_w, cur_h = w, h
    for _ in range(scales):
        if cur_w < min_len or cur_h < min_len:
            raise ValueError(f"image of {w}x{h} is too small for {scales} scales")
        cur_w //= 2
        cur_h //= 2

    window = gaussian_window() if args.gaussian else square_window()
    lpf = Kernel(_LPF, normalized=True, bnd_opt=bound_symmetric)
    if args.wang:
        ssim_args = SsimArgs(K1=0.01, K2=0.03, L=255, f=1)
    else:
        ssim_args = SsimArgs(K1=0.0, K2=0.0, L=255, f=1)

    result = np.float32(1.0)
    for idx in range(scales):
        if idx:
            ref_f = decimate(ref_f, 2, lpf)
            cmp_f = decimate(cmp_f, 2, lpf)
        lum, con, struct = ssim_components(ref_f, cmp_f, window, ssim_args)
        factor = _reduce(lum, con, struct, alphas[idx], betas[idx], gammas[idx])
        result = np.float32(result * factor)
        if np.isinf(result):
            break
    return float(result)