# jpegmetrics

Full-reference image quality metrics for 8-bit greyscale images, plus the
JPEG and PPM helpers needed to feed them.

Images are 2-D arrays of 8-bit luma values (NumPy arrays or nested
sequences). Reference and compared images must have the same shape;
mismatched or non-2-D input raises `ValueError`.

## Metrics

- `jpegmetrics.metrics.mse(ref, cmp)` — mean squared error.
- `jpegmetrics.metrics.psnr(ref, cmp)` — peak signal-to-noise ratio in dB
  for a peak of 255; identical images give `inf`.
- `jpegmetrics.ssim.ssim(ref, cmp, gaussian=True, args=None)` — mean
  structural similarity using the 11x11 Gaussian window (or the 8x8 square
  window with `gaussian=False`). Images are first downscaled by roughly
  `min(w, h) / 256`; an `SsimArgs` lets you set the `alpha`, `beta`,
  `gamma` exponents, `L`, `K1`, `K2` and a fixed scale factor `f`.
- `jpegmetrics.ssim.ssim_core` and `ssim_components` work on float images
  with a given window and return the mean SSIM or the per-pixel
  luminance, contrast and structure terms.
- `jpegmetrics.ms_ssim.ms_ssim(ref, cmp, args=None)` — multi-scale SSIM.
  By default the Rouse/Hemami MS-SSIM\* (stabilisation constants of zero)
  over 5 scales; `MsSsimArgs(wang=True)` selects Wang's MS-SSIM, and
  `gaussian`, `scales`, `alphas`, `betas` and `gammas` are adjustable.
  It raises `ValueError` when the image would shrink below the window size
  before the last scale, or when an exponent list is shorter than `scales`.
- `jpegmetrics.smallfry.smallfry_metric(original, compressed)` — a combined
  PSNR and 8x8 blocking-artefact score tuned for JPEG recompression;
  higher means closer to the original.

```python
import numpy as np
from jpegmetrics.metrics import psnr
from jpegmetrics.ms_ssim import ms_ssim

ref = np.random.default_rng(0).integers(0, 256, (256, 256), dtype=np.uint8)
noisy = np.clip(ref.astype(int) + 3, 0, 255).astype(np.uint8)

print(psnr(ref, noisy))
print(ms_ssim(ref, ref))   # 1.0 for identical images
```

## Building blocks

- `jpegmetrics.convolve`: the `Kernel` dataclass (kernel array,
  `normalized`, boundary function `bnd_opt`, `bnd_const`; `scale()` returns
  the factor that normalises it), boundary handlers `bound_symmetric`,
  `bound_replicate` and `bound_constant`, and `convolve` (valid region
  only), `img_filter` (same-size output) and `filter_pixel`.
- `jpegmetrics.decimate.decimate(img, factor, kernel)` filters and
  downsamples an image by an integer factor.
- `jpegmetrics.math_utils`: `round_half_away`, and `cmp_float` /
  `matrix_cmp` for comparing values to a number of decimal digits.

## Files

`jpegmetrics.util` reads files (`read_file`, with `"-"` for standard
input), recognises JPEG and PPM data by their magic bytes
(`check_jpeg_magic`, `check_ppm_magic`, `detect_filetype`,
`detect_filetype_from_buffer`, returning a `FileType`), decodes them
(`decode_file`, `decode_file_from_buffer`, `decode_jpeg`, `decode_ppm`)
into a `DecodedImage` (`pixels`, `width`, `height`, `components`, `size`),
and encodes raw pixels as JPEG (`encode_jpeg`, with `PixelFormat`,
quality, progressive, optimize and `Subsampling` options).

`decode_ppm` accepts binary P6 files with a bit depth of 255. Decoding
failures, and decoding with a file type other than `FileType.JPEG` or
`FileType.PPM`, raise `ImageDecodeError`.

`get_metadata(buf, comment=None)` collects up to 20 APP1–APP15 and COM
segments of a JPEG as bytes ready to be written into another file; if a
COM segment starts with `comment`, it returns `None` instead.

```python
from jpegmetrics.util import PixelFormat, decode_file, detect_filetype

filetype = detect_filetype("photo.jpg")
image = decode_file("photo.jpg", filetype, PixelFormat.GRAYSCALE)
print(image.width, image.height)
```

## What it does not do

This is a library only. It has no command-line tools, does not search for
the lowest JPEG quality that meets a target score, and does not compute
perceptual image hashes.

## Tests

```
pip install -e .[test]
pytest
```