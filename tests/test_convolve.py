import numpy as np
import pytest

from jpegmetrics.convolve import (
    Kernel,
    bound_constant,
    bound_replicate,
    bound_symmetric,
    convolve,
    filter_pixel,
    img_filter,
)

IMG_5X5 = np.array(
    [
        [0, 1, 2, 3, 5],
        [73, 79, 83, 89, 97],
        [127, 131, 137, 139, 149],
        [179, 181, 191, 193, 197],
        [233, 239, 241, 251, 255],
    ],
    dtype=np.float32,
)

GAUSS_3X3 = [
    [0.075110, 0.123840, 0.075110],
    [0.123840, 0.204180, 0.123840],
    [0.075110, 0.123840, 0.075110],
]


def test_bound_symmetric_mirrors():
    assert bound_symmetric(IMG_5X5, -1, 0, 0.0) == IMG_5X5[0, 0]
    assert bound_symmetric(IMG_5X5, -2, 0, 0.0) == IMG_5X5[0, 1]
    assert bound_symmetric(IMG_5X5, 5, 0, 0.0) == IMG_5X5[0, 4]
    assert bound_symmetric(IMG_5X5, 2, 6, 0.0) == IMG_5X5[3, 2]


def test_bound_symmetric_inside_is_identity():
    assert bound_symmetric(IMG_5X5, 3, 2, 0.0) == IMG_5X5[2, 3]


def test_bound_symmetric_accepts_arrays():
    xs = np.array([-1, 0, 5])
    ys = np.array([0, 0, 0])
    out = bound_symmetric(IMG_5X5, xs, ys, 0.0)
    np.testing.assert_array_equal(out, [IMG_5X5[0, 0], IMG_5X5[0, 0], IMG_5X5[0, 4]])


def test_bound_replicate_clamps():
    assert bound_replicate(IMG_5X5, -5, -5, 0.0) == IMG_5X5[0, 0]
    assert bound_replicate(IMG_5X5, 8, 8, 0.0) == IMG_5X5[4, 4]
    assert bound_replicate(IMG_5X5, 2, 9, 0.0) == IMG_5X5[4, 2]


def test_bound_constant():
    assert bound_constant(IMG_5X5, 10, 0, 7.5) == 7.5
    assert bound_constant(IMG_5X5, 0, 10, 7.5) == 7.5
    assert bound_constant(IMG_5X5, -3, -3, 7.5) == IMG_5X5[0, 0]
    assert bound_constant(IMG_5X5, 1, 1, 7.5) == IMG_5X5[1, 1]


def test_kernel_scale_normalized_is_one():
    assert Kernel([[2.0, 2.0]], normalized=True).scale() == 1.0


def test_kernel_scale_unnormalized():
    assert Kernel([[1.0, 1.0], [1.0, 1.0]], normalized=False).scale() == pytest.approx(0.25)


def test_kernel_scale_zero_sum():
    assert Kernel([[1.0, -1.0]], normalized=False).scale() == 1.0


def test_kernel_rejects_non_2d():
    with pytest.raises(ValueError):
        Kernel([1.0, 2.0])


def test_convolve_identity_kernel():
    out = convolve(IMG_5X5, Kernel([[1.0]]))
    np.testing.assert_array_equal(out, IMG_5X5)


def test_convolve_shape():
    out = convolve(IMG_5X5, Kernel(GAUSS_3X3))
    assert out.shape == (3, 3)
    out = convolve(IMG_5X5, Kernel(np.full((2, 2), 0.25)))
    assert out.shape == (4, 4)


def test_convolve_constant_image_unnormalized_kernel():
    img = np.full((6, 7), 42.0, dtype=np.float32)
    out = convolve(img, Kernel(np.ones((3, 3)), normalized=False))
    np.testing.assert_allclose(out, 42.0, rtol=1e-5)


def test_convolve_kernel_too_large():
    with pytest.raises(ValueError):
        convolve(np.zeros((2, 2)), Kernel(np.ones((3, 3))))


def test_convolve_leaves_input_unchanged():
    img = IMG_5X5.copy()
    convolve(img, Kernel(GAUSS_3X3))
    np.testing.assert_array_equal(img, IMG_5X5)


def test_img_filter_interior_matches_convolve():
    k = Kernel(GAUSS_3X3)
    filtered = img_filter(IMG_5X5, k)
    assert filtered.shape == IMG_5X5.shape
    np.testing.assert_allclose(filtered[1:4, 1:4], convolve(IMG_5X5, k), rtol=1e-5)


def test_img_filter_constant_image():
    img = np.full((4, 5), 9.0, dtype=np.float32)
    k = Kernel(np.full((3, 3), 1.0 / 9.0))
    np.testing.assert_allclose(img_filter(img, k), 9.0, rtol=1e-5)


def test_img_filter_requires_boundary_option():
    with pytest.raises(ValueError):
        img_filter(IMG_5X5, Kernel(GAUSS_3X3, bnd_opt=None))
    with pytest.raises(ValueError):
        img_filter(IMG_5X5, None)


def test_filter_pixel_matches_img_filter():
    k = Kernel(GAUSS_3X3)
    filtered = img_filter(IMG_5X5, k)
    assert filter_pixel(IMG_5X5, 0, 0, k, 1.0) == pytest.approx(float(filtered[0, 0]))
    assert filter_pixel(IMG_5X5, 4, 2, k, 1.0) == pytest.approx(float(filtered[2, 4]))


def test_filter_pixel_without_kernel_returns_pixel():
    assert filter_pixel(IMG_5X5, 3, 1, None, 1.0) == IMG_5X5[1, 3]


def test_filter_pixel_edge_without_boundary_option_raises():
    with pytest.raises(ValueError):
        filter_pixel(IMG_5X5, 0, 0, Kernel(GAUSS_3X3, bnd_opt=None), 1.0)


def test_filter_pixel_interior_without_boundary_option():
    k = Kernel(GAUSS_3X3, bnd_opt=None)
    expected = float(convolve(IMG_5X5, k)[1, 1])
    assert filter_pixel(IMG_5X5, 2, 2, k, 1.0) == pytest.approx(expected)