[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "jpegmetrics"
version = "2.2.0"
description = "Image quality metrics (MSE, PSNR, SSIM, MS-SSIM, SmallFry) and JPEG/PPM helpers"
requires-python = ">=3.10"
keywords = ["jpeg", "ppm", "ssim", "ms-ssim", "psnr", "mse", "image quality", "smallfry"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Image Processing",
    "Topic :: Multimedia :: Graphics",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["jpegmetrics"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
