[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "softcache"
version = "0.1.0"
description = "Dense matrix multiplication kernels with tiling and a double-buffered software cache"
requires-python = ">=3.10"
dependencies = []
keywords = ["gemm", "matrix", "tiling", "cache", "double-buffering"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Mathematics",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
softcache-gemm-check = "softcache.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["softcache"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
