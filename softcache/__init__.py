"""Tiled matrix multiplication kernels, a double-buffered software cache and a check command."""

__version__ = "0.1.0"
__all__ = ["cli", "gemm", "soft_cache"]