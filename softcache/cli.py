"""Command that checks the software-cache GEMM kernel on a small problem."""

from __future__ import annotations

import argparse
import time
from collections.abc import Sequence

from softcache.gemm import create_matrix, gemm_v4_softcache, print_matrix
from softcache.soft_cache import DoubleBuffer


def _positive_int(text: str) -> int:
    value = int(text)
    if value <= 0:
        raise argparse.ArgumentTypeError(f"must be positive, got {value}")
    return value


def _parse_args(argv: Sequence[str] | None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Multiply two constant square matrices with the soft-cache kernel."
    )
    parser.add_argument("--dim-size", type=_positive_int, default=3,
                        help="rows and columns of each matrix (default: 3)")
    parser.add_argument("--tile-size", type=_positive_int, default=2,
                        help="rows and columns of each tile (default: 2)")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the multiplication, report its time and print the result matrix."""
    args = _parse_args(argv)
    dim = args.dim_size
    tile = args.tile_size

    a = create_matrix(dim, dim, 1.1)
    b = create_matrix(dim, dim, 2.2)
    c = create_matrix(dim, dim)
    a_cache = DoubleBuffer(dim, dim)
    b_cache = DoubleBuffer(dim, dim)

    start = time.perf_counter()
    gemm_v4_softcache(a, dim, dim, tile, tile, a_cache,
                      b, dim, dim, tile, tile, b_cache,
                      c)
    duration = time.perf_counter() - start
    print(f"DRAM test correctness dim_size: {dim}, time_exe(s): {duration:g}")

    print_matrix(c, dim, dim)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())