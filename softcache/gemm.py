"""Matrix helpers and general matrix multiplication kernels.

Matrices are flat, row-major lists of floats. Every kernel accumulates
``A @ B`` into ``C`` in place, so ``C`` is normally created zero-filled.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable, MutableSequence, Sequence
from os import PathLike
from typing import Any

from softcache.soft_cache import DoubleBuffer, compute_block, copy_block

# --------
# Matrix
# --------


def create_matrix(num_rows: int, num_cols: int, val: float = 0.0) -> list[float]:
    """Return a row-major ``num_rows`` x ``num_cols`` matrix filled with ``val``."""
    if num_rows < 0 or num_cols < 0:
        raise ValueError("matrix dimensions must be non-negative")
    return [float(val)] * (num_rows * num_cols)


def format_matrix(matrix: Sequence[float], num_rows: int, num_cols: int) -> str:
    """Return the matrix as text: one line per row, each value followed by ``", "``."""
    if len(matrix) < num_rows * num_cols:
        raise ValueError("the matrix holds fewer values than num_rows * num_cols")
    lines = []
    for i in range(num_rows):
        row = matrix[i * num_cols:(i + 1) * num_cols]
        lines.append("".join(f"{value:g}, " for value in row) + "\n")
    return "".join(lines)


def print_matrix(matrix: Sequence[float], num_rows: int, num_cols: int) -> None:
    """Write the matrix to standard output in the form of :func:`format_matrix`."""
    print(format_matrix(matrix, num_rows, num_cols), end="")


# --------------
# GEMM kernels
# --------------


def _check_operands(
    a: Sequence[float],
    a1: int,
    a2: int,
    b: Sequence[float],
    b1: int,
    b2: int,
    c: Sequence[float],
) -> None:
    if min(a1, a2, b1, b2) < 0:
        raise ValueError("matrix dimensions must be non-negative")
    if b1 != a2:
        raise ValueError(f"inner dimensions differ: A has {a2} columns, B has {b1} rows")
    if len(a) < a1 * a2:
        raise ValueError("A holds fewer values than a1 * a2")
    if len(b) < b1 * b2:
        raise ValueError("B holds fewer values than b1 * b2")
    if len(c) < a1 * b2:
        raise ValueError("C holds fewer values than a1 * b2")


def _check_tiles(**tiles: int) -> None:
    for name, size in tiles.items():
        if size <= 0:
            raise ValueError(f"{name} must be positive, got {size}")


def gemm_v0(
    a: Sequence[float],
    a1: int,
    a2: int,
    b: Sequence[float],
    b1: int,
    b2: int,
    c: MutableSequence[float],
) -> None:
    """Accumulate ``A @ B`` into ``C`` with a plain i-k-j loop nest."""
    _check_operands(a, a1, a2, b, b1, b2, c)
    for i in range(a1):
        for k in range(a2):
            a_ik = a[i * a2 + k]
            for j in range(b2):
                c[i * b2 + j] += a_ik * b[k * b2 + j]


def gemm_v1_tiling(
    a: Sequence[float],
    a1: int,
    a2: int,
    a1_tile: int,
    a2_tile: int,
    b: Sequence[float],
    b1: int,
    b2: int,
    b1_tile: int,
    b2_tile: int,
    c: MutableSequence[float],
) -> None:
    """Tiled multiplication: tiles in ii-kk-jj order, elements in i-k-j order."""
    _check_operands(a, a1, a2, b, b1, b2, c)
    _check_tiles(a1_tile=a1_tile, a2_tile=a2_tile, b2_tile=b2_tile)
    for ii in range(0, a1, a1_tile):
        i_bound = min(ii + a1_tile, a1)
        for kk in range(0, a2, a2_tile):
            k_bound = min(kk + a2_tile, a2)
            for jj in range(0, b2, b2_tile):
                j_bound = min(jj + b2_tile, b2)
                for i in range(ii, i_bound):
                    for k in range(kk, k_bound):
                        a_ik = a[i * a2 + k]
                        for j in range(jj, j_bound):
                            c[i * b2 + j] += a_ik * b[k * b2 + j]


def gemm_v2_tiling_disorder(
    a: Sequence[float],
    a1: int,
    a2: int,
    a1_tile: int,
    a2_tile: int,
    b: Sequence[float],
    b1: int,
    b2: int,
    b1_tile: int,
    b2_tile: int,
    c: MutableSequence[float],
) -> None:
    """Tiled multiplication: tiles in jj-kk-ii order, elements in i-j-k order."""
    _check_operands(a, a1, a2, b, b1, b2, c)
    _check_tiles(a1_tile=a1_tile, a2_tile=a2_tile, b2_tile=b2_tile)
    for jj in range(0, b2, b2_tile):
        j_bound = min(jj + b2_tile, b2)
        for kk in range(0, a2, a2_tile):
            k_bound = min(kk + a2_tile, a2)
            for ii in range(0, a1, a1_tile):
                i_bound = min(ii + a1_tile, a1)
                for i in range(ii, i_bound):
                    for j in range(jj, j_bound):
                        for k in range(kk, k_bound):
                            c[i * b2 + j] += a[i * a2 + k] * b[k * b2 + j]


def gemm_v3_tiling_disorder(
    a: Sequence[float],
    a1: int,
    a2: int,
    a1_tile: int,
    a2_tile: int,
    b: Sequence[float],
    b1: int,
    b2: int,
    b1_tile: int,
    b2_tile: int,
    c: MutableSequence[float],
) -> None:
    """Tiled multiplication: tiles in ii-kk-jj order, elements in i-j-k order."""
    _check_operands(a, a1, a2, b, b1, b2, c)
    _check_tiles(a1_tile=a1_tile, a2_tile=a2_tile, b2_tile=b2_tile)
    for ii in range(0, a1, a1_tile):
        i_bound = min(ii + a1_tile, a1)
        for kk in range(0, a2, a2_tile):
            k_bound = min(kk + a2_tile, a2)
            for jj in range(0, b2, b2_tile):
                j_bound = min(jj + b2_tile, b2)
                for i in range(ii, i_bound):
                    for j in range(jj, j_bound):
                        for k in range(kk, k_bound):
                            c[i * b2 + j] += a[i * a2 + k] * b[k * b2 + j]


class _Worker(threading.Thread):
    """A thread that keeps any exception raised by its task and re-raises it on :meth:`wait`."""

    def __init__(self, task: Callable[..., Any], *args: Any) -> None:
        super().__init__(daemon=True)
        self._task = task
        self._args = args
        self._error: BaseException | None = None

    def run(self) -> None:
        try:
            self._task(*self._args)
        except BaseException as exc:  # noqa: BLE001 - handed back to the caller
            self._error = exc

    def wait(self) -> None:
        self.join()
        if self._error is not None:
            raise self._error


def _spawn(task: Callable[..., Any], *args: Any) -> _Worker:
    worker = _Worker(task, *args)
    worker.start()
    return worker


def gemm_v4_softcache(
    a: Sequence[float],
    a1: int,
    a2: int,
    a1_tile: int,
    a2_tile: int,
    a_cache: DoubleBuffer,
    b: Sequence[float],
    b1: int,
    b2: int,
    b1_tile: int,
    b2_tile: int,
    b_cache: DoubleBuffer,
    c: MutableSequence[float],
) -> None:
    """Tiled multiplication through double-buffered software caches.

    Blocks of A and B are copied into the active cache blocks by worker
    threads, the product of the active blocks is computed in another thread,
    and the next block is prefetched into the inactive cache block, which then
    becomes the active one.
    """
    _check_operands(a, a1, a2, b, b1, b2, c)
    _check_tiles(a1_tile=a1_tile, a2_tile=a2_tile, b2_tile=b2_tile)

    for ii in range(0, a1, a1_tile):
        a_block_rows = min(a1_tile, a1 - ii)
        for kk in range(0, a2, a2_tile):
            a_block_cols = min(a2_tile, a2 - kk)
            b_block_rows = a_block_cols
            copy_a: _Worker | None = None
            if kk == 0:
                # A new row of A tiles: fill the active A block.
                a_cache.active().unset()
                copy_a = _spawn(
                    copy_block, a, a1, a2, ii, kk,
                    a_cache.active(), a_block_rows, a_block_cols,
                )

            for jj in range(0, b2, b2_tile):
                b_block_cols = min(b2_tile, b2 - jj)
                copy_b: _Worker | None = None
                if jj == 0:
                    # A new row of B tiles: fill the active B block.
                    b_cache.active().unset()
                    copy_b = _spawn(
                        copy_block, b, b1, b2, kk, jj,
                        b_cache.active(), b_block_rows, b_block_cols,
                    )

                compute = _spawn(
                    compute_block,
                    a_cache.active(), a_block_rows, a_block_cols,
                    b_cache.active(), b_block_rows, b_block_cols,
                    c, a1, b2, ii, jj,
                )
                for worker in (copy_a, copy_b):
                    if worker is not None:
                        worker.wait()
                copy_a = None
                compute.wait()

                prefetch_b: _Worker | None = None
                prefetch_a: _Worker | None = None
                jj_next = jj + b_block_cols
                if jj_next < b2:
                    next_b_block_cols = min(b2_tile, b2 - jj_next)
                    prefetch_b = _spawn(
                        copy_block, b, b1, b2, kk, jj_next,
                        b_cache.inactive(), b_block_rows, next_b_block_cols,
                    )
                kk_next = kk + a2_tile
                if jj_next >= b2 and kk_next < a2:
                    next_a_block_cols = min(a2_tile, a2 - kk_next)
                    prefetch_a = _spawn(
                        copy_block, a, a1, a2, ii, kk_next,
                        a_cache.inactive(), a_block_rows, next_a_block_cols,
                    )

                if prefetch_b is not None:
                    prefetch_b.wait()
                    b_cache.swap()
                if prefetch_a is not None:
                    prefetch_a.wait()
                    a_cache.swap()


# -----------
# Utilities
# -----------


def calculate_average(values: Iterable[float]) -> float:
    """Return the arithmetic mean of ``values``, or 0.0 when there are none."""
    items = list(values)
    if not items:
        return 0.0
    return sum(items) / len(items)


def save_exe_times(filename: str | PathLike[str], exe_times: Iterable[float]) -> None:
    """Write each execution time to ``filename``, one per line."""
    with open(filename, "w", encoding="utf-8") as fout:
        for time in exe_times:
            fout.write(f"{time:g}\n")