"""Cache blocks and double buffering for blocked matrix multiplication."""

from __future__ import annotations

import threading
from collections.abc import MutableSequence, Sequence


class CacheBlock:
    """A reusable buffer holding one row-major block of a matrix.

    The block carries a readiness flag guarded by a condition variable so
    that a consumer can wait until a producer has filled it.
    """

    def __init__(self, rows: int = 0, cols: int = 0) -> None:
        self.data: list[float] = []
        self.size = 0
        self.is_ready = False
        self._cond = threading.Condition()
        if rows or cols:
            self.resize(rows * cols)

    def resize(self, size: int) -> None:
        """Make room for ``size`` values and mark the block as not ready.

        The underlying storage only grows; it never shrinks.
        """
        if size < 0:
            raise ValueError(f"size must be non-negative, got {size}")
        with self._cond:
            if size > len(self.data):
                self.data.extend([0.0] * (size - len(self.data)))
            self.is_ready = False
            self.size = size

    def set_ready(self) -> None:
        """Mark the block as filled and wake every waiting consumer."""
        with self._cond:
            self.is_ready = True
            self._cond.notify_all()

    def unset(self) -> None:
        """Mark the block as not filled."""
        with self._cond:
            self.is_ready = False

    def wait_ready(self) -> None:
        """Block until the block has been marked ready."""
        with self._cond:
            self._cond.wait_for(lambda: self.is_ready)

    def render(self, rows: int, cols: int) -> str:
        """Return the first ``rows`` x ``cols`` values as text, one row per line."""
        lines = [f"data_[{self.size}]: "]
        for i in range(rows):
            row = self.data[i * cols:(i + 1) * cols]
            lines.append("".join(f"{value:f}, " for value in row))
        return "\n".join(lines) + "\n"

    def __getitem__(self, index: int) -> float:
        return self.data[index]

    def __setitem__(self, index: int, value: float) -> None:
        self.data[index] = value

    def __len__(self) -> int:
        return self.size

    @property
    def lock(self) -> threading.Condition:
        """The condition guarding this block's contents and readiness."""
        return self._cond


class DoubleBuffer:
    """Two cache blocks, one being computed on while the other is filled."""

    def __init__(self, rows: int = 0, cols: int = 0) -> None:
        self.buffers = (CacheBlock(rows, cols), CacheBlock(rows, cols))
        self.active_index = 0

    def active(self) -> CacheBlock:
        """The block currently used for computation."""
        return self.buffers[self.active_index]

    def inactive(self) -> CacheBlock:
        """The block currently available for prefetching."""
        return self.buffers[1 - self.active_index]

    def swap(self) -> None:
        """Exchange the roles of the active and inactive blocks."""
        self.active_index = 1 - self.active_index


def copy_block(
    src: Sequence[float],
    rows: int,
    cols: int,
    row_offset: int,
    col_offset: int,
    cache: CacheBlock,
    block_rows: int,
    block_cols: int,
) -> None:
    """Copy a ``block_rows`` x ``block_cols`` sub-block of a row-major matrix into ``cache``.

    The cache is marked not ready while copying and ready afterwards.
    """
    if row_offset + block_rows > rows:
        raise ValueError("the block rows extend beyond the source rows")
    if col_offset + block_cols > cols:
        raise ValueError("the block cols extend beyond the source cols")
    if len(src) < rows * cols:
        raise ValueError("the source holds fewer values than rows * cols")

    with cache.lock:
        cache.resize(block_rows * block_cols)
        src_start = row_offset * cols + col_offset
        for i in range(block_rows):
            begin = src_start + i * cols
            dest = i * block_cols
            cache.data[dest:dest + block_cols] = src[begin:begin + block_cols]
        cache.set_ready()


def compute_block(
    a_cache: CacheBlock,
    a1: int,
    a2: int,
    b_cache: CacheBlock,
    b1: int,
    b2: int,
    c: MutableSequence[float],
    c1: int,
    c2: int,
    c1_offset: int,
    c2_offset: int,
) -> None:
    """Accumulate the product of two cached blocks into ``c``.

    ``a_cache`` holds an ``a1`` x ``a2`` block and ``b_cache`` an ``a2`` x ``b2``
    block; the product is added to ``c`` (a row-major ``c1`` x ``c2`` matrix)
    starting at row ``c1_offset`` and column ``c2_offset``. Waits until both
    caches are ready.
    """
    a_cache.wait_ready()
    b_cache.wait_ready()

    a_data = a_cache.data
    b_data = b_cache.data
    b_rows = [b_data[k * b2:(k + 1) * b2] for k in range(a2)]
    for i in range(a1):
        a_row = a_data[i * a2:(i + 1) * a2]
        c_base = (c1_offset + i) * c2 + c2_offset
        for a_ik, b_row in zip(a_row, b_rows):
            for j, b_kj in enumerate(b_row):
                c[c_base + j] += a_ik * b_kj