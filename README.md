# softcache

This package does dense matrix multiplication on row-major matrices. Each
kernel computes `C += A @ B` and offers a different loop order. One variant
moves tiles of `A` and `B` through a double-buffered software cache. While
one tile is being multiplied, a separate thread fetches the next tile into
the other buffer.

Matrices are flat lists of floats stored in row-major order. The package has
no dependencies outside the standard library.

## Installing

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Matrices

- `softcache.gemm.create_matrix(num_rows, num_cols, val=0.0)` returns a list
  of `num_rows * num_cols` floats, all set to `val`.
- `softcache.gemm.format_matrix(matrix, num_rows, num_cols)` returns the
  matrix as text. Each row is one line, and each value is written in `%g`
  form followed by `", "`.
- `softcache.gemm.print_matrix(matrix, num_rows, num_cols)` writes that same
  text to standard output.

## Kernels

```python
from softcache.gemm import create_matrix, gemm_v1_tiling, print_matrix

a = create_matrix(4, 3, 1.1)
b = create_matrix(3, 2, 2.2)
c = create_matrix(4, 2)

gemm_v1_tiling(a, 4, 3, 2, 2, b, 3, 2, 2, 2, c)
print_matrix(c, 4, 2)
```

Every kernel adds into `c` in place. For a plain product, start from a zero
matrix.

| Kernel | Order |
| --- | --- |
| `gemm_v0(a, a1, a2, b, b1, b2, c)` | untiled, i-k-j |
| `gemm_v1_tiling(...)` | tiles ii-kk-jj, elements i-k-j |
| `gemm_v2_tiling_disorder(...)` | tiles jj-kk-ii, elements i-j-k |
| `gemm_v3_tiling_disorder(...)` | tiles ii-kk-jj, elements i-j-k |

The kernels raise `ValueError` in these cases:

- a dimension is negative;
- `b1` is not equal to `a2`;
- one of the lists is too short for its stated shape;
- a tile size that the kernel uses is not positive.

### The software-cache kernel

```python
from softcache.gemm import create_matrix, gemm_v4_softcache
from softcache.soft_cache import DoubleBuffer

n, tile = 3, 2
a = create_matrix(n, n, 1.1)
b = create_matrix(n, n, 2.2)
c = create_matrix(n, n)

gemm_v4_softcache(a, n, n, tile, tile, DoubleBuffer(n, n),
                  b, n, n, tile, tile, DoubleBuffer(n, n),
                  c)
```

The building blocks live in `softcache.soft_cache`:

- `CacheBlock` is a reusable buffer with a readiness flag.
  - `resize(size)` grows the storage when needed and marks the block not ready.
  - `set_ready()` and `unset()` set and clear the flag.
  - `wait_ready()` blocks until the flag is set.
  - `render(rows, cols)` returns the contents as text.
- `DoubleBuffer` holds two blocks.
  - `active()` and `inactive()` return the two blocks.
  - `swap()` exchanges their roles.
- `copy_block(src, rows, cols, row_offset, col_offset, cache, block_rows, block_cols)`
  copies a sub-rectangle into a block and then marks the block ready. It
  raises `ValueError` if the rectangle lies outside the source.
- `compute_block(...)` waits until both blocks are ready. It then adds their
  product into `C` at the given row and column offset.

### Timing helpers

- `calculate_average(values)` returns the mean of the values, or `0.0` when
  there are none.
- `save_exe_times(filename, exe_times)` writes one value per line.

## Command line

```
softcache-gemm-check
softcache-gemm-check --dim-size 5 --tile-size 2
```

This command builds two square matrices, one filled with 1.1 and the other
with 2.2. It multiplies them with the software-cache kernel, prints the time
taken and then prints the result. By default the matrices are 3×3 and the
tiles are 2×2. Both options need a positive integer.

## What it does not do

No command runs a benchmark across a range of matrix sizes or collects the
timings into result files. The timing helpers above are the only support for
that, and the package has no matrices outside ordinary Python lists.