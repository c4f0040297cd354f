import random

import pytest

from softcache.gemm import (
    calculate_average,
    create_matrix,
    format_matrix,
    gemm_v0,
    gemm_v1_tiling,
    gemm_v2_tiling_disorder,
    gemm_v3_tiling_disorder,
    gemm_v4_softcache,
    print_matrix,
    save_exe_times,
)
from softcache.soft_cache import DoubleBuffer


def _random_matrix(rows, cols, seed):
    rng = random.Random(seed)
    return [float(rng.randint(-5, 5)) for _ in range(rows * cols)]


def _identity(n):
    m = create_matrix(n, n)
    for i in range(n):
        m[i * n + i] = 1.0
    return m


def _run_tiled(kernel, a, a1, a2, b, b2, tile1, tile2, tile3):
    c = create_matrix(a1, b2)
    kernel(a, a1, a2, tile1, tile2, b, a2, b2, tile2, tile3, c)
    return c


def _run_softcache(a, a1, a2, b, b2, tile1, tile2, tile3, c=None):
    if c is None:
        c = create_matrix(a1, b2)
    gemm_v4_softcache(
        a, a1, a2, tile1, tile2, DoubleBuffer(a1, a2),
        b, a2, b2, tile2, tile3, DoubleBuffer(a2, b2),
        c,
    )
    return c


def test_create_matrix_fills_value():
    m = create_matrix(2, 3, 1.5)
    assert m == [1.5] * 6


def test_create_matrix_defaults_to_zero():
    assert create_matrix(3, 2) == [0.0] * 6


def test_create_matrix_negative_dimension():
    with pytest.raises(ValueError):
        create_matrix(-1, 2)


def test_worked_example_format():
    a = create_matrix(3, 3, 1.1)
    b = create_matrix(3, 3, 2.2)
    c = create_matrix(3, 3)
    _run_softcache(a, 3, 3, b, 3, 2, 2, 2, c)
    assert format_matrix(c, 3, 3) == "7.26, 7.26, 7.26, \n" * 3


def test_print_matrix_matches_format(capsys):
    m = [1.0, 2.0, 3.0, 4.0]
    print_matrix(m, 2, 2)
    assert capsys.readouterr().out == format_matrix(m, 2, 2)


def test_format_matrix_too_short():
    with pytest.raises(ValueError):
        format_matrix([1.0], 2, 2)


def test_v0_identity_left_and_right():
    a = _random_matrix(4, 4, 1)
    left = create_matrix(4, 4)
    gemm_v0(_identity(4), 4, 4, a, 4, 4, left)
    right = create_matrix(4, 4)
    gemm_v0(a, 4, 4, _identity(4), 4, 4, right)
    assert left == a
    assert right == a


def test_v0_accumulates_into_c():
    a = _random_matrix(3, 2, 2)
    b = _random_matrix(2, 4, 3)
    fresh = create_matrix(3, 4)
    gemm_v0(a, 3, 2, b, 2, 4, fresh)
    twice = create_matrix(3, 4)
    gemm_v0(a, 3, 2, b, 2, 4, twice)
    gemm_v0(a, 3, 2, b, 2, 4, twice)
    assert twice == [2 * v for v in fresh]


@pytest.mark.parametrize(
    "kernel", [gemm_v1_tiling, gemm_v2_tiling_disorder, gemm_v3_tiling_disorder]
)
@pytest.mark.parametrize(
    "a1, a2, b2, tiles",
    [
        (3, 3, 3, (2, 2, 2)),
        (5, 4, 7, (2, 3, 3)),
        (4, 6, 2, (4, 6, 2)),
        (1, 1, 1, (3, 3, 3)),
        (6, 5, 4, (1, 1, 1)),
    ],
)
def test_tiled_kernels_match_v0(kernel, a1, a2, b2, tiles):
    a = _random_matrix(a1, a2, 10)
    b = _random_matrix(a2, b2, 11)
    expected = create_matrix(a1, b2)
    gemm_v0(a, a1, a2, b, a2, b2, expected)
    assert _run_tiled(kernel, a, a1, a2, b, b2, *tiles) == pytest.approx(expected)


@pytest.mark.parametrize(
    "a1, a2, b2, tiles",
    [
        (3, 3, 3, (2, 2, 2)),
        (5, 4, 7, (2, 3, 3)),
        (4, 6, 2, (4, 6, 2)),
        (7, 5, 6, (3, 2, 4)),
        (2, 3, 5, (1, 1, 1)),
        (1, 1, 1, (3, 3, 3)),
    ],
)
def test_softcache_matches_v0(a1, a2, b2, tiles):
    a = _random_matrix(a1, a2, 20)
    b = _random_matrix(a2, b2, 21)
    expected = create_matrix(a1, b2)
    gemm_v0(a, a1, a2, b, a2, b2, expected)
    assert _run_softcache(a, a1, a2, b, b2, *tiles) == pytest.approx(expected)


def test_softcache_reuses_buffers():
    a = _random_matrix(5, 5, 30)
    b = _random_matrix(5, 5, 31)
    a_cache = DoubleBuffer(5, 5)
    b_cache = DoubleBuffer(5, 5)
    first = create_matrix(5, 5)
    gemm_v4_softcache(a, 5, 5, 2, 2, a_cache, b, 5, 5, 2, 2, b_cache, first)
    second = create_matrix(5, 5)
    gemm_v4_softcache(a, 5, 5, 3, 2, a_cache, b, 5, 5, 2, 3, b_cache, second)
    assert second == pytest.approx(first)


def test_inner_dimension_mismatch():
    with pytest.raises(ValueError):
        gemm_v0([1.0] * 6, 2, 3, [1.0] * 4, 2, 2, [0.0] * 4)


def test_output_too_small():
    with pytest.raises(ValueError):
        gemm_v1_tiling([1.0] * 4, 2, 2, 1, 1, [1.0] * 4, 2, 2, 1, 1, [0.0] * 3)


@pytest.mark.parametrize(
    "kernel", [gemm_v1_tiling, gemm_v2_tiling_disorder, gemm_v3_tiling_disorder]
)
def test_zero_tile_rejected(kernel):
    with pytest.raises(ValueError):
        kernel([1.0] * 4, 2, 2, 0, 1, [1.0] * 4, 2, 2, 1, 1, [0.0] * 4)


def test_softcache_zero_tile_rejected():
    with pytest.raises(ValueError):
        gemm_v4_softcache(
            [1.0] * 4, 2, 2, 1, 1, DoubleBuffer(2, 2),
            [1.0] * 4, 2, 2, 1, 0, DoubleBuffer(2, 2),
            [0.0] * 4,
        )


def test_calculate_average_empty():
    assert calculate_average([]) == 0.0


def test_calculate_average_constant():
    assert calculate_average([0.25] * 5) == pytest.approx(0.25)


def test_calculate_average_accepts_generator():
    values = [0.5, 1.5, 2.5, 3.5]
    assert calculate_average(v for v in values) == pytest.approx(sum(values) / len(values))


def test_save_exe_times_round_trip(tmp_path):
    path = tmp_path / "times.log"
    times = [0.5, 1.25, 3.0, 0.125]
    save_exe_times(path, times)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [float(line) for line in lines] == times


def test_save_exe_times_empty(tmp_path):
    path = tmp_path / "empty.log"
    save_exe_times(path, [])
    assert path.read_text(encoding="utf-8") == ""


def test_save_exe_times_bad_path(tmp_path):
    with pytest.raises(OSError):
        save_exe_times(tmp_path / "missing" / "times.log", [1.0])