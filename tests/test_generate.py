import pytest

from perfaware.generate import (
    RAND_MAX,
    GlibcRandom,
    generate,
    main,
    rand_range,
    write_outputs,
)
from perfaware.haversine import haversine


def test_glibc_sequence_for_seed_one():
    rng = GlibcRandom(1)
    assert [rng.rand(), rng.rand(), rng.rand()] == [
        1804289383, 846930886, 1681692777]


def test_seed_zero_behaves_like_seed_one():
    a = GlibcRandom(0)
    b = GlibcRandom(1)
    assert [a.rand() for _ in range(20)] == [b.rand() for _ in range(20)]


def test_rand_values_in_range():
    rng = GlibcRandom(12345)
    values = [rng.rand() for _ in range(1000)]
    assert all(0 <= v <= RAND_MAX for v in values)
    assert len(set(values)) > 900


class _FixedRng:
    def __init__(self, value):
        self.value = value

    def rand(self):
        return self.value


def test_rand_range_bounds():
    assert rand_range(_FixedRng(0), -5.0, 7.0) == -5.0
    assert rand_range(_FixedRng(RAND_MAX), -5.0, 7.0) == 7.0


def test_generate_is_deterministic():
    assert generate(42, 10) == generate(42, 10)
    assert generate(42, 10).pairs != generate(43, 10).pairs


def test_generate_counts_and_distances():
    result = generate(7, 25)
    assert len(result.pairs) == 25
    assert len(result.distances) == 25
    for pair, dist in zip(result.pairs, result.distances):
        assert dist == haversine(*pair)
    assert result.average == pytest.approx(sum(result.distances) / 25)


def test_generate_coordinates_in_range():
    for x0, y0, x1, y1 in generate(99, 200).pairs:
        assert -180.0 <= x0 <= 180.0 and -180.0 <= x1 <= 180.0
        assert -90.0 <= y0 <= 90.0 and -90.0 <= y1 <= 90.0


def test_generate_zero_pairs():
    result = generate(1, 0)
    assert result.pairs == [] and result.distances == []
    assert result.average == 0.0


def test_write_outputs_format(tmp_path):
    base = tmp_path / "data"
    result = generate(3, 2)
    write_outputs(str(base), *result)
    text = (tmp_path / "data.json").read_text()
    assert text.startswith('{\n  "pairs": [\n')
    assert text.endswith("  ]\n}\n")
    lines = text.splitlines()
    assert lines[2].endswith("},")
    assert lines[3].endswith("}")
    assert (tmp_path / "data.avg").read_text() == f"{result.average:.17f}\n"
    dists = (tmp_path / "data.dists").read_text().splitlines()
    assert dists == [f"{d:f}" for d in result.distances]


def test_write_outputs_empty(tmp_path):
    base = tmp_path / "empty"
    result = generate(1, 0)
    write_outputs(str(base), *result)
    assert result.average == 0.0
    assert (tmp_path / "empty.json").read_text() == '{\n  "pairs": [\n  ]\n}\n'
    assert (tmp_path / "empty.dists").read_text() == ""
    assert (tmp_path / "empty.avg").read_text() == f"{0.0:.17f}\n"


def test_main_writes_files(tmp_path):
    base = tmp_path / "out"
    assert main(["5", "4", str(base)]) == 0
    expected = generate(5, 4)
    assert float((tmp_path / "out.avg").read_text()) == pytest.approx(
        expected.average)


def test_main_usage():
    assert main(["-h"]) == 0
    assert main(["1", "2"]) == 1