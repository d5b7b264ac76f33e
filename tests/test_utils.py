import math
import random

import pytest

from dnkit import utils


def test_shuffle_is_a_permutation_and_reproducible():
    items = list(range(20))
    first = items[:]
    utils.shuffle(first, random.Random(3))
    second = items[:]
    utils.shuffle(second, random.Random(3))
    assert sorted(first) == items
    assert first == second


def test_sorta_shuffle_keeps_section_membership():
    items = list(range(12))
    shuffled = items[:]
    utils.sorta_shuffle(shuffled, 3, random.Random(1))
    for start in (0, 4, 8):
        assert sorted(shuffled[start : start + 4]) == items[start : start + 4]


def test_find_arg_removes_flag():
    argv = ["prog", "-x", "a"]
    assert utils.find_arg(argv, "-x") is True
    assert argv == ["prog", "a"]


def test_find_arg_missing_leaves_argv():
    argv = ["prog", "a"]
    assert utils.find_arg(argv, "-x") is False
    assert argv == ["prog", "a"]


def test_find_int_arg_takes_value():
    argv = ["prog", "-n", "42", "rest"]
    assert utils.find_int_arg(argv, "-n", 7) == 42
    assert argv == ["prog", "rest"]


def test_find_int_arg_reads_leading_digits():
    argv = ["prog", "-n", "12abc"]
    assert utils.find_int_arg(argv, "-n", 7) == 12


def test_find_int_arg_flag_without_value_gives_default():
    argv = ["prog", "-n"]
    assert utils.find_int_arg(argv, "-n", 7) == 7
    assert argv == ["prog", "-n"]


def test_find_float_arg():
    argv = ["prog", "-rate", "0.25"]
    assert utils.find_float_arg(argv, "-rate", 1.0) == pytest.approx(0.25)
    assert argv == ["prog"]


def test_find_str_arg_default_and_value():
    argv = ["prog", "-file", "data.txt"]
    assert utils.find_str_arg(argv, "-prefix", None) is None
    assert utils.find_str_arg(argv, "-file", "x") == "data.txt"
    assert argv == ["prog"]


def test_basecfg():
    assert utils.basecfg("cfg/dir/yolo.tiny.cfg") == "yolo"
    assert utils.basecfg("plain") == "plain"


def test_alphanum_round_trip():
    for i in range(36):
        assert utils.alphanum_to_int(utils.int_to_alphanum(i)) == i
    assert utils.int_to_alphanum(36) == "."


def test_find_replace_only_first():
    assert utils.find_replace("a/images/images.jpg", "images", "labels") == "a/labels/images.jpg"
    assert utils.find_replace("abc", "zz", "y") == "abc"


def test_top_k_orders_largest_first():
    values = [0.3, 0.9, 0.1, 0.7, 0.5]
    indices = utils.top_k(values, 3)
    assert [values[i] for i in indices] == sorted(values, reverse=True)[:3]


def test_top_k_pads_with_minus_one():
    indices = utils.top_k([1.0, 2.0], 4)
    assert indices[2:] == [-1, -1]
    assert sorted(indices[:2]) == [0, 1]


def test_strip_and_strip_char():
    assert utils.strip(" a b\tc\n") == "abc"
    assert utils.strip_char("a-b--c", "-") == "abc"


def test_split_str_round_trip():
    text = "a,b,,c"
    parts = utils.split_str(text, ",")
    assert parts == ["a", "b", "", "c"]
    assert ",".join(parts) == text


def test_parse_csv_line_keeps_quoted_commas():
    assert utils.parse_csv_line('a,"b,c",d') == ["a", '"b,c"', "d"]


def test_parse_fields_marks_bad_fields_nan():
    fields = utils.parse_fields("1.5,,x,2\r")
    assert len(fields) == utils.count_fields("1.5,,x,2\r")
    assert fields[0] == 1.5
    assert math.isnan(fields[1])
    assert math.isnan(fields[2])
    assert fields[3] == 2.0


def test_statistics_invariants():
    values = [1.0, 2.0, 4.0, 8.0]
    assert utils.mean_array(values) * len(values) == pytest.approx(utils.sum_array(values))
    assert utils.variance_array([5.0] * 6) == 0.0
    squares = [v * v for v in values]
    assert utils.mag_array(values) ** 2 == pytest.approx(utils.sum_array(squares))
    assert utils.mse_array(values) ** 2 == pytest.approx(utils.mean_array(squares))


def test_mean_arrays_of_identical_rows():
    row = [1.0, -2.0, 3.5]
    assert utils.mean_arrays([row, row, row]) == pytest.approx(row)


def test_normalize_array_gives_unit_variance():
    result = utils.normalize_array([1.0, 3.0, 7.0, 2.0])
    assert utils.mean_array(result) == pytest.approx(0.0, abs=1e-12)
    assert utils.variance_array(result) == pytest.approx(1.0)


def test_constrain():
    assert utils.constrain(0.0, 1.0, -3.0) == 0.0
    assert utils.constrain(0.0, 1.0, 3.0) == 1.0
    assert utils.constrain(0.0, 1.0, 0.5) == 0.5


def test_max_index():
    values = [1.0, 3.0, 3.0, 2.0]
    assert utils.max_index(values) == values.index(max(values))
    assert utils.max_index([]) == -1


def test_random_helpers_stay_in_range():
    rng = random.Random(5)
    for _ in range(200):
        assert 2 <= utils.rand_int(2, 6, rng) <= 6
        assert -1.0 <= utils.rand_uniform(-1.0, 1.0, rng) <= 1.0
    samples = [utils.rand_normal(rng) for _ in range(4000)]
    assert all(math.isfinite(s) for s in samples)
    assert abs(utils.mean_array(samples)) < 0.1
    assert utils.variance_array(samples) == pytest.approx(1.0, abs=0.15)


def test_one_hot_encode():
    rows = utils.one_hot_encode([2.0, 0.0, 3.0], 4)
    assert len(rows) == 3
    for value, row in zip([2, 0, 3], rows):
        assert sum(row) == 1.0
        assert row[value] == 1.0