from dataclasses import dataclass

import numpy as np
import pytest

from taxmap.core.comparison import (
    default_compare, log2_median_ratio, rank_sum_p_value, normalize_record, COMPARISON_FIELDS
)
from taxmap import ValidationError


def test_default_record_fields():
    record = default_compare([1, 2, 3], [4, 5, 6])
    assert list(record) == COMPARISON_FIELDS
    assert record['median_diff'] == -3.0
    assert record['mean_diff'] == -3.0
    assert 0.0 < record['wilcox_p_value'] <= 1.0


def test_log2_median_ratio_is_antisymmetric():
    for a, b in [(4.0, 1.0), (0.3, 7.1), (1e-9, 3.3), (5.0, 5.0)]:
        assert log2_median_ratio(a, b) == -log2_median_ratio(b, a)
    assert log2_median_ratio(4.0, 1.0) == 2.0


def test_undefined_ratio_is_zero():
    assert log2_median_ratio(0.0, 3.0) == 0.0
    assert log2_median_ratio(3.0, 0.0) == 0.0
    assert default_compare([0, 0, 1], [2, 3, 4])['log2_median_ratio'] == 0.0


def test_zero_variance_p_value():
    assert rank_sum_p_value([1, 1, 1], [1, 1, 1]) == 1.0
    assert rank_sum_p_value([], [1, 2]) == 1.0


def test_separated_groups_have_small_p_value():
    p_value = rank_sum_p_value(np.arange(10), np.arange(100, 110))
    assert p_value < 0.01


def test_normalize_nested_mapping():
    assert normalize_record({'a': 1, 'b': {'c': 2, 'd': 3}}) == {'a': 1, 'b_c': 2, 'b_d': 3}


def test_normalize_dataclass():
    @dataclass
    class Result:
        effect: float
        p: float

    assert normalize_record(Result(1.5, 0.2)) == {'effect': 1.5, 'p': 0.2}


def test_normalize_rejects_scalars():
    with pytest.raises(ValidationError):
        normalize_record(0.5)
