"""Two-group comparison functions and their result records."""

import math
import logging
import dataclasses
from typing import Dict, Any, Mapping, Sequence

import numpy as np
from flatten_dict import flatten
from scipy.stats import mannwhitneyu

from taxmap.models.errors import ValidationError

logger = logging.getLogger(__name__)

COMPARISON_FIELDS = ['log2_median_ratio', 'median_diff', 'mean_diff', 'wilcox_p_value']

def log2_median_ratio(median_a: float, median_b: float) -> float:
    """
    log2(median_a / median_b), written as a difference of logs.

    Swapping the arguments negates the result exactly. When either median
    is not positive the ratio is undefined and 0 is returned.
    """
    if not (median_a > 0 and median_b > 0):
        return 0.0
    return float(np.log2(median_a) - np.log2(median_b))

def rank_sum_p_value(values_a: Sequence[float], values_b: Sequence[float]) -> float:
    """Two-sided Wilcoxon rank-sum (Mann-Whitney U) p-value; 1.0 when undefined."""
    if len(values_a) == 0 or len(values_b) == 0:
        return 1.0
    with np.errstate(divide='ignore', invalid='ignore'):
        try:
            p_value = mannwhitneyu(values_a, values_b, alternative='two-sided').pvalue
        except ValueError as e:
            logger.debug(f"Rank-sum test undefined: {str(e)}")
            return 1.0
    p_value = float(p_value)
    return min(p_value, 1.0) if math.isfinite(p_value) else 1.0

def default_compare(values_a: Sequence[float], values_b: Sequence[float]) -> Dict[str, float]:
    """
    Default effect sizes for one taxon between two groups of samples.

    Args:
        values_a: Values of the first group
        values_b: Values of the second group

    Returns:
        Dict with log2_median_ratio, median_diff, mean_diff and wilcox_p_value
    """
    a = np.asarray(values_a, dtype=float)
    b = np.asarray(values_b, dtype=float)
    median_a = float(np.median(a)) if a.size else 0.0
    median_b = float(np.median(b)) if b.size else 0.0
    mean_a = float(np.mean(a)) if a.size else 0.0
    mean_b = float(np.mean(b)) if b.size else 0.0
    return {
        'log2_median_ratio': log2_median_ratio(median_a, median_b),
        'median_diff': median_a - median_b,
        'mean_diff': mean_a - mean_b,
        'wilcox_p_value': rank_sum_p_value(a, b),
    }

def normalize_record(record: Any) -> Dict[str, Any]:
    """
    Turn a comparison result into a flat column -> value dict.

    Nested mappings are flattened with '_' joining the keys, so
    {'effect': {'size': 1}} becomes {'effect_size': 1}. Dataclass instances
    are converted field by field.

    Raises:
        ValidationError: If the result is neither a mapping nor a dataclass
    """
    if dataclasses.is_dataclass(record) and not isinstance(record, type):
        record = dataclasses.asdict(record)
    if not isinstance(record, Mapping):
        raise ValidationError(
            f"Comparison functions must return a mapping or dataclass, got {type(record).__name__}"
        )
    return {str(key): value for key, value in flatten(dict(record), reducer='underscore').items()}
