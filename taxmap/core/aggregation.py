"""Per-taxon rollups, group means and pairwise group comparisons."""

import logging
import itertools
from typing import List, Dict, Tuple, Optional, Any, Callable, Mapping, Sequence, Union

import numpy as np
import pandas as pd

from taxmap.models.config import TaxmapConfig
from taxmap.models.errors import ShapeMismatchError, DimensionError, ValidationError
from taxmap.core.batch_processing import BatchProcessor
from taxmap.core.comparison import default_compare, normalize_record, COMPARISON_FIELDS
from taxmap.core.datasets import Dataset
from taxmap.core.utils import TAXON_ID_COLUMN, COMPARISON_PAIR_COLUMNS, numeric_matrix, require_columns

logger = logging.getLogger(__name__)

GroupAssignment = Union[Mapping[str, Any], Sequence[Any]]

def group_columns(
    sample_columns: Sequence[str],
    group_assignment: GroupAssignment
) -> Dict[Any, List[int]]:
    """
    Positions of the sample columns belonging to each group.

    Args:
        sample_columns: Sample column names
        group_assignment: Mapping of sample column to group label, or a sequence
            of labels aligned with sample_columns

    Returns:
        Dict of group label to column positions, groups in order of first appearance

    Raises:
        ShapeMismatchError: If the assignment does not cover exactly the sample columns
    """
    columns = list(sample_columns)
    if isinstance(group_assignment, Mapping):
        if len(group_assignment) != len(columns) or set(group_assignment) != set(columns):
            raise ShapeMismatchError(
                f"Group assignment covers {len(group_assignment)} samples "
                f"but {len(columns)} sample columns were given"
            )
        labels = [group_assignment[col] for col in columns]
    else:
        labels = list(group_assignment)
        if len(labels) != len(columns):
            raise ShapeMismatchError(
                f"Group assignment has {len(labels)} labels "
                f"but {len(columns)} sample columns were given"
            )

    groups: Dict[Any, List[int]] = {}
    for position, label in enumerate(labels):
        groups.setdefault(label, []).append(position)
    return groups

class AggregationEngine:
    """Produces new datasets from the datasets of a consistent container."""

    def __init__(self, config: Optional[TaxmapConfig] = None):
        self.config = config or TaxmapConfig()

    def rollup_abundance(
        self,
        container,
        dataset_name: str,
        sample_columns: Sequence[str],
        out_name: Optional[str] = None
    ) -> Dataset:
        """
        Sum sample values for every taxon over its own rows and all descendants.

        One bottom-up pass over the tree: each taxon's total is its direct rows
        plus the totals already computed for its children.

        Args:
            container: Container holding the tree and the dataset
            dataset_name: Dataset whose rows are summed (usually the observation index)
            sample_columns: Numeric columns to sum
            out_name: Name of the returned dataset

        Returns:
            Dataset with one row per taxon, in tree order: taxon_id + sample columns

        Raises:
            ValidationError: If a sample column is missing or not numeric
        """
        tree = container.tree
        dataset = container.get_dataset(dataset_name)
        df = dataset.table
        columns = list(sample_columns)
        values = numeric_matrix(df, columns, dataset.name)

        missing = np.isnan(values)
        if missing.any():
            logger.warning(f"Dataset '{dataset.name}': {int(missing.sum())} missing values counted as 0")
            values = np.where(missing, 0.0, values)

        totals = self._rollup(tree, df[dataset.taxon_key].tolist(), values)

        result = pd.DataFrame(totals, columns=columns)
        if all(pd.api.types.is_integer_dtype(df[col]) for col in columns):
            result = result.astype('int64')
        result.insert(0, TAXON_ID_COLUMN, tree.ids)

        logger.info(f"Rolled up {len(df)} rows of '{dataset.name}' onto {len(tree)} taxa")
        return Dataset(out_name or f"{dataset_name}_abundance", result, TAXON_ID_COLUMN)

    @staticmethod
    def _rollup(tree, row_taxa: List, values: np.ndarray) -> np.ndarray:
        position = {tid: i for i, tid in enumerate(tree.ids)}
        totals = np.zeros((len(tree), values.shape[1]), dtype=float)
        if len(row_taxa):
            np.add.at(totals, np.array([position[tid] for tid in row_taxa], dtype=int), values)
        for tid in tree.postorder():
            parent = tree.parent_of(tid)
            if parent is not None:
                totals[position[parent]] += totals[position[tid]]
        return totals

    def count_observations(self, container, dataset_name: str, out_column: str = 'n_obs') -> Dataset:
        """Number of rows assigned to each taxon or any of its descendants."""
        tree = container.tree
        dataset = container.get_dataset(dataset_name)
        row_taxa = dataset.taxon_ids
        totals = self._rollup(tree, row_taxa, np.ones((len(row_taxa), 1)))
        result = pd.DataFrame({TAXON_ID_COLUMN: tree.ids, out_column: totals[:, 0].astype('int64')})
        return Dataset(f"{dataset_name}_{out_column}", result, TAXON_ID_COLUMN)

    def group_mean(
        self,
        dataset: Dataset,
        sample_columns: Sequence[str],
        group_assignment: GroupAssignment,
        out_name: Optional[str] = None
    ) -> Dataset:
        """
        Mean of each taxon row within every group of samples.

        Returns:
            Dataset with the taxon key followed by one column per group

        Raises:
            ShapeMismatchError: If the assignment does not match sample_columns
            ValidationError: If a group label equals the taxon key column
        """
        groups = group_columns(sample_columns, group_assignment)
        df = dataset.table
        values = numeric_matrix(df, sample_columns, dataset.name)

        if dataset.taxon_key in groups:
            raise ValidationError(
                f"Group label {dataset.taxon_key!r} clashes with the taxon key column of '{dataset.name}'"
            )

        result = pd.DataFrame({dataset.taxon_key: df[dataset.taxon_key]})
        for label, positions in groups.items():
            result[label] = values[:, positions].mean(axis=1)

        logger.debug(f"Group means for '{dataset.name}' over groups {list(groups)}")
        return Dataset(out_name or f"{dataset.name}_group_mean", result, dataset.taxon_key)

    def compare_groups(
        self,
        dataset: Dataset,
        sample_columns: Sequence[str],
        group_assignment: GroupAssignment,
        compare_fn: Optional[Callable] = None,
        combinations: Optional[Sequence[Tuple[Any, Any]]] = None,
        out_name: Optional[str] = None
    ) -> Dataset:
        """
        Compare every pair of groups for every taxon row.

        Args:
            dataset: Dataset holding per-taxon sample values
            sample_columns: Sample columns to compare
            group_assignment: Mapping of sample to group, or labels aligned with sample_columns
            compare_fn: Function (values_a, values_b) -> mapping or dataclass of results;
                defaults to default_compare
            combinations: Ordered (group_1, group_2) pairs to compare; defaults to every
                unordered pair, in order of first appearance of the groups
            out_name: Name of the returned dataset

        Returns:
            Dataset with one row per (taxon row, pair): taxon key, treatment_1,
            treatment_2 and the fields of the comparison records

        Raises:
            ShapeMismatchError: If the assignment does not match sample_columns
            DimensionError: If there are fewer than two groups, or a pair is invalid
            ValidationError: If comparison records do not all have the same fields,
                or a field clashes with the taxon key or pair columns
        """
        compare_fn = compare_fn or default_compare
        groups = group_columns(sample_columns, group_assignment)
        if len(groups) < 2:
            raise DimensionError(
                f"Comparing groups needs at least two groups, got {len(groups)}: {list(groups)}"
            )

        pairs = self._pairs(groups, combinations)
        df = dataset.table
        values = numeric_matrix(df, sample_columns, dataset.name)
        keys = df[dataset.taxon_key].tolist()

        def compare_batch(rows: List[int]) -> List[Dict[str, Any]]:
            records = []
            for row in rows:
                for first, second in pairs:
                    record = normalize_record(compare_fn(values[row, groups[first]],
                                                         values[row, groups[second]]))
                    records.append(record)
            return records

        processor = BatchProcessor.from_config(self.config)
        records = processor.process(range(len(df)), compare_batch)

        fields = list(records[0]) if records else (
            list(COMPARISON_FIELDS) if compare_fn is default_compare else [])
        for record in records:
            if set(record) != set(fields):
                raise ValidationError(
                    f"Comparison records have inconsistent fields: {list(record)} vs {fields}"
                )
        reserved = [dataset.taxon_key] + COMPARISON_PAIR_COLUMNS
        clashes = [field for field in fields if field in reserved]
        if clashes:
            raise ValidationError(
                f"Comparison record fields {clashes} clash with the output columns {reserved}"
            )

        result = pd.DataFrame(records, columns=fields)
        result.insert(0, COMPARISON_PAIR_COLUMNS[1], [second for _ in keys for _, second in pairs])
        result.insert(0, COMPARISON_PAIR_COLUMNS[0], [first for _ in keys for first, _ in pairs])
        result.insert(0, dataset.taxon_key, [key for key in keys for _ in pairs])

        logger.info(f"Compared {len(pairs)} group pair(s) over {len(df)} rows of '{dataset.name}'")
        return Dataset(out_name or f"{dataset.name}_comparison", result, dataset.taxon_key)

    @staticmethod
    def _pairs(groups: Dict[Any, List[int]], combinations) -> List[Tuple[Any, Any]]:
        if combinations is None:
            return list(itertools.combinations(groups, 2))
        pairs = []
        for pair in combinations:
            first, second = pair
            if first not in groups or second not in groups:
                raise DimensionError(f"Combination {pair!r} names a group not in {list(groups)}")
            if first == second:
                raise DimensionError(f"Combination {pair!r} compares a group with itself")
            pairs.append((first, second))
        if not pairs:
            raise DimensionError("No group combinations to compare")
        return pairs

    def calc_proportions(
        self,
        dataset: Dataset,
        sample_columns: Sequence[str],
        out_name: Optional[str] = None
    ) -> Dataset:
        """Divide each sample column by its total; all-zero columns stay 0."""
        df = dataset.table
        columns = require_columns(df, sample_columns, dataset.name)
        values = numeric_matrix(df, columns, dataset.name)
        totals = values.sum(axis=0)
        with np.errstate(divide='ignore', invalid='ignore'):
            proportions = np.where(totals > 0, values / totals, 0.0)
        df[columns] = proportions
        return dataset.with_rows(df).renamed(out_name or f"{dataset.name}_proportions")

    def zero_low_counts(
        self,
        dataset: Dataset,
        sample_columns: Sequence[str],
        min_count: float = 2,
        out_name: Optional[str] = None
    ) -> Dataset:
        """Set sample values below `min_count` to 0."""
        df = dataset.table
        columns = require_columns(df, sample_columns, dataset.name)
        numeric_matrix(df, columns, dataset.name)
        low = df[columns] < min_count
        n_low = int(low.to_numpy().sum())
        if n_low:
            logger.warning(f"Dataset '{dataset.name}': zeroing {n_low} values below {min_count}")
        df[columns] = df[columns].mask(low, 0)
        return dataset.with_rows(df).renamed(out_name or dataset.name)
