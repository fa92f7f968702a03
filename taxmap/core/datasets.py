"""Datasets tied to taxa and the registry that stores them."""

import logging
from typing import List, Dict, Optional, Any, Iterator

import pandas as pd

from taxmap.models.errors import ValidationError, DatasetNotFoundError
from taxmap.core.utils import TAXON_ID_COLUMN, require_columns

logger = logging.getLogger(__name__)

def as_frame(rows: Any, name: str) -> pd.DataFrame:
    """
    Convert rows into a fresh DataFrame with a positional index.

    Args:
        rows: DataFrame, Dataset, or list of row mappings
        name: Dataset name for error messages

    Raises:
        ValidationError: If the rows cannot be read as a table
    """
    if isinstance(rows, Dataset):
        df = rows.table
    elif isinstance(rows, pd.DataFrame):
        df = rows.copy()
    else:
        try:
            df = pd.DataFrame(list(rows))
        except (TypeError, ValueError) as e:
            raise ValidationError(f"Rows for dataset '{name}' are not tabular: {str(e)}")
    return df.reset_index(drop=True)

class Dataset:
    """A named table whose rows reference taxa through a key column."""

    def __init__(self, name: str, rows: Any, taxon_key: str = TAXON_ID_COLUMN):
        self.name = name
        self.taxon_key = taxon_key
        self._table = as_frame(rows, name)
        require_columns(self._table, [taxon_key], name)
        nulls = self._table.index[self._table[taxon_key].isna()]
        if len(nulls):
            raise ValidationError(f"Dataset '{name}' has no taxon id in row {nulls[0]}")

    @property
    def table(self) -> pd.DataFrame:
        """Copy of the underlying table."""
        return self._table.copy()

    @property
    def columns(self) -> List[str]:
        return list(self._table.columns)

    @property
    def taxon_ids(self) -> List:
        return self._table[self.taxon_key].tolist()

    def __len__(self) -> int:
        return len(self._table)

    def __repr__(self) -> str:
        return (f"{type(self).__name__}(name='{self.name}', rows={len(self)}, "
                f"taxon_key='{self.taxon_key}', columns={self.columns})")

    def with_rows(self, rows: Any) -> 'Dataset':
        """New dataset of the same kind and keys holding other rows."""
        return Dataset(self.name, rows, self.taxon_key)

    def renamed(self, name: str) -> 'Dataset':
        clone = self.with_rows(self._table)
        clone.name = name
        return clone

    def equals(self, other: 'Dataset') -> bool:
        return (isinstance(other, Dataset)
                and self.taxon_key == other.taxon_key
                and self._table.equals(other._table))

    def validate_against(self, tree) -> None:
        """
        Check every taxon key resolves in a tree.

        Raises:
            ValidationError: Naming the dataset, first unknown taxon id and its row
        """
        keys = self._table[self.taxon_key]
        known = keys.map(lambda tid: tid in tree)
        if not known.all():
            row = known.index[~known][0]
            raise ValidationError(
                f"Dataset '{self.name}' row {row} references unknown taxon {keys[row]!r}"
            )

class DatasetRegistry:
    """
    Named collection of datasets validated against one tree.

    The registry is a passive store: it never cascades tree changes into rows.
    """

    def __init__(self, tree, datasets: Optional[Dict[str, Dataset]] = None):
        self.tree = tree
        self._datasets: Dict[str, Dataset] = {}
        for name, dataset in (datasets or {}).items():
            self._store(name, dataset)

    def _store(self, name: str, dataset: Dataset) -> Dataset:
        if dataset.name != name:
            dataset = dataset.renamed(name)
        dataset.validate_against(self.tree)
        self._datasets[name] = dataset
        return dataset

    def attach(self, name: str, rows: Any, taxon_key: str = TAXON_ID_COLUMN) -> Dataset:
        """
        Add (or overwrite) a dataset.

        Args:
            name: Dataset name
            rows: Dataset, DataFrame, or list of row mappings
            taxon_key: Column holding taxon ids; ignored when rows is a Dataset

        Returns:
            The stored dataset

        Raises:
            ValidationError: If a row references a taxon absent from the tree
        """
        dataset = rows if isinstance(rows, Dataset) else Dataset(name, rows, taxon_key)
        stored = self._store(name, dataset)
        logger.debug(f"Attached dataset '{name}' with {len(stored)} rows")
        return stored

    def get(self, name: str) -> Dataset:
        try:
            return self._datasets[name]
        except KeyError:
            raise DatasetNotFoundError(
                f"No dataset named '{name}'. Available datasets: {self.names()}"
            )

    def replace(self, name: str, rows: Any) -> Dataset:
        """
        Swap the rows of an existing dataset, keeping its kind and key columns.

        Raises:
            DatasetNotFoundError: If the dataset does not exist
            ValidationError: If a row references a taxon absent from the tree
        """
        current = self.get(name)
        return self._store(name, current.with_rows(rows))

    def names(self) -> List[str]:
        return list(self._datasets)

    def items(self):
        return list(self._datasets.items())

    def copy(self) -> 'DatasetRegistry':
        """Shallow copy; datasets are never modified in place so they can be shared."""
        clone = DatasetRegistry(self.tree)
        clone._datasets = dict(self._datasets)
        return clone

    def __contains__(self, name: str) -> bool:
        return name in self._datasets

    def __iter__(self) -> Iterator[str]:
        return iter(self._datasets)

    def __len__(self) -> int:
        return len(self._datasets)
