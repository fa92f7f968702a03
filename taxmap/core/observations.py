"""Observation index: the leaf-level table aggregates are derived from."""

import logging
from typing import List, Any

import pandas as pd

from taxmap.models.errors import ValidationError
from taxmap.core.datasets import Dataset
from taxmap.core.utils import TAXON_ID_COLUMN, OBSERVATION_ID_COLUMN, require_columns

logger = logging.getLogger(__name__)

class ObservationIndex(Dataset):
    """
    Dataset with exactly one row per raw observation (e.g. an OTU).

    Every row carries a unique observation id and the taxon it is assigned to.
    The remaining numeric columns are per-sample abundances.
    """

    def __init__(
        self,
        name: str,
        rows: Any,
        taxon_key: str = TAXON_ID_COLUMN,
        observation_key: str = OBSERVATION_ID_COLUMN
    ):
        super().__init__(name, rows, taxon_key)
        self.observation_key = observation_key
        require_columns(self._table, [observation_key], name)

        obs_ids = self._table[observation_key]
        if obs_ids.isna().any():
            row = obs_ids.index[obs_ids.isna()][0]
            raise ValidationError(f"Observation index '{name}' has no observation id in row {row}")
        duplicated = obs_ids[obs_ids.duplicated()]
        if len(duplicated):
            raise ValidationError(
                f"Observation index '{name}' has duplicate observation id "
                f"{duplicated.iloc[0]!r} in row {duplicated.index[0]}"
            )

    def with_rows(self, rows: Any) -> 'ObservationIndex':
        return ObservationIndex(self.name, rows, self.taxon_key, self.observation_key)

    @property
    def observation_ids(self) -> List:
        return self._table[self.observation_key].tolist()

    def sample_columns(self) -> List[str]:
        """Numeric columns other than the key columns."""
        keys = {self.taxon_key, self.observation_key}
        return [col for col in self._table.columns
                if col not in keys and pd.api.types.is_numeric_dtype(self._table[col])]

    def abundance_column_for(self, sample_id: str) -> pd.Series:
        """
        Values of one sample, indexed by observation id.

        Raises:
            ValidationError: If the sample column does not exist
        """
        if sample_id not in self._table.columns or sample_id in (self.taxon_key, self.observation_key):
            raise ValidationError(
                f"Observation index '{self.name}' has no sample column '{sample_id}'"
            )
        column = self._table[sample_id].copy()
        column.index = pd.Index(self._table[self.observation_key], name=self.observation_key)
        return column
