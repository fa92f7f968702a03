"""Utility functions for taxmap."""

import logging
from typing import List, Sequence

import pandas as pd

from taxmap.models.errors import ValidationError

# Logger configuration
logger = logging.getLogger(__name__)

# Static global variables
TAXON_ID_COLUMN = 'taxon_id'
OBSERVATION_ID_COLUMN = 'observation_id'
COMPARISON_PAIR_COLUMNS = ['treatment_1', 'treatment_2']

def setup_logging(verbose: bool = False) -> logging.Logger:
    """
    Configure logging for taxmap.

    Args:
        verbose: Whether to enable verbose (DEBUG) logging

    Returns:
        Logger instance
    """
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )
    return logging.getLogger('taxmap')

def require_columns(df: pd.DataFrame, columns: Sequence[str], dataset_name: str) -> List[str]:
    """
    Check that every column is present in a table.

    Args:
        df: Table to check
        columns: Column names that must be present
        dataset_name: Name used in the error message

    Returns:
        The columns as a list

    Raises:
        ValidationError: If any column is missing
    """
    columns = list(columns)
    missing = [col for col in columns if col not in df.columns]
    if missing:
        raise ValidationError(f"Dataset '{dataset_name}' has no column(s) {missing}")
    return columns

def numeric_matrix(df: pd.DataFrame, columns: Sequence[str], dataset_name: str):
    """
    Extract columns as a float matrix (rows x columns).

    Raises:
        ValidationError: If a column is missing or not numeric
    """
    columns = require_columns(df, columns, dataset_name)
    non_numeric = [col for col in columns if not pd.api.types.is_numeric_dtype(df[col])]
    if non_numeric:
        raise ValidationError(f"Dataset '{dataset_name}' has non-numeric sample column(s) {non_numeric}")
    return df[columns].to_numpy(dtype=float)
