"""File writers and readers for taxmap datasets."""

import logging
from pathlib import Path
from typing import Optional, Union

import pandas as pd

from taxmap.models.errors import InputError, TaxmapError
from taxmap.core.datasets import Dataset
from taxmap.core.observations import ObservationIndex
from taxmap.core.utils import TAXON_ID_COLUMN

logger = logging.getLogger(__name__)

def write_dataset(dataset: Dataset, path: Union[str, Path]) -> Path:
    """
    Write a dataset as a tab-separated table, columns in dataset order.

    Args:
        dataset: Dataset to write
        path: Output file path

    Returns:
        Path of the written file

    Raises:
        InputError: If the file cannot be written
    """
    path = Path(path)
    try:
        dataset.table.to_csv(path, sep='\t', index=False)
    except OSError as e:
        raise InputError(f"Error writing dataset '{dataset.name}' to {path}: {str(e)}")
    logger.info(f"Wrote dataset '{dataset.name}' ({len(dataset)} rows) to {path}")
    return path

def read_dataset(
    path: Union[str, Path],
    name: Optional[str] = None,
    taxon_key: str = TAXON_ID_COLUMN,
    observation_key: Optional[str] = None
) -> Dataset:
    """
    Read a dataset written by write_dataset.

    Args:
        path: Path to the .tsv file
        name: Dataset name; defaults to the file stem
        taxon_key: Column holding taxon ids
        observation_key: When given, read as an ObservationIndex keyed by this column

    Returns:
        Dataset (or ObservationIndex) with the file's column order

    Raises:
        InputError: If the file cannot be read or lacks the key columns
    """
    path = Path(path)
    name = name or path.stem
    try:
        df = pd.read_csv(path, sep='\t')
    except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as e:
        raise InputError(f"Error reading dataset from {path}: {str(e)}")

    try:
        if observation_key is not None:
            return ObservationIndex(name, df, taxon_key, observation_key)
        return Dataset(name, df, taxon_key)
    except TaxmapError as e:
        raise InputError(f"Error loading dataset '{name}' from {path}: {str(e)}")
