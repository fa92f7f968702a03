import pandas as pd
import pytest

from taxmap import AggregationEngine, ObservationIndex, InputError
from taxmap.io.writers import write_dataset, read_dataset


def test_round_trip_keeps_column_order_and_keys(tmp_path, container):
    abundance = AggregationEngine().rollup_abundance(container, 'observations', ['s3', 's1'])
    path = write_dataset(abundance, tmp_path / "abundance.tsv")
    loaded = read_dataset(path)
    assert loaded.name == 'abundance'
    assert loaded.columns == ['taxon_id', 's3', 's1']
    assert loaded.taxon_ids == abundance.taxon_ids
    pd.testing.assert_frame_equal(loaded.table, abundance.table)


def test_read_observation_index(tmp_path, container):
    write_dataset(container.observation_index, tmp_path / "obs.tsv")
    loaded = read_dataset(tmp_path / "obs.tsv", name='observations', observation_key='observation_id')
    assert isinstance(loaded, ObservationIndex)
    assert loaded.observation_ids == container.observation_index.observation_ids


def test_missing_file(tmp_path):
    with pytest.raises(InputError):
        read_dataset(tmp_path / "missing.tsv")


def test_missing_key_column(tmp_path):
    path = tmp_path / "nokey.tsv"
    pd.DataFrame({'reads': [1, 2]}).to_csv(path, sep='\t', index=False)
    with pytest.raises(InputError):
        read_dataset(path)
