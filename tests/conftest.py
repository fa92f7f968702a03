import pandas as pd
import pytest

from taxmap import build_container


TAXA = [
    {'taxon_id': 1, 'name': 'Bacteria', 'rank': 'domain', 'parent_id': None},
    {'taxon_id': 2, 'name': 'Firmicutes', 'rank': 'phylum', 'parent_id': 1},
    {'taxon_id': 3, 'name': 'Bacilli', 'rank': 'class', 'parent_id': 2},
    {'taxon_id': 4, 'name': 'Lactobacillus', 'rank': 'genus', 'parent_id': 3},
    {'taxon_id': 5, 'name': 'Staphylococcus', 'rank': 'genus', 'parent_id': 3},
    {'taxon_id': 6, 'name': 'Proteobacteria', 'rank': 'phylum', 'parent_id': 1},
    {'taxon_id': 7, 'name': 'Escherichia', 'rank': 'genus', 'parent_id': 6},
    {'taxon_id': 8, 'name': 'Lactobacillus casei', 'rank': 'species', 'parent_id': 4},
    {'taxon_id': 9, 'name': 'Staphylococcus aureus', 'rank': 'species', 'parent_id': 5},
    {'taxon_id': 10, 'name': 'Escherichia coli', 'rank': 'species', 'parent_id': 7},
]

SAMPLES = ['s1', 's2', 's3', 's4']


@pytest.fixture
def taxa():
    return [dict(record) for record in TAXA]


@pytest.fixture
def observations():
    # otu5 and otu6 sit on internal (genus) nodes
    return pd.DataFrame({
        'observation_id': ['otu1', 'otu2', 'otu3', 'otu4', 'otu5', 'otu6'],
        'taxon_id': [8, 8, 9, 10, 4, 7],
        's1': [10, 5, 0, 1, 2, 0],
        's2': [0, 5, 2, 1, 0, 3],
        's3': [3, 0, 8, 1, 0, 0],
        's4': [1, 2, 4, 1, 0, 1],
    })


@pytest.fixture
def container(taxa, observations):
    return build_container(taxa, observations)


@pytest.fixture
def species_summary():
    return pd.DataFrame({
        'taxon_id': [8, 9, 10],
        'reads': [22, 14, 4],
    })
