import numpy as np
import pandas as pd
import pytest

from taxmap import Taxon, TaxonTree, ValidationError, build_container, records_from_lineages


def test_from_record_variants():
    assert Taxon.from_record({'id': 'g1', 'name': 'Bacillus', 'rank': 'genus', 'parent': 'r'}) == \
        Taxon('g1', 'Bacillus', 'genus', 'r')
    assert Taxon.from_record((3, 'x')) == Taxon(3, 'x', None, None)
    assert Taxon.from_record({'taxon_id': 5, 'parent_id': np.nan}).parent_id is None
    assert Taxon.from_record({'taxon_id': 5}).name == '5'


def test_from_record_without_id():
    with pytest.raises(ValidationError):
        Taxon.from_record({'name': 'nameless'})


def test_records_from_lineages():
    table = pd.DataFrame({
        'phylum': ['Firmicutes', 'Firmicutes', 'Proteobacteria', 'Firmicutes'],
        'genus': ['Bacillus', 'Lactobacillus', None, 'Bacillus'],
        'count': [1, 2, 3, 4],
    })
    taxa, row_taxa = records_from_lineages(table, ['phylum', 'genus'])
    names = [t.name for t in taxa]
    assert names == ['root', 'Firmicutes', 'Bacillus', 'Lactobacillus', 'Proteobacteria']
    assert row_taxa == [2, 3, 4, 2]

    tree = TaxonTree(taxa)
    assert tree.classification(3) == 'root;Firmicutes;Lactobacillus'
    assert tree.taxon(4).rank == 'phylum'

    observations = table.assign(taxon_id=row_taxa, observation_id=['a', 'b', 'c', 'd'])
    container = build_container(taxa, observations)
    assert container.observation_index.taxon_ids == [2, 3, 4, 2]


def test_records_from_lineages_missing_column():
    with pytest.raises(ValidationError):
        records_from_lineages(pd.DataFrame({'phylum': ['x']}), ['phylum', 'genus'])
