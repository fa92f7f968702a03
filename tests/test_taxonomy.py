import pytest

from taxmap import TaxonTree, Taxon, ValidationError, EmptyTreeError, DisconnectedTreeError


@pytest.fixture
def tree(taxa):
    return TaxonTree(taxa)


class TestQueries:

    def test_root_and_size(self, tree):
        assert tree.root == 1
        assert len(tree) == 10
        assert 8 in tree
        assert 99 not in tree

    def test_ancestors_nearest_first(self, tree):
        assert tree.ancestors_of(8) == [4, 3, 2, 1]
        assert tree.ancestors_of(1) == []

    def test_descendants(self, tree):
        assert tree.descendants_of(2) == {3, 4, 5, 8, 9}
        assert tree.descendants_of(10) == set()

    def test_is_ancestor_is_strict(self, tree):
        assert tree.is_ancestor(2, 8)
        assert tree.is_ancestor(1, 10)
        assert not tree.is_ancestor(8, 2)
        assert not tree.is_ancestor(8, 8)
        assert not tree.is_ancestor(6, 8)

    def test_unknown_taxon(self, tree):
        with pytest.raises(ValidationError, match="99"):
            tree.ancestors_of(99)

    def test_children_keep_input_order(self, tree):
        assert tree.children_of(1) == [2, 6]
        assert tree.children_of(3) == [4, 5]

    def test_leaves_and_depth(self, tree):
        assert tree.leaves() == [8, 9, 10]
        assert tree.is_leaf(9)
        assert not tree.is_leaf(7)
        assert tree.depth(1) == 0
        assert tree.depth(8) == 4

    def test_postorder_children_before_parents(self, tree):
        order = tree.postorder()
        assert sorted(order) == sorted(tree.ids)
        assert order[-1] == tree.root
        seen = {tid: i for i, tid in enumerate(order)}
        for taxon in tree:
            if taxon.parent_id is not None:
                assert seen[taxon.taxon_id] < seen[taxon.parent_id]

    def test_classification_and_rank(self, tree):
        assert tree.classification(7) == "Bacteria;Proteobacteria;Escherichia"
        assert tree.taxa_at_rank('genus') == [4, 5, 7]


class TestValidation:

    def test_two_roots(self):
        with pytest.raises(ValidationError, match="exactly one root"):
            TaxonTree([(1, 'a', None, None), (2, 'b', None, None)])

    def test_unknown_parent(self):
        with pytest.raises(ValidationError, match="unknown parent"):
            TaxonTree([(1, 'a', None, None), (2, 'b', None, 3)])

    def test_cycle(self):
        with pytest.raises(ValidationError, match="cycle"):
            TaxonTree([(1, 'r', None, None), (2, 'a', None, 3), (3, 'b', None, 2)])

    def test_duplicate_id(self):
        with pytest.raises(ValidationError, match="Duplicate"):
            TaxonTree([(1, 'r', None, None), (1, 'again', None, None)])

    def test_empty(self):
        with pytest.raises(ValidationError):
            TaxonTree([])

    def test_accepts_taxon_objects_and_string_ids(self):
        tree = TaxonTree([Taxon('r', 'root'), Taxon('a', 'A', 'genus', 'r')])
        assert tree.ancestors_of('a') == ['r']
        assert tree == TaxonTree([('r', 'root'), ('a', 'A', 'genus', 'r')])


class TestRestriction:

    def test_survivors_are_reparented(self, tree):
        sub = tree.restricted_to({1, 2, 8})
        assert sub.parent_of(8) == 2
        assert sub.root == 1
        # original is untouched
        assert tree.parent_of(8) == 4

    def test_shallowest_survivor_becomes_root(self, tree):
        sub = tree.restricted_to({3, 4, 8, 9})
        assert sub.root == 3
        assert sub.parent_of(9) == 3

    def test_empty_selection(self, tree):
        with pytest.raises(EmptyTreeError):
            tree.restricted_to(set())

    def test_unrelated_survivors(self, tree):
        with pytest.raises(DisconnectedTreeError):
            tree.restricted_to({8, 10})

    def test_nearest_in(self, tree):
        assert tree.nearest_in(8, {2, 1}) == 2
        assert tree.nearest_in(8, {6, 7}) is None
