"""Taxonomy tree functionality."""

import logging
from typing import List, Dict, Tuple, Set, Optional, Iterable, Iterator, AbstractSet

from taxmap.models.errors import ValidationError, EmptyTreeError, DisconnectedTreeError
from taxmap.models.taxonomic import Taxon, TaxonId

logger = logging.getLogger(__name__)

class TaxonTree:
    """
    Immutable classification hierarchy.

    Taxa are stored as an arena of records keyed by id, with parents referenced
    by id. There is no mutation API; filtering builds a new tree.
    """

    def __init__(self, taxa: Iterable):
        """
        Build and validate a tree.

        Args:
            taxa: Taxon objects or records accepted by Taxon.from_record

        Raises:
            ValidationError: If ids repeat, a parent is unknown, the parent graph
                has a cycle, or there is not exactly one root
        """
        self._taxa: Dict[TaxonId, Taxon] = {}
        for record in taxa:
            taxon = Taxon.from_record(record)
            if taxon.taxon_id in self._taxa:
                raise ValidationError(f"Duplicate taxon id {taxon.taxon_id!r}")
            self._taxa[taxon.taxon_id] = taxon

        if not self._taxa:
            raise ValidationError("A taxon tree needs at least one taxon")

        self._children: Dict[TaxonId, List[TaxonId]] = {tid: [] for tid in self._taxa}
        roots = []
        for taxon in self._taxa.values():
            if taxon.is_root:
                roots.append(taxon.taxon_id)
            elif taxon.parent_id not in self._taxa:
                raise ValidationError(
                    f"Taxon {taxon.taxon_id!r} references unknown parent {taxon.parent_id!r}"
                )
            else:
                self._children[taxon.parent_id].append(taxon.taxon_id)

        if len(roots) != 1:
            raise ValidationError(f"A taxon tree needs exactly one root, found {len(roots)}: {roots[:10]}")
        self._root = roots[0]

        self._postorder = self._compute_postorder()
        if len(self._postorder) != len(self._taxa):
            reached = set(self._postorder)
            unreachable = [tid for tid in self._taxa if tid not in reached]
            raise ValidationError(f"Taxa not connected to the root (parent cycle): {unreachable[:10]}")

        self._depth: Dict[TaxonId, int] = {self._root: 0}
        for tid in reversed(self._postorder):
            for child in self._children[tid]:
                self._depth[child] = self._depth[tid] + 1

    def _compute_postorder(self) -> List[TaxonId]:
        # Iterative so deep lineages do not hit the recursion limit
        order = []
        stack = [(self._root, False)]
        while stack:
            tid, expanded = stack.pop()
            if expanded:
                order.append(tid)
                continue
            stack.append((tid, True))
            for child in reversed(self._children[tid]):
                stack.append((child, False))
        return order

    # Basic accessors

    @property
    def root(self) -> TaxonId:
        return self._root

    @property
    def taxa(self) -> List[Taxon]:
        return list(self._taxa.values())

    @property
    def ids(self) -> List[TaxonId]:
        return list(self._taxa)

    def taxon(self, taxon_id: TaxonId) -> Taxon:
        self._check(taxon_id)
        return self._taxa[taxon_id]

    def __contains__(self, taxon_id) -> bool:
        try:
            return taxon_id in self._taxa
        except TypeError:
            return False

    def __len__(self) -> int:
        return len(self._taxa)

    def __iter__(self) -> Iterator[Taxon]:
        return iter(self._taxa.values())

    def __eq__(self, other) -> bool:
        if not isinstance(other, TaxonTree):
            return NotImplemented
        return self.taxa == other.taxa

    def __repr__(self) -> str:
        return f"TaxonTree(n_taxa={len(self)}, root={self._root!r})"

    def _check(self, taxon_id: TaxonId) -> None:
        if taxon_id not in self:
            raise ValidationError(f"Unknown taxon id {taxon_id!r}")

    # Structural queries

    def parent_of(self, taxon_id: TaxonId) -> Optional[TaxonId]:
        return self.taxon(taxon_id).parent_id

    def children_of(self, taxon_id: TaxonId) -> List[TaxonId]:
        self._check(taxon_id)
        return list(self._children[taxon_id])

    def ancestors_of(self, taxon_id: TaxonId) -> List[TaxonId]:
        """Ancestors of a taxon, nearest first and root last."""
        ancestors = []
        current = self.taxon(taxon_id).parent_id
        while current is not None:
            ancestors.append(current)
            current = self._taxa[current].parent_id
        return ancestors

    def descendants_of(self, taxon_id: TaxonId) -> Set[TaxonId]:
        """All taxa below a taxon, not including the taxon itself."""
        self._check(taxon_id)
        found = set()
        stack = list(self._children[taxon_id])
        while stack:
            tid = stack.pop()
            found.add(tid)
            stack.extend(self._children[tid])
        return found

    def is_ancestor(self, a: TaxonId, b: TaxonId) -> bool:
        """True if `a` is a strict ancestor of `b`."""
        self._check(a)
        return a in self.ancestors_of(b)

    def is_leaf(self, taxon_id: TaxonId) -> bool:
        self._check(taxon_id)
        return not self._children[taxon_id]

    def leaves(self) -> List[TaxonId]:
        return [tid for tid in self._taxa if not self._children[tid]]

    def depth(self, taxon_id: TaxonId) -> int:
        self._check(taxon_id)
        return self._depth[taxon_id]

    def postorder(self) -> List[TaxonId]:
        """Taxon ids with every child before its parent, root last."""
        return list(self._postorder)

    def taxa_at_rank(self, rank: str) -> List[TaxonId]:
        return [t.taxon_id for t in self._taxa.values() if t.rank == rank]

    def classification(self, taxon_id: TaxonId, sep: str = ";") -> str:
        """Names along the lineage of a taxon, root first."""
        lineage = list(reversed(self.ancestors_of(taxon_id))) + [taxon_id]
        return sep.join(self._taxa[tid].name for tid in lineage)

    def nearest_in(self, taxon_id: TaxonId, survivors: AbstractSet) -> Optional[TaxonId]:
        """Nearest strict ancestor contained in `survivors`, or None."""
        for ancestor in self.ancestors_of(taxon_id):
            if ancestor in survivors:
                return ancestor
        return None

    def restricted_to(self, survivors: AbstractSet) -> 'TaxonTree':
        """
        Build the subtree spanned by `survivors`.

        A surviving taxon whose parent was removed is attached to its nearest
        surviving ancestor. Original display order is kept.

        Raises:
            EmptyTreeError: If no taxon survives
            DisconnectedTreeError: If the survivors have no common surviving ancestor
        """
        kept = [t for t in self._taxa.values() if t.taxon_id in survivors]
        if not kept:
            raise EmptyTreeError("The filter removed every taxon")

        rebuilt = []
        roots = []
        for taxon in kept:
            parent = self.nearest_in(taxon.taxon_id, survivors)
            if parent is None:
                roots.append(taxon.taxon_id)
            rebuilt.append(taxon if parent == taxon.parent_id else taxon.with_parent(parent))

        if len(roots) > 1:
            raise DisconnectedTreeError(
                f"The filter kept {len(roots)} unrelated lineages with no surviving common "
                f"ancestor (roots: {roots[:10]}); use include_supertaxa to keep them connected"
            )
        return TaxonTree(rebuilt)
