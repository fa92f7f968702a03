"""Data models for taxonomy."""

from typing import List, Dict, Tuple, Optional, Any, Hashable, Mapping, Sequence
from dataclasses import dataclass

import pandas as pd

from taxmap.models.errors import ValidationError

TaxonId = Hashable

@dataclass(frozen=True)
class Taxon:
    """A node of the classification hierarchy."""
    taxon_id: TaxonId
    name: str
    rank: Optional[str] = None
    parent_id: Optional[TaxonId] = None

    @property
    def is_root(self) -> bool:
        return self.parent_id is None

    def with_parent(self, parent_id: Optional[TaxonId]) -> 'Taxon':
        """Copy of this taxon attached to another parent."""
        return Taxon(self.taxon_id, self.name, self.rank, parent_id)

    @classmethod
    def from_record(cls, record: Any) -> 'Taxon':
        """
        Create a taxon from a mapping or a (id, name, rank, parent_id) tuple.

        Mappings may use either 'taxon_id' or 'id', and either 'parent_id' or 'parent'.

        Raises:
            ValidationError: If the record has no id
        """
        if isinstance(record, Taxon):
            return record
        if isinstance(record, Mapping):
            taxon_id = record.get('taxon_id', record.get('id'))
            parent_id = record.get('parent_id', record.get('parent'))
            name = record.get('name')
            rank = record.get('rank')
        else:
            fields = tuple(record)
            fields = fields + (None,) * (4 - len(fields))
            taxon_id, name, rank, parent_id = fields[:4]

        if taxon_id is None or _is_missing(taxon_id):
            raise ValidationError(f"Taxon record without an id: {record!r}")
        if _is_missing(parent_id) or parent_id == "":
            parent_id = None
        return cls(
            taxon_id=taxon_id,
            name=str(taxon_id) if name is None or _is_missing(name) else str(name),
            rank=None if rank is None or _is_missing(rank) else str(rank),
            parent_id=parent_id
        )

def _is_missing(value: Any) -> bool:
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False

def records_from_lineages(
    table: pd.DataFrame,
    rank_columns: Sequence[str],
    root_name: str = "root"
) -> Tuple[List[Taxon], List[int]]:
    """
    Build taxon records from a table carrying one name column per rank.

    Rows are read from the most general rank to the most specific one; a blank
    or missing name ends the lineage for that row. Identical lineage prefixes
    map to the same taxon.

    Args:
        table: DataFrame with one column per rank
        rank_columns: Rank columns ordered from most general to most specific
        root_name: Name of the synthetic root taxon (id 0)

    Returns:
        Tuple containing:
            - List of taxa, root first, in order of first appearance
            - Taxon id of the deepest named rank of each row

    Raises:
        ValidationError: If a rank column is missing from the table
    """
    missing = [col for col in rank_columns if col not in table.columns]
    if missing:
        raise ValidationError(f"Rank columns not found in table: {missing}")

    taxa = [Taxon(0, root_name, "root", None)]
    ids_by_lineage: Dict[Tuple[str, ...], int] = {(): 0}
    row_taxa = []

    for names in table[list(rank_columns)].itertuples(index=False, name=None):
        lineage: Tuple[str, ...] = ()
        current = 0
        for rank, name in zip(rank_columns, names):
            if name is None or _is_missing(name) or str(name).strip() == "":
                break
            lineage = lineage + (str(name).strip(),)
            if lineage not in ids_by_lineage:
                ids_by_lineage[lineage] = len(taxa)
                taxa.append(Taxon(len(taxa), lineage[-1], rank, current))
            current = ids_by_lineage[lineage]
        row_taxa.append(current)

    return taxa, row_taxa
