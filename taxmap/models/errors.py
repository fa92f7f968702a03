"""Error classes for taxmap."""

class TaxmapError(Exception):
    """Base class for taxmap exceptions."""
    pass

class ValidationError(TaxmapError):
    """Raised when a taxon or dataset row fails validation against the tree."""
    pass

class DatasetNotFoundError(TaxmapError, KeyError):
    """Raised when a dataset name is not present in the registry."""

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0]) if self.args else ""

class EmptyTreeError(TaxmapError):
    """Raised when a taxon filter selects nothing."""
    pass

class DisconnectedTreeError(TaxmapError):
    """Raised when the taxa kept by a filter have no surviving common ancestor."""
    pass

class OrphanedRowError(TaxmapError):
    """Raised when a row's whole lineage was filtered out and it must be reassigned."""

    def __init__(self, dataset: str, taxon_id, row=None):
        self.dataset = dataset
        self.taxon_id = taxon_id
        self.row = row
        location = f" (row {row})" if row is not None else ""
        super().__init__(
            f"Dataset '{dataset}'{location} references taxon {taxon_id!r}, "
            f"but none of its ancestors survived the filter"
        )

class ShapeMismatchError(TaxmapError):
    """Raised when sample columns and group assignments disagree."""
    pass

class DimensionError(TaxmapError):
    """Raised when a comparison is requested on fewer than two groups."""
    pass

class InputError(TaxmapError):
    """Raised when there's an issue with input or output files."""
    pass
