"""taxmap: taxonomic trees with dependent datasets."""

__version__ = "0.1.0"

from taxmap.models.config import TaxmapConfig, FilterOptions, ConfigError
from taxmap.models.errors import (
    TaxmapError, ValidationError, DatasetNotFoundError, EmptyTreeError,
    DisconnectedTreeError, OrphanedRowError, ShapeMismatchError, DimensionError, InputError
)
from taxmap.models.taxonomic import Taxon, records_from_lineages
from taxmap.core.taxonomy import TaxonTree
from taxmap.core.datasets import Dataset, DatasetRegistry
from taxmap.core.observations import ObservationIndex
from taxmap.core.container import Container, build_container
from taxmap.core.filtering import FilterEngine
from taxmap.core.aggregation import AggregationEngine
from taxmap.core.comparison import default_compare
