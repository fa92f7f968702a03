"""Container pairing a taxon tree with the datasets that reference it."""

import logging
from typing import List, Dict, Optional, Any, Callable, Iterable, Union, Mapping

from taxmap.models.config import TaxmapConfig, FilterOptions
from taxmap.models.errors import ValidationError
from taxmap.core.taxonomy import TaxonTree
from taxmap.core.datasets import Dataset, DatasetRegistry
from taxmap.core.observations import ObservationIndex
from taxmap.core.filtering import FilterEngine
from taxmap.core.utils import TAXON_ID_COLUMN, OBSERVATION_ID_COLUMN

logger = logging.getLogger(__name__)

class Container:
    """
    Immutable snapshot of a tree and its datasets.

    Every operation that changes structure or adds data returns a new
    container; the receiver is never modified.
    """

    def __init__(
        self,
        tree: TaxonTree,
        datasets: Union[DatasetRegistry, Mapping[str, Dataset], None] = None,
        observation_dataset: Optional[str] = None,
        config: Optional[TaxmapConfig] = None
    ):
        self.config = config or TaxmapConfig()
        self._tree = tree
        if isinstance(datasets, DatasetRegistry):
            if datasets.tree is not tree:
                datasets = DatasetRegistry(tree, dict(datasets.items()))
            else:
                datasets = datasets.copy()
            self._registry = datasets
        else:
            self._registry = DatasetRegistry(tree, dict(datasets or {}))
        self.observation_dataset = observation_dataset or self.config.observation_dataset

    @property
    def tree(self) -> TaxonTree:
        return self._tree

    @property
    def dataset_names(self) -> List[str]:
        return self._registry.names()

    @property
    def observation_index(self) -> ObservationIndex:
        dataset = self._registry.get(self.observation_dataset)
        if not isinstance(dataset, ObservationIndex):
            raise ValidationError(f"Dataset '{self.observation_dataset}' is not an observation index")
        return dataset

    def get_dataset(self, name: str) -> Dataset:
        return self._registry.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._registry

    def __repr__(self) -> str:
        return f"Container(n_taxa={len(self._tree)}, datasets={self.dataset_names})"

    def evolve(self, tree: TaxonTree, datasets: Mapping[str, Dataset]) -> 'Container':
        """New container sharing this one's settings; datasets are validated against `tree`."""
        return Container(tree, DatasetRegistry(tree, dict(datasets)),
                         self.observation_dataset, self.config)

    def attach_dataset(self, name: str, rows: Any, taxon_key: str = TAXON_ID_COLUMN) -> 'Container':
        """
        Add a dataset, returning a new container.

        Raises:
            ValidationError: If a row references a taxon absent from the tree
        """
        registry = self._registry.copy()
        registry.attach(name, rows, taxon_key)
        return Container(self._tree, registry, self.observation_dataset, self.config)

    def replace_dataset(self, name: str, rows: Any) -> 'Container':
        registry = self._registry.copy()
        registry.replace(name, rows)
        return Container(self._tree, registry, self.observation_dataset, self.config)

    def filter_taxa(
        self,
        predicate: Callable,
        include_subtaxa: bool = False,
        include_supertaxa: bool = False,
        invert: bool = False,
        reassign_observations: Union[bool, Mapping[str, bool]] = True
    ) -> 'Container':
        """
        Keep the taxa selected by `predicate` and cascade the change into every dataset.

        Args:
            predicate: Function of a Taxon returning True for taxa to keep
            include_subtaxa: Also keep every descendant of a selected taxon
            include_supertaxa: Also keep every ancestor of a selected taxon
            invert: Keep the complement of the (expanded) selection
            reassign_observations: Bool, or mapping of dataset name to bool; True moves
                rows of removed taxa to their nearest kept ancestor, False drops them

        Returns:
            A new container
        """
        options = FilterOptions(
            include_subtaxa=include_subtaxa,
            include_supertaxa=include_supertaxa,
            invert=invert,
            reassign_observations=reassign_observations
        )
        return FilterEngine(self.config).filter_taxa(self, predicate, options)

    def filter_observations(self, dataset_name: str, predicate: Callable) -> 'Container':
        """Keep the rows of one dataset selected by `predicate`; the tree is unchanged."""
        return FilterEngine(self.config).filter_observations(self, dataset_name, predicate)

    def equals(self, other: 'Container') -> bool:
        if not isinstance(other, Container) or self._tree != other._tree:
            return False
        if self.dataset_names != other.dataset_names:
            return False
        return all(self.get_dataset(name).equals(other.get_dataset(name))
                   for name in self.dataset_names)

def build_container(
    taxon_records: Iterable,
    observation_records: Any = None,
    taxon_key: str = TAXON_ID_COLUMN,
    observation_key: str = OBSERVATION_ID_COLUMN,
    config: Optional[TaxmapConfig] = None
) -> Container:
    """
    Build a container from already-parsed records.

    Args:
        taxon_records: Taxon objects, mappings, or (id, name, rank, parent_id) tuples
        observation_records: Rows for the observation index (DataFrame or list of mappings)
        taxon_key: Column of the observation rows holding taxon ids
        observation_key: Column of the observation rows holding observation ids
        config: Optional configuration

    Returns:
        A new container; the observation index is stored under config.observation_dataset

    Raises:
        ValidationError: If the tree is invalid or an observation references an unknown taxon
    """
    config = config or TaxmapConfig()
    tree = TaxonTree(taxon_records)
    datasets = {}
    if observation_records is not None:
        name = config.observation_dataset
        datasets[name] = ObservationIndex(name, observation_records, taxon_key, observation_key)
    container = Container(tree, datasets, config=config)
    logger.info(f"Built container with {len(tree)} taxa and datasets {container.dataset_names}")
    return container
