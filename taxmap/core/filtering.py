"""Taxon filtering and the cascade of its effect into datasets."""

import logging
from typing import List, Dict, Set, Optional, Any, Callable, FrozenSet, Tuple

import numpy as np
import pandas as pd

from taxmap.models.config import TaxmapConfig, FilterOptions
from taxmap.models.errors import EmptyTreeError, OrphanedRowError, ShapeMismatchError
from taxmap.core.batch_processing import BatchProcessor
from taxmap.core.datasets import Dataset
from taxmap.core.taxonomy import TaxonTree

logger = logging.getLogger(__name__)

class FilterEngine:
    """
    Prunes a container's tree and rewrites its datasets to match.

    Filtering is pure: the input container is never modified, and a failure
    anywhere aborts before a new container is assembled.
    """

    def __init__(self, config: Optional[TaxmapConfig] = None):
        self.config = config or TaxmapConfig()

    def select_taxa(
        self,
        tree: TaxonTree,
        predicate: Callable,
        options: Optional[FilterOptions] = None
    ) -> FrozenSet:
        """
        Ids of the taxa a filter keeps.

        The predicate is evaluated on every taxon, the selection is expanded
        with descendants and then ancestors when requested, and finally
        complemented when `invert` is set.
        """
        options = options or FilterOptions()
        selected: Set = {taxon.taxon_id for taxon in tree if predicate(taxon)}

        if options.include_subtaxa:
            for tid in list(selected):
                selected |= tree.descendants_of(tid)

        if options.include_supertaxa:
            for tid in list(selected):
                selected.update(tree.ancestors_of(tid))

        if options.invert:
            selected = {tid for tid in tree.ids if tid not in selected}

        return frozenset(selected)

    def filter_taxa(self, container, predicate: Callable, options: Optional[FilterOptions] = None):
        """
        Keep the selected taxa and cascade the change into every dataset.

        Args:
            container: Source container (left untouched)
            predicate: Function of a Taxon returning True for selected taxa
            options: Selection expansion and per-dataset reassignment policy

        Returns:
            New container with the restricted tree and rewritten datasets

        Raises:
            EmptyTreeError: If nothing is kept
            OrphanedRowError: If a reassigned row has no surviving ancestor
            DisconnectedTreeError: If the kept taxa have no surviving common
                ancestor and no reassigned row is orphaned
        """
        options = options or FilterOptions()
        tree = container.tree
        survivors = self.select_taxa(tree, predicate, options)
        if not survivors:
            raise EmptyTreeError("The filter removed every taxon")

        # Datasets first: orphaned rows take precedence over a disconnected tree
        datasets = {}
        for name in container.dataset_names:
            dataset = container.get_dataset(name)
            datasets[name] = self.cascade(dataset, tree, survivors, options.reassign_for(name))

        new_tree = tree.restricted_to(survivors)
        logger.info(f"Taxon filter kept {len(new_tree)} of {len(tree)} taxa "
                    f"(new root {new_tree.root!r})")

        return container.evolve(new_tree, datasets)

    def cascade(self, dataset: Dataset, tree: TaxonTree, survivors: FrozenSet, reassign: bool) -> Dataset:
        """
        Rewrite one dataset for a set of surviving taxa.

        With `reassign`, rows of removed taxa move to their nearest surviving
        ancestor and the row count is unchanged. Without it those rows are dropped.

        Raises:
            OrphanedRowError: If reassigning and a row's whole lineage was removed
        """
        df = dataset.table
        keys = df[dataset.taxon_key]
        removed = ~keys.map(lambda tid: tid in survivors).astype(bool)

        if not removed.any():
            logger.debug(f"Dataset '{dataset.name}': all {len(df)} rows reference kept taxa")
            return dataset

        if not reassign:
            kept = df[~removed].reset_index(drop=True)
            logger.info(f"Dataset '{dataset.name}': dropped {int(removed.sum())} of {len(df)} rows")
            return dataset.with_rows(kept)

        lost_ids = list(pd.unique(keys[removed]))
        targets = self._reassignment_targets(lost_ids, tree, survivors)

        for tid, target in targets:
            if target is None:
                row = keys.index[keys.map(lambda v: v == tid).astype(bool)][0]
                raise OrphanedRowError(dataset.name, tid, row)

        mapping = dict(targets)
        df[dataset.taxon_key] = [mapping.get(tid, tid) if moved else tid
                                 for tid, moved in zip(keys.tolist(), removed.tolist())]
        logger.info(f"Dataset '{dataset.name}': reassigned {int(removed.sum())} of {len(df)} rows "
                    f"to surviving ancestors")
        return dataset.with_rows(df)

    def _reassignment_targets(self, taxon_ids: List, tree: TaxonTree, survivors: FrozenSet) -> List[Tuple]:
        # Each target depends only on the taxon id and the frozen survivor set
        processor = BatchProcessor.from_config(self.config)
        return processor.process(
            taxon_ids,
            lambda batch: [(tid, tree.nearest_in(tid, survivors)) for tid in batch]
        )

    def filter_observations(self, container, dataset_name: str, predicate: Any):
        """
        Keep the rows of one dataset selected by a row predicate or boolean mask.

        Args:
            container: Source container (left untouched)
            dataset_name: Dataset to filter
            predicate: Function of a row (pandas Series) returning bool, or a
                boolean sequence with one entry per row

        Returns:
            New container with the filtered dataset and the same tree

        Raises:
            ShapeMismatchError: If a mask does not have one entry per row
        """
        dataset = container.get_dataset(dataset_name)
        df = dataset.table

        if callable(predicate):
            mask = np.array([bool(predicate(row)) for _, row in df.iterrows()], dtype=bool)
        else:
            mask = np.asarray(predicate, dtype=bool)
            if mask.shape != (len(df),):
                raise ShapeMismatchError(
                    f"Mask of length {mask.size} given for dataset '{dataset_name}' with {len(df)} rows"
                )

        kept = df[mask].reset_index(drop=True)
        logger.info(f"Dataset '{dataset_name}': kept {len(kept)} of {len(df)} rows")

        datasets = {name: container.get_dataset(name) for name in container.dataset_names}
        datasets[dataset_name] = dataset.with_rows(kept)
        return container.evolve(container.tree, datasets)
