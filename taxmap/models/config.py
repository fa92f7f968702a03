"""Configuration management for taxmap."""

import os
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional, Union

from taxmap.models.errors import TaxmapError

class ConfigError(TaxmapError):
    """Raised when there's an issue with configuration."""
    pass

DEFAULT_OBSERVATION_DATASET = "observations"

def _env_int(name: str, default: int) -> int:
    value = os.environ.get(name)
    if value is None or value == "":
        return default
    try:
        return int(value)
    except ValueError:
        raise ConfigError(f"Environment variable {name} must be an integer, got '{value}'")

def _env_flag(name: str) -> bool:
    return os.environ.get(name, "").strip().lower() in ("1", "true", "yes", "on")

class TaxmapConfig:
    """Centralized configuration for taxmap engines."""

    def __init__(self, args: Optional[Any] = None):
        """
        Initialize configuration from args and environment.

        Args:
            args: Any object carrying attributes (argparse namespace, simple namespace)

        Raises:
            ConfigError: If a value is out of range
        """
        self.workers = getattr(args, 'workers', None)
        if self.workers is None:
            self.workers = _env_int("TAXMAP_WORKERS", 1)

        self.batch_size = getattr(args, 'batch_size', None)
        if self.batch_size is None:
            self.batch_size = _env_int("TAXMAP_BATCH_SIZE", 1000)

        self.verbose = getattr(args, 'verbose', None)
        if self.verbose is None:
            self.verbose = _env_flag("TAXMAP_VERBOSE")

        self.observation_dataset = (
            getattr(args, 'observation_dataset', None) or DEFAULT_OBSERVATION_DATASET
        )

        if self.workers < 1:
            raise ConfigError(f"workers must be at least 1, got {self.workers}")
        if self.batch_size < 1:
            raise ConfigError(f"batch_size must be at least 1, got {self.batch_size}")

    def __repr__(self) -> str:
        return (f"TaxmapConfig(workers={self.workers}, batch_size={self.batch_size}, "
                f"verbose={self.verbose}, observation_dataset='{self.observation_dataset}')")

@dataclass(frozen=True)
class FilterOptions:
    """Options controlling how a taxon filter expands its selection and cascades."""
    include_subtaxa: bool = False
    include_supertaxa: bool = False
    invert: bool = False
    reassign_observations: Union[bool, Mapping[str, bool]] = True

    def reassign_for(self, dataset_name: str) -> bool:
        """Effective reassignment flag for one dataset; unlisted datasets reassign."""
        if isinstance(self.reassign_observations, Mapping):
            return bool(self.reassign_observations.get(dataset_name, True))
        return bool(self.reassign_observations)
