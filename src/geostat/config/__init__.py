"""
Configuration: engine settings, calculated-field rules and the per-dataset table.
"""

from geostat.config.settings import EngineSettings, DEFAULT_SETTINGS
from geostat.config.rules import DerivationRule, DerivationKind, validate_rules
from geostat.config.datasets import (
    DatasetConfig, DATASETS, CATEGORIES,
    get_dataset, require_dataset, list_datasets
)

__all__ = [
    "EngineSettings", "DEFAULT_SETTINGS",
    "DerivationRule", "DerivationKind", "validate_rules",
    "DatasetConfig", "DATASETS", "CATEGORIES",
    "get_dataset", "require_dataset", "list_datasets",
]
