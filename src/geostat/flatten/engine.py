"""
Flattener: turns a cube into chart-ready rows.

Pure and synchronous. The only state kept between calls is the series
cache, keyed by cube fingerprint, which can be cleared at any time.
"""

import logging
from typing import List, Dict, Optional

from geostat.config.datasets import DatasetConfig, get_dataset
from geostat.config.settings import EngineSettings, DEFAULT_SETTINGS
from geostat.cube.cache import BoundedCache
from geostat.cube.schema import Cube
from geostat.errors import ConfigurationError, InvalidCubeError
from geostat.flatten.result import FlattenResult
from geostat.flatten.router import FlattenContext, Strategy, route, dispatch
from geostat.flatten.series import check_cardinality
from geostat.flatten.time import resolve_time

logger = logging.getLogger(__name__)


class Flattener:
    """
    Entry point of the engine.

    Combines the dataset table with the time resolver, router, series
    builder and row assembler.
    """

    def __init__(self, settings: Optional[EngineSettings] = None,
                 datasets: Optional[Dict[str, DatasetConfig]] = None):
        """
        Args:
            settings: Engine settings (defaults apply when omitted)
            datasets: Dataset table (the built-in registry when omitted)
        """
        self.settings = settings or DEFAULT_SETTINGS
        self.datasets = datasets
        self.cache = BoundedCache(self.settings.cache_size)

    def _series_dimensions(self, cube: Cube, config: DatasetConfig,
                           time_dim_id: str) -> List[str]:
        """Non-time dimension ids in series order, validated against the cube."""
        for dim_id in cube.dimension_ids:
            cube.dimension(dim_id)

        natural = [d for d in cube.dimension_ids if d != time_dim_id]
        if not config.dimensions:
            return natural

        for dim_id in config.dimensions:
            if not cube.has_dimension(dim_id):
                raise InvalidCubeError(
                    f"Dataset '{config.dataset_id}' expects dimension '{dim_id}', "
                    f"cube has {cube.dimension_ids}"
                )
        if sorted(config.dimensions) != sorted(natural):
            raise ConfigurationError(
                f"Dataset '{config.dataset_id}' pins dimensions {config.dimensions} "
                f"but the cube's non-time dimensions are {natural}"
            )
        return list(config.dimensions)

    def plan(self, cube: Cube, dataset_id: Optional[str] = None,
             lang: Optional[str] = None) -> FlattenContext:
        """
        Resolve everything needed to flatten without reading any cell.

        Raises:
            InvalidCubeError: a configured dimension is missing from the cube
            ConfigurationError: the dataset configuration is inconsistent
            CardinalityError: the series product exceeds the dataset ceiling
        """
        config = get_dataset(dataset_id, self.datasets)
        time_dim_id, time_values = resolve_time(cube, config)
        dim_ids = self._series_dimensions(cube, config, time_dim_id)

        if config.max_series:
            check_cardinality(cube, dim_ids, config.max_series)

        return FlattenContext(
            cube=cube,
            config=config,
            time_dim_id=time_dim_id,
            time_values=time_values,
            dim_ids=dim_ids,
            lang=lang or self.settings.default_language,
            settings=self.settings,
            cache=self.cache,
        )

    def route(self, cube: Cube, dataset_id: Optional[str] = None) -> Strategy:
        """Strategy the given cube would be flattened with."""
        ctx = self.plan(cube, dataset_id)
        return route(cube, config=ctx.config, dim_ids=ctx.dim_ids)

    def flatten(self, cube: Cube, dataset_id: Optional[str] = None,
                lang: Optional[str] = None) -> FlattenResult:
        """
        Flatten a cube.

        Args:
            cube: Input cube, already normalized by the fetch layer
            dataset_id: Dataset identifier selecting the configuration
            lang: Language of derived labels ('ka' or 'en')

        Returns:
            FlattenResult
        """
        ctx = self.plan(cube, dataset_id, lang)
        strategy = route(cube, config=ctx.config, dim_ids=ctx.dim_ids)
        result = dispatch(strategy, ctx)

        logger.info(
            f"Flattened dataset {dataset_id!r} with {strategy.value}: "
            f"{result.metadata.total_records} rows, {result.metadata.series_count} series"
        )
        return result

    def clear_cache(self):
        """Clear the series cache."""
        self.cache.clear()


_DEFAULT_FLATTENER: Optional[Flattener] = None


def flatten(cube: Cube, dataset_id: Optional[str] = None,
            lang: Optional[str] = None) -> FlattenResult:
    """Flatten with a shared default Flattener."""
    global _DEFAULT_FLATTENER
    if _DEFAULT_FLATTENER is None:
        _DEFAULT_FLATTENER = Flattener()
    return _DEFAULT_FLATTENER.flatten(cube, dataset_id, lang)
