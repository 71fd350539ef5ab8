"""
Strategy selection for a cube/dataset pair.

Decision order:
1. The dataset names a registered processor -> PROCESSOR
2. No categorical dimension -> SINGLE (rows {"year", "value"})
3. One categorical dimension and numeric_keys unset -> TWO_DIMENSION
   (series keyed by label)
4. Otherwise -> MULTI_DIMENSION (series keyed "0".."n-1")
"""

import logging
from dataclasses import dataclass, field
from typing import List, Dict, Optional, Callable
from enum import Enum

from geostat.config.datasets import DatasetConfig
from geostat.config.settings import EngineSettings, DEFAULT_SETTINGS
from geostat.cube.cache import BoundedCache
from geostat.cube.schema import Cube
from geostat.errors import ConfigurationError
from geostat.flatten.assembler import assemble, assemble_single
from geostat.flatten.derivations import derived_key
from geostat.flatten.result import FlattenResult
from geostat.flatten.series import combine, filter_series, label_keyed
from geostat.flatten.time import find_time_dimension

logger = logging.getLogger(__name__)


class Strategy(Enum):
    """Flattening strategies."""
    SINGLE = "single"
    TWO_DIMENSION = "two_dimension"
    MULTI_DIMENSION = "multi_dimension"
    PROCESSOR = "processor"


@dataclass
class FlattenContext:
    """
    Everything a strategy needs for one flatten call.

    Attributes:
        cube: Input cube
        config: Dataset configuration
        time_dim_id: Resolved time dimension
        time_values: Usable raw time values
        dim_ids: Non-time dimension ids in series order
        lang: Language of derived labels
        settings: Engine settings
        cache: Series memoization cache
    """
    cube: Cube
    config: DatasetConfig
    time_dim_id: str
    time_values: List[str]
    dim_ids: List[str]
    lang: str = "ka"
    settings: EngineSettings = field(default_factory=lambda: DEFAULT_SETTINGS)
    cache: Optional[BoundedCache] = None

    @property
    def dataset_id(self) -> Optional[str]:
        return self.config.dataset_id or None

    def series(self):
        return combine(self.cube, self.dim_ids, self.settings.separator, cache=self.cache)

    def assemble(self, series, strategy: str) -> FlattenResult:
        return assemble(
            self.cube, self.time_dim_id, self.time_values, series,
            rules=self.config.derivations,
            dataset_id=self.dataset_id,
            lang=self.lang,
            config=self.config,
            settings=self.settings,
            dimensions=self.dim_ids,
            has_categories=True,
            strategy=strategy,
        )


Processor = Callable[[FlattenContext], FlattenResult]

# Processor registry
PROCESSORS: Dict[str, Processor] = {}


def register_processor(name: str):
    """Register a dataset-specific processor under a name."""
    def decorator(fn: Processor) -> Processor:
        PROCESSORS[name] = fn
        return fn
    return decorator


def get_processor(name: str) -> Processor:
    if name not in PROCESSORS:
        raise ConfigurationError(
            f"Unknown processor: {name}. Available: {sorted(PROCESSORS)}"
        )
    return PROCESSORS[name]


def route(cube: Cube, dataset_id: Optional[str] = None,
          config: Optional[DatasetConfig] = None,
          dim_ids: Optional[List[str]] = None) -> Strategy:
    """
    Choose the strategy for a cube.

    Args:
        cube: Input cube
        dataset_id: Dataset identifier (only used when config is omitted)
        config: Dataset configuration
        dim_ids: Non-time dimension ids; derived from the cube when omitted

    Raises:
        ConfigurationError: the configuration names an unknown processor
    """
    config = config or DatasetConfig(dataset_id=dataset_id or "")
    if config.processor:
        get_processor(config.processor)
        return Strategy.PROCESSOR

    if dim_ids is None:
        time_dim_id = config.time_dimension or find_time_dimension(cube.dimension_ids)
        dim_ids = [d for d in cube.dimension_ids if d != time_dim_id]

    if len(dim_ids) == 0:
        return Strategy.SINGLE
    if len(dim_ids) == 1 and not config.numeric_keys:
        return Strategy.TWO_DIMENSION
    return Strategy.MULTI_DIMENSION


def process_single(ctx: FlattenContext) -> FlattenResult:
    return assemble_single(
        ctx.cube, ctx.time_dim_id, ctx.time_values,
        rules=ctx.config.derivations,
        dataset_id=ctx.dataset_id,
        lang=ctx.lang,
        config=ctx.config,
        settings=ctx.settings,
        strategy=Strategy.SINGLE.value,
    )


def process_two_dimensions(ctx: FlattenContext) -> FlattenResult:
    series = ctx.series()
    # calculated fields are keyed "<base count + i>" and must not shadow a label
    derived = [derived_key(len(series), i) for i in range(len(ctx.config.derivations))]
    return ctx.assemble(label_keyed(series, reserved=derived), Strategy.TWO_DIMENSION.value)


def process_multi_dimensions(ctx: FlattenContext) -> FlattenResult:
    return ctx.assemble(ctx.series(), Strategy.MULTI_DIMENSION.value)


@register_processor("filtered_series")
def process_filtered_series(ctx: FlattenContext) -> FlattenResult:
    """Numeric-keyed series restricted to labels containing config.series_filter."""
    series = ctx.series()
    if ctx.config.series_filter:
        series = filter_series(series, ctx.config.series_filter)
        logger.debug(
            f"Dataset {ctx.dataset_id!r}: kept {len(series)} series "
            f"matching {ctx.config.series_filter!r}"
        )
    return ctx.assemble(series, Strategy.PROCESSOR.value)


STRATEGIES: Dict[Strategy, Processor] = {
    Strategy.SINGLE: process_single,
    Strategy.TWO_DIMENSION: process_two_dimensions,
    Strategy.MULTI_DIMENSION: process_multi_dimensions,
}


def dispatch(strategy: Strategy, ctx: FlattenContext) -> FlattenResult:
    """Run the processor behind a strategy."""
    if strategy == Strategy.PROCESSOR:
        return get_processor(ctx.config.processor)(ctx)
    return STRATEGIES[strategy](ctx)
