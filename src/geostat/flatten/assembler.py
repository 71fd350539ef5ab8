"""
Row assembly: one row per time value, one key per series.

Rows whose base series are all None are dropped (cubes often declare more
periods than they have data for); the year range and year mapping only
cover emitted rows. Every emitted row has the same keys.
"""

import logging
from typing import List, Dict, Optional, Any

from geostat.config.datasets import DatasetConfig
from geostat.config.rules import DerivationRule
from geostat.config.settings import EngineSettings, DEFAULT_SETTINGS
from geostat.cube.schema import Cube
from geostat.flatten.derivations import apply_derivations, rule_labels, warn_unknown_operands
from geostat.flatten.result import FlattenResult, Metadata, YEAR_KEY
from geostat.flatten.series import Series, lookup
from geostat.flatten.time import normalize_years

logger = logging.getLogger(__name__)

SINGLE_SERIES_KEY = "value"


def year_range(years: List[int]) -> Optional[Dict[str, int]]:
    """{"start", "end"} over the given years, None when there are none."""
    if not years:
        return None
    return {"start": min(years), "end": max(years)}


def assemble(cube: Cube,
             time_dim_id: str,
             time_values: List[str],
             series: List[Series],
             rules: Optional[List[DerivationRule]] = None,
             dataset_id: Optional[str] = None,
             lang: str = "ka",
             config: Optional[DatasetConfig] = None,
             settings: Optional[EngineSettings] = None,
             dimensions: Optional[List[str]] = None,
             has_categories: bool = True,
             strategy: str = "") -> FlattenResult:
    """
    Build the flatten result for a resolved set of series.

    Args:
        cube: Input cube
        time_dim_id: Time dimension id
        time_values: Usable raw time values in declared order
        series: Base series, in column order
        rules: Derivation rules appended after the base series
        dataset_id: Dataset identifier
        lang: Language of derived labels
        config: Dataset configuration (time overrides, base year, title)
        settings: Engine settings
        dimensions: Non-time dimension ids the series range over
        has_categories: Whether the cube has a categorical dimension
        strategy: Name of the calling strategy, recorded on the result

    Returns:
        FlattenResult
    """
    rules = rules or []
    settings = settings or DEFAULT_SETTINGS
    config = config or DatasetConfig(dataset_id=dataset_id or "")
    dimensions = dimensions or []

    time_labels = cube.dimension(time_dim_id).labels
    resolutions = normalize_years(time_values, time_labels, config=config, settings=settings)

    base_keys = [s.key for s in series]
    base_count = len(base_keys)
    if rules:
        warn_unknown_operands(rules, base_keys, dataset_id)

    rows = []
    strategies = {}
    previous_row = None
    for raw, resolution in zip(time_values, resolutions):
        row: Dict[str, Any] = {YEAR_KEY: resolution.year}
        has_data = False
        for s in series:
            value = lookup(cube, time_dim_id, raw, s.picks)
            row[s.key] = value
            if value is not None:
                has_data = True

        apply_derivations(row, previous_row, rules, base_count)
        previous_row = row

        if has_data:
            rows.append(row)
            strategies[resolution.year] = resolution.strategy.value
        else:
            logger.debug(f"Dataset {dataset_id!r}: dropping empty row for {raw!r}")

    years = [row[YEAR_KEY] for row in rows]
    derived = rule_labels(rules, base_count, lang)

    if has_categories:
        categories = base_keys + [m["index"] for m in derived]
    else:
        categories = []

    metadata = Metadata(
        total_records=len(rows),
        has_categories=has_categories,
        year_range=year_range(years),
        dimension_count=len(cube.dimension_ids),
        series_count=base_count + len(rules),
        year_mapping=[{"index": str(i), "value": y} for i, y in enumerate(years)],
        category_mapping=[s.to_dict() for s in series] + derived,
        year_strategies=strategies,
    )

    return FlattenResult(
        title=cube.title or config.title or "Dataset",
        dimensions=[time_dim_id] + list(dimensions),
        categories=categories,
        data=rows,
        metadata=metadata,
        strategy=strategy,
    )


def assemble_single(cube: Cube, time_dim_id: str, time_values: List[str],
                    rules: Optional[List[DerivationRule]] = None,
                    dataset_id: Optional[str] = None, lang: str = "ka",
                    config: Optional[DatasetConfig] = None,
                    settings: Optional[EngineSettings] = None,
                    strategy: str = "") -> FlattenResult:
    """Shape for cubes with no categorical dimension: rows {"year", "value"}."""
    title = cube.title or (config.title if config else "") or "Dataset"
    only = Series(key=SINGLE_SERIES_KEY, picks={}, label=title)
    return assemble(
        cube, time_dim_id, time_values, [only],
        rules=rules, dataset_id=dataset_id, lang=lang,
        config=config, settings=settings,
        dimensions=[], has_categories=False, strategy=strategy,
    )
