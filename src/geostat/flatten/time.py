"""
Time dimension resolution and year normalization.

Cubes encode time either as literal years ("2021") or as sequential
indices ("0", "1", ...) whose labels may or may not carry the year.
normalize_year tries four strategies in order and never fails:

1. NUMERIC:  the raw value itself is a plausible year
2. LABEL:    the value's label starts with a plausible year
3. OVERRIDE: the dataset's static raw value -> year table
4. FALLBACK: base year + position of the value in the dimension
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Dict, Optional, Tuple
from enum import Enum

from geostat.config.datasets import DatasetConfig
from geostat.config.settings import EngineSettings, DEFAULT_SETTINGS
from geostat.cube.schema import Cube
from geostat.errors import InvalidCubeError

logger = logging.getLogger(__name__)

TIME_DIMENSION_PATTERN = re.compile(
    r"year|წელი|წლ|vuosi|anio|año|time|dato|date|период|год",
    re.IGNORECASE,
)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class TimeStrategy(Enum):
    """Strategy that produced a normalized year."""
    NUMERIC = "numeric"
    LABEL = "label"
    OVERRIDE = "override"
    FALLBACK = "fallback"


@dataclass(frozen=True)
class YearResolution:
    """A normalized year and the strategy that produced it."""
    raw: str
    year: int
    strategy: TimeStrategy

    @property
    def is_fallback(self) -> bool:
        return self.strategy == TimeStrategy.FALLBACK


def find_time_dimension(dimension_ids: List[str]) -> str:
    """Find the year/time dimension, defaulting to the first one."""
    if not dimension_ids:
        raise InvalidCubeError("Cube declares no dimensions")
    for dim_id in dimension_ids:
        if TIME_DIMENSION_PATTERN.search(dim_id):
            return dim_id
    return dimension_ids[0]


def resolve_time(cube: Cube, config: Optional[DatasetConfig] = None) -> Tuple[str, List[str]]:
    """
    Pick the time dimension and its usable raw values.

    Args:
        cube: Input cube
        config: Dataset configuration; may pin the time dimension id

    Returns:
        (time dimension id, raw values in declared order without blanks)

    Raises:
        InvalidCubeError: a pinned time dimension is not on the cube
    """
    if config is not None and config.time_dimension:
        time_dim_id = config.time_dimension
    else:
        time_dim_id = find_time_dimension(cube.dimension_ids)

    dim = cube.dimension(time_dim_id)
    values = [v for v in dim.values if v is not None and str(v).strip() != ""]
    return time_dim_id, values


def _parse_int(text: Optional[str], whole: bool) -> Optional[int]:
    if text is None:
        return None
    text = str(text).strip()
    if whole:
        try:
            number = float(text)
        except ValueError:
            return None
        if number != number or not number.is_integer():
            return None
        return int(number)
    match = _LEADING_INT.match(text)
    return int(match.group(1)) if match else None


def normalize_year(raw_value: str, position: int,
                   labels: Optional[Dict[str, str]] = None,
                   dataset_id: Optional[str] = None,
                   settings: Optional[EngineSettings] = None,
                   overrides: Optional[Dict[str, int]] = None,
                   base_year: Optional[int] = None) -> YearResolution:
    """
    Normalize one raw time value to a calendar year.

    Args:
        raw_value: Value id from the time dimension
        position: Position of the value among the usable time values
        labels: Label map of the time dimension
        dataset_id: Dataset identifier, for diagnostics
        settings: Engine settings (plausibility bounds, default base year)
        overrides: Dataset override table raw value -> year
        base_year: Dataset base year for the positional fallback

    Returns:
        YearResolution carrying the year and the strategy that fired
    """
    settings = settings or DEFAULT_SETTINGS
    raw = str(raw_value)

    year = _parse_int(raw, whole=True)
    if year is not None and settings.is_plausible_year(year):
        return YearResolution(raw, year, TimeStrategy.NUMERIC)

    if labels:
        year = _parse_int(labels.get(raw), whole=False)
        if year is not None and settings.is_plausible_year(year):
            return YearResolution(raw, year, TimeStrategy.LABEL)

    if overrides and raw in overrides:
        year = int(overrides[raw])
        logger.debug(f"Dataset {dataset_id!r}: time value {raw!r} -> {year} from override table")
        return YearResolution(raw, year, TimeStrategy.OVERRIDE)

    base = settings.base_year if base_year is None else base_year
    year = base + position
    logger.debug(
        f"Dataset {dataset_id!r}: time value {raw!r} unresolvable, "
        f"falling back to {base} + {position} = {year}"
    )
    return YearResolution(raw, year, TimeStrategy.FALLBACK)


def normalize_years(raw_values: List[str], labels: Optional[Dict[str, str]] = None,
                    config: Optional[DatasetConfig] = None,
                    settings: Optional[EngineSettings] = None) -> List[YearResolution]:
    """Normalize an ordered list of raw time values."""
    config = config or DatasetConfig(dataset_id="")
    resolutions = [
        normalize_year(
            raw, position, labels,
            dataset_id=config.dataset_id or None,
            settings=settings,
            overrides=config.year_overrides,
            base_year=config.base_year,
        )
        for position, raw in enumerate(raw_values)
    ]
    fallbacks = sum(1 for r in resolutions if r.is_fallback)
    if fallbacks:
        logger.debug(
            f"Dataset {config.dataset_id!r}: {fallbacks}/{len(resolutions)} "
            f"time values used the positional fallback"
        )
    return resolutions
