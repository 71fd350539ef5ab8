"""
Series construction and cell lookup.

A series is one combination of value ids over the non-time dimensions.
combine() enumerates the full Cartesian product eagerly, first dimension
varying slowest, so its cost is the product of the dimension sizes;
callers bound it (see check_cardinality and DatasetConfig.max_series).
"""

import itertools
import logging
from dataclasses import dataclass
from functools import reduce
from typing import List, Dict, Optional, Any, Iterable
import operator

from geostat.cube.cache import BoundedCache
from geostat.cube.schema import Cube
from geostat.config.settings import DEFAULT_SETTINGS
from geostat.errors import CardinalityError
from geostat.flatten.result import YEAR_KEY

logger = logging.getLogger(__name__)

_SERIES_CACHE = BoundedCache(DEFAULT_SETTINGS.cache_size)


@dataclass(frozen=True)
class Series:
    """
    One flattened output column.

    Attributes:
        key: Column key in output rows ("0", "1", ... or a label)
        picks: Dimension id -> value id over the non-time dimensions
        label: Labels of the picks joined in dimension order
    """
    key: str
    picks: Dict[str, str]
    label: str

    def to_dict(self) -> Dict[str, Any]:
        return {"index": self.key, "label": self.label}


def series_count(cube: Cube, dim_ids: List[str]) -> int:
    """Number of series combine() would produce, without building them."""
    return reduce(operator.mul, (cube.dimension(d).size for d in dim_ids), 1)


def check_cardinality(cube: Cube, dim_ids: List[str], limit: int) -> int:
    """
    Ensure the series product stays within a ceiling.

    Raises:
        CardinalityError: the product exceeds limit
    """
    count = series_count(cube, dim_ids)
    if count > limit:
        raise CardinalityError(
            f"Cube '{cube.title or 'untitled'}' yields {count} series over "
            f"{dim_ids}, above the ceiling of {limit}"
        )
    return count


def _build_series(cube: Cube, dim_ids: List[str], separator: str) -> List[Series]:
    dims = [cube.dimension(d) for d in dim_ids]
    combos = itertools.product(*[d.values for d in dims])
    series = []
    for index, combo in enumerate(combos):
        picks = {dim.id: value_id for dim, value_id in zip(dims, combo)}
        label = separator.join(dim.label_for(value_id) for dim, value_id in zip(dims, combo))
        series.append(Series(key=str(index), picks=picks, label=label))
    logger.debug(f"Built {len(series)} series over {dim_ids} for cube {cube.cube_id}")
    return series


def combine(cube: Cube, dim_ids: List[str], separator: str = " - ",
            cache: Optional[BoundedCache] = None) -> List[Series]:
    """
    Enumerate every combination of the given dimensions.

    Args:
        cube: Input cube
        dim_ids: Non-time dimension ids in output order
        separator: Joins the labels of the picks
        cache: Memoization cache (module default when omitted)

    Returns:
        Series with keys "0".."n-1"; a single empty series when dim_ids is empty
    """
    cache = _SERIES_CACHE if cache is None else cache
    key = (cube.cube_id, tuple(dim_ids), separator)
    # callers get a fresh list; the cached one is never handed out
    return list(cache.get_or_compute(key, lambda: _build_series(cube, dim_ids, separator)))


def filter_series(series: List[Series], text: str) -> List[Series]:
    """Keep series whose label contains text, re-keyed densely from "0"."""
    kept = [s for s in series if text in s.label]
    return [Series(key=str(i), picks=s.picks, label=s.label) for i, s in enumerate(kept)]


def label_keyed(series: List[Series], reserved: Iterable[str] = ()) -> List[Series]:
    """
    Re-key series by label for the two-dimension shape.

    A label already taken (by an earlier series, by "year" or by one of the
    reserved keys) gets its value ids appended in parentheses, then a counter
    until it is unique, so every series keeps its own column.

    Args:
        series: Series in column order
        reserved: Keys the row uses for other purposes (calculated fields)
    """
    seen = {YEAR_KEY}
    seen.update(reserved)
    result = []
    for s in series:
        key = s.label
        if key in seen:
            key = f"{s.label} ({', '.join(s.picks.values())})"
        base, n = key, 2
        while key in seen:
            key = f"{base} [{n}]"
            n += 1
        seen.add(key)
        result.append(Series(key=key, picks=s.picks, label=s.label))
    return result


def lookup(cube: Cube, time_dim_id: str, time_value: str,
           picks: Dict[str, str]) -> Optional[float]:
    """
    Fetch the cell at (time_value, picks).

    Returns None for absent cells and "no data" markers; zero stays zero.
    """
    query = dict(picks)
    query[time_dim_id] = time_value
    return cube.cell(query)


def clear_cache():
    """Clear the series memoization cache."""
    _SERIES_CACHE.clear()
