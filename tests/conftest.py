"""
Shared cube builders for the test suite.
"""

import itertools
import os
import sys

import pytest

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from geostat.cube.jsonstat import JsonStatCube
from geostat.flatten import series as series_module


def jsonstat_payload(dims, cells, title="Test cube"):
    """
    Build a JSON-stat 2.0 dataset.

    Args:
        dims: List of (dimension id, value ids, {value id: label})
        cells: Dict mapping a tuple of value ids (dimension order) -> value
        title: Dataset label
    """
    ids = [d[0] for d in dims]
    sizes = [len(d[1]) for d in dims]
    dimension = {
        dim_id: {
            "label": dim_id,
            "category": {
                "index": {v: i for i, v in enumerate(values)},
                "label": dict(labels or {}),
            },
        }
        for dim_id, values, labels in dims
    }
    values = [
        cells.get(combo)
        for combo in itertools.product(*[d[1] for d in dims])
    ]
    return {
        "class": "dataset",
        "version": "2.0",
        "label": title,
        "id": ids,
        "size": sizes,
        "dimension": dimension,
        "value": values,
    }


def make_cube(dims, cells, title="Test cube", language="ka"):
    return JsonStatCube.from_payload(jsonstat_payload(dims, cells, title), language=language)


@pytest.fixture(autouse=True)
def _fresh_series_cache():
    series_module.clear_cache()
    yield
    series_module.clear_cache()


@pytest.fixture
def year_labels():
    return {"0": "2020", "1": "2021", "2": "2022"}


@pytest.fixture
def scenario_cube(year_labels):
    """Three indexed years, one category dimension; only 2021 has data."""
    return make_cube(
        [
            ("Year", ["0", "1", "2"], year_labels),
            ("Category", ["a", "b"], {"a": "Alpha", "b": "Beta"}),
        ],
        {("1", "a"): 10, ("1", "b"): 20},
    )


@pytest.fixture
def growth_cube(year_labels):
    """Like scenario_cube, with a 2020 value of 5 for Alpha."""
    return make_cube(
        [
            ("Year", ["0", "1", "2"], year_labels),
            ("Category", ["a", "b"], {"a": "Alpha", "b": "Beta"}),
        ],
        {("0", "a"): 5, ("1", "a"): 10, ("1", "b"): 20},
    )


@pytest.fixture
def region_cube():
    """Year x Regions x Category with literal years."""
    cells = {}
    for y, year in enumerate(["2019", "2020"]):
        for r, region in enumerate(["TB", "IM"]):
            for c, cat in enumerate(["fires", "area"]):
                cells[(year, region, cat)] = float(100 * y + 10 * r + c)
    return make_cube(
        [
            ("Year", ["2019", "2020"], {}),
            ("Regions", ["TB", "IM"], {"TB": "Tbilisi", "IM": "Imereti"}),
            ("Category", ["fires", "area"], {"fires": "Fires", "area": "Area"}),
        ],
        cells,
        title="Forest fires",
    )
