"""
Unit tests for the cube module.
"""

import pytest
import pandas as pd
import numpy as np
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from geostat.cube.schema import Dimension, to_number
from geostat.cube.frame import FrameCube
from geostat.cube.cache import BoundedCache
from geostat.errors import InvalidCubeError


@pytest.fixture
def long_frame():
    """Long-format table: two years, two products, one missing cell."""
    return pd.DataFrame({
        'Year': [2020, 2020, 2021, 2021],
        'Product': ['A', 'B', 'A', 'B'],
        'value': [100.0, 0.0, 150.0, np.nan],
    })


@pytest.fixture
def frame_cube(long_frame):
    return FrameCube(
        long_frame, ['Year', 'Product'],
        labels={'Product': {'A': 'Apples', 'B': 'Bread'}},
        title='Sales',
    )


class TestToNumber:
    def test_numbers(self):
        assert to_number(10) == 10.0
        assert to_number(2.5) == 2.5
        assert to_number("42") == 42.0
        assert to_number(" 3.5 ") == 3.5
        assert to_number(np.int64(7)) == 7.0

    def test_zero_is_kept(self):
        assert to_number(0) == 0.0
        assert to_number("0") == 0.0
        assert to_number(0) is not None

    def test_missing_markers(self):
        for raw in [None, "", "..", "...", "-", ":", "x"]:
            assert to_number(raw) is None

    def test_non_numbers(self):
        assert to_number(float("nan")) is None
        assert to_number(float("inf")) is None
        assert to_number("abc") is None
        assert to_number(True) is None
        assert to_number([1]) is None


class TestDimension:
    def test_values_are_strings(self):
        dim = Dimension(id="Year", values=[2020, 2021], labels={2020: "2020 წელი"})
        assert dim.values == ["2020", "2021"]
        assert dim.labels == {"2020": "2020 წელი"}
        assert dim.size == 2

    def test_label_falls_back_to_id(self):
        dim = Dimension(id="Category", values=["a", "b"], labels={"a": "Alpha", "b": ""})
        assert dim.label_for("a") == "Alpha"
        assert dim.label_for("b") == "b"
        assert dim.label_for("c") == "c"

    def test_position(self):
        dim = Dimension(id="Category", values=["a", "b"])
        assert dim.position("b") == 1
        assert dim.position("z") == -1


class TestFrameCube:
    def test_dimensions(self, frame_cube):
        assert frame_cube.dimension_ids == ['Year', 'Product']
        assert frame_cube.dimension('Year').values == ['2020', '2021']
        assert frame_cube.dimension('Product').label_for('A') == 'Apples'
        assert frame_cube.shape == (2, 2)

    def test_cell(self, frame_cube):
        assert frame_cube.cell({'Year': '2020', 'Product': 'A'}) == 100.0
        assert frame_cube.cell({'Year': '2021', 'Product': 'A'}) == 150.0

    def test_zero_and_missing_cells(self, frame_cube):
        assert frame_cube.cell({'Year': '2020', 'Product': 'B'}) == 0.0
        assert frame_cube.cell({'Year': '2021', 'Product': 'B'}) is None
        assert frame_cube.cell({'Year': '1999', 'Product': 'A'}) is None

    def test_single_dimension(self):
        cube = FrameCube.from_records(
            [{'Year': '2020', 'value': 1}, {'Year': '2021', 'value': 2}],
            ['Year'],
        )
        assert cube.cell({'Year': '2021'}) == 2.0
        assert cube.cell({'Year': '2022'}) is None

    def test_duplicates_keep_last(self):
        cube = FrameCube.from_records(
            [{'Year': '2020', 'value': 1}, {'Year': '2020', 'value': 5}],
            ['Year'],
        )
        assert cube.cell({'Year': '2020'}) == 5.0

    def test_missing_column(self, long_frame):
        with pytest.raises(InvalidCubeError):
            FrameCube(long_frame, ['Year', 'Region'])

    def test_undeclared_dimension(self, frame_cube):
        assert not frame_cube.has_dimension('Region')
        with pytest.raises(InvalidCubeError):
            frame_cube.dimension('Region')

    def test_does_not_modify_input(self, long_frame):
        FrameCube(long_frame, ['Year', 'Product'])
        assert long_frame['Year'].tolist() == [2020, 2020, 2021, 2021]


class TestCubeId:
    def test_stable(self, long_frame):
        first = FrameCube(long_frame, ['Year', 'Product'], title='Sales')
        second = FrameCube(long_frame, ['Year', 'Product'], title='Sales')
        assert first.cube_id == second.cube_id
        assert len(first.cube_id) == 16

    def test_depends_on_labels_and_language(self, long_frame):
        plain = FrameCube(long_frame, ['Year', 'Product'])
        labelled = FrameCube(long_frame, ['Year', 'Product'],
                             labels={'Product': {'A': 'Apples'}})
        english = FrameCube(long_frame, ['Year', 'Product'], language='en')
        assert plain.cube_id != labelled.cube_id
        assert plain.cube_id != english.cube_id

    def test_describe(self, frame_cube):
        desc = frame_cube.describe()
        assert "Sales" in desc
        assert "Year(2)" in desc
        assert "Product(2)" in desc


class TestBoundedCache:
    def test_computes_once(self):
        cache = BoundedCache(4)
        calls = []

        def factory():
            calls.append(1)
            return "v"

        assert cache.get_or_compute("k", factory) == "v"
        assert cache.get_or_compute("k", factory) == "v"
        assert len(calls) == 1
        assert cache.hits == 1
        assert cache.misses == 1

    def test_evicts_least_recently_used(self):
        cache = BoundedCache(2)
        cache.get_or_compute("a", lambda: 1)
        cache.get_or_compute("b", lambda: 2)
        cache.get_or_compute("a", lambda: 1)
        cache.get_or_compute("c", lambda: 3)
        assert "a" in cache
        assert "b" not in cache
        assert len(cache) == 2

    def test_clear(self):
        cache = BoundedCache(2)
        cache.get_or_compute("a", lambda: 1)
        cache.clear()
        assert len(cache) == 0
        assert cache.misses == 0


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
