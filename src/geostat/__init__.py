"""
geostat: chart-ready tables from Georgian statistical data cubes.

Flattens multi-dimensional PXWeb/JSON-stat cubes into rows keyed by year,
with one column per combination of the categorical dimensions and optional
calculated columns configured per dataset.
"""

__version__ = "0.1.0"

from geostat.cube.schema import Cube, Dimension
from geostat.cube.jsonstat import JsonStatCube
from geostat.cube.frame import FrameCube
from geostat.flatten.engine import Flattener, flatten
from geostat.flatten.result import FlattenResult
from geostat.errors import GeostatError, InvalidCubeError

__all__ = [
    "Cube",
    "Dimension",
    "JsonStatCube",
    "FrameCube",
    "Flattener",
    "flatten",
    "FlattenResult",
    "GeostatError",
    "InvalidCubeError",
]
