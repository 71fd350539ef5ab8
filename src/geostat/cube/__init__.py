"""
Cube module: canonical cube representation and its source adapters.
"""

from geostat.cube.schema import Cube, Dimension, to_number, MISSING_MARKERS
from geostat.cube.jsonstat import JsonStatCube, unwrap_payload
from geostat.cube.frame import FrameCube
from geostat.cube.cache import BoundedCache

__all__ = [
    "Cube", "Dimension", "to_number", "MISSING_MARKERS",
    "JsonStatCube", "unwrap_payload",
    "FrameCube",
    "BoundedCache",
]
