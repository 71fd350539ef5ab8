"""
Cube definitions consumed by the flattening engine.

A cube C = <D, v> has an ordered list of dimensions D = (D_1, ..., D_n),
one of which is time, and a cell accessor v mapping one value id per
dimension to a number or to nothing.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any, Tuple
from abc import ABC, abstractmethod
import hashlib
import json
import math

import numpy as np

from geostat.errors import InvalidCubeError

# Markers PXWeb and JSON-stat use for "no data" cells
MISSING_MARKERS = frozenset(["", "..", "...", "-", ":", "x"])


def to_number(raw: Any) -> Optional[float]:
    """
    Convert a raw cell to a float, or None when the cell carries no data.

    Explicit zero stays 0.0; only absence markers and NaN become None.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, str):
        text = raw.strip()
        if text in MISSING_MARKERS:
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    elif isinstance(raw, (int, float, np.integer, np.floating)):
        value = float(raw)
    else:
        return None

    if math.isnan(value) or math.isinf(value):
        return None
    return value


@dataclass
class Dimension:
    """
    A cube dimension.

    Attributes:
        id: Dimension identifier (e.g., 'Year', 'Regions')
        values: Ordered value ids
        labels: Mapping value id -> human label in the cube's language
        text: Caption of the dimension itself
    """
    id: str
    values: List[str]
    labels: Dict[str, str] = field(default_factory=dict)
    text: str = ""

    def __post_init__(self):
        self.values = [str(v) for v in self.values]
        self.labels = {str(k): str(v) for k, v in (self.labels or {}).items()}

    def label_for(self, value_id: str) -> str:
        """Label of a value, or the raw id when it has none."""
        label = self.labels.get(value_id)
        if label is None or label == "":
            return value_id
        return label

    @property
    def size(self) -> int:
        return len(self.values)

    def position(self, value_id: str) -> int:
        """Position of a value id, -1 when the dimension does not declare it."""
        try:
            return self.values.index(value_id)
        except ValueError:
            return -1


class Cube(ABC):
    """
    Abstract base class for cubes.

    Implementations wrap different sources (JSON-stat payloads, long-format
    DataFrames). The engine only uses this interface and never mutates a cube.
    """

    def __init__(self, dimension_ids: List[str], title: str = "",
                 language: str = "ka"):
        self.dimension_ids = [str(d) for d in dimension_ids]
        self.title = title or ""
        self.language = language
        self._cube_id: Optional[str] = None

    @abstractmethod
    def _get_dimension(self, dim_id: str) -> Optional[Dimension]:
        """Return the dimension, or None when the source has no data for it."""
        pass

    @abstractmethod
    def cell(self, query: Dict[str, str]) -> Optional[float]:
        """
        Return the numeric cell for one value id per dimension.

        Returns None when the combination is absent or flagged as no data.
        """
        pass

    def has_dimension(self, dim_id: str) -> bool:
        return dim_id in self.dimension_ids

    def dimension(self, dim_id: str) -> Dimension:
        """
        Get a declared dimension.

        Raises:
            InvalidCubeError: the id is not declared or carries no categories
        """
        if dim_id not in self.dimension_ids:
            raise InvalidCubeError(
                f"Dimension '{dim_id}' is not declared on cube "
                f"'{self.title or 'untitled'}' (dimensions: {self.dimension_ids})"
            )
        dim = self._get_dimension(dim_id)
        if dim is None:
            raise InvalidCubeError(
                f"Cube declares dimension '{dim_id}' but has no categories for it"
            )
        return dim

    @property
    def dimensions(self) -> List[Dimension]:
        return [self.dimension(d) for d in self.dimension_ids]

    @property
    def shape(self) -> Tuple[int, ...]:
        return tuple(self.dimension(d).size for d in self.dimension_ids)

    @property
    def cube_id(self) -> str:
        """Structural fingerprint used as the memoization key."""
        if self._cube_id is None:
            content = json.dumps({
                "title": self.title,
                "language": self.language,
                "dimensions": [
                    [d.id, d.values, d.labels] for d in self.dimensions
                ],
            }, sort_keys=True, ensure_ascii=False)
            self._cube_id = hashlib.md5(content.encode("utf-8")).hexdigest()[:16]
        return self._cube_id

    def describe(self) -> str:
        """Generate human-readable description of the cube."""
        parts = [f"{d.id}({d.size})" for d in self.dimensions]
        return f"{self.title or 'Cube'} [{self.language}]: {' x '.join(parts)}"

    def __repr__(self):
        return f"<{self.__class__.__name__} {self.describe()}>"
