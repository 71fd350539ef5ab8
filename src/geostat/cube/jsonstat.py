"""
JSON-stat boundary: turns an already-parsed PXWeb response into a Cube.

The upstream API wraps its datasets in several shapes (bare JSON-stat 2.0
datasets, 1.x bundles keyed by name, and results/data envelopes). All of
them are normalized here so the engine only ever sees a JsonStatCube.
"""

import logging
from typing import List, Dict, Optional, Any, Tuple

import numpy as np

from geostat.cube.schema import Cube, Dimension, to_number
from geostat.errors import InvalidCubeError

logger = logging.getLogger(__name__)

# Keys of a 1.x "dimension" object that are not dimensions
_RESERVED_DIMENSION_KEYS = ("id", "size", "role")


def _is_dataset(obj: Any) -> bool:
    if not isinstance(obj, dict):
        return False
    if obj.get("class") == "dataset":
        return True
    return "dimension" in obj and "value" in obj


def unwrap_payload(payload: Any) -> Dict[str, Any]:
    """
    Find the JSON-stat dataset inside a response payload.

    Accepts a bare dataset, a 1.x bundle ({"dataset": {...}} or any name),
    a {"results": [...]} list and a {"data": ...} envelope.

    Raises:
        InvalidCubeError: no dataset could be found
    """
    if isinstance(payload, list):
        for item in payload:
            if _is_dataset(item):
                return item
        if payload:
            return unwrap_payload(payload[0])
        raise InvalidCubeError("Empty JSON-stat payload")

    if not isinstance(payload, dict):
        raise InvalidCubeError(
            f"JSON-stat payload must be an object, got {type(payload).__name__}"
        )

    if _is_dataset(payload):
        return payload

    for wrapper in ("dataset", "results", "data"):
        if wrapper in payload:
            return unwrap_payload(payload[wrapper])

    # 1.x bundle: {"<name>": {dataset}, ...}
    for value in payload.values():
        if _is_dataset(value):
            return value

    raise InvalidCubeError("No JSON-stat dataset found in payload")


def _category_values(dim_id: str, category: Dict[str, Any]) -> List[str]:
    """Ordered value ids of a JSON-stat category object."""
    index = category.get("index")
    if isinstance(index, list):
        return [str(v) for v in index]
    if isinstance(index, dict):
        ordered = sorted(index.items(), key=lambda item: item[1])
        return [str(k) for k, _ in ordered]

    labels = category.get("label")
    if isinstance(labels, dict) and labels:
        # Single-category dimensions may omit the index
        return [str(k) for k in labels.keys()]

    raise InvalidCubeError(f"Dimension '{dim_id}' has no category index")


def _parse_dimensions(dataset: Dict[str, Any]) -> Tuple[List[str], List[int], Dict[str, Any]]:
    """Return (dimension ids, sizes, dimension objects) for 1.x and 2.0 layouts."""
    dims = dataset.get("dimension")
    if not isinstance(dims, dict):
        raise InvalidCubeError("JSON-stat dataset has no 'dimension' object")

    ids = dataset.get("id", dims.get("id"))
    sizes = dataset.get("size", dims.get("size"))
    if not isinstance(ids, list) or not ids:
        raise InvalidCubeError("JSON-stat dataset does not list its dimension ids")

    objects = {k: v for k, v in dims.items() if k not in _RESERVED_DIMENSION_KEYS}
    return [str(i) for i in ids], list(sizes) if sizes is not None else None, objects


class JsonStatCube(Cube):
    """
    Cube backed by a JSON-stat dataset.

    Cells are stored in a flat row-major array (last dimension varies
    fastest), either dense (a list) or sparse (a dict of flat index -> value).
    """

    def __init__(self, dimension_ids: List[str], dimensions: Dict[str, Dimension],
                 values: Any, title: str = "", language: str = "ka",
                 status: Any = None):
        super().__init__(dimension_ids, title=title, language=language)
        self._dimensions = dimensions
        self._positions = {
            dim_id: {value_id: i for i, value_id in enumerate(dim.values)}
            for dim_id, dim in dimensions.items()
        }
        self._values = values
        self._status = status or {}

    @classmethod
    def from_payload(cls, payload: Any, language: str = "ka") -> "JsonStatCube":
        """
        Build a cube from a parsed JSON-stat response.

        Raises:
            InvalidCubeError: a declared dimension is missing, or a declared
                size disagrees with the number of categories
        """
        dataset = unwrap_payload(payload)
        ids, sizes, objects = _parse_dimensions(dataset)

        dimensions = {}
        for pos, dim_id in enumerate(ids):
            obj = objects.get(dim_id)
            if not isinstance(obj, dict):
                raise InvalidCubeError(
                    f"Dimension '{dim_id}' is listed in 'id' but not described"
                )
            category = obj.get("category") or {}
            values = _category_values(dim_id, category)
            if sizes is not None and pos < len(sizes) and int(sizes[pos]) != len(values):
                raise InvalidCubeError(
                    f"Dimension '{dim_id}' declares size {sizes[pos]} "
                    f"but has {len(values)} categories"
                )
            dimensions[dim_id] = Dimension(
                id=dim_id,
                values=values,
                labels=category.get("label") or {},
                text=obj.get("label", "") or "",
            )

        values = dataset.get("value")
        if values is None:
            values = []
        if not isinstance(values, (list, dict)):
            raise InvalidCubeError("JSON-stat 'value' must be a list or an object")

        cube = cls(
            dimension_ids=ids,
            dimensions=dimensions,
            values=values,
            title=dataset.get("label", "") or "",
            language=language,
            status=dataset.get("status"),
        )
        logger.debug(f"Parsed JSON-stat cube: {cube.describe()}")
        return cube

    def _get_dimension(self, dim_id: str) -> Optional[Dimension]:
        return self._dimensions.get(dim_id)

    def _flat_index(self, query: Dict[str, str]) -> Optional[int]:
        coords = []
        for dim_id in self.dimension_ids:
            value_id = query.get(dim_id)
            if value_id is None:
                return None
            pos = self._positions[dim_id].get(str(value_id))
            if pos is None:
                return None
            coords.append(pos)
        shape = tuple(len(self._positions[d]) for d in self.dimension_ids)
        return int(np.ravel_multi_index(tuple(coords), shape))

    def cell(self, query: Dict[str, str]) -> Optional[float]:
        idx = self._flat_index(query)
        if idx is None:
            return None
        if isinstance(self._values, dict):
            raw = self._values.get(str(idx), self._values.get(idx))
        elif idx < len(self._values):
            raw = self._values[idx]
        else:
            raw = None
        return to_number(raw)

    def status(self, query: Dict[str, str]) -> Optional[str]:
        """Status flag of a cell (e.g. '..' for confidential), if any."""
        idx = self._flat_index(query)
        if idx is None or not self._status:
            return None
        if isinstance(self._status, dict):
            return self._status.get(str(idx))
        if isinstance(self._status, list) and idx < len(self._status):
            return self._status[idx]
        if isinstance(self._status, str):
            return self._status
        return None
