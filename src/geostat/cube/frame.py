"""
Long-format cube backed by a pandas DataFrame.

Suitable for tests, scripts and offline tables: one column per dimension
plus one value column, one row per populated cell.
"""

from typing import Dict, List, Optional

import pandas as pd

from geostat.cube.schema import Cube, Dimension, to_number
from geostat.errors import InvalidCubeError


class FrameCube(Cube):
    """
    In-memory cube over a long-format DataFrame.

    Value ids are the stringified column values in first-seen order.
    """

    def __init__(self, frame: pd.DataFrame,
                 dimension_ids: List[str],
                 value_column: str = "value",
                 labels: Optional[Dict[str, Dict[str, str]]] = None,
                 title: str = "",
                 language: str = "ka"):
        """
        Initialize with data.

        Args:
            frame: Long-format table
            dimension_ids: Dimension columns, in cube order
            value_column: Column holding the cell values
            labels: Optional dict mapping dimension id -> {value id: label}
            title: Cube title
            language: Language of the labels
        """
        super().__init__(dimension_ids, title=title, language=language)
        missing = [c for c in list(dimension_ids) + [value_column] if c not in frame.columns]
        if missing:
            raise InvalidCubeError(f"DataFrame is missing columns: {missing}")

        self.value_column = value_column
        self._frame = frame.copy()
        for dim_id in self.dimension_ids:
            self._frame[dim_id] = self._frame[dim_id].astype(str)

        labels = labels or {}
        self._dimensions = {
            dim_id: Dimension(
                id=dim_id,
                values=pd.unique(self._frame[dim_id]).tolist(),
                labels=labels.get(dim_id, {}),
            )
            for dim_id in self.dimension_ids
        }
        self._series = self._build_series()

    def _build_series(self) -> pd.Series:
        """Index values by the dimension columns; duplicates keep the last cell."""
        df = self._frame.drop_duplicates(subset=self.dimension_ids, keep="last")
        return df.set_index(self.dimension_ids)[self.value_column].sort_index()

    def _get_dimension(self, dim_id: str) -> Optional[Dimension]:
        return self._dimensions.get(dim_id)

    def cell(self, query: Dict[str, str]) -> Optional[float]:
        key = tuple(str(query.get(d)) for d in self.dimension_ids)
        if len(key) == 1:
            key = key[0]
        try:
            raw = self._series.loc[key]
        except KeyError:
            return None
        return to_number(raw)

    @classmethod
    def from_records(cls, records: List[Dict], dimension_ids: List[str],
                     **kwargs) -> "FrameCube":
        """Build a cube from a list of dict records."""
        return cls(pd.DataFrame.from_records(records), dimension_ids, **kwargs)
