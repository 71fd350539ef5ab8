"""
Flatten result: the chart-ready table produced from one cube.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Optional, Any

import pandas as pd

YEAR_KEY = "year"


@dataclass
class Metadata:
    """
    Aggregate information about a flatten result.

    Attributes:
        total_records: Number of emitted rows
        has_categories: Whether the cube has any categorical dimension
        year_range: {"start", "end"} over emitted rows, None when empty
        dimension_count: Dimensions of the cube, time included
        series_count: Base series plus derived series
        year_mapping: [{"index", "value"}] over emitted rows
        category_mapping: [{"index", "label"}] for every series key
        year_strategies: Normalization strategy per emitted year
    """
    total_records: int
    has_categories: bool
    year_range: Optional[Dict[str, int]]
    dimension_count: int
    series_count: int
    year_mapping: List[Dict[str, Any]] = field(default_factory=list)
    category_mapping: List[Dict[str, Any]] = field(default_factory=list)
    year_strategies: Dict[int, str] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "totalRecords": self.total_records,
            "hasCategories": self.has_categories,
            "yearRange": dict(self.year_range) if self.year_range else None,
            "dimensionCount": self.dimension_count,
            "seriesCount": self.series_count,
            "yearMapping": [dict(m) for m in self.year_mapping],
            "categoryMapping": [dict(m) for m in self.category_mapping],
        }


@dataclass
class FlattenResult:
    """
    Result of flattening a cube.

    Attributes:
        title: Cube title (or the dataset's default title)
        dimensions: Dimension ids, time first
        categories: Series keys in column order, derived keys last
        data: Rows {"year": int, <series key>: float | None, ...}
        metadata: Aggregate metadata
        strategy: Name of the strategy that produced the result
    """
    title: str
    dimensions: List[str]
    categories: List[str]
    data: List[Dict[str, Any]]
    metadata: Metadata
    strategy: str = ""

    @property
    def years(self) -> List[int]:
        return [row[YEAR_KEY] for row in self.data]

    @property
    def row_count(self) -> int:
        return len(self.data)

    def column_labels(self) -> Dict[str, Any]:
        """Series key -> label, from the category mapping."""
        return {m["index"]: m["label"] for m in self.metadata.category_mapping}

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the consumer JSON shape."""
        return {
            "title": self.title,
            "dimensions": list(self.dimensions),
            "categories": list(self.categories),
            "data": [dict(row) for row in self.data],
            "metadata": self.metadata.to_dict(),
        }

    def to_envelope(self) -> Dict[str, Any]:
        """Wrap in the {success, data} response shape."""
        return {"success": True, "data": self.to_dict()}

    def to_frame(self, labels: bool = False) -> pd.DataFrame:
        """
        Rows as a DataFrame indexed by year.

        Args:
            labels: Rename series keys to their human labels
        """
        columns = [YEAR_KEY] + [c for c in self.series_keys()]
        df = pd.DataFrame.from_records(self.data, columns=columns)
        df = df.set_index(YEAR_KEY)
        if labels:
            df = df.rename(columns=self.column_labels())
        return df

    def series_keys(self) -> List[str]:
        """Every non-year key of the rows, in column order."""
        if self.data:
            return [k for k in self.data[0].keys() if k != YEAR_KEY]
        return [m["index"] for m in self.metadata.category_mapping]
