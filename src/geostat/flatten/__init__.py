"""
Flatten module: cube to chart-ready rows.
"""

from geostat.flatten.time import (
    TimeStrategy, YearResolution,
    find_time_dimension, resolve_time, normalize_year, normalize_years
)
from geostat.flatten.series import (
    Series, combine, lookup, series_count, check_cardinality,
    filter_series, label_keyed
)
from geostat.flatten.derivations import apply_derivations, growth_rate, rule_labels
from geostat.flatten.result import FlattenResult, Metadata
from geostat.flatten.assembler import assemble, assemble_single
from geostat.flatten.router import (
    Strategy, FlattenContext, PROCESSORS, register_processor, route, dispatch
)
from geostat.flatten.engine import Flattener, flatten
from geostat.flatten.metadata import describe_variables

__all__ = [
    "TimeStrategy", "YearResolution",
    "find_time_dimension", "resolve_time", "normalize_year", "normalize_years",
    "Series", "combine", "lookup", "series_count", "check_cardinality",
    "filter_series", "label_keyed",
    "apply_derivations", "growth_rate", "rule_labels",
    "FlattenResult", "Metadata",
    "assemble", "assemble_single",
    "Strategy", "FlattenContext", "PROCESSORS", "register_processor", "route", "dispatch",
    "Flattener", "flatten",
    "describe_variables",
]
