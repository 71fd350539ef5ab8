"""
Calculated fields derived from other series of the same row.

Rules are evaluated in declaration order and append their result under
str(base_count + rule_index), after every base series.

Missing-operand policy differs by kind and is kept as published:
- SUM / DIFFERENCE treat a missing operand as 0, so a partially missing
  row still yields a best-effort value (lossy but available).
- GROWTH_RATE yields None when either value is missing or the previous
  value is 0; it never produces an error or infinity.
"""

import logging
from typing import List, Dict, Optional, Any

from geostat.config.rules import DerivationRule, DerivationKind
from geostat.errors import ConfigurationError

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def _or_zero(value: Optional[float]) -> float:
    return 0.0 if value is None else value


def growth_rate(current: Optional[float], previous: Optional[float]) -> Optional[float]:
    """((current / previous) * 100) - 100, or None when undefined."""
    if current is None or previous is None or previous == 0:
        return None
    return ((current / previous) * 100) - 100


def evaluate_rule(rule: DerivationRule, row: Row,
                  previous_row: Optional[Row]) -> Optional[float]:
    """Evaluate one rule against the current (and previous) row."""
    if rule.kind == DerivationKind.SUM:
        return sum(_or_zero(row.get(key)) for key in rule.operands)

    if rule.kind == DerivationKind.DIFFERENCE:
        first, rest = rule.operands[0], rule.operands[1:]
        return _or_zero(row.get(first)) - sum(_or_zero(row.get(key)) for key in rest)

    if rule.kind == DerivationKind.GROWTH_RATE:
        if previous_row is None:
            return None
        key = rule.operands[0]
        return growth_rate(row.get(key), previous_row.get(key))

    raise ConfigurationError(f"Unsupported derivation kind: {rule.kind}")


def derived_key(base_count: int, index: int) -> str:
    return str(base_count + index)


def warn_unknown_operands(rules: List[DerivationRule], series_keys: List[str],
                          dataset_id: Optional[str] = None) -> List[str]:
    """Log and return operands that match neither a base series nor an earlier rule."""
    known = set(series_keys)
    base_count = len(series_keys)
    unknown = []
    for index, rule in enumerate(rules):
        for key in rule.operands:
            if key not in known:
                unknown.append(key)
                logger.warning(
                    f"Derivation '{rule.rule_id}' of dataset {dataset_id!r} reads "
                    f"series '{key}', which the cube does not have; treating it as missing"
                )
        known.add(derived_key(base_count, index))
    return unknown


def apply_derivations(row: Row, previous_row: Optional[Row],
                      rules: List[DerivationRule], base_count: int) -> Row:
    """
    Append calculated fields to a row.

    Args:
        row: Row with every base series populated (value or None)
        previous_row: Row built for the preceding time value, emitted or not;
            None for the first time value
        rules: Rules in declaration order
        base_count: Number of base series in the row

    Returns:
        The row, extended in place with one key per rule
    """
    for index, rule in enumerate(rules):
        row[derived_key(base_count, index)] = evaluate_rule(rule, row, previous_row)
    return row


def rule_labels(rules: List[DerivationRule], base_count: int,
                lang: str = "ka") -> List[Dict[str, str]]:
    """Category mapping entries for derived series."""
    return [
        {"index": derived_key(base_count, index), "label": rule.label(lang)}
        for index, rule in enumerate(rules)
    ]
