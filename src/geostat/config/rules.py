"""
Declarative calculated-field rules referenced by the dataset table.
"""

from dataclasses import dataclass, field
from typing import List, Dict, Any
from enum import Enum

from geostat.errors import ConfigurationError


class DerivationKind(Enum):
    """Supported formula kinds."""
    SUM = "sum"
    DIFFERENCE = "difference"
    GROWTH_RATE = "growth_rate"


@dataclass
class DerivationRule:
    """
    A calculated field.

    Attributes:
        rule_id: Identifier, unique within a dataset
        kind: Formula kind
        operands: Series keys the formula reads; GROWTH_RATE takes exactly one.
            DIFFERENCE subtracts every later operand from the first.
        labels: Human label per language code
    """
    rule_id: str
    kind: DerivationKind
    operands: List[str]
    labels: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self):
        if isinstance(self.kind, str):
            self.kind = DerivationKind(self.kind)
        self.operands = [str(o) for o in self.operands]

    def validate(self):
        if not self.operands:
            raise ConfigurationError(f"Derivation '{self.rule_id}' has no operands")
        if self.kind == DerivationKind.GROWTH_RATE and len(self.operands) != 1:
            raise ConfigurationError(
                f"Growth-rate derivation '{self.rule_id}' needs exactly one operand, "
                f"got {self.operands}"
            )

    def label(self, lang: str = "ka") -> str:
        """Label in the given language, falling back to Georgian, then any."""
        if lang in self.labels:
            return self.labels[lang]
        if "ka" in self.labels:
            return self.labels["ka"]
        if self.labels:
            return next(iter(self.labels.values()))
        return self.rule_id

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.rule_id,
            "kind": self.kind.value,
            "operands": list(self.operands),
            "labels": dict(self.labels),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DerivationRule":
        return cls(
            rule_id=data["id"],
            kind=DerivationKind(data["kind"]),
            operands=data.get("operands", []),
            labels=data.get("labels", {}),
        )


def validate_rules(rules: List[DerivationRule]):
    """
    Check a rule list for consistency.

    Raises:
        ConfigurationError: duplicate ids or malformed rules
    """
    seen = set()
    for rule in rules:
        rule.validate()
        if rule.rule_id in seen:
            raise ConfigurationError(f"Duplicate derivation id '{rule.rule_id}'")
        seen.add(rule.rule_id)
