"""
Tests for calculated fields.
"""

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from geostat.config.datasets import DatasetConfig
from geostat.config.rules import DerivationRule, DerivationKind, validate_rules
from geostat.errors import ConfigurationError
from geostat.flatten.derivations import (
    growth_rate, evaluate_rule, apply_derivations, warn_unknown_operands, rule_labels
)


def rule(kind, operands, rule_id="r", labels=None):
    return DerivationRule(rule_id, kind, operands, labels=labels or {})


class TestGrowthRate:
    def test_formula(self):
        assert growth_rate(110.0, 100.0) == pytest.approx(10.0)
        assert growth_rate(10.0, 5.0) == pytest.approx(100.0)
        assert growth_rate(50.0, 100.0) == pytest.approx(-50.0)

    def test_undefined(self):
        assert growth_rate(None, 5.0) is None
        assert growth_rate(5.0, None) is None
        assert growth_rate(5.0, 0.0) is None

    def test_zero_current(self):
        assert growth_rate(0.0, 5.0) == pytest.approx(-100.0)


class TestEvaluateRule:
    def test_sum(self):
        row = {"0": 1.0, "1": 2.0, "2": 3.0}
        assert evaluate_rule(rule(DerivationKind.SUM, ["0", "2"]), row, None) == 4.0

    def test_sum_missing_is_zero(self):
        row = {"0": 1.0, "1": None}
        assert evaluate_rule(rule(DerivationKind.SUM, ["0", "1", "9"]), row, None) == 1.0

    def test_sum_all_missing(self):
        row = {"0": None, "1": None}
        assert evaluate_rule(rule(DerivationKind.SUM, ["0", "1"]), row, None) == 0.0

    def test_difference(self):
        row = {"0": 10.0, "1": 3.0, "2": 2.0}
        assert evaluate_rule(rule(DerivationKind.DIFFERENCE, ["0", "1"]), row, None) == 7.0
        assert evaluate_rule(rule(DerivationKind.DIFFERENCE, ["0", "1", "2"]), row, None) == 5.0

    def test_difference_missing_is_zero(self):
        row = {"0": None, "1": 3.0}
        assert evaluate_rule(rule(DerivationKind.DIFFERENCE, ["0", "1"]), row, None) == -3.0

    def test_growth_first_row(self):
        assert evaluate_rule(rule(DerivationKind.GROWTH_RATE, ["0"]), {"0": 5.0}, None) is None

    def test_growth(self):
        result = evaluate_rule(rule(DerivationKind.GROWTH_RATE, ["0"]), {"0": 10.0}, {"0": 5.0})
        assert result == pytest.approx(100.0)


class TestApplyDerivations:
    def test_keys_follow_base_series(self):
        row = {"year": 2021, "0": 1.0, "1": 2.0}
        rules = [
            rule(DerivationKind.SUM, ["0", "1"], "total"),
            rule(DerivationKind.DIFFERENCE, ["1", "0"], "gap"),
        ]
        apply_derivations(row, None, rules, base_count=2)
        assert list(row.keys()) == ["year", "0", "1", "2", "3"]
        assert row["2"] == 3.0
        assert row["3"] == 1.0

    def test_later_rule_reads_earlier_result(self):
        row = {"0": 1.0, "1": 2.0}
        rules = [
            rule(DerivationKind.SUM, ["0", "1"], "total"),
            rule(DerivationKind.SUM, ["2", "1"], "total-plus"),
        ]
        apply_derivations(row, None, rules, base_count=2)
        assert row["3"] == 5.0

    def test_no_rules(self):
        row = {"0": 1.0}
        assert apply_derivations(row, None, [], base_count=1) == {"0": 1.0}


class TestRules:
    def test_kind_from_string(self):
        r = DerivationRule("x", "sum", [0, 1])
        assert r.kind == DerivationKind.SUM
        assert r.operands == ["0", "1"]

    def test_round_trip(self):
        r = rule(DerivationKind.GROWTH_RATE, ["4"], "change", {"en": "Change"})
        assert DerivationRule.from_dict(r.to_dict()) == r

    def test_label_fallback(self):
        both = rule(DerivationKind.SUM, ["0"], labels={"ka": "ჯამი", "en": "Total"})
        assert both.label("en") == "Total"
        assert both.label("ru") == "ჯამი"
        only_en = rule(DerivationKind.SUM, ["0"], labels={"en": "Total"})
        assert only_en.label("ka") == "Total"
        assert rule(DerivationKind.SUM, ["0"], "bare").label("en") == "bare"

    def test_rule_labels(self):
        rules = [rule(DerivationKind.SUM, ["0"], "a", {"en": "A"}),
                 rule(DerivationKind.SUM, ["0"], "b", {"en": "B"})]
        assert rule_labels(rules, 3, "en") == [
            {"index": "3", "label": "A"},
            {"index": "4", "label": "B"},
        ]

    def test_growth_needs_one_operand(self):
        with pytest.raises(ConfigurationError):
            validate_rules([rule(DerivationKind.GROWTH_RATE, ["0", "1"])])

    def test_empty_operands(self):
        with pytest.raises(ConfigurationError):
            validate_rules([rule(DerivationKind.SUM, [])])

    def test_duplicate_ids(self):
        with pytest.raises(ConfigurationError):
            DatasetConfig(dataset_id="x", derivations=[
                rule(DerivationKind.SUM, ["0"], "dup"),
                rule(DerivationKind.SUM, ["1"], "dup"),
            ])

    def test_unknown_operands(self, caplog):
        rules = [rule(DerivationKind.SUM, ["0", "2", "7"], "a"),
                 rule(DerivationKind.SUM, ["2"], "b")]
        unknown = warn_unknown_operands(rules, ["0", "1"], "demo")
        # "2" is the key of the first rule, readable by the second only
        assert unknown == ["2", "7"]
        assert "demo" in caplog.text


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
