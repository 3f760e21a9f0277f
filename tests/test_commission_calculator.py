"""Tests for commission rule selection and amounts."""
from decimal import Decimal

import pytest

from portal.schemas.analytics import GameAnalyticsSummary
from portal.schemas.commission import CommissionLine
from portal.services.commission_calculator import (
    select_rule,
    commission_amount,
    calculate_commission,
    commission_lines,
    total_commission,
    find_rule_conflicts,
    to_decimal,
)


def rule(rule_id, game_id=None, rate="5", commission_type="percentage", agent_id="A"):
    return {
        "id": rule_id,
        "agent_id": agent_id,
        "game_id": game_id,
        "commission_rate": Decimal(rate),
        "commission_type": commission_type,
    }


def test_game_specific_rule_beats_fallback():
    rules = [rule("fallback", rate="5"), rule("specific", game_id="G", rate="10")]

    assert calculate_commission(100, rules, "G", "A") == Decimal("10")


def test_fallback_applies_to_other_games():
    rules = [rule("fallback", rate="5"), rule("specific", game_id="G", rate="10")]

    assert select_rule(rules, "H", "A")["id"] == "fallback"
    assert calculate_commission(100, rules, "H", "A") == Decimal("5")


def test_fixed_versus_percentage():
    assert commission_amount(1000, rule("f", rate="20", commission_type="fixed")) == Decimal("20")
    assert commission_amount(1000, rule("p", rate="20", commission_type="percentage")) == Decimal("200")


def test_fixed_ignores_revenue():
    assert commission_amount(0, rule("f", rate="15", commission_type="fixed")) == Decimal("15")


def test_no_applicable_rule_is_zero():
    assert calculate_commission(500, [], "G", "A") == Decimal("0")
    assert calculate_commission(500, [rule("other", game_id="X")], "G", "A") == Decimal("0")


def test_rules_of_other_agents_are_skipped():
    rules = [rule("b-rule", game_id="G", rate="50", agent_id="B")]

    assert select_rule(rules, "G", "A") is None


def test_first_duplicate_rule_wins_and_is_reported():
    rules = [rule("r1", game_id="G", rate="10"), rule("r2", game_id="G", rate="20")]

    assert select_rule(rules, "G", "A")["id"] == "r1"

    [conflict] = find_rule_conflicts(rules)
    assert conflict.agent_id == "A"
    assert conflict.game_id == "G"
    assert conflict.rule_ids == ["r1", "r2"]


def test_no_conflicts_for_distinct_pairs():
    rules = [rule("r1"), rule("r2", game_id="G"), rule("r3", agent_id="B")]

    assert find_rule_conflicts(rules) == []


def test_unknown_type_is_applied_as_percentage():
    assert commission_amount(200, rule("odd", rate="10", commission_type="tiered")) == Decimal("20")


def test_negative_amount_is_clamped():
    assert commission_amount(100, rule("neg", rate="-5", commission_type="fixed")) == Decimal("0")


def test_amounts_are_not_rounded_until_serialized():
    amount = commission_amount("33.33", rule("p", rate="2.5"))
    assert amount == Decimal("0.83325")

    line = CommissionLine(game_id="G", game_title="Juwa", commission_amount=amount)
    assert line.model_dump(mode="json")["commission_amount"] == 0.83


def test_float_revenue_keeps_decimal_precision():
    assert commission_amount(0.1, rule("p", rate="100")) == Decimal("0.1")


def test_commission_lines_and_total():
    summaries = [
        GameAnalyticsSummary(game_id="G", game_title="Juwa", revenue=100),
        GameAnalyticsSummary(game_id="H", game_title="Orion Star", revenue=300),
    ]
    rules = [rule("fallback", rate="5"), rule("specific", game_id="G", rate="10")]

    lines = commission_lines(summaries, rules, "A")

    assert [(line.game_id, line.rule_id, line.commission_amount) for line in lines] == [
        ("G", "specific", Decimal("10")),
        ("H", "fallback", Decimal("15")),
    ]
    assert total_commission(lines) == Decimal("25")


def test_commission_line_without_rule():
    [line] = commission_lines([GameAnalyticsSummary(game_id="G", game_title="Juwa", revenue=100)], [], "A")

    assert line.rule_id is None
    assert line.commission_amount == Decimal("0")


@pytest.mark.parametrize("revenue", [float("nan"), float("inf"), float("-inf"), "NaN"])
def test_non_finite_revenue_earns_nothing(revenue):
    assert to_decimal(revenue) == Decimal("0")
    assert commission_amount(revenue, rule("p", rate="10")) == Decimal("0")


def test_non_finite_revenue_does_not_break_lines():
    summaries = [
        GameAnalyticsSummary(game_id="G", game_title="Juwa", revenue=float("nan")),
        GameAnalyticsSummary(game_id="H", game_title="Orion Star", revenue=float("inf")),
        GameAnalyticsSummary(game_id="K", game_title="Fire Kirin", revenue=200),
    ]

    lines = commission_lines(summaries, [rule("fallback", rate="10")], "A")

    assert [line.commission_amount for line in lines] == [Decimal("0"), Decimal("0"), Decimal("20")]
    assert total_commission(lines) == Decimal("20")


def test_non_finite_rate_is_treated_as_zero():
    assert commission_amount(100, rule("f", rate="Infinity", commission_type="fixed")) == Decimal("0")
