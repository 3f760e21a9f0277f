"""
Commission Calculator

Picks the commission rule that applies to an (agent, game) pair and
computes the amount earned on a revenue figure.

Precedence: a rule for the game itself beats the agent's fallback rule
(game_id = None). Among equal rules the first one encountered wins; use
find_rule_conflicts() to report such duplicates.

Amounts are Decimal and unrounded; round only for display
(see portal.schemas.base.to_display_amount).
"""
import logging
from collections import OrderedDict
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from portal.models.commission import CommissionType
from portal.schemas.analytics import GameAnalyticsSummary
from portal.schemas.commission import CommissionLine, RuleConflict


logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def to_decimal(value: Any) -> Decimal:
    """Convert store numbers (float, int, str, Decimal) without float noise."""
    if value is None:
        return ZERO
    try:
        number = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError):
        logger.warning("Non-numeric commission input %r treated as 0", value)
        return ZERO
    if not number.is_finite():
        logger.warning("Non-finite commission input %r treated as 0", value)
        return ZERO
    return number


def select_rule(
    rules: Iterable[Mapping[str, Any]],
    game_id: Optional[str],
    agent_id: Optional[str] = None,
) -> Optional[Mapping[str, Any]]:
    """
    Return the rule that applies to game_id, or None.

    Args:
        rules: Commission rules, normally all belonging to one agent
        game_id: Game the revenue was earned on
        agent_id: When given, rules of other agents are skipped
    """
    fallback = None
    for rule in rules:
        if agent_id is not None and rule.get("agent_id") != agent_id:
            continue
        rule_game = rule.get("game_id")
        if rule_game is None:
            if fallback is None:
                fallback = rule
        elif game_id is not None and rule_game == game_id:
            return rule
    return fallback


def commission_amount(revenue: Any, rule: Optional[Mapping[str, Any]]) -> Decimal:
    """Amount earned on revenue under rule; never negative."""
    if rule is None:
        return ZERO

    rate = to_decimal(rule.get("commission_rate"))
    commission_type = rule.get("commission_type")

    if commission_type == CommissionType.FIXED.value:
        amount = rate
    else:
        if commission_type != CommissionType.PERCENTAGE.value:
            logger.warning(
                "Commission rule %s has unknown type %r, applying it as a percentage",
                rule.get("id"), commission_type,
            )
        amount = to_decimal(revenue) * rate / HUNDRED

    if amount < ZERO:
        logger.warning("Negative commission for rule %s clamped to 0", rule.get("id"))
        return ZERO
    return amount


def calculate_commission(
    revenue: Any,
    rules: Iterable[Mapping[str, Any]],
    game_id: Optional[str],
    agent_id: Optional[str] = None,
) -> Decimal:
    """Select the applicable rule and compute the commission on revenue."""
    return commission_amount(revenue, select_rule(rules, game_id, agent_id))


def commission_lines(
    game_summaries: Iterable[GameAnalyticsSummary],
    rules: Iterable[Mapping[str, Any]],
    agent_id: Optional[str] = None,
) -> List[CommissionLine]:
    """One commission line per game summary for a single agent."""
    rules = list(rules)
    lines = []
    for summary in game_summaries:
        rule = select_rule(rules, summary.game_id, agent_id)
        lines.append(CommissionLine(
            game_id=summary.game_id,
            game_title=summary.game_title,
            revenue=summary.revenue,
            rule_id=rule.get("id") if rule else None,
            commission_rate=to_decimal(rule.get("commission_rate")) if rule else None,
            commission_type=rule.get("commission_type") if rule else None,
            commission_amount=commission_amount(summary.revenue, rule),
        ))
    return lines


def total_commission(lines: Iterable[CommissionLine]) -> Decimal:
    return sum((line.commission_amount for line in lines), ZERO)


def find_rule_conflicts(rules: Iterable[Mapping[str, Any]]) -> List[RuleConflict]:
    """Report every (agent_id, game_id) pair configured by more than one rule."""
    by_pair: "OrderedDict[Tuple[Any, Any], List[str]]" = OrderedDict()
    for rule in rules:
        key = (rule.get("agent_id"), rule.get("game_id"))
        by_pair.setdefault(key, []).append(rule.get("id"))

    conflicts = [
        RuleConflict(agent_id=agent_id, game_id=game_id, rule_ids=rule_ids)
        for (agent_id, game_id), rule_ids in by_pair.items()
        if len(rule_ids) > 1
    ]
    for conflict in conflicts:
        logger.warning(
            "Agent %s has %d commission rules for %s; using %s",
            conflict.agent_id, len(conflict.rule_ids),
            conflict.game_id or "all games", conflict.rule_ids[0],
        )
    return conflicts
