"""
Priority-ordered price resolution.

For each night the resolver picks exactly one winning rule among the active
rules covering that date and scoped to the resource or its type:

  1. highest priority
  2. resource-specific beats type-wide
  3. most recently created

Two rules equal on all three keys make the result depend on load order. That
is a data defect, so the resolver raises instead of picking one.

All amounts are Decimal with two fraction digits; each night's price is
rounded half-up before nights are summed.

Recurring rules (weekend rates) are not understood here. Callers expand them
into ordinary one-day rules with ``expand_weekend_rules`` first.
"""

from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Iterable, Optional, Sequence

from resort.engine.errors import AmbiguousPriceRuleError, InvalidBasePriceError
from resort.engine.types import DateRange, ExclusiveResource, PriceRule, ResourceType, to_money

# Expanded rules lose every creation-time tiebreak against real rules
_EXPANDED_RULE_CREATED_AT = datetime.min.replace(tzinfo=timezone.utc)


def _aware(moment: datetime) -> datetime:
    return moment if moment.tzinfo is not None else moment.replace(tzinfo=timezone.utc)


def _rank(rule: PriceRule) -> tuple:
    return (rule.priority, rule.is_resource_specific, _aware(rule.created_at))


class PriceRuleResolver:
    """Pure resolver over a fixed set of candidate rules."""

    def __init__(self, rules: Iterable[PriceRule]) -> None:
        self._rules: Sequence[PriceRule] = tuple(rules)

    def select_rule(
        self,
        resource_id: int,
        resource_type: ResourceType,
        day: date,
    ) -> Optional[PriceRule]:
        candidates = sorted(
            (
                rule for rule in self._rules
                if rule.is_active and rule.covers(day) and rule.applies_to(resource_id, resource_type)
            ),
            key=_rank,
            reverse=True,
        )
        if not candidates:
            return None
        if len(candidates) > 1 and _rank(candidates[0]) == _rank(candidates[1]):
            tied = tuple(rule for rule in candidates if _rank(rule) == _rank(candidates[0]))
            raise AmbiguousPriceRuleError(day, tied)
        return candidates[0]

    def resolve_price(
        self,
        base_price: Decimal,
        resource_id: int,
        resource_type: ResourceType,
        day: date,
    ) -> Decimal:
        """
        Price one unit on ``day``.

        Raises:
            InvalidBasePriceError: base_price <= 0
            AmbiguousPriceRuleError: the top rules tie on every key
        """
        if base_price <= 0:
            raise InvalidBasePriceError(f"Base price must be positive, got {base_price}")
        rule = self.select_rule(resource_id, resource_type, day)
        if rule is None:
            return to_money(base_price)
        return rule.apply(base_price)

    def resolve_price_range(
        self,
        base_price: Decimal,
        resource_id: int,
        resource_type: ResourceType,
        start: date,
        end: date,
    ) -> list[tuple[date, Decimal]]:
        """
        Price every night in ``[start, end)``.

        Raises:
            InvalidRangeError: end <= start
        """
        nights = DateRange(start, end)
        if base_price <= 0:
            raise InvalidBasePriceError(f"Base price must be positive, got {base_price}")
        return [
            (night, self.resolve_price(base_price, resource_id, resource_type, night))
            for night in nights.days()
        ]


def total_of(nightly: Iterable[tuple[date, Decimal]]) -> Decimal:
    return to_money(sum((price for _, price in nightly), Decimal("0")))


def expand_weekend_rules(
    resource: ExclusiveResource,
    start: date,
    end: date,
    weekend_days: Iterable[int],
    priority: int = 0,
) -> list[PriceRule]:
    """
    Turn a resource's weekend rate into one-day override rules.

    ``weekend_days`` are ISO weekday numbers of the night (5 = Friday).
    """
    if resource.weekend_price is None:
        return []
    weekdays = frozenset(weekend_days)
    return [
        PriceRule(
            id=-night.toordinal(),
            name="weekend",
            resource_type=ResourceType.EXCLUSIVE,
            resource_id=resource.id,
            start_date=night,
            end_date=night,
            override_price=resource.weekend_price,
            priority=priority,
            created_at=_EXPANDED_RULE_CREATED_AT,
        )
        for night in DateRange(start, end).days()
        if night.isoweekday() in weekdays
    ]
