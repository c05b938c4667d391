"""Compatibility Resolver: validates a component selection and prices it.

Invariants:
    - validate_configuration is PURE: same selection + snapshot + rules -> same result
    - Every violation is collected; nothing short-circuits
    - Exactly one MissingComponent per required slot without an entry
    - At most one IncompatiblePair per rule per unordered component pair (EQUALS),
      and one per supplying component (SUM_AT_MOST)
    - OutOfStock is a warning: the configuration stays valid but is not orderable
    - total_price is computed only when there are no errors (half-up, 2dp)

Design Decisions:
    - Rules are data (CompatibilityRule) evaluated generically; there is no per-type branch
    - The rule set is always supplied by the caller (settings-driven BusinessTables in the shell)
    - Numeric tags carry optional unit suffixes ("150W"); only the number is compared
    - Issue values are dataclasses with to_dict(), mirroring the error-dict shape used by the API
"""

import re
from dataclasses import dataclass
from decimal import Decimal
from enum import Enum
from itertools import combinations
from typing import ClassVar, Iterable, Mapping

from praxis.core.catalog import CatalogSnapshot, Component
from praxis.core.money import sum_money


_NUMERIC_TAG = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*[A-Za-z%]*\s*$")


class RuleRelation(str, Enum):
    """How a rule relates its two tag keys."""
    EQUALS = "equals"
    SUM_AT_MOST = "sum_at_most"


@dataclass(frozen=True)
class CompatibilityRule:
    """A named relation between a tag on one component and a tag on another.

    EQUALS: component carrying left_key must match component carrying right_key.
    SUM_AT_MOST: sum of left_key over the selection must not exceed right_key
    of the component that carries it (e.g. powerDraw vs PSU wattage).
    left_type/right_type optionally restrict which slots a side applies to.
    """
    name: str
    relation: RuleRelation
    left_key: str
    right_key: str
    left_type: str | None = None
    right_type: str | None = None

    def matches_left(self, component: Component) -> bool:
        return component.tag(self.left_key) is not None and (
            self.left_type is None or component.type_code == self.left_type
        )

    def matches_right(self, component: Component) -> bool:
        return component.tag(self.right_key) is not None and (
            self.right_type is None or component.type_code == self.right_type
        )

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "relation": self.relation.value,
            "left_key": self.left_key,
            "right_key": self.right_key,
            "left_type": self.left_type,
            "right_type": self.right_type,
        }


def parse_rules(raw_rules: Iterable[Mapping]) -> tuple[CompatibilityRule, ...]:
    """Build rules from config dicts. Raises ValueError on unknown relation."""
    rules = []
    for raw in raw_rules:
        try:
            relation = RuleRelation(raw["relation"])
        except ValueError as e:
            raise ValueError(f"Unknown rule relation: {raw.get('relation')!r}") from e
        rules.append(CompatibilityRule(
            name=str(raw["name"]),
            relation=relation,
            left_key=str(raw["left_key"]),
            right_key=str(raw["right_key"]),
            left_type=raw.get("left_type"),
            right_type=raw.get("right_type"),
        ))
    return tuple(rules)


# ─── Issues ──────────────────────────────────────────────────────

class IssueKind(str, Enum):
    MISSING_COMPONENT = "MISSING_COMPONENT"
    INCOMPATIBLE_PAIR = "INCOMPATIBLE_PAIR"
    OUT_OF_STOCK = "OUT_OF_STOCK"
    COMPONENT_TYPE_MISMATCH = "COMPONENT_TYPE_MISMATCH"
    INACTIVE_COMPONENT = "INACTIVE_COMPONENT"
    UNKNOWN_COMPONENT_TYPE = "UNKNOWN_COMPONENT_TYPE"


@dataclass(frozen=True)
class MissingComponent:
    kind: ClassVar[IssueKind] = IssueKind.MISSING_COMPONENT
    type_code: str

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "type_code": self.type_code,
            "message": f"No component selected for required slot {self.type_code}",
        }


@dataclass(frozen=True)
class IncompatiblePair:
    kind: ClassVar[IssueKind] = IssueKind.INCOMPATIBLE_PAIR
    component_a: Component
    component_b: Component
    rule: CompatibilityRule
    detail: str

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "component_a": str(self.component_a.id),
            "component_b": str(self.component_b.id),
            "rule": self.rule.name,
            "message": self.detail,
        }


@dataclass(frozen=True)
class OutOfStock:
    kind: ClassVar[IssueKind] = IssueKind.OUT_OF_STOCK
    component: Component

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "component_id": str(self.component.id),
            "message": f"{self.component.name} is out of stock",
        }


@dataclass(frozen=True)
class ComponentTypeMismatch:
    kind: ClassVar[IssueKind] = IssueKind.COMPONENT_TYPE_MISMATCH
    slot: str
    component: Component

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "type_code": self.slot,
            "component_id": str(self.component.id),
            "message": (
                f"{self.component.name} is a {self.component.type_code}, "
                f"not a {self.slot}"
            ),
        }


@dataclass(frozen=True)
class InactiveComponent:
    kind: ClassVar[IssueKind] = IssueKind.INACTIVE_COMPONENT
    component: Component

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "component_id": str(self.component.id),
            "message": f"{self.component.name} is no longer sold",
        }


@dataclass(frozen=True)
class UnknownComponentType:
    kind: ClassVar[IssueKind] = IssueKind.UNKNOWN_COMPONENT_TYPE
    slot: str

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "type_code": self.slot,
            "message": f"Unknown component type {self.slot}",
        }


ConfigurationIssue = (
    MissingComponent | IncompatiblePair | ComponentTypeMismatch
    | InactiveComponent | UnknownComponentType
)


# ─── Result ──────────────────────────────────────────────────────

@dataclass(frozen=True)
class PricedConfiguration:
    """A complete, compatible selection with its aggregate price."""
    components: tuple[Component, ...]
    total_price: Decimal

    @property
    def by_type(self) -> dict[str, Component]:
        return {c.type_code: c for c in self.components}


@dataclass(frozen=True)
class ConfigurationResult:
    configuration: PricedConfiguration | None
    errors: tuple[ConfigurationIssue, ...] = ()
    warnings: tuple[OutOfStock, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def is_orderable(self) -> bool:
        return self.is_valid and not self.warnings


# ─── Resolver ────────────────────────────────────────────────────

def validate_configuration(
    selection: Mapping[str, Component],
    snapshot: CatalogSnapshot,
    rules: Iterable[CompatibilityRule],
) -> ConfigurationResult:
    """Check completeness, slot integrity, pairwise rules and stock. Pure."""
    ordered_slots = sorted(selection, key=snapshot.sort_key)
    components = [selection[slot] for slot in ordered_slots]

    errors: list[ConfigurationIssue] = []
    errors.extend(check_slots(selection, ordered_slots, snapshot))
    errors.extend(check_completeness(selection, snapshot))
    for rule in rules:
        errors.extend(evaluate_rule(rule, components))

    warnings = tuple(OutOfStock(c) for c in components if not c.in_stock)

    if errors:
        return ConfigurationResult(None, tuple(errors), warnings)
    return ConfigurationResult(
        PricedConfiguration(
            components=tuple(components),
            total_price=sum_money(c.price for c in components),
        ),
        (),
        warnings,
    )


def check_completeness(
    selection: Mapping[str, Component], snapshot: CatalogSnapshot,
) -> list[MissingComponent]:
    """One MissingComponent per required type absent from the selection."""
    return [
        MissingComponent(t.code)
        for t in snapshot.required_types
        if t.code not in selection
    ]


def check_slots(
    selection: Mapping[str, Component],
    ordered_slots: list[str],
    snapshot: CatalogSnapshot,
) -> list[ConfigurationIssue]:
    """Slots must exist and hold an active component of their own type."""
    known = snapshot.types_by_code
    issues: list[ConfigurationIssue] = []
    for slot in ordered_slots:
        component = selection[slot]
        if slot not in known:
            issues.append(UnknownComponentType(slot))
        elif component.type_code != slot:
            issues.append(ComponentTypeMismatch(slot, component))
        if not component.is_active:
            issues.append(InactiveComponent(component))
    return issues


def evaluate_rule(
    rule: CompatibilityRule, components: list[Component],
) -> list[IncompatiblePair]:
    if rule.relation is RuleRelation.EQUALS:
        return _evaluate_equals(rule, components)
    return _evaluate_sum_at_most(rule, components)


def _evaluate_equals(
    rule: CompatibilityRule, components: list[Component],
) -> list[IncompatiblePair]:
    violations = []
    for first, second in combinations(components, 2):
        for a, b in ((first, second), (second, first)):
            if not (rule.matches_left(a) and rule.matches_right(b)):
                continue
            left, right = a.tag(rule.left_key), b.tag(rule.right_key)
            if left.strip().casefold() != right.strip().casefold():
                violations.append(IncompatiblePair(
                    a, b, rule,
                    f"{a.name} {rule.left_key}={left} does not match "
                    f"{b.name} {rule.right_key}={right}",
                ))
            # one verdict per unordered pair
            break
    return violations


def _evaluate_sum_at_most(
    rule: CompatibilityRule, components: list[Component],
) -> list[IncompatiblePair]:
    violations = []
    for supplier in (c for c in components if rule.matches_right(c)):
        consumers = [
            c for c in components
            if c is not supplier and rule.matches_left(c)
        ]
        if not consumers:
            continue

        capacity = parse_numeric_tag(supplier.tag(rule.right_key))
        loads = [(parse_numeric_tag(c.tag(rule.left_key)), c) for c in consumers]
        unreadable = [c for load, c in loads if load is None]
        if capacity is None or unreadable:
            culprit = unreadable[0] if unreadable else consumers[0]
            violations.append(IncompatiblePair(
                culprit, supplier, rule,
                f"Non-numeric {rule.left_key}/{rule.right_key} tag "
                f"between {culprit.name} and {supplier.name}",
            ))
            continue

        total = sum((load for load, _ in loads), Decimal("0"))
        if total > capacity:
            heaviest = max(loads, key=lambda pair: pair[0])[1]
            violations.append(IncompatiblePair(
                heaviest, supplier, rule,
                f"Total {rule.left_key} {total} exceeds "
                f"{supplier.name} {rule.right_key} {capacity}",
            ))
    return violations


def parse_numeric_tag(value: str | None) -> Decimal | None:
    """'150W' -> Decimal('150'); None when absent or not numeric."""
    if value is None:
        return None
    match = _NUMERIC_TAG.match(value)
    return Decimal(match.group(1)) if match else None
