from __future__ import annotations

from typing import Dict, List, Literal, NamedTuple, Optional

from .models import ConditionRule, ConditionValue, LogicRule, RuleCondition, RuleDefinition

ValueShape = Literal["single", "range", "list", "none"]


class OperatorSpec(NamedTuple):
    label: str
    value_shape: ValueShape


class FieldSpec(NamedTuple):
    field: str
    label: str
    field_type: Literal["string", "number", "boolean", "date", "array"]
    category: Literal["event", "user", "order", "time"]


# Operators understood by the rule-evaluation backend and the shape of the
# value each one compares against.
OPERATOR_CONFIG: Dict[str, OperatorSpec] = {
    "eq": OperatorSpec("equals", "single"),
    "neq": OperatorSpec("not equals", "single"),
    "gt": OperatorSpec("greater than", "single"),
    "gte": OperatorSpec("greater than or equal", "single"),
    "lt": OperatorSpec("less than", "single"),
    "lte": OperatorSpec("less than or equal", "single"),
    "between": OperatorSpec("between", "range"),
    "in": OperatorSpec("in", "list"),
    "not_in": OperatorSpec("not in", "list"),
    "contains": OperatorSpec("contains", "single"),
    "contains_any": OperatorSpec("contains any of", "list"),
    "contains_all": OperatorSpec("contains all of", "list"),
    "starts_with": OperatorSpec("starts with", "single"),
    "ends_with": OperatorSpec("ends with", "single"),
    "regex": OperatorSpec("matches pattern", "single"),
    "before": OperatorSpec("before", "single"),
    "after": OperatorSpec("after", "single"),
    "is_empty": OperatorSpec("is empty", "none"),
    "is_not_empty": OperatorSpec("is not empty", "none"),
}

PRESET_FIELDS: List[FieldSpec] = [
    FieldSpec("event.type", "Event type", "string", "event"),
    FieldSpec("event.name", "Event name", "string", "event"),
    FieldSpec("event.timestamp", "Event time", "date", "event"),
    FieldSpec("user.level", "User level", "number", "user"),
    FieldSpec("user.points", "User points", "number", "user"),
    FieldSpec("user.registerDays", "Days since registration", "number", "user"),
    FieldSpec("user.tags", "User tags", "array", "user"),
    FieldSpec("order.amount", "Order amount", "number", "order"),
    FieldSpec("order.count", "Order count", "number", "order"),
    FieldSpec("order.status", "Order status", "string", "order"),
    FieldSpec("time.hour", "Hour of day", "number", "time"),
    FieldSpec("time.dayOfWeek", "Day of week", "number", "time"),
    FieldSpec("time.dayOfMonth", "Day of month", "number", "time"),
]


def get_field_spec(field: str) -> Optional[FieldSpec]:
    for spec in PRESET_FIELDS:
        if spec.field == field:
            return spec
    return None


def check_condition_value(field: str, operator: str, value: Optional[ConditionValue]) -> List[str]:
    problems: List[str] = []
    if not field:
        problems.append("condition field is required")

    spec = OPERATOR_CONFIG.get(operator)
    if spec is None:
        problems.append(f"unknown operator '{operator}'")
        return problems

    if spec.value_shape == "none":
        return problems

    if spec.value_shape == "range":
        if not isinstance(value, list) or len(value) != 2:
            problems.append(f"'{operator}' needs a [start, end] pair")
        elif any(_is_blank(item) for item in value):
            problems.append(f"'{operator}' needs both a start and an end value")
    elif spec.value_shape == "list":
        if not isinstance(value, list) or not value:
            problems.append(f"'{operator}' needs a non-empty list of values")
    elif isinstance(value, list) or _is_blank(value):
        problems.append(f"'{operator}' needs a single comparison value")

    return problems


def lint_rule(rule: RuleDefinition) -> List[str]:
    """Advisory per-condition checks; ``validate_rule`` does not call this."""
    warnings: List[str] = []
    for index, slot in enumerate(rule.conditions):
        roots = slot if isinstance(slot, list) else [slot]
        for root in roots:
            for condition in _iter_conditions(root):
                for problem in check_condition_value(condition.field, condition.operator, condition.value):
                    warnings.append(f"action {index}: {condition.field or '<no field>'}: {problem}")
    return warnings


def _iter_conditions(node: RuleCondition) -> List[ConditionRule]:
    if isinstance(node, LogicRule):
        found: List[ConditionRule] = []
        for child in node.children:
            found += _iter_conditions(child)
        return found
    return [node]


def _is_blank(value: Optional[ConditionValue]) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())
