from typing import get_args

import pytest
from badge_canvas.models import ConditionOperator, ConditionRule, LogicRule, RuleAction, RuleDefinition
from badge_canvas.operators import (
    OPERATOR_CONFIG,
    PRESET_FIELDS,
    check_condition_value,
    get_field_spec,
    lint_rule,
)


def test_every_model_operator_is_configured():
    assert set(OPERATOR_CONFIG) == set(get_args(ConditionOperator))


def test_preset_field_lookup():
    spec = get_field_spec("order.amount")
    assert spec is not None
    assert spec.field_type == "number"
    assert spec.category == "order"
    assert get_field_spec("order.unknown") is None
    assert len({field.field for field in PRESET_FIELDS}) == len(PRESET_FIELDS)


@pytest.mark.parametrize(
    "operator,value",
    [
        ("eq", "PURCHASE"),
        ("gte", 0),
        ("eq", False),
        ("between", [10, 20]),
        ("in", ["a"]),
        ("contains_all", [1, 2, 3]),
        ("is_empty", ""),
        ("is_not_empty", ["ignored"]),
        ("is_empty", None),
    ],
)
def test_well_shaped_values_pass(operator, value):
    assert check_condition_value("order.amount", operator, value) == []


@pytest.mark.parametrize(
    "operator,value,fragment",
    [
        ("eq", "  ", "single comparison value"),
        ("eq", None, "single comparison value"),
        ("in", None, "non-empty list"),
        ("gt", [1], "single comparison value"),
        ("between", 5, "[start, end]"),
        ("between", [1, 2, 3], "[start, end]"),
        ("between", [1, ""], "start and an end"),
        ("in", [], "non-empty list"),
        ("not_in", "a", "non-empty list"),
        ("approx", 1, "unknown operator"),
    ],
)
def test_badly_shaped_values_reported(operator, value, fragment):
    problems = check_condition_value("order.amount", operator, value)
    assert len(problems) == 1
    assert fragment in problems[0]


def test_missing_field_reported():
    assert check_condition_value("", "eq", 1) == ["condition field is required"]


def test_lint_rule_walks_nested_conditions_and_sibling_roots():
    rule = RuleDefinition(
        id="r1",
        name="R1",
        conditions=[
            LogicRule(
                logic_type="AND",
                children=[
                    ConditionRule(field="order.amount", operator="between", value=[100]),
                    LogicRule(
                        logic_type="OR",
                        children=[ConditionRule(field="", operator="eq", value=1)],
                    ),
                ],
            ),
            [
                ConditionRule(field="user.tags", operator="in", value=["vip"]),
                ConditionRule(field="user.level", operator="gte", value=""),
            ],
        ],
        actions=[RuleAction(badge_id="B1"), RuleAction(badge_id="B2")],
    )

    assert lint_rule(rule) == [
        "action 0: order.amount: 'between' needs a [start, end] pair",
        "action 0: <no field>: condition field is required",
        "action 1: user.level: 'gte' needs a single comparison value",
    ]
