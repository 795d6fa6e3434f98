from typing import List

from .models import RuleCheck, RuleDefinition


def validate_rule(rule: RuleDefinition) -> RuleCheck:
    """Shape check run before a rule definition is saved.

    Graph-level invariants are enforced while editing, so only the fields the
    backend persists are inspected here. Every problem is reported.
    """
    errors: List[str] = []

    if not rule.id:
        errors.append("rule id must not be empty")

    if not (rule.name or "").strip():
        errors.append("rule name must not be empty")

    if not rule.actions:
        errors.append("rule must have at least one action")

    for index, action in enumerate(rule.actions or []):
        if not action.badge_id:
            errors.append(f"action {index}: badge action must specify a badge id")
        if action.quantity < 1:
            errors.append(f"action {index}: award quantity must be at least 1")

    return RuleCheck(valid=not errors, errors=errors)
