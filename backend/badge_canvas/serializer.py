import logging
from typing import Optional

from pydantic import ValidationError

from .models import RuleDefinition

logger = logging.getLogger(__name__)


def serialize_rule(rule: RuleDefinition) -> str:
    return rule.model_dump_json(by_alias=True, exclude_none=True, indent=2)


def deserialize_rule(text: str) -> Optional[RuleDefinition]:
    """Parse stored rule JSON; ``None`` when the text is not a usable rule."""
    try:
        return RuleDefinition.model_validate_json(text)
    except ValidationError as exc:
        logger.warning("Could not load rule definition: %d error(s), first: %s",
                       exc.error_count(), exc.errors()[0]["msg"])
        return None
