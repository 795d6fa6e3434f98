from typing import Annotated, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Discriminator, Field
from pydantic.alias_generators import to_camel

NodeKind = Literal["condition", "logic", "badge"]
LogicType = Literal["AND", "OR"]
ConditionOperator = Literal[
    "eq",
    "neq",
    "gt",
    "gte",
    "lt",
    "lte",
    "between",
    "in",
    "not_in",
    "contains",
    "contains_any",
    "contains_all",
    "starts_with",
    "ends_with",
    "regex",
    "before",
    "after",
    "is_empty",
    "is_not_empty",
]
Scalar = Union[bool, int, float, str]
ConditionValue = Union[Scalar, List[Scalar]]


class CamelModel(BaseModel):
    # camelCase on the wire, snake_case in Python; both accepted on input
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Position(BaseModel):
    x: float = 0.0
    y: float = 0.0


# Canvas (graph editor) side

class ConditionData(CamelModel):
    field: str = ""
    operator: ConditionOperator = "eq"
    value: ConditionValue = ""
    field_label: Optional[str] = None


class LogicData(CamelModel):
    logic_type: LogicType = "AND"


class BadgeData(CamelModel):
    badge_id: str = ""
    badge_name: Optional[str] = None
    quantity: int = 1


class ConditionNode(BaseModel):
    id: str
    type: Literal["condition"] = "condition"
    position: Position = Field(default_factory=Position)
    data: ConditionData = Field(default_factory=ConditionData)


class LogicNode(BaseModel):
    id: str
    type: Literal["logic"] = "logic"
    position: Position = Field(default_factory=Position)
    data: LogicData = Field(default_factory=LogicData)


class BadgeNode(BaseModel):
    id: str
    type: Literal["badge"] = "badge"
    position: Position = Field(default_factory=Position)
    data: BadgeData = Field(default_factory=BadgeData)


CanvasNode = Annotated[
    Union[ConditionNode, LogicNode, BadgeNode], Field(discriminator="type")
]


class Edge(CamelModel):
    id: str
    source: str
    target: str
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None


class Connection(CamelModel):
    """A proposed edge; endpoints may still be missing mid-drag."""

    source: Optional[str] = None
    target: Optional[str] = None
    source_handle: Optional[str] = None
    target_handle: Optional[str] = None


class ConnectionCheck(BaseModel):
    valid: bool
    reason: Optional[str] = None


class CanvasGraph(BaseModel):
    nodes: List[CanvasNode] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)


# Rule (backend) side

class ConditionRule(CamelModel):
    type: Literal["condition"] = "condition"
    field: str
    operator: ConditionOperator
    # null or absent for operators that take no value (is_empty, is_not_empty)
    value: Optional[ConditionValue] = None


class LogicRule(CamelModel):
    type: Literal["logic"] = "logic"
    logic_type: LogicType = "AND"
    children: List["RuleCondition"] = Field(default_factory=list)


RuleCondition = Annotated[
    Union[ConditionRule, LogicRule], Discriminator("type")
]
# One slot per action: a single root, or a list of sibling roots
ConditionSlot = Union[RuleCondition, List[RuleCondition]]

LogicRule.model_rebuild()


class RuleAction(CamelModel):
    type: Literal["award_badge"] = "award_badge"
    badge_id: str
    badge_name: Optional[str] = None
    quantity: int = 1


class LayoutNode(BaseModel):
    id: str
    position: Position


class RuleLayout(BaseModel):
    nodes: List[LayoutNode] = Field(default_factory=list)


class RuleDefinition(CamelModel):
    id: str
    name: str
    description: Optional[str] = None
    conditions: List[ConditionSlot] = Field(default_factory=list)
    actions: List[RuleAction] = Field(default_factory=list)
    layout: Optional[RuleLayout] = None


class RuleCheck(BaseModel):
    valid: bool
    errors: List[str] = Field(default_factory=list)


class CanvasTemplate(BaseModel):
    """A named canvas shipped as a YAML template pack."""

    id: str
    name: str
    description: Optional[str] = None
    nodes: List[CanvasNode] = Field(default_factory=list)
    edges: List[Edge] = Field(default_factory=list)
