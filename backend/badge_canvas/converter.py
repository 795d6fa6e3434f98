import collections
import logging
from typing import DefaultDict, Dict, FrozenSet, List, Optional, Sequence, Tuple

from .models import (
    BadgeData,
    BadgeNode,
    CanvasGraph,
    CanvasNode,
    ConditionData,
    ConditionNode,
    ConditionRule,
    ConditionSlot,
    Edge,
    LayoutNode,
    LogicData,
    LogicNode,
    LogicRule,
    Position,
    RuleAction,
    RuleCondition,
    RuleDefinition,
    RuleLayout,
)
from .settings import LayoutSettings, load_layout_settings

logger = logging.getLogger(__name__)


# Canvas -> rule

def canvas_to_rule(
    nodes: Sequence[CanvasNode],
    edges: Sequence[Edge],
    rule_id: str = "new-rule",
    rule_name: str = "New rule",
    description: Optional[str] = None,
) -> RuleDefinition:
    """Walk a finished canvas and emit its rule definition.

    Every badge node becomes one ``award_badge`` action. The chains feeding a
    badge become its condition slot: the root itself when exactly one chain
    lands on the badge, otherwise the list of roots (empty when nothing is
    connected). The graph is not re-validated here; cyclic or dangling
    branches are logged and dropped.

    The layout snapshot lists nodes in the order ``rule_to_canvas`` recreates
    them (each badge, then its upstream tree pre-order), followed by nodes
    that feed no badge, so positions can be restored by index.
    """
    node_map: Dict[str, CanvasNode] = {node.id: node for node in nodes}
    incoming = _build_incoming_map(edges)

    conditions: List[ConditionSlot] = []
    actions: List[RuleAction] = []
    layout_order: List[str] = []
    for node in nodes:
        if not isinstance(node, BadgeNode):
            continue

        actions.append(
            RuleAction(
                badge_id=node.data.badge_id,
                badge_name=node.data.badge_name,
                quantity=node.data.quantity,
            )
        )
        layout_order.append(node.id)

        roots: List[RuleCondition] = []
        for edge in incoming.get(node.id, []):
            condition, branch_ids = _build_condition_tree(edge.source, node_map, incoming, frozenset())
            if condition is not None:
                roots.append(condition)
                layout_order += branch_ids
        if not roots:
            logger.debug("Badge node %s has no incoming condition chain", node.id)
        conditions.append(roots[0] if len(roots) == 1 else roots)

    placed = set(layout_order)
    layout_order += [node.id for node in nodes if node.id not in placed]
    layout = RuleLayout(
        nodes=[
            LayoutNode(id=node_id, position=node_map[node_id].position.model_copy())
            for node_id in layout_order
        ]
    )

    return RuleDefinition(
        id=rule_id,
        name=rule_name,
        description=description,
        conditions=conditions,
        actions=actions,
        layout=layout,
    )


def _build_incoming_map(edges: Sequence[Edge]) -> DefaultDict[str, List[Edge]]:
    incoming: DefaultDict[str, List[Edge]] = collections.defaultdict(list)
    for edge in edges:
        incoming[edge.target].append(edge)
    return incoming


def _build_condition_tree(
    node_id: str,
    node_map: Dict[str, CanvasNode],
    incoming: DefaultDict[str, List[Edge]],
    visited: FrozenSet[str],
) -> Tuple[Optional[RuleCondition], List[str]]:
    """Return the condition rooted at ``node_id`` and the ids it used, pre-order."""
    # ``visited`` holds only the current downward path, so a node shared by
    # two branches is emitted in both while a true cycle is cut.
    if node_id in visited:
        logger.warning("Cycle through node %s; dropping branch from rule conditions", node_id)
        return None, []

    node = node_map.get(node_id)
    if node is None:
        logger.warning("Edge references unknown node %s; dropping branch", node_id)
        return None, []

    if isinstance(node, ConditionNode):
        condition = ConditionRule(
            field=node.data.field,
            operator=node.data.operator,
            value=node.data.value,
        )
        return condition, [node_id]

    if isinstance(node, LogicNode):
        path = visited | {node_id}
        children: List[RuleCondition] = []
        used = [node_id]
        for edge in incoming.get(node_id, []):
            child, child_ids = _build_condition_tree(edge.source, node_map, incoming, path)
            if child is not None:
                children.append(child)
                used += child_ids
        return LogicRule(logic_type=node.data.logic_type, children=children), used

    logger.warning("Node %s of type %s cannot feed a condition; dropping branch", node_id, node.type)
    return None, []


# Rule -> canvas

class _CanvasBuilder:
    """Per-conversion node factory; owns the id sequence for one call."""

    def __init__(self, settings: LayoutSettings):
        self.settings = settings
        self._last_id = 0
        self._created = 0

    def _next_id(self, prefix: str) -> str:
        self._last_id += 1
        return f"{prefix}-{self._last_id}"

    def _next_position(self, depth: int) -> Position:
        position = Position(
            x=self.settings.origin_x + depth * self.settings.column_step,
            y=self.settings.origin_y + self._created * self.settings.row_step,
        )
        self._created += 1
        return position

    def badge(self, action: RuleAction, row: int) -> BadgeNode:
        self._created += 1
        return BadgeNode(
            id=self._next_id("badge"),
            position=Position(
                x=self.settings.badge_column_x,
                y=self.settings.origin_y + row * self.settings.badge_row_step,
            ),
            data=BadgeData(
                badge_id=action.badge_id,
                badge_name=action.badge_name,
                quantity=action.quantity,
            ),
        )

    def expand(
        self,
        condition: RuleCondition,
        parent_id: str,
        handle: Optional[str] = None,
        depth: int = 0,
    ) -> Tuple[List[CanvasNode], List[Edge]]:
        if isinstance(condition, ConditionRule):
            position = self._next_position(depth)
            node_id = self._next_id("condition")
            node = ConditionNode(
                id=node_id,
                position=position,
                data=ConditionData(
                    field=condition.field,
                    operator=condition.operator,
                    value="" if condition.value is None else condition.value,
                ),
            )
            return [node], [_link(node_id, parent_id, handle)]

        position = self._next_position(depth)
        node_id = self._next_id("logic")
        nodes: List[CanvasNode] = [
            LogicNode(id=node_id, position=position, data=LogicData(logic_type=condition.logic_type))
        ]
        edges: List[Edge] = [_link(node_id, parent_id, handle)]
        for index, child in enumerate(condition.children):
            child_nodes, child_edges = self.expand(child, node_id, f"input-{index + 1}", depth + 1)
            nodes += child_nodes
            edges += child_edges
        return nodes, edges


def _link(source: str, target: str, handle: Optional[str]) -> Edge:
    return Edge(id=f"e-{source}-{target}", source=source, target=target, target_handle=handle)


def _slot_roots(slot: ConditionSlot) -> List[RuleCondition]:
    return list(slot) if isinstance(slot, list) else [slot]


def rule_to_canvas(rule: RuleDefinition, settings: Optional[LayoutSettings] = None) -> CanvasGraph:
    """Expand a stored rule into canvas nodes and edges for editing.

    Without explicit ``settings`` the layout comes from
    ``load_layout_settings()``, i.e. the file named by
    ``BADGE_CANVAS_SETTINGS`` or the built-in defaults.
    """
    builder = _CanvasBuilder(settings or load_layout_settings())
    nodes: List[CanvasNode] = []
    edges: List[Edge] = []

    for index, action in enumerate(rule.actions):
        badge = builder.badge(action, index)
        nodes.append(badge)
        if index >= len(rule.conditions):
            continue
        for root in _slot_roots(rule.conditions[index]):
            root_nodes, root_edges = builder.expand(root, badge.id)
            nodes += root_nodes
            edges += root_edges

    if rule.layout is not None and rule.layout.nodes:
        nodes = _apply_layout(nodes, rule.layout)

    return CanvasGraph(nodes=nodes, edges=edges)


def _apply_layout(nodes: List[CanvasNode], layout: RuleLayout) -> List[CanvasNode]:
    # Match saved positions by id first, then by array index.
    saved_by_id = {entry.id: entry.position for entry in layout.nodes}
    placed: List[CanvasNode] = []
    for index, node in enumerate(nodes):
        saved = saved_by_id.get(node.id)
        if saved is None and index < len(layout.nodes):
            saved = layout.nodes[index].position
        if saved is None:
            placed.append(node)
        else:
            placed.append(node.model_copy(update={"position": saved.model_copy()}))
    return placed
