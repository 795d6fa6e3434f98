import collections
from typing import DefaultDict, Dict, List, Optional, Sequence, Set, Tuple

from .models import CanvasNode, Connection, ConnectionCheck, Edge, NodeKind

NODE_KINDS: Tuple[NodeKind, ...] = ("condition", "logic", "badge")

# Which kinds each kind may feed into. Acceptable sources are derived from
# this table so the two directions always agree with validate_connection.
ACCEPTABLE_TARGETS: Dict[NodeKind, Tuple[NodeKind, ...]] = {
    "condition": ("logic", "badge"),
    "logic": ("logic", "badge"),
    "badge": (),
}

REASON_INCOMPLETE = "incomplete connection"
REASON_SELF_LOOP = "cannot connect to itself"
REASON_INVALID_TYPE = "invalid node type"
REASON_BADGE_TERMINAL = "badge node is terminal, no outgoing connections"
REASON_CONDITION_TO_CONDITION = (
    "condition cannot directly target condition; combine via a logic node"
)
REASON_CONDITION_IS_LEAF = "condition node is a leaf, no incoming connections"
REASON_CYCLE = "would create a cycle"


def get_acceptable_target_types(source_kind: str) -> List[NodeKind]:
    return list(ACCEPTABLE_TARGETS.get(source_kind, ()))


def get_acceptable_source_types(target_kind: str) -> List[NodeKind]:
    return [kind for kind in NODE_KINDS if target_kind in ACCEPTABLE_TARGETS[kind]]


def is_valid_connection(
    connection: Connection, nodes: Sequence[CanvasNode], edges: Sequence[Edge]
) -> bool:
    return validate_connection(connection, nodes, edges).valid


def validate_connection(
    connection: Connection, nodes: Sequence[CanvasNode], edges: Sequence[Edge]
) -> ConnectionCheck:
    """Decide whether adding ``connection`` keeps the graph well formed.

    Checks run in a fixed order and the first failure is reported:
    completeness, self-loop, node kinds, badge as source,
    condition-to-condition, any other edge into a condition, and finally
    cycles through existing edges.
    """
    source, target = connection.source, connection.target
    node_map = {node.id: node for node in nodes}
    if not source or not target or source not in node_map or target not in node_map:
        return ConnectionCheck(valid=False, reason=REASON_INCOMPLETE)

    if source == target:
        return ConnectionCheck(valid=False, reason=REASON_SELF_LOOP)

    source_kind = _node_kind(node_map[source])
    target_kind = _node_kind(node_map[target])
    if source_kind is None or target_kind is None:
        return ConnectionCheck(valid=False, reason=REASON_INVALID_TYPE)

    if source_kind == "badge":
        return ConnectionCheck(valid=False, reason=REASON_BADGE_TERMINAL)

    if source_kind == "condition" and target_kind == "condition":
        return ConnectionCheck(valid=False, reason=REASON_CONDITION_TO_CONDITION)

    if target_kind not in ACCEPTABLE_TARGETS[source_kind]:
        return ConnectionCheck(valid=False, reason=REASON_CONDITION_IS_LEAF)

    if _reaches(target, source, edges):
        return ConnectionCheck(valid=False, reason=REASON_CYCLE)

    return ConnectionCheck(valid=True)


def _node_kind(node: CanvasNode) -> Optional[NodeKind]:
    kind = getattr(node, "type", None)
    return kind if kind in NODE_KINDS else None


def _reaches(start: str, goal: str, edges: Sequence[Edge]) -> bool:
    # Iterative DFS over existing outgoing edges; the new edge goal -> start
    # closes a cycle exactly when start already reaches goal.
    adj: DefaultDict[str, List[str]] = collections.defaultdict(list)
    for edge in edges:
        adj[edge.source].append(edge.target)

    visited: Set[str] = set()
    stack = [start]
    while stack:
        node_id = stack.pop()
        if node_id == goal:
            return True
        if node_id in visited:
            continue
        visited.add(node_id)
        stack.extend(adj.get(node_id, []))
    return False
