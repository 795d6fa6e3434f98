import itertools

import pytest
from badge_canvas.connections import (
    NODE_KINDS,
    get_acceptable_source_types,
    get_acceptable_target_types,
    is_valid_connection,
    validate_connection,
)
from badge_canvas.models import BadgeNode, ConditionNode, Connection, Edge, LogicNode

KIND_TO_NODE = {"condition": ConditionNode, "logic": LogicNode, "badge": BadgeNode}


def _edge(source: str, target: str) -> Edge:
    return Edge(id=f"{source}-{target}", source=source, target=target)


@pytest.fixture
def nodes():
    return [
        ConditionNode(id="c1"),
        ConditionNode(id="c2"),
        LogicNode(id="l1"),
        LogicNode(id="l2"),
        BadgeNode(id="b1"),
    ]


def test_missing_endpoint_is_incomplete(nodes):
    result = validate_connection(Connection(source=None, target="c1"), nodes, [])
    assert not result.valid
    assert "incomplete" in result.reason


def test_unknown_node_is_incomplete(nodes):
    result = validate_connection(Connection(source="c1", target="ghost"), nodes, [])
    assert not result.valid
    assert "incomplete" in result.reason


def test_self_connection_rejected(nodes):
    for node in nodes:
        result = validate_connection(Connection(source=node.id, target=node.id), nodes, [])
        assert not result.valid
        assert "itself" in result.reason


def test_badge_cannot_be_source(nodes):
    for target in ("c1", "l1"):
        result = validate_connection(Connection(source="b1", target=target), nodes, [])
        assert not result.valid
        assert "terminal" in result.reason


def test_condition_cannot_target_condition(nodes):
    result = validate_connection(Connection(source="c1", target="c2"), nodes, [])
    assert not result.valid
    assert "logic node" in result.reason


def test_logic_cannot_target_condition(nodes):
    result = validate_connection(Connection(source="l1", target="c1"), nodes, [])
    assert not result.valid
    assert "leaf" in result.reason


def test_node_with_unresolved_kind_rejected(nodes):
    stray = LogicNode.model_construct(id="x1", type="trigger")
    result = validate_connection(Connection(source="c1", target="x1"), nodes + [stray], [])
    assert not result.valid
    assert result.reason == "invalid node type"


@pytest.mark.parametrize(
    "source,target",
    [("c1", "l1"), ("c1", "b1"), ("l1", "l2"), ("l1", "b1")],
)
def test_allowed_connections(nodes, source, target):
    assert is_valid_connection(Connection(source=source, target=target), nodes, [])


def test_back_edge_creates_cycle(nodes):
    edges = [_edge("l1", "l2")]
    result = validate_connection(Connection(source="l2", target="l1"), nodes, edges)
    assert not result.valid
    assert "cycle" in result.reason


def test_unconnected_source_does_not_create_cycle(nodes):
    edges = [_edge("l1", "l2")]
    assert is_valid_connection(Connection(source="c1", target="l2"), nodes, edges)


def test_long_cycle_detected_through_shared_ancestors():
    nodes = [LogicNode(id=f"l{i}") for i in range(6)]
    # l0 fans out and reconverges before reaching l5
    edges = [
        _edge("l0", "l1"),
        _edge("l0", "l2"),
        _edge("l1", "l3"),
        _edge("l2", "l3"),
        _edge("l3", "l4"),
        _edge("l4", "l5"),
    ]
    assert not is_valid_connection(Connection(source="l5", target="l0"), nodes, edges)
    assert is_valid_connection(Connection(source="l0", target="l5"), nodes, edges)


def test_existing_cycle_elsewhere_does_not_block_unrelated_edge(nodes):
    edges = [_edge("l1", "l2"), _edge("l2", "l1")]
    assert is_valid_connection(Connection(source="c1", target="l1"), nodes, edges)


def test_capability_tables():
    assert get_acceptable_source_types("logic") == ["condition", "logic"]
    assert get_acceptable_source_types("badge") == ["condition", "logic"]
    assert get_acceptable_source_types("condition") == []
    assert get_acceptable_target_types("condition") == ["logic", "badge"]
    assert get_acceptable_target_types("logic") == ["logic", "badge"]
    assert get_acceptable_target_types("badge") == []
    assert get_acceptable_target_types("trigger") == []


@pytest.mark.parametrize("source_kind,target_kind", list(itertools.product(NODE_KINDS, repeat=2)))
def test_capability_tables_agree_with_validator(source_kind, target_kind):
    nodes = [KIND_TO_NODE[source_kind](id="src"), KIND_TO_NODE[target_kind](id="dst")]
    valid = is_valid_connection(Connection(source="src", target="dst"), nodes, [])

    assert valid == (target_kind in get_acceptable_target_types(source_kind))
    assert valid == (source_kind in get_acceptable_source_types(target_kind))


def test_validator_does_not_mutate_inputs(nodes):
    edges = [_edge("c1", "l1")]
    snapshot = ([n.model_dump() for n in nodes], [e.model_dump() for e in edges])
    validate_connection(Connection(source="l1", target="b1"), nodes, edges)
    assert ([n.model_dump() for n in nodes], [e.model_dump() for e in edges]) == snapshot
