"""Flow graph validator: blocking errors and advisory warnings.

Activation is refused while errors are present. Warnings describe graphs
that run but may end early (missing end node, dead branches).
"""

from __future__ import annotations

from collections import deque
from typing import Any

from app.application.dtos.flow import FlowValidationResult
from app.application.services.action_config_schemas import validate_action_config
from app.domain.entities.flow_graph import (
    ActionConfig,
    FlowGraph,
    NodeConfig,
    TriggerConfig,
    WaitConfig,
    parse_node_config,
)
from app.domain.exceptions import FlowDefinitionException
from app.shared.enums import BranchHandle, NodeKind, TriggerType, WaitType


def _parse_nodes(
    raw_nodes: list[dict[str, Any]], errors: list[str]
) -> dict[str, tuple[NodeKind, NodeConfig]]:
    """Parse each node independently so every broken node is reported."""
    parsed: dict[str, tuple[NodeKind, NodeConfig]] = {}
    for position, raw in enumerate(raw_nodes):
        if not isinstance(raw, dict):
            errors.append(f"Node at position {position} is not an object")
            continue
        node_id = raw.get("id")
        if not node_id or not isinstance(node_id, str):
            errors.append("A node has no id")
            continue
        if node_id in parsed:
            errors.append(f"Duplicate node id: {node_id}")
            continue
        try:
            kind = NodeKind(raw.get("type"))
        except ValueError:
            errors.append(f"Node {node_id} has unknown type {raw.get('type')!r}")
            continue
        data = raw.get("data") or {}
        if not isinstance(data, dict):
            errors.append(f"Node {node_id} data is not an object")
            continue
        config = data.get("config")
        try:
            parsed[node_id] = (kind, parse_node_config(kind, config, node_id))
        except FlowDefinitionException as e:
            errors.append(f"Node {node_id}: {e.message}")
    return parsed


def _check_node_config(
    node_id: str, config: NodeConfig, errors: list[str], warnings: list[str]
) -> None:
    match config:
        case TriggerConfig(trigger_type=None):
            errors.append(f"Trigger {node_id} has no trigger type")
        case TriggerConfig(trigger_type=trigger_type) if trigger_type not in TriggerType.values():
            errors.append(f"Trigger {node_id} has unsupported trigger type {trigger_type!r}")
        case ActionConfig(action_type=action_type, params=params):
            errors.extend(
                f"Action {node_id}: {problem}"
                for problem in validate_action_config(action_type, params)
            )
        case WaitConfig(wait_type=WaitType.DELAY, delay_value=0):
            warnings.append(f"Wait {node_id} has a zero delay and passes through immediately")
        case _:
            pass


def _reaches(start: str, targets: set[str], adjacency: dict[str, set[str]]) -> bool:
    seen = {start}
    queue = deque([start])
    while queue:
        current = queue.popleft()
        if current in targets:
            return True
        for nxt in adjacency.get(current, ()):
            if nxt not in seen:
                seen.add(nxt)
                queue.append(nxt)
    return False


def validate_flow_graph(payload: dict[str, Any] | None) -> FlowValidationResult:
    """Validate an editor graph payload ({nodes, edges})."""
    payload = payload or {}
    errors: list[str] = []
    warnings: list[str] = []

    raw_nodes = payload.get("nodes") or []
    raw_edges = payload.get("edges") or []
    if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
        return FlowValidationResult(errors=["Flow nodes and edges must be lists"])
    if not raw_nodes:
        return FlowValidationResult(errors=["Flow has no nodes"])

    parsed = _parse_nodes(raw_nodes, errors)
    for node_id, (_, config) in parsed.items():
        _check_node_config(node_id, config, errors, warnings)

    for position, raw in enumerate(raw_edges):
        if not isinstance(raw, dict):
            errors.append(f"Edge at position {position} is not an object")
            continue
        for end in ("source", "target"):
            if not isinstance(raw.get(end), str) or raw.get(end) not in parsed:
                errors.append(
                    f"Edge {raw.get('id') or '?'} {end} points to unknown node {raw.get(end)!r}"
                )
    if errors:
        return FlowValidationResult(errors=errors, warnings=warnings)

    graph = FlowGraph.from_payload(payload)
    triggers = graph.trigger_nodes()
    end_ids = {n.id for n in graph.nodes.values() if n.kind is NodeKind.END}

    if len(triggers) != 1:
        errors.append(f"Flow must have exactly one trigger node (found {len(triggers)})")
    for trigger in triggers:
        if not graph.outgoing(trigger.id):
            errors.append(f"Trigger {trigger.id} has no outgoing edge")

    adjacency: dict[str, set[str]] = {}
    incoming: set[str] = set()
    for edge in graph.edges:
        adjacency.setdefault(edge.source, set()).add(edge.target)
        incoming.add(edge.target)

    for node in graph.nodes.values():
        if node.kind is NodeKind.CONDITION:
            yes = graph.branch_target(node.id, BranchHandle.YES)
            no = graph.branch_target(node.id, BranchHandle.NO)
            if yes is None and no is None:
                errors.append(f"Condition {node.id} has neither a 'yes' nor a 'no' edge")
            elif yes is None or no is None:
                missing = "yes" if yes is None else "no"
                warnings.append(
                    f"Condition {node.id} has no '{missing}' edge; taking that branch fails the execution"
                )
        elif len(adjacency.get(node.id, ())) > 1:
            errors.append(f"Node {node.id} has several outgoing targets; only conditions may branch")

    if not end_ids:
        warnings.append("Flow has no end node")
    for node in graph.nodes.values():
        if node.id not in adjacency and node.id not in incoming and len(graph.nodes) > 1:
            warnings.append(f"Node {node.id} is not connected")
        elif end_ids and node.kind is not NodeKind.END and not _reaches(node.id, end_ids, adjacency):
            if node.kind is NodeKind.TRIGGER:
                warnings.append(f"Trigger {node.id} has no path to an end node")
            else:
                warnings.append(f"Node {node.id} cannot reach an end node")

    if len(triggers) == 1:
        reachable = {n for n in graph.nodes if _reaches(triggers[0].id, {n}, adjacency)}
        for node_id in sorted(graph.nodes.keys() - reachable):
            if node_id in adjacency or node_id in incoming:
                warnings.append(f"Node {node_id} is not reachable from the trigger")

    return FlowValidationResult(errors=errors, warnings=warnings)
