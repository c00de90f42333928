"""Flow graph domain model: nodes, edges and per-kind node configs.

A flow graph is the editor payload ``{nodes: [...], edges: [...]}``. Each node
carries ``data.config`` whose shape depends on the node kind; parsing turns
that blob into one of the config dataclasses below so the interpreter can
pattern-match on the config type instead of probing dict keys.

Trigger and action types are open sets (resolved by the matcher and the
action registry) and are kept as plain strings. Wait types and condition
operators are engine semantics; unknown values are definition errors.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from app.domain.exceptions import FlowDefinitionException
from app.shared.enums import (
    BranchHandle,
    ConditionOperator,
    DelayUnit,
    NodeKind,
    WaitType,
)


def _pick(config: dict[str, Any], *keys: str) -> Any:
    """Return the first present key (editor payloads mix camelCase and snake_case)."""
    for key in keys:
        if key in config and config[key] is not None:
            return config[key]
    return None


@dataclass(frozen=True)
class TriggerConfig:
    """Entry point: event type plus optional filter values."""

    trigger_type: str | None
    tag_id: str | None = None
    stage_id: str | None = None
    field: str | None = None
    value: Any = None
    date: str | None = None


@dataclass(frozen=True)
class ActionConfig:
    """Side effect: action type plus its parameters."""

    action_type: str | None
    params: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class ConditionConfig:
    """Branch predicate over execution data or the lead record."""

    operator: ConditionOperator
    field: str | None = None
    tag_id: str | None = None
    stage_id: str | None = None
    value: Any = None
    source: str | None = None

    @property
    def reads_execution_data(self) -> bool:
        """Field is looked up in execution_data rather than on the lead."""
        return self.source == "execution_data" or (
            self.field is not None and self.field.startswith("data.")
        )

    @property
    def data_key(self) -> str | None:
        """Field name with the optional 'data.' prefix removed."""
        if self.field is None:
            return None
        return self.field.removeprefix("data.")


@dataclass(frozen=True)
class WaitConfig:
    """Suspension: fixed delay, absolute instant, or field condition."""

    wait_type: WaitType
    delay_value: int | None = None
    delay_unit: DelayUnit | None = None
    date: str | None = None
    condition: ConditionConfig | None = None
    check_interval_minutes: int | None = None
    max_wait_hours: float | None = None


@dataclass(frozen=True)
class EndConfig:
    """Graph exit; carries no parameters."""


NodeConfig = TriggerConfig | ActionConfig | WaitConfig | ConditionConfig | EndConfig


def parse_condition_config(config: dict[str, Any], node_id: str | None = None) -> ConditionConfig:
    """Build a ConditionConfig; raises FlowDefinitionException on a bad operator."""
    raw_operator = config.get("operator")
    if not raw_operator:
        raise FlowDefinitionException("Condition operator is not configured", node_id)
    try:
        operator = ConditionOperator(raw_operator)
    except ValueError as e:
        raise FlowDefinitionException(
            f"Unsupported condition operator: {raw_operator!r}", node_id
        ) from e
    if not (config.get("field") or config.get("tag_id") or config.get("stage_id")):
        raise FlowDefinitionException(
            "Condition needs a field, tag_id or stage_id", node_id
        )
    return ConditionConfig(
        operator=operator,
        field=config.get("field"),
        tag_id=config.get("tag_id"),
        stage_id=config.get("stage_id"),
        value=config.get("value"),
        source=config.get("source"),
    )


def _parse_wait_config(config: dict[str, Any], node_id: str) -> WaitConfig:
    raw_type = _pick(config, "waitType", "wait_type")
    if not raw_type:
        raise FlowDefinitionException("Wait type is not configured", node_id)
    try:
        wait_type = WaitType(raw_type)
    except ValueError as e:
        raise FlowDefinitionException(f"Unsupported wait type: {raw_type!r}", node_id) from e

    if wait_type is WaitType.DELAY:
        raw_value = config.get("delay_value")
        raw_unit = config.get("delay_unit")
        if raw_value in (None, "") or not raw_unit:
            raise FlowDefinitionException("Delay wait needs delay_value and delay_unit", node_id)
        try:
            delay_value = int(raw_value)
            delay_unit = DelayUnit(raw_unit)
        except ValueError as e:
            raise FlowDefinitionException(f"Invalid delay configuration: {e}", node_id) from e
        if delay_value < 0:
            raise FlowDefinitionException("delay_value must be >= 0", node_id)
        return WaitConfig(wait_type=wait_type, delay_value=delay_value, delay_unit=delay_unit)

    if wait_type is WaitType.UNTIL_DATE:
        if not config.get("date"):
            raise FlowDefinitionException("until_date wait needs a date", node_id)
        return WaitConfig(wait_type=wait_type, date=str(config["date"]))

    condition_payload = config.get("condition") or config
    max_wait = config.get("max_wait_hours")
    interval = config.get("check_interval_minutes")
    return WaitConfig(
        wait_type=wait_type,
        condition=parse_condition_config(condition_payload, node_id),
        check_interval_minutes=int(interval) if interval else None,
        max_wait_hours=float(max_wait) if max_wait else None,
    )


def parse_node_config(kind: NodeKind, config: dict[str, Any] | None, node_id: str) -> NodeConfig:
    """Resolve the raw config blob of a node into its typed config."""
    config = config or {}
    if not isinstance(config, dict):
        raise FlowDefinitionException(f"Node {node_id} config is not an object", node_id)
    match kind:
        case NodeKind.TRIGGER:
            return TriggerConfig(
                trigger_type=_pick(config, "triggerType", "trigger_type"),
                tag_id=config.get("tag_id"),
                stage_id=config.get("stage_id"),
                field=config.get("field"),
                value=config.get("value"),
                date=config.get("date"),
            )
        case NodeKind.ACTION:
            action_type = _pick(config, "actionType", "action_type")
            params = {
                k: v for k, v in config.items() if k not in ("actionType", "action_type")
            }
            return ActionConfig(action_type=action_type, params=params)
        case NodeKind.WAIT:
            return _parse_wait_config(config, node_id)
        case NodeKind.CONDITION:
            return parse_condition_config(config, node_id)
        case NodeKind.END:
            return EndConfig()


@dataclass(frozen=True)
class FlowNode:
    """A node in the flow graph."""

    id: str
    kind: NodeKind
    label: str
    config: NodeConfig


@dataclass(frozen=True)
class FlowEdge:
    """Directed edge; source_handle is 'yes'/'no' when leaving a condition."""

    id: str
    source: str
    target: str
    source_handle: str | None = None


@dataclass(frozen=True)
class FlowGraph:
    """Immutable flow graph (read-only at execution time)."""

    nodes: dict[str, FlowNode]
    edges: tuple[FlowEdge, ...]

    @classmethod
    def from_payload(cls, payload: dict[str, Any] | None) -> FlowGraph:
        """Parse the editor payload; raises FlowDefinitionException when malformed."""
        payload = payload or {}
        nodes: dict[str, FlowNode] = {}
        raw_nodes = payload.get("nodes") or []
        raw_edges = payload.get("edges") or []
        if not isinstance(raw_nodes, list) or not isinstance(raw_edges, list):
            raise FlowDefinitionException("Flow nodes and edges must be lists")
        for raw in raw_nodes:
            if not isinstance(raw, dict):
                raise FlowDefinitionException("Flow node is not an object")
            node_id = raw.get("id")
            if not node_id or not isinstance(node_id, str):
                raise FlowDefinitionException("Node without id")
            if node_id in nodes:
                raise FlowDefinitionException(f"Duplicate node id: {node_id}", node_id)
            try:
                kind = NodeKind(raw.get("type"))
            except ValueError as e:
                raise FlowDefinitionException(
                    f"Unknown node type: {raw.get('type')!r}", node_id
                ) from e
            data = raw.get("data") or {}
            if not isinstance(data, dict):
                raise FlowDefinitionException(f"Node {node_id} data is not an object", node_id)
            nodes[node_id] = FlowNode(
                id=node_id,
                kind=kind,
                label=data.get("label") or node_id,
                config=parse_node_config(kind, data.get("config"), node_id),
            )
        if not all(isinstance(raw, dict) for raw in raw_edges):
            raise FlowDefinitionException("Flow edge is not an object")
        edges = tuple(
            FlowEdge(
                id=raw.get("id") or f"{raw.get('source')}->{raw.get('target')}",
                source=raw.get("source"),
                target=raw.get("target"),
                source_handle=raw.get("sourceHandle"),
            )
            for raw in raw_edges
        )
        return cls(nodes=nodes, edges=edges)

    def get_node(self, node_id: str | None) -> FlowNode | None:
        if node_id is None:
            return None
        return self.nodes.get(node_id)

    def trigger_nodes(self) -> list[FlowNode]:
        return [n for n in self.nodes.values() if n.kind is NodeKind.TRIGGER]

    def outgoing(self, node_id: str) -> list[FlowEdge]:
        return [e for e in self.edges if e.source == node_id]

    def successor(self, node_id: str) -> str | None:
        """Target of the single outgoing edge, or None when the node has none.

        Raises FlowDefinitionException when the node has more than one
        outgoing edge (only condition nodes may branch).
        """
        edges = self.outgoing(node_id)
        if not edges:
            return None
        if len({e.target for e in edges}) > 1:
            raise FlowDefinitionException(
                f"Node {node_id} has {len(edges)} outgoing edges; only conditions may branch",
                node_id,
            )
        return edges[0].target

    def branch_target(self, node_id: str, handle: BranchHandle) -> str | None:
        """Target of the condition edge for the given handle, or None when absent."""
        for edge in self.edges:
            if edge.source == node_id and edge.source_handle == handle.value:
                return edge.target
        return None
