"""Builders for flow graph payloads used across the test suite."""

from datetime import UTC, datetime
from typing import Any

TENANT_ID = "org-test"
TENANT_HEADERS = {"X-Tenant-ID": TENANT_ID}
START = datetime(2025, 3, 3, 9, 0, tzinfo=UTC)


def make_node(node_id: str, kind: str, config: dict[str, Any] | None = None) -> dict[str, Any]:
    """Editor-shaped node payload."""
    return {"id": node_id, "type": kind, "data": {"label": node_id, "config": config or {}}}


def make_edge(source: str, target: str, handle: str | None = None) -> dict[str, Any]:
    edge: dict[str, Any] = {"id": f"{source}-{target}", "source": source, "target": target}
    if handle is not None:
        edge["sourceHandle"] = handle
    return edge


def hot_lead_flow() -> dict[str, Any]:
    """tag_added(hot) -> add_tag(priority) -> wait 2 days -> send_whatsapp -> end."""
    return {
        "nodes": [
            make_node("trigger", "trigger", {"trigger_type": "tag_added", "tag_id": "hot"}),
            make_node("tag", "action", {"action_type": "add_tag", "tag_id": "priority"}),
            make_node(
                "wait", "wait", {"wait_type": "delay", "delay_value": 2, "delay_unit": "days"}
            ),
            make_node(
                "send",
                "action",
                {"action_type": "send_whatsapp", "instance_id": "inst-1", "message": "Hi {{ name }}"},
            ),
            make_node("end", "end"),
        ],
        "edges": [
            make_edge("trigger", "tag"),
            make_edge("tag", "wait"),
            make_edge("wait", "send"),
            make_edge("send", "end"),
        ],
    }


def stage_branch_flow() -> dict[str, Any]:
    """lead_created -> condition(stage == qualified) -yes-> add_tag(vip) / -no-> add_note -> end."""
    return {
        "nodes": [
            make_node("trigger", "trigger", {"trigger_type": "lead_created"}),
            make_node("check", "condition", {"operator": "equals", "stage_id": "qualified"}),
            make_node("vip", "action", {"action_type": "add_tag", "tag_id": "vip"}),
            make_node("note", "action", {"action_type": "add_note", "content": "Not qualified yet"}),
            make_node("end", "end"),
        ],
        "edges": [
            make_edge("trigger", "check"),
            make_edge("check", "vip", "yes"),
            make_edge("check", "note", "no"),
            make_edge("vip", "end"),
            make_edge("note", "end"),
        ],
    }
