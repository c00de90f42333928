"""Seed an active demo flow for local development.

Usage:
    uv run python -m scripts.seed_dev_flow <tenant_id>
Creates "Hot lead follow-up": tag_added(hot-lead) -> add_tag(priority)
-> wait 2 days -> send_whatsapp_template(followup) -> end, and activates it.
"""

import asyncio
import sys

import app.infrastructure.persistence.database as database
from app.application.dtos.flow import FlowCreate
from app.application.use_cases.flows import FlowDefinitionsUseCase
from app.core.config import get_settings
from app.infrastructure.persistence.repositories import FlowRepository

DEMO_FLOW = {
    "nodes": [
        {"id": "trigger", "type": "trigger", "data": {"label": "Hot lead", "config": {"trigger_type": "tag_added", "tag_id": "hot-lead"}}},
        {"id": "tag", "type": "action", "data": {"label": "Mark priority", "config": {"action_type": "add_tag", "tag_id": "priority"}}},
        {"id": "wait", "type": "wait", "data": {"label": "Two days", "config": {"wait_type": "delay", "delay_value": 2, "delay_unit": "days"}}},
        {"id": "send", "type": "action", "data": {"label": "Follow up", "config": {"action_type": "send_whatsapp_template", "instance_id": "default", "template_id": "followup"}}},
        {"id": "end", "type": "end", "data": {"label": "Done", "config": {}}},
    ],
    "edges": [
        {"id": "e1", "source": "trigger", "target": "tag"},
        {"id": "e2", "source": "tag", "target": "wait"},
        {"id": "e3", "source": "wait", "target": "send"},
        {"id": "e4", "source": "send", "target": "end"},
    ],
}


async def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python -m scripts.seed_dev_flow <tenant_id>", file=sys.stderr)
        sys.exit(1)
    tenant_id = sys.argv[1]
    settings = get_settings()
    session_factory = database.get_session_factory()
    if settings.is_sqlite:
        await database.create_schema()

    async with session_factory() as session:
        async with session.begin():
            flows = FlowDefinitionsUseCase(FlowRepository(session))
            flow = await flows.create_flow(
                tenant_id,
                FlowCreate(name="Hot lead follow-up", flow_data=DEMO_FLOW, created_by="seed"),
            )
            flow = await flows.activate_flow(tenant_id, flow.id)
    await database.dispose_engine()
    print(f"Seeded flow {flow.id} ({flow.status.value}) in tenant {tenant_id}")


if __name__ == "__main__":
    asyncio.run(main())
