"""Flow API tests: CRUD, validation and activation lifecycle."""

from tests.helpers import TENANT_HEADERS, hot_lead_flow, stage_branch_flow

FLOWS = "/api/v1/flows"


async def _create(client, flow_data: dict | None = None, name: str = "Hot leads") -> dict:
    response = await client.post(
        FLOWS,
        json={"name": name, "flow_data": flow_data or hot_lead_flow(), "created_by": "user-1"},
        headers=TENANT_HEADERS,
    )
    assert response.status_code == 201, response.text
    return response.json()


async def test_create_flow_as_draft(client) -> None:
    flow = await _create(client)

    assert flow["status"] == "draft"
    assert flow["version"] == 1
    assert flow["tenant_id"] == "org-test"
    assert flow["created_by"] == "user-1"
    assert flow["flow_data"] == hot_lead_flow()


async def test_tenant_header_required(client) -> None:
    response = await client.get(FLOWS)

    assert response.status_code == 400
    assert response.json() == {
        "error": "HTTP_ERROR",
        "message": "Missing required header: X-Tenant-ID",
    }


async def test_tenant_header_format(client) -> None:
    response = await client.get(FLOWS, headers={"X-Tenant-ID": "not a tenant!"})
    assert response.status_code == 400


async def test_graph_shape_validated(client) -> None:
    response = await client.post(
        FLOWS, json={"name": "Bad", "flow_data": {"nodes": "nope"}}, headers=TENANT_HEADERS
    )

    assert response.status_code == 422
    assert response.json()["error"] == "VALIDATION_ERROR"

    items = await client.post(
        FLOWS, json={"name": "Bad", "flow_data": {"nodes": ["oops"]}}, headers=TENANT_HEADERS
    )
    assert items.status_code == 422


async def test_get_and_list_are_tenant_scoped(client) -> None:
    flow = await _create(client)
    await _create(client, stage_branch_flow(), name="Branch")

    assert (await client.get(f"{FLOWS}/{flow['id']}", headers=TENANT_HEADERS)).status_code == 200
    other = await client.get(f"{FLOWS}/{flow['id']}", headers={"X-Tenant-ID": "other-org"})
    assert other.status_code == 404
    assert other.json()["error"] == "RESOURCE_NOT_FOUND"

    listed = await client.get(FLOWS, headers=TENANT_HEADERS)
    assert {f["name"] for f in listed.json()} == {"Hot leads", "Branch"}
    assert (await client.get(FLOWS, headers={"X-Tenant-ID": "other-org"})).json() == []


async def test_update_graph_bumps_version(client) -> None:
    flow = await _create(client)

    response = await client.put(
        f"{FLOWS}/{flow['id']}",
        json={"name": "Renamed", "flow_data": stage_branch_flow()},
        headers=TENANT_HEADERS,
    )

    assert response.status_code == 200
    assert response.json()["name"] == "Renamed"
    assert response.json()["version"] == 2


async def test_activate_invalid_flow_returns_errors(client) -> None:
    flow = await _create(client, {"nodes": [], "edges": []})

    response = await client.post(f"{FLOWS}/{flow['id']}/activate", headers=TENANT_HEADERS)

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "FLOW_VALIDATION_ERROR"
    assert body["details"]["errors"] == ["Flow has no nodes"]


async def test_activate_then_pause(client) -> None:
    flow = await _create(client)

    activated = await client.post(f"{FLOWS}/{flow['id']}/activate", headers=TENANT_HEADERS)
    assert activated.json()["status"] == "active"

    active_only = await client.get(FLOWS, params={"status": "active"}, headers=TENANT_HEADERS)
    assert [f["id"] for f in active_only.json()] == [flow["id"]]

    paused = await client.post(f"{FLOWS}/{flow['id']}/pause", headers=TENANT_HEADERS)
    assert paused.json()["status"] == "paused"


async def test_active_flow_rejects_broken_graph(client) -> None:
    flow = await _create(client)
    await client.post(f"{FLOWS}/{flow['id']}/activate", headers=TENANT_HEADERS)

    response = await client.put(
        f"{FLOWS}/{flow['id']}",
        json={"flow_data": {"nodes": [], "edges": []}},
        headers=TENANT_HEADERS,
    )

    assert response.status_code == 422
    current = await client.get(f"{FLOWS}/{flow['id']}", headers=TENANT_HEADERS)
    assert current.json()["flow_data"] == hot_lead_flow()


async def test_validate_reports_warnings(client) -> None:
    graph = stage_branch_flow()
    graph["edges"] = [e for e in graph["edges"] if e.get("sourceHandle") != "no"]
    flow = await _create(client, graph)

    response = await client.post(f"{FLOWS}/{flow['id']}/validate", headers=TENANT_HEADERS)

    body = response.json()
    assert response.status_code == 200
    assert body["is_valid"] is True
    assert body["errors"] == []
    assert any("no 'no' edge" in w for w in body["warnings"])


async def test_delete_hides_flow(client) -> None:
    flow = await _create(client)

    assert (await client.delete(f"{FLOWS}/{flow['id']}", headers=TENANT_HEADERS)).status_code == 204
    assert (await client.get(f"{FLOWS}/{flow['id']}", headers=TENANT_HEADERS)).status_code == 404
    assert (await client.delete(f"{FLOWS}/{flow['id']}", headers=TENANT_HEADERS)).status_code == 404


async def test_executions_and_metrics_of_unknown_flow(client) -> None:
    executions = await client.get(f"{FLOWS}/missing/executions", headers=TENANT_HEADERS)
    metrics = await client.get(f"{FLOWS}/missing/metrics", headers=TENANT_HEADERS)

    assert executions.status_code == 404
    assert metrics.status_code == 404
