"""Flow definition lifecycle tests with a mocked flow repository."""

from unittest.mock import AsyncMock

import pytest

from app.application.dtos.flow import FlowCreate, FlowUpdate
from app.application.use_cases.flows.flow_definitions import FlowDefinitionsUseCase
from app.domain.entities.flow import FlowEntity
from app.domain.exceptions import FlowValidationException, ResourceNotFoundException
from app.shared.enums import FlowStatus
from tests.helpers import hot_lead_flow


def _flow(status: FlowStatus = FlowStatus.DRAFT, flow_data: dict | None = None) -> FlowEntity:
    return FlowEntity(
        id="flow-1",
        tenant_id="org",
        name="Hot leads",
        description=None,
        status=status,
        flow_data=flow_data if flow_data is not None else hot_lead_flow(),
        version=1,
    )


@pytest.fixture
def repo() -> AsyncMock:
    mock = AsyncMock()
    mock.get_by_id_and_tenant.return_value = _flow()
    return mock


@pytest.fixture
def use_case(repo) -> FlowDefinitionsUseCase:
    return FlowDefinitionsUseCase(repo)


async def test_create_flow_delegates(use_case, repo) -> None:
    repo.create_flow.return_value = _flow()
    data = FlowCreate(name="Hot leads", flow_data=hot_lead_flow())

    flow = await use_case.create_flow("org", data)

    assert flow.status is FlowStatus.DRAFT
    repo.create_flow.assert_awaited_once_with("org", data)


async def test_get_flow_not_found(use_case, repo) -> None:
    repo.get_by_id_and_tenant.return_value = None
    with pytest.raises(ResourceNotFoundException):
        await use_case.get_flow("org", "flow-1")


async def test_activate_valid_flow(use_case, repo) -> None:
    repo.update_flow.return_value = _flow(FlowStatus.ACTIVE)

    flow = await use_case.activate_flow("org", "flow-1")

    assert flow.is_active
    repo.update_flow.assert_awaited_once_with("flow-1", "org", status=FlowStatus.ACTIVE)


async def test_activate_invalid_flow_is_rejected(use_case, repo) -> None:
    repo.get_by_id_and_tenant.return_value = _flow(flow_data={"nodes": [], "edges": []})

    with pytest.raises(FlowValidationException) as exc_info:
        await use_case.activate_flow("org", "flow-1")

    assert exc_info.value.details["errors"] == ["Flow has no nodes"]
    repo.update_flow.assert_not_awaited()


async def test_pause_flow(use_case, repo) -> None:
    repo.update_flow.return_value = _flow(FlowStatus.PAUSED)
    assert (await use_case.pause_flow("org", "flow-1")).status is FlowStatus.PAUSED


async def test_update_draft_accepts_any_graph(use_case, repo) -> None:
    repo.update_flow.return_value = _flow()
    broken = {"nodes": [], "edges": []}

    await use_case.update_flow("org", "flow-1", FlowUpdate(flow_data=broken))

    repo.update_flow.assert_awaited_once_with(
        "flow-1", "org", name=None, description=None, flow_data=broken
    )


async def test_update_active_flow_requires_valid_graph(use_case, repo) -> None:
    repo.get_by_id_and_tenant.return_value = _flow(FlowStatus.ACTIVE)

    with pytest.raises(FlowValidationException):
        await use_case.update_flow("org", "flow-1", FlowUpdate(flow_data={"nodes": []}))
    repo.update_flow.assert_not_awaited()


async def test_update_active_flow_name_only(use_case, repo) -> None:
    repo.get_by_id_and_tenant.return_value = _flow(FlowStatus.ACTIVE)
    repo.update_flow.return_value = _flow(FlowStatus.ACTIVE)

    await use_case.update_flow("org", "flow-1", FlowUpdate(name="Renamed"))

    assert repo.update_flow.await_args.kwargs["name"] == "Renamed"


async def test_validate_flow_reports_without_changing_status(use_case, repo) -> None:
    result = await use_case.validate_flow("org", "flow-1")

    assert result.is_valid
    repo.update_flow.assert_not_awaited()


async def test_delete_missing_flow(use_case, repo) -> None:
    repo.soft_delete.return_value = False
    with pytest.raises(ResourceNotFoundException):
        await use_case.delete_flow("org", "flow-1")
