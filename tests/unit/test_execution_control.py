"""Operator pause/resume/cancel tests with a mocked execution repository."""

from datetime import timedelta
from unittest.mock import AsyncMock

import pytest

from app.application.use_cases.executions.execution_control import ExecutionControlUseCase
from app.domain.entities.flow_execution import FlowExecutionEntity
from app.domain.exceptions import (
    ExecutionConflictException,
    InvalidExecutionTransitionException,
    ResourceNotFoundException,
)
from app.shared.enums import ExecutionErrorKind, ExecutionStatus
from app.shared.utils.clock import ManualClock
from tests.helpers import START, hot_lead_flow


def _execution(node_id: str | None = "wait", **kwargs) -> FlowExecutionEntity:
    return FlowExecutionEntity(
        id="exec-1",
        tenant_id="org",
        flow_id="flow-1",
        lead_id="lead-1",
        current_node_id=node_id,
        status=kwargs.pop("status", ExecutionStatus.WAITING),
        execution_data={},
        started_at=START,
        graph_snapshot=hot_lead_flow(),
        **kwargs,
    )


@pytest.fixture
def repo() -> AsyncMock:
    mock = AsyncMock()
    mock.save_if_unclaimed.return_value = True
    return mock


@pytest.fixture
def use_case(repo) -> ExecutionControlUseCase:
    return ExecutionControlUseCase(repo, ManualClock(START), lease_seconds=300, log_max_entries=10)


async def test_get_missing_execution(use_case, repo) -> None:
    repo.get_by_id_and_tenant.return_value = None
    with pytest.raises(ResourceNotFoundException):
        await use_case.get("org", "exec-1")


async def test_pause_keeps_resume_instant(use_case, repo) -> None:
    resume_at = START + timedelta(days=2)
    repo.get_by_id_and_tenant.return_value = _execution(next_execution_at=resume_at)

    execution = await use_case.pause("org", "exec-1")

    assert execution.status is ExecutionStatus.PAUSED
    assert execution.next_execution_at == resume_at
    assert execution.execution_log[-1]["kind"] == "operator"
    assert execution.execution_log[-1]["outcome"] == "paused"
    saved, lease_cutoff = repo.save_if_unclaimed.await_args.args
    assert saved is execution
    assert lease_cutoff == START - timedelta(seconds=300)


async def test_pause_retry_pending_error(use_case, repo) -> None:
    repo.get_by_id_and_tenant.return_value = _execution(
        "tag",
        status=ExecutionStatus.ERROR,
        error_kind=ExecutionErrorKind.TRANSIENT,
        next_execution_at=START,
    )
    assert (await use_case.pause("org", "exec-1")).status is ExecutionStatus.PAUSED


@pytest.mark.parametrize(
    "status, kwargs",
    [
        (ExecutionStatus.COMPLETED, {}),
        (ExecutionStatus.PAUSED, {}),
        (ExecutionStatus.ERROR, {"error_kind": ExecutionErrorKind.PERMANENT}),
    ],
)
async def test_pause_rejected(use_case, repo, status, kwargs) -> None:
    repo.get_by_id_and_tenant.return_value = _execution(status=status, **kwargs)

    with pytest.raises(InvalidExecutionTransitionException):
        await use_case.pause("org", "exec-1")
    repo.save_if_unclaimed.assert_not_awaited()


async def test_resume_on_wait_returns_to_waiting(use_case, repo) -> None:
    resume_at = START + timedelta(days=2)
    repo.get_by_id_and_tenant.return_value = _execution(
        status=ExecutionStatus.PAUSED, next_execution_at=resume_at
    )

    execution = await use_case.resume("org", "exec-1")

    assert execution.status is ExecutionStatus.WAITING
    assert execution.next_execution_at == resume_at


async def test_resume_elsewhere_is_due_now(use_case, repo) -> None:
    repo.get_by_id_and_tenant.return_value = _execution("send", status=ExecutionStatus.PAUSED)

    execution = await use_case.resume("org", "exec-1")

    assert execution.status is ExecutionStatus.RUNNING
    assert execution.next_execution_at == START


async def test_resume_requires_paused(use_case, repo) -> None:
    repo.get_by_id_and_tenant.return_value = _execution()
    with pytest.raises(InvalidExecutionTransitionException):
        await use_case.resume("org", "exec-1")


async def test_cancel_completes_and_logs_node(use_case, repo) -> None:
    repo.get_by_id_and_tenant.return_value = _execution(next_execution_at=START + timedelta(days=1))

    execution = await use_case.cancel("org", "exec-1")

    assert execution.status is ExecutionStatus.COMPLETED
    assert execution.completed_at == START
    assert execution.current_node_id is None
    assert execution.next_execution_at is None
    assert execution.execution_log[-1]["node_id"] == "wait"
    assert execution.execution_log[-1]["outcome"] == "cancelled"


async def test_cancel_terminal_rejected(use_case, repo) -> None:
    repo.get_by_id_and_tenant.return_value = _execution(None, status=ExecutionStatus.COMPLETED)
    with pytest.raises(InvalidExecutionTransitionException):
        await use_case.cancel("org", "exec-1")


async def test_claimed_execution_conflicts(use_case, repo) -> None:
    repo.get_by_id_and_tenant.return_value = _execution()
    repo.save_if_unclaimed.return_value = False

    with pytest.raises(ExecutionConflictException):
        await use_case.pause("org", "exec-1")
