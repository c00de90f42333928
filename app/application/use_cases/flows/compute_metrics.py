"""Metrics aggregator: read-only statistics over flows and executions."""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import TYPE_CHECKING

from app.application.dtos.metrics import ExecutionStats, FlowMetrics, TopFlowMetric
from app.domain.exceptions import ResourceNotFoundException
from app.shared.enums import ExecutionStatus, FlowStatus

if TYPE_CHECKING:
    from app.application.dtos.flow_execution import ExecutionStatsRow
    from app.application.interfaces.repositories import (
        IFlowExecutionRepository,
        IFlowRepository,
    )

TOP_FLOWS_LIMIT = 5


def _completion_rate(completed: int, total: int) -> float:
    return round(completed / total * 100, 2) if total else 0.0


def summarize_executions(rows: Iterable[ExecutionStatsRow]) -> ExecutionStats:
    """Counts by status, completion rate (percent) and mean duration of completed runs."""
    rows = list(rows)
    by_status = Counter(row.status.value for row in rows)
    durations = [
        (row.completed_at - row.started_at).total_seconds()
        for row in rows
        if row.status is ExecutionStatus.COMPLETED and row.completed_at is not None
    ]
    average_hours = sum(durations) / len(durations) / 3600 if durations else 0.0
    return ExecutionStats(
        total_executions=len(rows),
        executions_by_status={status: by_status.get(status, 0) for status in ExecutionStatus.values()},
        completion_rate=_completion_rate(by_status[ExecutionStatus.COMPLETED.value], len(rows)),
        average_execution_duration_hours=round(average_hours, 2),
    )


class ComputeMetricsUseCase:
    """Tenant-wide and per-flow execution statistics."""

    def __init__(
        self,
        flow_repo: IFlowRepository,
        execution_repo: IFlowExecutionRepository,
    ) -> None:
        self.flow_repo = flow_repo
        self.execution_repo = execution_repo

    async def compute_metrics(self, tenant_id: str) -> FlowMetrics:
        counts = await self.flow_repo.count_by_status(tenant_id)
        rows = await self.execution_repo.get_stats_rows(tenant_id)

        per_flow: dict[str, list[ExecutionStatsRow]] = {}
        for row in rows:
            per_flow.setdefault(row.flow_id, []).append(row)
        ranked = sorted(per_flow.items(), key=lambda item: (-len(item[1]), item[0]))
        top = ranked[:TOP_FLOWS_LIMIT]
        names = await self.flow_repo.get_names(tenant_id, {flow_id for flow_id, _ in top})

        return FlowMetrics(
            total_flows=sum(counts.values()),
            active_flows=counts.get(FlowStatus.ACTIVE.value, 0),
            paused_flows=counts.get(FlowStatus.PAUSED.value, 0),
            draft_flows=counts.get(FlowStatus.DRAFT.value, 0),
            executions=summarize_executions(rows),
            top_flows_by_execution_count=[
                TopFlowMetric(
                    flow_id=flow_id,
                    flow_name=names.get(flow_id, flow_id),
                    execution_count=len(flow_rows),
                    completion_rate=_completion_rate(
                        sum(1 for r in flow_rows if r.status is ExecutionStatus.COMPLETED),
                        len(flow_rows),
                    ),
                )
                for flow_id, flow_rows in top
            ],
        )

    async def compute_flow_metrics(self, tenant_id: str, flow_id: str) -> ExecutionStats:
        if await self.flow_repo.get_by_id_and_tenant(flow_id, tenant_id) is None:
            raise ResourceNotFoundException("flow", flow_id)
        return summarize_executions(
            await self.execution_repo.get_stats_rows(tenant_id, flow_id=flow_id)
        )
