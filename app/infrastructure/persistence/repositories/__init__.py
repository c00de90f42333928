"""Persistence repositories. Re-exports for dependency injection."""

from app.infrastructure.persistence.repositories.base import BaseRepository
from app.infrastructure.persistence.repositories.flow_execution_repo import (
    FlowExecutionRepository,
)
from app.infrastructure.persistence.repositories.flow_repo import FlowRepository

__all__ = [
    "BaseRepository",
    "FlowExecutionRepository",
    "FlowRepository",
]
