"""Application interfaces (ports): repository and service protocols.

Define contracts for infrastructure implementations (DIP).
No runtime imports from app.infrastructure or app.api.
"""

from app.application.interfaces.repositories import (
    IExecutionStore,
    IFlowExecutionRepository,
    IFlowRepository,
)
from app.application.interfaces.services import (
    EventHandler,
    IActionDispatcher,
    IClock,
    ICrmGateway,
    IEventBus,
    IMessageTemplateRenderer,
    IMessagingGateway,
)

__all__ = [
    "EventHandler",
    "IActionDispatcher",
    "IClock",
    "ICrmGateway",
    "IEventBus",
    "IExecutionStore",
    "IFlowExecutionRepository",
    "IFlowRepository",
    "IMessageTemplateRenderer",
    "IMessagingGateway",
]
