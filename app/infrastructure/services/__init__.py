"""Infrastructure implementations of application service interfaces."""

from app.infrastructure.services.action_dispatcher import ActionDispatcher
from app.infrastructure.services.message_template_renderer import (
    MessageTemplateRenderer,
    build_message_context,
)

__all__ = [
    "ActionDispatcher",
    "MessageTemplateRenderer",
    "build_message_context",
]
