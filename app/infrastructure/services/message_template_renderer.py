"""Message template rendering (Jinja) for WhatsApp actions."""

from __future__ import annotations

from typing import Any

from jinja2 import StrictUndefined, TemplateError
from jinja2.sandbox import SandboxedEnvironment

from app.infrastructure.exceptions import TemplateRenderError


def build_message_context(lead: dict[str, Any], execution_data: dict[str, Any]) -> dict[str, Any]:
    """Context for message templates.

    Lead columns are available both as ``lead.<field>`` and as top-level
    names (``{{ name }}``, ``{{ phone }}``); execution data as ``data.<key>``.
    """
    context: dict[str, Any] = {key: value for key, value in lead.items() if isinstance(key, str)}
    context["lead"] = lead
    context["data"] = execution_data
    return context


class MessageTemplateRenderer:
    """Renders tenant-authored message content in a sandbox (implements IMessageTemplateRenderer)."""

    def __init__(self, strict: bool = False) -> None:
        """strict=True turns undefined variables into render errors."""
        if strict:
            self._env = SandboxedEnvironment(autoescape=False, undefined=StrictUndefined)
        else:
            self._env = SandboxedEnvironment(autoescape=False)

    def render(self, template: str, context: dict[str, Any], template_id: str = "inline") -> str:
        """Render template content. Raises TemplateRenderError on syntax or sandbox errors."""
        try:
            return self._env.from_string(template).render(**context)
        except TemplateError as e:
            raise TemplateRenderError(template_id, str(e)) from e
