"""Infrastructure exceptions for external collaborators.

Gateway errors extend ExternalServiceException so the interpreter and the
action dispatcher can classify them without importing infrastructure, and
presentation can map them to HTTP responses consistently.
"""

from app.domain.exceptions import ExternalServiceException


class GatewayTransientError(ExternalServiceException):
    """Timeout, connection failure, HTTP 429 or 5xx; safe to retry."""

    def __init__(self, service: str, message: str, status_code: int | None = None) -> None:
        super().__init__(service, message, retryable=True, status_code=status_code)


class GatewayRequestError(ExternalServiceException):
    """HTTP 4xx (other than 429) or an unusable response; retrying will not help."""

    def __init__(self, service: str, message: str, status_code: int | None = None) -> None:
        super().__init__(service, message, retryable=False, status_code=status_code)


class TemplateRenderError(ExternalServiceException):
    """Message template content could not be rendered."""

    def __init__(self, template_id: str, reason: str) -> None:
        super().__init__(
            "template_renderer",
            f"Failed to render template {template_id}: {reason}",
            retryable=False,
        )
        self.details["template_id"] = template_id
