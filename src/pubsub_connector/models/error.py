"""Error models for structured error reporting."""

import traceback
from typing import Optional

from pubsub_connector.models.base import CamelCaseModel


class ErrorDetails(CamelCaseModel):
    """Additional structured error details."""

    resource: Optional[str] = None
    message_id: Optional[str] = None
    stack_trace: Optional[str] = None


class ErrorInfo(CamelCaseModel):
    """Structured error information."""

    type: str  # Error type (configuration_error, receive_error, etc.)
    message: str
    details: Optional[ErrorDetails] = None

    @classmethod
    def from_exception(
        cls,
        exc: BaseException,
        resource: Optional[str] = None,
        message_id: Optional[str] = None,
    ) -> "ErrorInfo":
        """
        Build an ErrorInfo from an exception.

        Connector exceptions report their ``error_type``; anything else is
        reported under its class name.
        """
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        return cls(
            type=getattr(exc, "error_type", type(exc).__name__),
            message=str(exc),
            details=ErrorDetails(resource=resource, message_id=message_id, stack_trace=stack),
        )
