"""
Exceptions raised by the print pipeline.

Hierarchy:
    PrintTrayError (base)
    ├── InvalidPayloadError - request has neither html nor url (client error)
    ├── PrintFailedError    - device print reported failure
    ├── PreviewFailedError  - PDF render / write / open failed
    └── QueueTaskError      - wraps a failed job for the queue's own log line

Every job settles with a result or exactly one of the first three; the
HTTP layer maps ``status_code`` straight onto the response.
"""

from typing import Any, Dict, Optional


class PrintTrayError(Exception):
    """Base class. ``details`` is extra context for logs, never shown to clients."""

    code = "PRINT_TRAY_ERROR"
    status_code = 500

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class InvalidPayloadError(PrintTrayError):
    """The submitted payload cannot describe a print job."""

    code = "INVALID_PAYLOAD"
    status_code = 400

    def __init__(
        self,
        message: str = "Print payload must include either an html or url property.",
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message, details)


class PrintFailedError(PrintTrayError):
    """The device print finished unsuccessfully. ``reason`` is the device's own text."""

    code = "PRINT_FAILED"

    def __init__(self, reason: Optional[str] = None, printer_name: Optional[str] = None):
        reason = reason or "Unknown print failure"
        details = {"printer": printer_name} if printer_name else None
        super().__init__(reason, details)
        self.reason = reason
        self.printer_name = printer_name


class PreviewFailedError(PrintTrayError):
    """
    Rendering, saving or opening the preview PDF failed.

    The underlying error is chained as ``__cause__`` and logged; callers only
    see the generic message.
    """

    code = "PREVIEW_FAILED"

    def __init__(self, message: str = "Print preview failed"):
        super().__init__(message)


class QueueTaskError(PrintTrayError):
    """A queued job raised. Built by the queue for logging; never raised to callers."""

    code = "QUEUE_TASK_FAILED"

    def __init__(self, job_label: str, cause: BaseException):
        super().__init__(
            f"Print queue task {job_label} failed: {cause}",
            {"error_type": type(cause).__name__},
        )
        self.job_label = job_label
        self.cause = cause
