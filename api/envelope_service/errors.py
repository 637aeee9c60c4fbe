from typing import Any, Optional


class ServiceError(Exception):
    """Base for every error the envelope pipeline surfaces to a caller."""

    status_code = 500

    def __init__(
        self,
        message: str,
        collaborator: Optional[str] = None,
        operation: Optional[str] = None,
        details: Any = None,
    ):
        super().__init__(message)
        self.message = message
        self.collaborator = collaborator
        self.operation = operation
        self.details = details

    def context(self) -> str:
        if self.collaborator and self.operation:
            return f"{self.collaborator}.{self.operation}"
        return self.collaborator or self.operation or "local"


class ValidationError(ServiceError):
    """Malformed or inconsistent request; detected before any outbound call."""

    status_code = 400


class ConfigurationError(ServiceError):
    status_code = 500


class UpstreamError(ServiceError):
    """A collaborator call failed or answered with unusable content."""

    status_code = 502


class UpstreamLookupError(UpstreamError):
    """Field-location fetch failed for a form. Recovered by the pipeline."""


class UpstreamGenerationError(UpstreamError):
    pass


class UpstreamSubmissionError(UpstreamError):
    pass


class StatusSnapshotError(UpstreamError):
    pass
