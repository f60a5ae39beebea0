"""Exceptions raised inside the document-generation pipeline.

Every class carries a human-readable ``message``; the orchestrator turns any of
them into a failed ``GenerationResult`` so callers never see a traceback.
"""

from __future__ import annotations


class GenerationError(Exception):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFound(GenerationError):
    """A local record (template or deal) does not exist."""


class TemplateNotFound(NotFound):
    def __init__(self) -> None:
        super().__init__("Template not found")


class DealNotFound(NotFound):
    def __init__(self) -> None:
        super().__init__("Deal not found")


class IntegrationNotConfigured(GenerationError):
    """Google OAuth credentials are missing from runtime settings."""


class RemoteCallFailed(GenerationError):
    """A Google API call failed or timed out."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        reason: str | None = None,
    ) -> None:
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason


class RemoteNotFound(RemoteCallFailed):
    """The external id is wrong or not shared with the connected account."""


class RemoteAccessDenied(RemoteCallFailed):
    """The connected account lacks permission on the external document."""


class QuotaExceeded(RemoteCallFailed):
    """The destination drive has run out of storage."""


class CopyFailed(GenerationError):
    """Copying the template document failed; ``cause`` is the remote error."""

    def __init__(self, message: str, cause: RemoteCallFailed) -> None:
        super().__init__(message)
        self.cause = cause
