"""Error taxonomy for the chat and versioning core.

Every error carries the machine-readable ``code`` and HTTP ``status_code``
used when the API renders it as ``{"message": ..., "code": ...}``.
"""


class PrdToolError(Exception):
    """Base class for failures surfaced to API callers."""

    code = "INTERNAL_ERROR"
    status_code = 500
    default_message = "PRD Tool operation failed"

    def __init__(self, message: str | None = None):
        super().__init__(message or self.default_message)
        self.message = message or self.default_message


class StorageError(PrdToolError):
    """Raised when the document store cannot validate, read or write a body."""

    code = "STORAGE_ERROR"
    default_message = "Storage operation failed"


class CompletionError(PrdToolError):
    """Raised when the completion provider is unavailable or misbehaves."""

    code = "AI_ERROR"
    default_message = "Anthropic API error"

    def __init__(
        self,
        message: str | None = None,
        status: int | None = None,
        provider_error: str | None = None,
    ):
        super().__init__(message)
        self.status = status
        self.provider_error = provider_error


class NotFoundError(PrdToolError):
    """Raised when a turn or version id does not belong to the document."""

    code = "NOT_FOUND"
    status_code = 404
    default_message = "Not found"


class NoDirectiveError(PrdToolError):
    """Raised when applying a turn that carries no PRD update."""

    code = "NO_UPDATE"
    status_code = 400
    default_message = "No update suggestion in this message"


class NoChangesError(PrdToolError):
    """Raised when a snapshot would duplicate the latest version."""

    code = "NO_CHANGES"
    status_code = 400
    default_message = "No changes to save"
