"""Error taxonomy shared by clients, services and the HTTP layer.

Every error carries an HTTP status code so the API layer can render it
without knowing which component raised it.
"""

from typing import Any


class ContentRagError(Exception):
    """Base class for all expected failures of the content RAG backend."""

    status_code: int = 500
    error: str = "Internal error"

    def __init__(self, message: str | None = None, details: Any = None):
        self.message = message or self.error
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        """Render the error in the API's failure envelope."""
        return {"success": False, "error": self.message, "details": self.details}


##########################################
############### CLIENT ERRORS ############
##########################################

class ValidationError(ContentRagError):
    """Bad input shape. Details hold the list of violated fields."""

    status_code = 400
    error = "Validation failed"

    def __init__(self, message: str | None = None, details: Any = None, fields: list[str] | None = None):
        super().__init__(message, details)
        self.fields = fields or []


class NotFoundError(ContentRagError):
    status_code = 404
    error = "Resource not found"


class UnsupportedType(ContentRagError):
    """A file extension outside the ingestion allow-list. Per-item only."""

    status_code = 400
    error = "Unsupported file type"


class InvalidUrl(ContentRagError):
    """A syntactically invalid URL in a link batch. Per-item only."""

    status_code = 400
    error = "Invalid URL"


class ExtractionFailed(ContentRagError):
    """Text extraction of a file or URL failed. Per-item only."""

    status_code = 400
    error = "Text extraction failed"


##########################################
############### SERVER ERRORS ############
##########################################

class ConfigurationError(ContentRagError):
    """Misconfiguration detected at startup, e.g. an embedding dimension mismatch."""

    error = "Configuration error"


class BackendUnavailable(ContentRagError):
    """A network backend errored, timed out or answered with a non-2xx status."""

    error = "Backend unavailable"


class ProviderUnavailable(BackendUnavailable):
    error = "Provider unavailable"


class IndexUnavailable(BackendUnavailable):
    error = "Vector index unavailable"


class GenerationFailed(ContentRagError):
    error = "Generation failed"
