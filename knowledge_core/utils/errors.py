"""Custom exception hierarchy for knowledge_core.

All application exceptions inherit from :class:`KnowledgeCoreError`, which
carries an optional ``provider_name`` so error handlers can identify which
collaborator (e.g. "http_embedding", "httpx_fetcher", "pymupdf") caused the
failure.

The hierarchy is organized by pipeline concern:

    KnowledgeCoreError  (base -- catch-all for any knowledge_core error)
    +-- ConfigurationError       (missing credential / bad settings -- fatal)
    +-- ValidationError          (bad URL, bad file type -- rejects one item)
    |   +-- UnsupportedFileTypeError
    |   +-- RobotsDisallowedError
    +-- NetworkError             (timeout, DNS failure, non-2xx fetch)
    +-- ExtractionError          (malformed document or page content)
    +-- PathTraversalError       (file path escapes the upload root -- never retried)
    +-- EmbeddingProviderError   (embedding API returned an error status)
    +-- DimensionMismatchError   (vectors of different length compared)

Callers handle errors at exactly the level they care about -- e.g. the
crawler records NetworkError per page and keeps going, while the ingestion
service lets ConfigurationError abort the whole call.
"""


class KnowledgeCoreError(Exception):
    """Base exception for all knowledge_core errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which collaborator triggered the error.
    ``__str__`` prefixes the provider name in brackets for log scanning,
    e.g. ``[http_embedding] Embedding request failed``.
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        provider_name: str | None = None,
    ) -> None:
        self._message = message
        self._provider_name = provider_name
        super().__init__(self._message)

    @property
    def message(self) -> str:
        return self._message

    @property
    def provider_name(self) -> str | None:
        return self._provider_name

    def __str__(self) -> str:
        if self._provider_name:
            return f"[{self._provider_name}] {self._message}"
        return self._message


# ---------------------------------------------------------------------------
# Configuration / validation errors
# ---------------------------------------------------------------------------

class ConfigurationError(KnowledgeCoreError):
    """Raised when configuration is invalid or a required credential is missing."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ValidationError(KnowledgeCoreError):
    """Raised when a single input item (URL, file type, option) is rejected.

    The item is refused but nothing else is affected; the caller decides
    whether to retry with a corrected input.
    """

    def __init__(
        self,
        message: str = "Input validation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class UnsupportedFileTypeError(ValidationError):
    """Raised when a document's declared file type has no extractor."""

    def __init__(
        self,
        message: str = "Unsupported file type",
        provider_name: str | None = None,
        file_type: str | None = None,
    ) -> None:
        self._file_type = file_type
        super().__init__(message=message, provider_name=provider_name)

    @property
    def file_type(self) -> str | None:
        return self._file_type


class RobotsDisallowedError(ValidationError):
    """Raised when robots.txt forbids fetching a URL for our user-agent."""

    def __init__(
        self,
        message: str = "URL blocked by robots.txt",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Network / content errors
# ---------------------------------------------------------------------------

class NetworkError(KnowledgeCoreError):
    """Raised on timeouts, connection failures and non-success HTTP statuses.

    ``url`` and ``status_code`` are kept so crawl failure records can say
    exactly which request failed and how.
    """

    def __init__(
        self,
        message: str = "Network request failed",
        provider_name: str | None = None,
        url: str | None = None,
        status_code: int | None = None,
    ) -> None:
        self._url = url
        self._status_code = status_code
        super().__init__(message=message, provider_name=provider_name)

    @property
    def url(self) -> str | None:
        return self._url

    @property
    def status_code(self) -> int | None:
        return self._status_code


class ExtractionError(KnowledgeCoreError):
    """Raised when document or page content cannot be parsed into text."""

    def __init__(
        self,
        message: str = "Content extraction failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class PathTraversalError(KnowledgeCoreError):
    """Raised when a file path resolves outside the configured root directory.

    This is a security violation: it is always fatal and must never be
    retried with the same input.
    """

    def __init__(
        self,
        message: str = "Access to files outside the uploads directory is not allowed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Embedding / retrieval errors
# ---------------------------------------------------------------------------

class EmbeddingProviderError(KnowledgeCoreError):
    """Raised when the embedding provider answers with a non-success status.

    Carries the HTTP ``status_code`` and raw response ``body`` so the caller
    can decide on retry or backoff.  knowledge_core never retries itself.
    """

    def __init__(
        self,
        message: str = "Embedding generation failed",
        provider_name: str | None = None,
        status_code: int | None = None,
        body: str = "",
    ) -> None:
        self._status_code = status_code
        self._body = body
        super().__init__(message=message, provider_name=provider_name)

    @property
    def status_code(self) -> int | None:
        return self._status_code

    @property
    def body(self) -> str:
        return self._body


class DimensionMismatchError(KnowledgeCoreError):
    """Raised when two vectors of different lengths are compared."""

    def __init__(
        self,
        message: str = "Vectors must have the same length",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
