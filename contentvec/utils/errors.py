"""Custom exception hierarchy for contentvec.

All application exceptions inherit from :class:`ContentVecError`, which
carries an optional ``provider_name`` so error handlers can identify which
external collaborator (e.g. "openai", "pgvector", "cms") caused the failure.

The hierarchy is organized by the layer that raises it:

    ContentVecError  (base -- catch-all for any contentvec error)
    +-- ValidationError            (caller input violates a constraint)
    |   +-- InvalidInputError      (text empty after normalization)
    |   +-- InvalidRangeError      (k / min_similarity / limit out of range)
    +-- NotFoundError              (profile or content absent)
    +-- NoFieldsConfiguredError    (profile has nothing to index)
    +-- ConflictError              (uniqueness violation, e.g. duplicate slug)
    +-- ProviderError              (embedding provider failure)
    |   +-- ProviderRateLimitedError
    |   +-- ProviderUnauthenticatedError
    +-- EmbeddingIntegrityError    (provider returned an unusable vector)
    |   +-- DimensionMismatchError
    |   +-- InvalidValuesError
    +-- StoreError                 (backing-store failure)
    +-- ConfigurationError         (startup / missing config)

The API layer maps these onto HTTP status codes (see
``contentvec.api.middleware``); the Indexer counts them per unit; everything
else lets them propagate.
"""


class ContentVecError(Exception):
    """Base exception for all contentvec errors.

    Every subclass carries a human-readable ``message`` and an optional
    ``provider_name`` identifying which external service triggered the
    error.  ``__str__`` prefixes the provider name in brackets for log
    scanning, e.g. ``[openai] Rate limit exceeded``.
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
# Caller input errors
# ---------------------------------------------------------------------------

class ValidationError(ContentVecError):
    """Raised when caller input violates a documented constraint.

    ``field`` names the offending input so the API can surface it.
    """

    def __init__(
        self,
        message: str = "Invalid input",
        field: str | None = None,
        provider_name: str | None = None,
    ) -> None:
        self._field = field
        super().__init__(message=message, provider_name=provider_name)

    @property
    def field(self) -> str | None:
        return self._field


class InvalidInputError(ValidationError):
    """Raised when text to embed is empty after whitespace normalization."""

    def __init__(
        self,
        message: str = "Text cannot be empty after normalization",
        field: str | None = "text",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, field=field, provider_name=provider_name)


class InvalidRangeError(ValidationError):
    """Raised when a numeric parameter falls outside its allowed range."""

    def __init__(
        self,
        message: str = "Value out of range",
        field: str | None = None,
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, field=field, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Lookup / state errors
# ---------------------------------------------------------------------------

class NotFoundError(ContentVecError):
    """Raised when a referenced profile or content item does not exist."""

    def __init__(
        self,
        message: str = "Resource not found",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class NoFieldsConfiguredError(ContentVecError):
    """Raised when an indexing run targets a profile with no enabled fields."""

    def __init__(
        self,
        message: str = "Profile has no fields configured",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConflictError(ContentVecError):
    """Raised on a uniqueness violation (e.g. a duplicate profile slug)."""

    def __init__(
        self,
        message: str = "Resource already exists",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Embedding provider errors
# ---------------------------------------------------------------------------

class ProviderError(ContentVecError):
    """Raised when the embedding provider fails for any unclassified reason."""

    def __init__(
        self,
        message: str = "Embedding provider call failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderRateLimitedError(ProviderError):
    """Raised when the provider signals throttling.

    The client never retries internally; callers back off and retry.
    """

    def __init__(
        self,
        message: str = "Embedding provider rate limit exceeded",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ProviderUnauthenticatedError(ProviderError):
    """Raised when the provider credential is missing or rejected.  Not retryable."""

    def __init__(
        self,
        message: str = "Embedding provider rejected the credential",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class EmbeddingIntegrityError(ContentVecError):
    """Raised when a returned embedding fails the pre-persist integrity check."""

    def __init__(
        self,
        message: str = "Embedding failed integrity check",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class DimensionMismatchError(EmbeddingIntegrityError):
    """Raised when an embedding's length differs from the expected dimension."""

    def __init__(
        self,
        message: str = "Embedding dimension mismatch",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class InvalidValuesError(EmbeddingIntegrityError):
    """Raised when an embedding contains NaN or infinite components."""

    def __init__(
        self,
        message: str = "Embedding contains invalid values (NaN, Infinity, or -Infinity)",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


# ---------------------------------------------------------------------------
# Infrastructure errors
# ---------------------------------------------------------------------------

class StoreError(ContentVecError):
    """Raised when a backing-store statement fails."""

    def __init__(
        self,
        message: str = "Backing store operation failed",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)


class ConfigurationError(ContentVecError):
    """Raised when configuration is invalid or missing at startup."""

    def __init__(
        self,
        message: str = "Invalid or missing configuration",
        provider_name: str | None = None,
    ) -> None:
        super().__init__(message=message, provider_name=provider_name)
