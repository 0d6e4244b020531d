"""Utility modules for contentvec.

- **errors** -- Domain exception hierarchy rooted at ContentVecError; each
  layer raises its own subclass so the API and the Indexer can classify
  failures without broad ``except Exception`` blocks.
- **logging** -- structlog setup with a dual-renderer pattern: coloured
  console output in development, structured JSON in production.
- **concurrency** -- semaphore-throttled gather used by indexing runs.
- **text_normalizer** -- whitespace normalization for embedding input,
  kebab-case identifier derivation, fuzzy identifier suggestions.
- **field_path** (not re-exported here) -- parsed dotted field paths and
  their resolution against nested content items.
"""

from contentvec.utils.concurrency import throttled_gather
from contentvec.utils.errors import (
    ConfigurationError,
    ConflictError,
    ContentVecError,
    DimensionMismatchError,
    EmbeddingIntegrityError,
    InvalidInputError,
    InvalidRangeError,
    InvalidValuesError,
    NoFieldsConfiguredError,
    NotFoundError,
    ProviderError,
    ProviderRateLimitedError,
    ProviderUnauthenticatedError,
    StoreError,
    ValidationError,
)
from contentvec.utils.logging import configure_logging, get_logger
from contentvec.utils.text_normalizer import normalize_text, suggest_identifier, to_kebab_case

__all__ = [
    "ConfigurationError",
    "ConflictError",
    "ContentVecError",
    "DimensionMismatchError",
    "EmbeddingIntegrityError",
    "InvalidInputError",
    "InvalidRangeError",
    "InvalidValuesError",
    "NoFieldsConfiguredError",
    "NotFoundError",
    "ProviderError",
    "ProviderRateLimitedError",
    "ProviderUnauthenticatedError",
    "StoreError",
    "ValidationError",
    "configure_logging",
    "get_logger",
    "normalize_text",
    "suggest_identifier",
    "throttled_gather",
    "to_kebab_case",
]
