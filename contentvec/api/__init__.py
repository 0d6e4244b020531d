"""contentvec API layer: routes, schemas, and middleware."""

from contentvec.api.middleware import (
    ErrorHandlingMiddleware,
    RequestLoggingMiddleware,
    configure_cors,
    configure_error_handling,
)
from contentvec.api.routes import router
from contentvec.api.schemas import (
    CreateProfileRequest,
    Envelope,
    ErrorResponse,
    GenerateEmbeddingRequest,
    HealthResponse,
    QueryRequest,
)

__all__ = [
    "ErrorHandlingMiddleware",
    "RequestLoggingMiddleware",
    "configure_cors",
    "configure_error_handling",
    "router",
    "CreateProfileRequest",
    "Envelope",
    "ErrorResponse",
    "GenerateEmbeddingRequest",
    "HealthResponse",
    "QueryRequest",
]
