"""contentvec FastAPI application entry point.

Wires together all providers, services, and routes via dependency injection.
Loads configuration from ``.env`` and ``config/config.yaml``, configures
structured logging, and opens the PostgreSQL pool on startup.

Also exposes :func:`build_components` / :func:`open_components` for the
command-line interface, which needs the same wiring without the web server.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, AsyncIterator

import structlog
import uvicorn
from fastapi import FastAPI

from contentvec import __version__
from contentvec.api.middleware import (
    RequestLoggingMiddleware,
    configure_cors,
    configure_error_handling,
)
from contentvec.api.routes import router as api_router
from contentvec.config.loader import content_type_map, load_config
from contentvec.config.settings import Settings
from contentvec.interfaces.embedding_provider import IEmbeddingProvider
from contentvec.models.profile import DistanceMetric
from contentvec.pipeline.job_runner import IndexingJobRunner
from contentvec.providers.content.http_content_provider import HttpContentProvider
from contentvec.providers.embedding.ollama_embedding_provider import OllamaEmbeddingProvider
from contentvec.providers.embedding.openai_embedding_provider import OpenAIEmbeddingProvider
from contentvec.providers.job_store.postgres_job_store import PostgresJobStore
from contentvec.providers.postgres.database import PostgresDatabase
from contentvec.providers.postgres.schema import create_schema
from contentvec.providers.profile_store.postgres_profile_store import PostgresProfileStore
from contentvec.providers.query_log.postgres_query_log_provider import PostgresQueryLogProvider
from contentvec.providers.vector_store.pgvector_provider import PgVectorStoreProvider
from contentvec.services.indexer import Indexer
from contentvec.services.profile_registry import ProfileRegistry
from contentvec.services.query_engine import QueryEngine
from contentvec.services.vector_service import VectorService
from contentvec.utils.errors import ConfigurationError
from contentvec.utils.logging import configure_logging, get_logger

# ---------------------------------------------------------------------------
# Module-level settings & logging
# ---------------------------------------------------------------------------

settings = Settings()
config = load_config(settings=settings)

configure_logging(log_level=settings.log_level, app_env=settings.app_env)
_logger: structlog.BoundLogger = get_logger(__name__)


# ---------------------------------------------------------------------------
# Embedding provider selection
# ---------------------------------------------------------------------------


def _build_embedding_provider(app_settings: Settings) -> IEmbeddingProvider:
    """Return the embedding provider named by ``EMBEDDING_PROVIDER``."""
    name = app_settings.embedding_provider.strip().lower()
    if name == "openai":
        provider: IEmbeddingProvider = OpenAIEmbeddingProvider(settings=app_settings)
    elif name == "ollama":
        provider = OllamaEmbeddingProvider(settings=app_settings)
    else:
        raise ConfigurationError(
            message=f"Unknown embedding provider {app_settings.embedding_provider!r}; "
            "expected 'openai' or 'ollama'"
        )
    if not provider.is_available():
        _logger.warning("embedding_provider_unavailable", provider=provider.get_provider_name())
    return provider


# ---------------------------------------------------------------------------
# Full DI assembly
# ---------------------------------------------------------------------------


def build_components(app_settings: Settings, app_config: dict | None = None) -> dict[str, Any]:
    """Construct every provider and service instance for the application.

    Returns a flat dict of named components to be stored on ``app.state``.
    Nothing here performs I/O; the pool is opened by :func:`open_components`.
    """
    app_config = app_config if app_config is not None else load_config(settings=app_settings)

    # -- Shared resources --
    database = PostgresDatabase(app_settings)

    # -- Providers --
    embedding_provider = _build_embedding_provider(app_settings)
    vector_store = PgVectorStoreProvider(database)
    profile_store = PostgresProfileStore(database)
    job_store = PostgresJobStore(database)
    query_log = PostgresQueryLogProvider(database)
    content_source = HttpContentProvider(settings=app_settings)

    # -- Services --
    # The vector column is typed with the configured dimension, so it is
    # the only one profiles may use.
    profile_registry = ProfileRegistry(
        profile_store,
        default_dimension=app_settings.default_embedding_dimension,
        default_metric=DistanceMetric(app_settings.default_distance_metric),
        default_model=app_settings.embedding_model,
        supported_dimensions={app_settings.default_embedding_dimension},
    )
    vector_service = VectorService(profile_store, embedding_provider, vector_store)
    indexer = Indexer(
        profile_store,
        content_source,
        vector_service,
        content_type_map=content_type_map(app_config),
        concurrency=app_config.get("indexing", {}).get("concurrency", app_settings.indexing_concurrency),
    )
    query_engine = QueryEngine(embedding_provider, vector_store, query_log)
    job_runner = IndexingJobRunner(indexer, job_store, profile_store)

    return {
        "settings": app_settings,
        "database": database,
        "embedding_provider": embedding_provider,
        "vector_store": vector_store,
        "profile_store": profile_store,
        "job_store": job_store,
        "query_log": query_log,
        "content_source": content_source,
        "profile_registry": profile_registry,
        "vector_service": vector_service,
        "indexer": indexer,
        "query_engine": query_engine,
        "job_runner": job_runner,
    }


async def _close_components(components: dict[str, Any]) -> None:
    await components["job_runner"].shutdown()
    for name in ("embedding_provider", "content_source"):
        close = getattr(components[name], "close", None)
        if close is not None:
            await close()
    await components["database"].close()


@asynccontextmanager
async def open_components(app_settings: Settings) -> AsyncIterator[dict[str, Any]]:
    """Build the components, open the pool and ensure the schema exists."""
    components = build_components(app_settings)
    database: PostgresDatabase = components["database"]
    await database.connect()
    try:
        async with database.acquire() as conn:
            await create_schema(conn, app_settings.default_embedding_dimension)
        yield components
    finally:
        await _close_components(components)


# ---------------------------------------------------------------------------
# Application lifespan (startup / shutdown)
# ---------------------------------------------------------------------------


@asynccontextmanager
async def _lifespan(application: FastAPI):  # noqa: ANN201
    """Initialise all providers and services on startup, clean up on shutdown."""
    async with open_components(settings) as components:
        for key, value in components.items():
            setattr(application.state, key, value)

        _logger.info(
            "app_startup",
            version=__version__,
            environment=settings.app_env,
            embedding_provider=components["embedding_provider"].get_provider_name(),
            dimension=settings.default_embedding_dimension,
        )

        yield

    _logger.info("app_shutdown")


# ---------------------------------------------------------------------------
# FastAPI application factory
# ---------------------------------------------------------------------------


def create_app() -> FastAPI:
    """Build and configure the FastAPI application."""
    application = FastAPI(
        title="contentvec API",
        version=__version__,
        description=(
            "Index free-text fields of headless-CMS content into pgvector "
            "embeddings and serve metric-aware semantic search over them."
        ),
        lifespan=_lifespan,
    )

    # -- Middleware (order matters: last added = first executed) --
    configure_error_handling(application)
    application.add_middleware(RequestLoggingMiddleware)
    configure_cors(application)

    # -- API routes --
    application.include_router(api_router)

    return application


app = create_app()

# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    uvicorn.run(
        "contentvec.main:app",
        host=settings.app_host,
        port=settings.app_port,
        reload=(settings.app_env == "development"),
    )
