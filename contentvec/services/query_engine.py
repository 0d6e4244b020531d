"""Query engine: natural-language text in, ranked nearest neighbours out.

The pipeline is strictly ordered: validate (no I/O) → embed → search →
log.  History is written only after the search succeeded, and a logging
failure is reported in the logs but never fails the search.
"""

from __future__ import annotations

import structlog

from contentvec.interfaces.embedding_provider import IEmbeddingProvider
from contentvec.interfaces.query_log_provider import IQueryLogProvider
from contentvec.interfaces.vector_store_provider import IVectorStoreProvider
from contentvec.models.profile import DistanceMetric, Profile
from contentvec.models.vector import SearchHit, SearchOptions
from contentvec.utils.errors import InvalidInputError
from contentvec.utils.text_normalizer import normalize_text
from contentvec.utils.validation import parse_metric, validate_search_bounds

logger = structlog.get_logger(logger_name=__name__)


class QueryEngine:
    """Runs semantic searches against the vector store.

    The query is embedded with the model and dimension of the searched
    profile when it is known (the caller passes it); otherwise with the
    provider defaults.
    """

    def __init__(
        self,
        embedding_provider: IEmbeddingProvider,
        vector_store: IVectorStoreProvider,
        query_log: IQueryLogProvider | None = None,
    ) -> None:
        self._embedder = embedding_provider
        self._vectors = vector_store
        self._query_log = query_log

    @staticmethod
    def validate(query_text: str, options: SearchOptions) -> DistanceMetric:
        """Check the query and its options without touching any collaborator."""
        if not isinstance(query_text, str) or not normalize_text(query_text):
            raise InvalidInputError(message="Query text is required", field="query")
        metric = parse_metric(options.distance_metric)
        validate_search_bounds(options.k, options.min_similarity)
        return metric

    async def search(
        self,
        query_text: str,
        options: SearchOptions | None = None,
        profile: Profile | None = None,
    ) -> list[SearchHit]:
        """Embed *query_text* and return up to ``options.k`` ranked hits.

        Raises
        ------
        ValidationError
            If the query is empty or an option is out of range; raised
            before any provider or store call.
        ProviderError, EmbeddingIntegrityError, StoreError
            Propagated unchanged; nothing is logged to history.
        """
        options = options or SearchOptions()
        metric = self.validate(query_text, options)

        model = profile.embedding_model if profile else None
        dimension = profile.embedding_dimension if profile else None
        embedding = await self._embedder.embed(query_text, model=model, dimension=dimension)

        hits = await self._vectors.search(
            embedding,
            distance_metric=metric,
            k=options.k,
            profile_id=options.profile_id,
            content_type=options.content_type,
            metadata_filters=dict(options.metadata_filters),
            min_similarity=options.min_similarity,
        )

        logger.info(
            "search_completed",
            profile_id=options.profile_id,
            metric=metric.value,
            k=options.k,
            hits=len(hits),
        )

        if options.log_query and self._query_log is not None:
            await self._log(query_text, options, hits)
        return hits

    async def _log(self, query_text: str, options: SearchOptions, hits: list[SearchHit]) -> None:
        try:
            query_id = await self._query_log.log_query(options.profile_id, query_text, options.k)
            await self._query_log.log_results(query_id, hits)
        except Exception as exc:  # noqa: BLE001
            logger.error(
                "query_history_log_failed",
                profile_id=options.profile_id,
                error_type=type(exc).__name__,
                error=str(exc),
            )
