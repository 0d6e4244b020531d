"""Domain services.

- **ProfileRegistry** -- validated profile create / lookup / delete.
- **VectorService** -- single-field embed-and-upsert, content deletion.
- **Indexer** -- full indexing runs over a profile's content.
- **QueryEngine** -- semantic search with query-history logging.
"""

from contentvec.services.indexer import Indexer, resolve_content_type_uid
from contentvec.services.profile_registry import ProfileRegistry
from contentvec.services.query_engine import QueryEngine
from contentvec.services.vector_service import VectorService

__all__ = [
    "Indexer",
    "ProfileRegistry",
    "QueryEngine",
    "VectorService",
    "resolve_content_type_uid",
]
