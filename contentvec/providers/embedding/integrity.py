"""Pre-persist integrity check for provider-returned embeddings.

Every vector passes through :func:`check_embedding` before it reaches the
vector store or a search query, so a provider that silently changes its
output dimension or emits NaN can never corrupt stored data.
"""

from __future__ import annotations

import math
from typing import Sequence

from contentvec.utils.errors import DimensionMismatchError, InvalidValuesError


def check_embedding(
    embedding: Sequence[float],
    expected_dimension: int,
    provider_name: str | None = None,
) -> list[float]:
    """Validate *embedding* and return it as a plain ``list[float]``.

    Raises
    ------
    DimensionMismatchError
        If ``len(embedding) != expected_dimension``.
    InvalidValuesError
        If any component is NaN or infinite.
    """
    if len(embedding) != expected_dimension:
        raise DimensionMismatchError(
            message=(
                f"Embedding has {len(embedding)} dimensions, "
                f"expected {expected_dimension}"
            ),
            provider_name=provider_name,
        )
    values = [float(v) for v in embedding]
    if not all(math.isfinite(v) for v in values):
        raise InvalidValuesError(provider_name=provider_name)
    return values
