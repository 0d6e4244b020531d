"""Range and enum checks shared by the query engine and the stores.

Each helper raises a :class:`~contentvec.utils.errors.ValidationError`
subclass naming the offending input, so callers can reject a request
before doing any I/O.
"""

from __future__ import annotations

from contentvec.models.profile import DistanceMetric
from contentvec.models.vector import MAX_K
from contentvec.utils.errors import InvalidRangeError, ValidationError

MAX_HISTORY_LIMIT = 1000


def parse_metric(value: DistanceMetric | str) -> DistanceMetric:
    """Coerce *value* to a :class:`DistanceMetric` or raise ``ValidationError``."""
    try:
        return DistanceMetric(value)
    except ValueError as exc:
        raise ValidationError(
            message=f"Unknown distance metric {value!r}; expected cosine, l2 or dot",
            field="distance_metric",
        ) from exc


def validate_search_bounds(k: int, min_similarity: float | None) -> None:
    """Raise ``InvalidRangeError`` unless k ∈ [1, 1000] and min_similarity ∈ [0, 1]."""
    if isinstance(k, bool) or not isinstance(k, int) or not 1 <= k <= MAX_K:
        raise InvalidRangeError(message=f"k must be between 1 and {MAX_K}", field="k")
    if min_similarity is not None and not 0.0 <= min_similarity <= 1.0:
        raise InvalidRangeError(
            message="min_similarity must be between 0 and 1", field="min_similarity"
        )


def validate_history_window(limit: int, offset: int) -> None:
    """Raise ``InvalidRangeError`` unless limit ∈ [1, 1000] and offset ≥ 0."""
    if not 1 <= limit <= MAX_HISTORY_LIMIT:
        raise InvalidRangeError(
            message=f"limit must be between 1 and {MAX_HISTORY_LIMIT}", field="limit"
        )
    if offset < 0:
        raise InvalidRangeError(message="offset must be non-negative", field="offset")
