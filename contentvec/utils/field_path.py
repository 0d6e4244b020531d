"""Declarative field paths into nested content items.

A profile field such as ``question_variants.question_variant`` addresses a
text value that lives inside a repeatable sub-structure.  Rather than split
strings inside the indexing loop, each declaration is parsed once into a
:class:`FieldPath` -- a sequence of named segments -- and resolved against a
plain ``dict`` content item by :meth:`FieldPath.resolve`.

Resolution rules:

* A single-segment path reads the item's direct value.
* When an intermediate segment holds a list, every element is walked and
  the element index is recorded; each usable leaf becomes its own
  :class:`ResolvedValue` keyed ``<path>[<index>]``.
* When an intermediate segment holds a single mapping it is descended into
  without adding an index.
* A bracket-indexed segment such as ``variants[1]`` selects that one element
  of a repeated value.  The index is already part of the declaration, so it
  is not appended to the key again.
* Missing keys, ``None`` and non-string leaves produce no values.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any

from contentvec.utils.text_normalizer import is_usable_text

_SEGMENT_RE = re.compile(r"^([^\[\]]+)(?:\[(\d+)\])?$")


@dataclass(frozen=True)
class PathSegment:
    """One named step of a :class:`FieldPath`.

    ``index`` is set for bracket-indexed steps (``name[i]``).
    """

    name: str
    index: int | None = None

    @classmethod
    def parse(cls, part: str) -> PathSegment:
        match = _SEGMENT_RE.match(part)
        if match is None:
            raise ValueError(f"Invalid field path segment: {part!r}")
        name, index = match.groups()
        return cls(name=name, index=int(index) if index is not None else None)


@dataclass(frozen=True)
class ResolvedValue:
    """A usable text value found at a field path.

    ``key`` is the field name stored on the vector record; ``indices`` holds
    the element index for every repeated segment crossed on the way.
    """

    key: str
    text: str
    indices: tuple[int, ...] = ()

    @property
    def element_index(self) -> int | None:
        """Index of the innermost repeated element, if any."""
        return self.indices[-1] if self.indices else None


@dataclass(frozen=True)
class FieldPath:
    """Parsed form of a dotted field declaration."""

    raw: str
    segments: tuple[PathSegment, ...]

    @classmethod
    def parse(cls, raw: str) -> FieldPath:
        """Parse ``"a.b[2].c"`` into segments.  Empty segments are rejected."""
        parts = raw.split(".")
        if not raw or any(not part for part in parts):
            raise ValueError(f"Invalid field path: {raw!r}")
        return cls(raw=raw, segments=tuple(PathSegment.parse(p) for p in parts))

    @property
    def is_nested(self) -> bool:
        return len(self.segments) > 1

    @property
    def root(self) -> str:
        """Name of the top-level attribute this path starts from."""
        return self.segments[0].name

    def resolve(self, item: dict[str, Any]) -> list[ResolvedValue]:
        """Return every usable text value this path addresses in *item*."""
        found: list[ResolvedValue] = []
        self._walk(item, 0, (), (), found)
        return found

    def _walk(
        self,
        node: Any,
        depth: int,
        indices: tuple[int, ...],
        expanded: tuple[int, ...],
        found: list[ResolvedValue],
    ) -> None:
        # expanded: indices of lists walked implicitly; these go into the key.
        if not isinstance(node, dict):
            return
        segment = self.segments[depth]
        value = node.get(segment.name)

        if segment.index is not None:
            if not isinstance(value, list) or segment.index >= len(value):
                return
            value = value[segment.index]
            indices = (*indices, segment.index)

        if depth == len(self.segments) - 1:
            if is_usable_text(value):
                found.append(ResolvedValue(key=self._key(expanded), text=value, indices=indices))
            return

        if isinstance(value, list):
            for index, element in enumerate(value):
                self._walk(element, depth + 1, (*indices, index), (*expanded, index), found)
        else:
            self._walk(value, depth + 1, indices, expanded, found)

    def _key(self, expanded: tuple[int, ...]) -> str:
        return self.raw + "".join(f"[{i}]" for i in expanded)


def nested_roots(field_names: list[str]) -> list[str]:
    """Return the distinct top-level attributes that dotted paths descend into.

    The content source is asked to include these in its fetch so nested data
    arrives with the item instead of being loaded per item.
    """
    roots: list[str] = []
    for name in field_names:
        path = FieldPath.parse(name)
        if path.is_nested and path.root not in roots:
            roots.append(path.root)
    return roots
