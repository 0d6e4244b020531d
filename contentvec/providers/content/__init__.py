"""Content source implementations."""

from contentvec.providers.content.http_content_provider import HttpContentProvider

__all__ = ["HttpContentProvider"]
