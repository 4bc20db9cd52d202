"""Request handlers mapping search results to response bodies."""

from site_showcase.api.handlers import handle_search, handle_similar

__all__ = ["handle_search", "handle_similar"]
