"""File-backed content sources: track data, pages, versions and rendering."""

from __future__ import annotations

from tracks_content.runtime import (
    build_content_runtime,
    get_content_runtime,
    get_learning_track_resolver,
    reset_content_runtime_cache,
)

__all__ = [
    "build_content_runtime",
    "get_content_runtime",
    "get_learning_track_resolver",
    "reset_content_runtime_cache",
]
