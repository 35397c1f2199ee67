"""Interfaces the track resolver depends on.

Concrete file-backed implementations live in ``tracks_content``; tests and
embedding applications may supply their own.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, Protocol

from tracks_core.models import LinkDatum, RenderContext, TrackData, TrackKey


class ContentRenderer(Protocol):
    async def render(
        self,
        template: str,
        context: RenderContext,
        *,
        text_only: bool = False,
        encode_entities: bool = False,
    ) -> str: ...


class VersionResolver(Protocol):
    def get_applicable_versions(self, version_spec: Any) -> Sequence[str]: ...


class LinkResolver(Protocol):
    async def get_link_data(
        self, guide_refs: Sequence[str], context: RenderContext
    ) -> list[LinkDatum]: ...


class TrackDataSource(Protocol):
    def get_track(self, key: TrackKey, language: str) -> TrackData | None: ...
