from __future__ import annotations

import logging
from collections.abc import Sequence

from tracks_core.collaborators import (
    ContentRenderer,
    LinkResolver,
    TrackDataSource,
    VersionResolver,
)
from tracks_core.errors import ConfigurationError, TrackNotFoundError
from tracks_core.models import (
    FeaturedFlag,
    LearningTracksResult,
    LiteralFeatured,
    RenderContext,
    ResolvedLearningTrack,
    TrackKey,
)

KEY_SEPARATOR = "."

logger = logging.getLogger(__name__)


class LearningTrackResolver:
    """Resolve frontmatter track names into the tracks shown for a context.

    Returns at most one featured track plus the remaining tracks, in input
    order, that still have guides in the current version. The resolver keeps
    no state between calls; caching belongs to the collaborators.
    """

    def __init__(
        self,
        *,
        renderer: ContentRenderer,
        versions: VersionResolver,
        links: LinkResolver,
        tracks: TrackDataSource,
    ) -> None:
        self.renderer = renderer
        self.versions = versions
        self.links = links
        self.tracks = tracks

    async def _render(self, template: str, context: RenderContext) -> str:
        return await self.renderer.render(
            template, context, text_only=True, encode_entities=True
        )

    async def _is_featured(self, flag: FeaturedFlag | None, context: RenderContext) -> bool:
        if flag is None:
            return False
        if isinstance(flag, LiteralFeatured):
            return flag.value is True
        return await self._render(flag.template, context) == "true"

    async def resolve(
        self, raw_track_names: Sequence[str], context: RenderContext
    ) -> LearningTracksResult:
        product = context.current_product
        if not product:
            raise ConfigurationError("missing context.current_product value")
        if KEY_SEPARATOR in product:
            raise ConfigurationError(f"current_product can not contain a . ({product})")

        featured_track: ResolvedLearningTrack | None = None
        learning_tracks: list[ResolvedLearningTrack] = []

        for raw_track_name in raw_track_names:
            track_name = await self._render(raw_track_name, context)
            if not track_name:
                logger.debug("track %r renders empty in this context; skipping", raw_track_name)
                continue
            if KEY_SEPARATOR in track_name:
                raise ConfigurationError(f"track name can not contain a . ({track_name})")

            key = TrackKey(product=product, track=track_name)
            track = self.tracks.get_track(key, context.current_language)
            if track is None:
                raise TrackNotFoundError(f"no learning track called {track_name!r} for {product}")

            # No versions means the track shows in every version.
            if track.versions:
                applicable = self.versions.get_applicable_versions(track.versions)
                if context.current_version not in applicable:
                    logger.debug(
                        "track %s not available in %s; skipping", key, context.current_version
                    )
                    continue

            learning_track = ResolvedLearningTrack(
                track_name=track_name,
                track_product=product,
                title=await self._render(track.title, context),
                description=await self._render(track.description, context),
                guides=await self.links.get_link_data(track.guides, context),
            )

            if await self._is_featured(track.featured_track, context):
                if featured_track is not None:
                    # TODO: confirm with content owners whether two featured
                    # tracks should be rejected instead of last-one-wins.
                    logger.debug(
                        "featured track %s replaced by %s",
                        featured_track.track_name,
                        track_name,
                    )
                featured_track = learning_track
                continue

            if learning_track.guides:
                learning_tracks.append(learning_track)

        return LearningTracksResult(
            featured_track=featured_track,
            learning_tracks=learning_tracks,
        )


async def process_learning_tracks(
    raw_track_names: Sequence[str],
    context: RenderContext,
    *,
    resolver: LearningTrackResolver | None = None,
) -> LearningTracksResult:
    if resolver is None:
        from tracks_content.runtime import get_learning_track_resolver

        resolver = get_learning_track_resolver()
    return await resolver.resolve(raw_track_names, context)
