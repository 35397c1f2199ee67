from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache

from tracks_content.links import FilePageIndex, LocalizedPageIndex, PageLinkResolver
from tracks_content.render import JinjaContentRenderer
from tracks_content.track_repository import FileTrackRepository, LocalizedTrackRepository
from tracks_content.versions import VersionCatalog
from tracks_core.resolver import LearningTrackResolver
from tracks_core.settings import EffectiveSiteRuntime, resolve_site_runtime


@dataclass(frozen=True)
class ContentRuntime:
    site: EffectiveSiteRuntime
    catalog: VersionCatalog
    renderer: JinjaContentRenderer
    tracks: LocalizedTrackRepository
    pages: LocalizedPageIndex
    links: PageLinkResolver
    resolver: LearningTrackResolver


def build_content_runtime(site: EffectiveSiteRuntime) -> ContentRuntime:
    config = site.config
    catalog = VersionCatalog(config.plans, config.features)
    renderer = JinjaContentRenderer(catalog)
    tracks = LocalizedTrackRepository(
        FileTrackRepository(site.data_root),
        translations_root=site.translations_root,
        default_language=site.default_language,
    )
    pages = LocalizedPageIndex(
        FilePageIndex(site.content_root),
        translations_root=site.translations_root,
        default_language=site.default_language,
    )
    links = PageLinkResolver(
        pages,
        renderer=renderer,
        catalog=catalog,
        default_version=config.default_version,
    )
    resolver = LearningTrackResolver(
        renderer=renderer,
        versions=catalog,
        links=links,
        tracks=tracks,
    )
    return ContentRuntime(
        site=site,
        catalog=catalog,
        renderer=renderer,
        tracks=tracks,
        pages=pages,
        links=links,
        resolver=resolver,
    )


def reset_content_runtime_cache() -> None:
    get_content_runtime.cache_clear()


@lru_cache(maxsize=1)
def get_content_runtime() -> ContentRuntime:
    return build_content_runtime(resolve_site_runtime())


def get_learning_track_resolver() -> LearningTrackResolver:
    return get_content_runtime().resolver
