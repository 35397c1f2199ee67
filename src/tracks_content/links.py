from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError

from tracks_content.versions import VersionCatalog
from tracks_core.collaborators import ContentRenderer
from tracks_core.errors import ConfigurationError
from tracks_core.models import LinkDatum, RenderContext, VersionSpec

FRONTMATTER_PATTERN = re.compile(r"\A---[ \t]*\r?\n(.*?)\r?\n---[ \t]*(?:\r?\n|\Z)", re.DOTALL)
PAGE_SUFFIX = ".md"
INDEX_PAGE = "index.md"

logger = logging.getLogger(__name__)


class PageFrontmatter(BaseModel):
    # Pages carry plenty of frontmatter this index never reads.
    model_config = ConfigDict(extra="ignore", frozen=True)

    title: str
    short_title: str | None = None
    intro: str = ""
    versions: VersionSpec | None = None


@dataclass(frozen=True)
class Page:
    path: str
    source: Path
    frontmatter: PageFrontmatter


def normalize_href(href: str) -> str | None:
    """Reduce a guide href to a content path, or None if it escapes the root."""
    path = href.split("#", 1)[0].split("?", 1)[0].strip().strip("/")
    if not path:
        return None
    segments = path.split("/")
    if any(segment in {"", ".", ".."} for segment in segments):
        return None
    return path


def parse_frontmatter(source: Path) -> PageFrontmatter:
    text = source.read_text(encoding="utf-8")
    match = FRONTMATTER_PATTERN.match(text)
    if match is None:
        raise ConfigurationError(f"{source} has no frontmatter block")
    try:
        payload = yaml.safe_load(match.group(1)) or {}
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid frontmatter in {source}: {exc}") from exc
    try:
        return PageFrontmatter.model_validate(payload)
    except ValidationError as exc:
        raise ConfigurationError(f"invalid frontmatter in {source}: {exc}") from exc


class FilePageIndex:
    def __init__(self, root: Path) -> None:
        self.root = root
        self._pages: dict[str, Page | None] = {}

    def find(self, href: str) -> Page | None:
        path = normalize_href(href)
        if path is None:
            return None
        if path in self._pages:
            return self._pages[path]

        page: Page | None = None
        for candidate in (self.root / f"{path}{PAGE_SUFFIX}", self.root / path / INDEX_PAGE):
            if candidate.is_file():
                page = Page(path=path, source=candidate, frontmatter=parse_frontmatter(candidate))
                break
        self._pages[path] = page
        return page

    def clear_cache(self) -> None:
        self._pages.clear()


class LocalizedPageIndex:
    def __init__(
        self,
        default: FilePageIndex,
        *,
        translations_root: Path,
        default_language: str,
    ) -> None:
        self.default = default
        self.translations_root = translations_root
        self.default_language = default_language
        self._translations: dict[str, FilePageIndex] = {}
        self._unavailable: set[tuple[str, str]] = set()

    def _index_for(self, language: str) -> FilePageIndex:
        index = self._translations.get(language)
        if index is None:
            index = FilePageIndex(self.translations_root / language / "content")
            self._translations[language] = index
        return index

    def find(self, href: str, language: str) -> Page | None:
        if language != self.default_language and (language, href) not in self._unavailable:
            try:
                translated = self._index_for(language).find(href)
            except (ConfigurationError, OSError) as exc:
                logger.warning(
                    "failed to load %s translation of page %s; using %s: %s",
                    language,
                    href,
                    self.default_language,
                    exc,
                )
                self._unavailable.add((language, href))
                translated = None
            if translated is not None:
                return translated
        return self.default.find(href)

    def clear_cache(self) -> None:
        self._unavailable.clear()
        self.default.clear_cache()
        for index in self._translations.values():
            index.clear_cache()


class PageLinkResolver:
    """Turn guide references into link data for pages available in a version."""

    def __init__(
        self,
        pages: LocalizedPageIndex,
        *,
        renderer: ContentRenderer,
        catalog: VersionCatalog,
        default_version: str,
        use_short_title: bool = False,
    ) -> None:
        self.pages = pages
        self.renderer = renderer
        self.catalog = catalog
        self.default_version = default_version
        self.use_short_title = use_short_title

    def permalink(self, path: str, context: RenderContext) -> str:
        if context.current_version == self.default_version:
            return f"/{context.current_language}/{path}"
        return f"/{context.current_language}/{context.current_version}/{path}"

    def _is_available(self, page: Page, current_version: str) -> bool:
        if page.frontmatter.versions is None:
            return True
        applicable = self.catalog.get_applicable_versions(page.frontmatter.versions)
        return current_version in applicable

    async def get_link_data(
        self, guide_refs: Sequence[str], context: RenderContext
    ) -> list[LinkDatum]:
        links: list[LinkDatum] = []
        for ref in guide_refs:
            href = await self.renderer.render(ref, context, text_only=True)
            if not href:
                continue
            page = self.pages.find(href, context.current_language)
            if page is None:
                logger.debug("guide %s has no page; skipping", href)
                continue
            if not self._is_available(page, context.current_version):
                continue
            frontmatter = page.frontmatter
            title_source = frontmatter.title
            if self.use_short_title and frontmatter.short_title:
                title_source = frontmatter.short_title
            links.append(
                LinkDatum(
                    href=self.permalink(page.path, context),
                    page=page.path,
                    title=await self.renderer.render(title_source, context, text_only=True),
                    intro=await self.renderer.render(frontmatter.intro, context, text_only=True),
                )
            )
        return links
