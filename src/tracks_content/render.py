"""Jinja2-backed rendering of templated content strings."""

from __future__ import annotations

import html
import re
from functools import lru_cache, partial

from jinja2 import Environment, Template, TemplateError
from markupsafe import escape

from tracks_content.versions import VersionCatalog
from tracks_core.errors import RenderError
from tracks_core.models import RenderContext

TEMPLATE_CACHE_SIZE = 1024
# A "<" not followed by a tag name is text, as in an HTML parser.
TAG_PATTERN = re.compile(r"<!--.*?-->|</?[A-Za-z][^>]*>", re.DOTALL)


def _to_text(rendered: str) -> str:
    text = html.unescape(TAG_PATTERN.sub("", rendered))
    return " ".join(text.split())


class JinjaContentRenderer:
    """Render content strings against the current product, version and language.

    Templates see ``current_product``, ``current_version`` and
    ``current_language`` plus an ``ifversion(expression)`` helper bound to the
    version catalog, so content can write
    ``{% if ifversion("ghes >= 3.9") %}...{% endif %}``.
    """

    def __init__(self, catalog: VersionCatalog) -> None:
        self.catalog = catalog
        self.env = Environment(enable_async=True, autoescape=False)
        self._compile = lru_cache(maxsize=TEMPLATE_CACHE_SIZE)(self._compile_template)

    def _compile_template(self, source: str) -> Template:
        try:
            return self.env.from_string(source)
        except TemplateError as exc:
            raise RenderError(f"invalid template syntax in {source!r}: {exc}") from exc

    async def render(
        self,
        template: str,
        context: RenderContext,
        *,
        text_only: bool = False,
        encode_entities: bool = False,
    ) -> str:
        if not template:
            return ""
        compiled = self._compile(template)
        try:
            rendered = await compiled.render_async(
                current_product=context.current_product or "",
                current_version=context.current_version,
                current_language=context.current_language,
                ifversion=partial(
                    self.catalog.version_matches,
                    current_version=context.current_version,
                ),
            )
        except TemplateError as exc:
            raise RenderError(f"failed to render {template!r}: {exc}") from exc
        if text_only:
            rendered = _to_text(rendered)
        if encode_entities:
            rendered = str(escape(rendered))
        return rendered

    def clear_cache(self) -> None:
        self._compile.cache_clear()
