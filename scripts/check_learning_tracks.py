from __future__ import annotations

import argparse
import asyncio
import json

from tracks_content.runtime import ContentRuntime, get_content_runtime
from tracks_core.errors import ConfigurationError, TrackNotFoundError
from tracks_core.models import RenderContext


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Resolve every learning track for every version and language.",
    )
    parser.add_argument(
        "--product",
        action="append",
        default=None,
        help="Limit the check to one product (repeatable).",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        help="Print human-readable output.",
    )
    return parser.parse_args(argv)


async def check_tracks(
    runtime: ContentRuntime,
    *,
    products: list[str] | None = None,
) -> dict[str, object]:
    failures: list[dict[str, str]] = []
    checked = 0
    for product in products or runtime.tracks.products():
        try:
            track_names = list(runtime.tracks.default.load_product(product))
        except ConfigurationError as exc:
            failures.append({"product": product, "error": str(exc)})
            continue
        for language in runtime.site.config.languages:
            for version in runtime.catalog.all_versions:
                context = RenderContext(
                    current_product=product,
                    current_version=version,
                    current_language=language,
                )
                checked += 1
                try:
                    await runtime.resolver.resolve(track_names, context)
                except (ConfigurationError, TrackNotFoundError) as exc:
                    failures.append(
                        {
                            "product": product,
                            "language": language,
                            "version": version,
                            "error": str(exc),
                        }
                    )
    return {"ok": not failures, "checked": checked, "failures": failures}


def run(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    report = asyncio.run(check_tracks(get_content_runtime(), products=args.product))
    if args.pretty:
        print(f"learning-tracks-check ok={report['ok']} checked={report['checked']}")
        for failure in report["failures"]:  # type: ignore[attr-defined]
            location = "/".join(
                failure[field]
                for field in ("product", "language", "version")
                if field in failure
            )
            print(f"FAIL {location}: {failure['error']}")
    else:
        print(json.dumps(report))
    return 0 if report["ok"] else 1


if __name__ == "__main__":
    raise SystemExit(run())
