from __future__ import annotations

import copy
import json
from pathlib import Path

import pytest

from tracks_content.runtime import reset_content_runtime_cache
from tracks_core.settings import reset_site_config_cache

REPO_ROOT = Path(__file__).resolve().parents[1]

SITE_CONFIG = {
    "default_language": "en",
    "languages": ["en", "ja"],
    "default_version": "free-pro-team@latest",
    "plans": [
        {"name": "free-pro-team", "short_name": "fpt", "releases": []},
        {"name": "enterprise-cloud", "short_name": "ghec", "releases": []},
        {
            "name": "enterprise-server",
            "short_name": "ghes",
            "releases": ["3.10", "3.11", "3.12"],
        },
    ],
    "features": {"actions-oidc": {"fpt": "*", "ghec": "*", "ghes": ">=3.11"}},
}


def write_site_config(path: Path, *, root: Path, **overrides: object) -> Path:
    payload = {
        **SITE_CONFIG,
        "data_root": str(root / "data"),
        "translations_root": str(root / "translations"),
        "content_root": str(root / "content"),
        **overrides,
    }
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


@pytest.fixture
def repo_site_config(tmp_path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the process-wide runtime at the content shipped in this repo."""
    path = write_site_config(tmp_path / "site.json", root=REPO_ROOT)
    monkeypatch.setenv("TRACKS_SITE_CONFIG_PATH", str(path))
    monkeypatch.delenv("TRACKS_DEFAULT_LANGUAGE", raising=False)
    reset_site_config_cache()
    reset_content_runtime_cache()
    yield path
    reset_site_config_cache()
    reset_content_runtime_cache()


@pytest.fixture
def site_config() -> dict:
    return copy.deepcopy(SITE_CONFIG)
