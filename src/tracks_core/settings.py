from __future__ import annotations

import json
import os
from functools import lru_cache
from pathlib import Path
from typing import Annotated, Union

from pydantic import BaseModel, ConfigDict, Field, StringConstraints, model_validator

SITE_CONFIG_PATH_ENV = "TRACKS_SITE_CONFIG_PATH"
DEFAULT_LANGUAGE_ENV = "TRACKS_DEFAULT_LANGUAGE"

PlanName = Annotated[str, StringConstraints(pattern=r"^[a-z0-9][a-z0-9-]*$")]
ReleaseNumber = Annotated[str, StringConstraints(pattern=r"^\d+(\.\d+)*$")]


class VersionPlan(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: PlanName
    short_name: PlanName
    releases: list[ReleaseNumber] = Field(default_factory=list)


class SiteConfig(BaseModel):
    model_config = ConfigDict(extra="forbid")

    default_language: str = Field(default="en", min_length=2, max_length=16)
    languages: list[str] = Field(default_factory=lambda: ["en"], min_length=1)
    default_version: str
    plans: list[VersionPlan] = Field(min_length=1)
    features: dict[str, Union[str, list[str], dict[str, str]]] = Field(
        default_factory=dict
    )
    data_root: str = "data"
    translations_root: str = "translations"
    content_root: str = "content"

    @model_validator(mode="after")
    def _check_languages(self) -> SiteConfig:
        if self.default_language not in self.languages:
            raise ValueError(
                f"default_language {self.default_language!r} missing from languages"
            )
        plan_names = [plan.name for plan in self.plans] + [
            plan.short_name for plan in self.plans
        ]
        if len(plan_names) != len(set(plan_names)):
            raise ValueError("plan names and short names must be unique")
        return self


class EffectiveSiteRuntime(BaseModel):
    model_config = ConfigDict(extra="forbid")

    config: SiteConfig
    default_language: str
    data_root: Path
    translations_root: Path
    content_root: Path


def _default_config_path() -> Path:
    module_path = Path(__file__).resolve()
    candidates = [
        Path.cwd() / "config" / "site" / "default.json",
        module_path.parents[2] / "config" / "site" / "default.json",
    ]
    for candidate in candidates:
        if candidate.exists():
            return candidate
    return candidates[0]


def _resolve_root(value: str) -> Path:
    candidate = Path(value)
    if candidate.is_absolute():
        return candidate
    return (Path.cwd() / candidate).resolve()


def reset_site_config_cache() -> None:
    get_site_config.cache_clear()


@lru_cache(maxsize=1)
def get_site_config() -> SiteConfig:
    path = Path(os.getenv(SITE_CONFIG_PATH_ENV, str(_default_config_path())))
    payload = json.loads(path.read_text(encoding="utf-8"))
    return SiteConfig.model_validate(payload)


def _resolve_default_language(config: SiteConfig) -> str:
    env_language = os.getenv(DEFAULT_LANGUAGE_ENV)
    if env_language is None or not env_language.strip():
        return config.default_language
    language = env_language.strip().lower()
    if language not in config.languages:
        raise ValueError(f"invalid {DEFAULT_LANGUAGE_ENV} value: {env_language}")
    return language


def resolve_site_runtime(config: SiteConfig | None = None) -> EffectiveSiteRuntime:
    config = config or get_site_config()
    return EffectiveSiteRuntime(
        config=config,
        default_language=_resolve_default_language(config),
        data_root=_resolve_root(config.data_root),
        translations_root=_resolve_root(config.translations_root),
        content_root=_resolve_root(config.content_root),
    )
