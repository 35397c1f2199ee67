from __future__ import annotations

import logging
from pathlib import Path

import yaml
from pydantic import ValidationError

from tracks_core.errors import ConfigurationError
from tracks_core.models import TrackData, TrackKey

TRACKS_DIRECTORY = "learning-tracks"
TRACK_FILE_SUFFIX = ".yml"

logger = logging.getLogger(__name__)


def _load_yaml(path: Path) -> object:
    try:
        return yaml.safe_load(path.read_text(encoding="utf-8"))
    except yaml.YAMLError as exc:
        raise ConfigurationError(f"invalid YAML in {path}: {exc}") from exc


class FileTrackRepository:
    """Learning tracks stored as one YAML mapping per product.

    ``root`` is a data directory holding ``learning-tracks/<product>.yml``.
    Parsed files are kept for the life of the repository.
    """

    def __init__(self, root: Path) -> None:
        self.root = root
        self._products: dict[str, dict[str, TrackData]] = {}

    @property
    def tracks_dir(self) -> Path:
        return self.root / TRACKS_DIRECTORY

    def product_path(self, product: str) -> Path:
        return self.tracks_dir / f"{product}{TRACK_FILE_SUFFIX}"

    def products(self) -> list[str]:
        if not self.tracks_dir.is_dir():
            return []
        return sorted(path.stem for path in self.tracks_dir.glob(f"*{TRACK_FILE_SUFFIX}"))

    def load_product(self, product: str) -> dict[str, TrackData]:
        cached = self._products.get(product)
        if cached is not None:
            return cached

        path = self.product_path(product)
        if not path.exists():
            tracks: dict[str, TrackData] = {}
        else:
            payload = _load_yaml(path) or {}
            if not isinstance(payload, dict):
                raise ConfigurationError(f"{path} must contain a mapping of track names")
            try:
                tracks = {
                    str(name): TrackData.model_validate(raw)
                    for name, raw in payload.items()
                }
            except ValidationError as exc:
                raise ConfigurationError(
                    f"invalid learning track data in {path}: {exc}"
                ) from exc
        self._products[product] = tracks
        return tracks

    def get_track(self, key: TrackKey) -> TrackData | None:
        return self.load_product(key.product).get(key.track)

    def clear_cache(self) -> None:
        self._products.clear()


class LocalizedTrackRepository:
    """Serve translated tracks, falling back to the default language.

    A translation that is missing, unreadable or invalid is replaced by the
    default-language node. Failures in the default language propagate.
    """

    def __init__(
        self,
        default: FileTrackRepository,
        *,
        translations_root: Path,
        default_language: str,
    ) -> None:
        self.default = default
        self.translations_root = translations_root
        self.default_language = default_language
        self._translations: dict[str, FileTrackRepository] = {}
        # (language, product) pairs whose translation failed to load.
        self._unavailable: set[tuple[str, str]] = set()

    def _repository_for(self, language: str) -> FileTrackRepository:
        repository = self._translations.get(language)
        if repository is None:
            repository = FileTrackRepository(self.translations_root / language / "data")
            self._translations[language] = repository
        return repository

    def get_track(self, key: TrackKey, language: str) -> TrackData | None:
        if language != self.default_language and (language, key.product) not in self._unavailable:
            try:
                translated = self._repository_for(language).get_track(key)
            except (ConfigurationError, OSError) as exc:
                logger.warning(
                    "failed to load %s translation of %s; using %s: %s",
                    language,
                    key.product,
                    self.default_language,
                    exc,
                )
                self._unavailable.add((language, key.product))
                translated = None
            if translated is not None:
                return translated
        return self.default.get_track(key)

    def products(self) -> list[str]:
        return self.default.products()

    def clear_cache(self) -> None:
        self._unavailable.clear()
        self.default.clear_cache()
        for repository in self._translations.values():
            repository.clear_cache()
