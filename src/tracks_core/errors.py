from __future__ import annotations


class ConfigurationError(ValueError):
    pass


class InvalidVersionSpecError(ConfigurationError):
    pass


class RenderError(ConfigurationError):
    pass


class TrackNotFoundError(LookupError):
    pass
