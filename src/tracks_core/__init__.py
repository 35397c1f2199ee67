"""Learning-track models, configuration and resolution."""

from __future__ import annotations

from tracks_core.errors import ConfigurationError, TrackNotFoundError
from tracks_core.models import LearningTracksResult, RenderContext, ResolvedLearningTrack
from tracks_core.resolver import LearningTrackResolver, process_learning_tracks

__all__ = [
    "ConfigurationError",
    "LearningTrackResolver",
    "LearningTracksResult",
    "RenderContext",
    "ResolvedLearningTrack",
    "TrackNotFoundError",
    "process_learning_tracks",
]
