"""
Track module - Procedural loop track generation and queries.

This module contains:
- TrackModel: Generated track with sampled frames and query methods
- TrackGenerator / generate: Builds a TrackModel from TrackOptions
- TrackOptions: Generation configuration
- TunnelSegment, BoostPadSegment: Gameplay zones along the loop
- SeededRandom: Deterministic random source
"""

from looptrack.track.errors import InvalidConfigurationError, TrackGenerationError
from looptrack.track.features import (
    BoostPadInfo,
    BoostPadSegment,
    TunnelInfo,
    TunnelSegment,
    TunnelType,
)
from looptrack.track.generator import TrackGenerator, generate
from looptrack.track.options import BoostPadOptions, TrackOptions, TrackSource, TunnelOptions
from looptrack.track.rng import SeededRandom
from looptrack.track.track import FrenetFrame, TrackModel, TrackSample

__all__ = [
    "TrackModel",
    "TrackSample",
    "FrenetFrame",
    "TrackGenerator",
    "generate",
    "TrackOptions",
    "TunnelOptions",
    "BoostPadOptions",
    "TrackSource",
    "TunnelSegment",
    "TunnelType",
    "TunnelInfo",
    "BoostPadSegment",
    "BoostPadInfo",
    "SeededRandom",
    "TrackGenerationError",
    "InvalidConfigurationError",
]
