"""
Track errors - Exceptions raised by track generation.
"""


class TrackGenerationError(Exception):
    """Base class for track generation failures."""


class InvalidConfigurationError(TrackGenerationError, ValueError):
    """Options cannot produce a valid track.

    Raised when the options are out of range or when fewer than four
    usable control points survive generation.
    """
