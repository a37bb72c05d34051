"""
LoopTrack - Procedural closed-loop 3D race tracks.

This package provides:
- Seeded, reproducible centerline generation with elevation
- Twist-free orientation frames with curvature-based banking
- Tunnel and boost pad placement with wraparound-aware queries
"""

__version__ = "0.1.0"

from looptrack.track import TrackGenerator, TrackModel, TrackOptions, generate

__all__ = ["TrackGenerator", "TrackModel", "TrackOptions", "generate", "__version__"]
