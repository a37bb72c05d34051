"""
Track generator - Builds a complete TrackModel from TrackOptions.

Pipeline:
- Control polygon (seeded jitter, chord filter, Chaikin smoothing)
- Centripetal Catmull-Rom fit with arc-length table
- Parallel-transported, seam-corrected, banked frames
- Tunnel and boost pad placement
"""

import logging

from looptrack.track.control_points import ControlPointGenerator
from looptrack.track.curve import fit_closed_curve
from looptrack.track.features import SegmentPlacer
from looptrack.track.frames import FrameSampler
from looptrack.track.options import TrackOptions
from looptrack.track.rng import SeededRandom
from looptrack.track.track import TrackModel

logger = logging.getLogger(__name__)

# Stream offset for tunnel placement draws
TUNNEL_STREAM_OFFSET = 0x5EED


class TrackGenerator:
    """Procedural loop track generator.

    Generation is synchronous and deterministic: the same options always
    give the same track. Any failure raises before a model exists, so
    callers never see a partial track.

    Usage:
        generator = TrackGenerator(TrackOptions(seed=42))
        track = generator.generate()
        other = generator.generate_with_seed(43)
    """

    def __init__(self, options: TrackOptions | None = None):
        """Initialize generator with optional options.

        Args:
            options: Track options. Uses defaults if None.
        """
        self.options = options or TrackOptions()

    def generate(self) -> TrackModel:
        """Generate a new track.

        Returns:
            Immutable TrackModel

        Raises:
            InvalidConfigurationError: Options cannot produce a closed loop
        """
        opts = self.options

        control_points = ControlPointGenerator(opts, SeededRandom(opts.seed)).generate()
        curve = fit_closed_curve(control_points, opts.sample_count)
        frames = FrameSampler(curve, opts).sample()

        placer = SegmentPlacer(
            curve.length, rng=SeededRandom(opts.seed).fork(TUNNEL_STREAM_OFFSET)
        )
        tunnels = placer.place_tunnels(opts.tunnels)
        boost_pads = placer.place_boost_pads(opts.boost_pads)

        track = TrackModel(opts, curve, frames, tunnels, boost_pads)
        logger.info(
            f"Generated track seed={opts.seed}: {len(control_points)} control points, "
            f"{track.length:.0f} m, {len(tunnels)} tunnels, {len(boost_pads)} boost pads"
        )
        return track

    def generate_with_seed(self, seed: int) -> TrackModel:
        """Generate a track with a specific seed, keeping all other options.

        Args:
            seed: Random seed

        Returns:
            Generated track
        """
        return TrackGenerator(self.options.with_seed(seed)).generate()


def generate(options: TrackOptions | None = None) -> TrackModel:
    """Generate a track from options (defaults if None)."""
    return TrackGenerator(options).generate()
