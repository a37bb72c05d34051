"""
Control points - Closed control polygon for the track centerline.

Generates a rough loop from jittered polar samples with harmonic
elevation, drops near-duplicate points and rounds the result with
closed-loop Chaikin corner cutting.
"""

import logging
import math
from typing import List

import numpy as np

from looptrack.track.errors import InvalidConfigurationError
from looptrack.track.options import TrackOptions, TrackSource
from looptrack.track.rng import SeededRandom

logger = logging.getLogger(__name__)

# Angular jitter applied to each polar sample, in radians (peak to peak)
ANGLE_JITTER_RAD = 0.3

MIN_CONTROL_POINTS = 4


class ControlPointGenerator:
    """Builds the closed control polygon for a track.

    Usage:
        generator = ControlPointGenerator(options)
        polygon = generator.generate()   # (M, 3) array
    """

    def __init__(self, options: TrackOptions | None = None, rng: SeededRandom | None = None):
        """Initialize generator.

        Args:
            options: Track options. Uses defaults if None.
            rng: Random source. Seeded from ``options.seed`` if None.
        """
        self.options = options or TrackOptions()
        self._rng = rng or SeededRandom(self.options.seed)

    def generate(self) -> np.ndarray:
        """Generate the control polygon.

        Returns:
            Array of shape (M, 3); the last point implicitly connects to
            the first.

        Raises:
            InvalidConfigurationError: Fewer than four points survived.
        """
        opts = self.options
        if opts.source == TrackSource.CUSTOM:
            if len(opts.custom_points) >= MIN_CONTROL_POINTS:
                logger.debug(f"Using {len(opts.custom_points)} custom control points")
                return np.array(opts.custom_points, dtype=float)
            logger.warning(
                f"Only {len(opts.custom_points)} custom control points, "
                "falling back to procedural generation"
            )

        raw = self.generate_raw()
        if len(raw) < MIN_CONTROL_POINTS:
            raise InvalidConfigurationError(
                f"Only {len(raw)} control points survived min_chord={opts.min_chord} "
                f"(need at least {MIN_CONTROL_POINTS})"
            )

        points = np.array(raw, dtype=float)
        for _ in range(opts.control_point_smooth_passes):
            points = chaikin_closed(points)

        logger.debug(
            f"Control polygon: {len(raw)} raw points, "
            f"{len(points)} after {opts.control_point_smooth_passes} smoothing passes"
        )
        return points

    def generate_raw(self) -> List[np.ndarray]:
        """Generate the jittered polar points before smoothing.

        Points closer than ``min_chord`` to the previously kept point are
        dropped, not retried. Trailing points closer than ``min_chord`` to
        the first point are dropped too, so the closing edge holds as well.

        Returns:
            Kept points in loop order
        """
        opts = self.options
        rnd = self._rng.random
        n = opts.control_point_count
        min_chord_sq = opts.min_chord * opts.min_chord

        points: List[np.ndarray] = []
        dropped = 0
        for i in range(n):
            a = (i / n) * math.pi * 2
            jitter = (rnd() - 0.5) * ANGLE_JITTER_RAD
            r = opts.radius_min + (opts.radius_max - opts.radius_min) * rnd()
            x = math.cos(a + jitter) * r
            z = math.sin(a + jitter) * r
            y = (
                math.sin(a * 0.5 + rnd() * 2.0)
                + math.sin(a * 0.23 + rnd() * 4.0) * 0.5
            ) * opts.elevation_amplitude * 0.5
            p = np.array([x, y, z])

            if points:
                d = p - points[-1]
                if float(d @ d) < min_chord_sq:
                    dropped += 1
                    continue
            points.append(p)

        # Closing edge back to the first point
        while len(points) > 1:
            d = points[-1] - points[0]
            if float(d @ d) >= min_chord_sq:
                break
            points.pop()
            dropped += 1

        if dropped:
            logger.debug(f"Dropped {dropped} control points closer than {opts.min_chord} m")
        return points


def chaikin_closed(points: np.ndarray) -> np.ndarray:
    """One pass of closed-loop Chaikin corner cutting.

    Each edge (a, b) becomes the two points 0.75a + 0.25b and
    0.25a + 0.75b, so the point count doubles.

    Args:
        points: Closed polygon of shape (M, 3)

    Returns:
        Polygon of shape (2M, 3)
    """
    a = points
    b = np.roll(points, -1, axis=0)
    out = np.empty((len(points) * 2, points.shape[1]), dtype=float)
    out[0::2] = 0.75 * a + 0.25 * b
    out[1::2] = 0.25 * a + 0.75 * b
    return out
