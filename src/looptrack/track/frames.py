"""
Frames - Per-sample orientation frames and banking along a closed curve.

Walks the curve at N equal arc-length steps and builds:
- Parallel-transported normals (minimal twist between samples)
- A seam correction that spreads the loop's holonomy evenly
- Curvature-derived bank angles, circularly smoothed
- Banked normals/binormals and a coarse bounding radius
"""

import logging
import math
from dataclasses import dataclass
from typing import Tuple

import numpy as np

from looptrack.track.curve import CentripetalCatmullRom
from looptrack.track.options import TrackOptions

logger = logging.getLogger(__name__)

# Gain between |prev_tangent x tangent| and the curvature clamp
CURVATURE_BANK_SCALE = 100.0

# Bank smoothing half-window as a fraction of the sample count
BANK_SMOOTHING_FRACTION = 0.01
MIN_BANK_SMOOTHING_WINDOW = 4

WORLD_UP = np.array([0.0, 1.0, 0.0])
_FALLBACK_AXES = (
    WORLD_UP,
    np.array([1.0, 0.0, 0.0]),
    np.array([0.0, 0.0, 1.0]),
)
_MIN_PROJECTED_LENGTH = 1e-6


@dataclass(frozen=True)
class FrameSamples:
    """Sampled frames along the loop.

    All arrays have N rows. ``binormals[i] == cross(tangents[i], normals[i])``.
    """
    positions: np.ndarray
    tangents: np.ndarray
    normals: np.ndarray
    binormals: np.ndarray
    bank: np.ndarray               # smoothed bank angle per sample, radians
    bounding_radius: float
    seam_angle: float              # holonomy removed by the seam correction, radians
    degenerate_samples: int        # samples whose normal had to be recovered

    @property
    def count(self) -> int:
        return len(self.positions)


class FrameSampler:
    """Samples orthonormal, banked frames along a closed curve.

    Transport is strictly sequential: each normal depends on the one
    before it.

    Usage:
        sampler = FrameSampler(curve, options)
        frames = sampler.sample()
    """

    def __init__(self, curve: CentripetalCatmullRom, options: TrackOptions | None = None):
        """Initialize sampler.

        Args:
            curve: Closed curve to sample
            options: Track options. Uses defaults if None.
        """
        self.curve = curve
        self.options = options or TrackOptions()

    @property
    def smoothing_window(self) -> int:
        """Half-width of the circular bank smoothing window, in samples."""
        n = self.options.sample_count
        return max(MIN_BANK_SMOOTHING_WINDOW, int(math.floor(n * BANK_SMOOTHING_FRACTION)))

    def sample(self) -> FrameSamples:
        """Sample the curve and build all frames.

        Returns:
            FrameSamples with N = ``options.sample_count`` rows
        """
        n = self.options.sample_count
        t = np.arange(n) / n

        positions = self.curve.points_at(t)
        tangents = self.curve.tangents_at(t)

        normals, degenerate = self._transport_normals(tangents)
        binormals = _normalize_rows(np.cross(tangents, normals))

        raw_bank = self._raw_bank(tangents)

        seam_angle = seam_discrepancy(tangents, normals)
        correction = -seam_angle * (np.arange(n) / n)
        normals = rotate_about_axes(normals, tangents, correction)
        binormals = rotate_about_axes(binormals, tangents, correction)

        bank = smooth_circular(raw_bank, self.smoothing_window)
        normals = rotate_about_axes(normals, tangents, bank)
        binormals = rotate_about_axes(binormals, tangents, bank)

        bounding_radius = self._bounding_radius(positions)

        if degenerate:
            logger.warning(f"Recovered {degenerate} degenerate frame(s) during transport")
        logger.debug(
            f"Sampled {n} frames: seam correction {math.degrees(seam_angle):.3f} deg, "
            f"max bank {math.degrees(float(np.max(np.abs(bank)))):.2f} deg"
        )

        for arr in (positions, tangents, normals, binormals, bank):
            arr.setflags(write=False)

        return FrameSamples(
            positions=positions,
            tangents=tangents,
            normals=normals,
            binormals=binormals,
            bank=bank,
            bounding_radius=bounding_radius,
            seam_angle=seam_angle,
            degenerate_samples=degenerate,
        )

    def _transport_normals(self, tangents: np.ndarray) -> Tuple[np.ndarray, int]:
        """Parallel-transport a normal along the sampled tangents.

        The previous normal is projected onto the plane perpendicular to
        the current tangent and renormalized. Starts from world up.

        Returns:
            Tuple of (normals, number of recovered samples)
        """
        normals = np.empty_like(tangents)
        prev = WORLD_UP
        degenerate = 0

        for i in range(len(tangents)):
            tan = tangents[i]
            if not np.all(np.isfinite(tan)):
                degenerate += 1
                logger.debug(f"Non-finite tangent at sample {i}, keeping previous normal")
                normals[i] = prev
                continue
            normal = _project_unit(prev, tan)
            if normal is None:
                degenerate += 1
                logger.debug(f"Degenerate normal at sample {i}, re-seeding from world axes")
                normal = _fallback_normal(tan)
            normals[i] = normal
            prev = normal

        return normals, degenerate

    def _raw_bank(self, tangents: np.ndarray) -> np.ndarray:
        """Bank angle per sample from the turn between consecutive tangents.

        Sign follows the vertical component of prev_tangent x tangent;
        strength is |prev_tangent x tangent| clamped to
        ``max_curvature * CURVATURE_BANK_SCALE``. The first sample pairs
        with the last one.
        """
        opts = self.options
        prev = np.roll(tangents, 1, axis=0)
        d = np.cross(prev, tangents)
        strength = np.clip(
            np.linalg.norm(d, axis=1), 0.0, opts.max_curvature * CURVATURE_BANK_SCALE
        )
        sign = np.sign(d[:, 1])
        bank = opts.bank_max_rad * strength * sign
        return np.where(np.isfinite(bank), bank, 0.0)

    def _bounding_radius(self, positions: np.ndarray) -> float:
        opts = self.options
        radius = float(np.max(np.linalg.norm(positions, axis=1)))
        return radius + opts.width * 4 + opts.elevation_amplitude


def seam_discrepancy(tangents: np.ndarray, normals: np.ndarray) -> float:
    """Signed angle between the first normal and the last normal carried to sample 0.

    The last normal is projected into the plane of the first tangent,
    then measured against the first normal about that tangent.

    Returns:
        Angle in radians, in (-pi, pi]
    """
    t0 = tangents[0]
    n0 = normals[0]
    carried = _project_unit(normals[-1], t0)
    if carried is None:
        return 0.0
    sin_a = float(np.cross(n0, carried) @ t0)
    cos_a = float(n0 @ carried)
    return math.atan2(sin_a, cos_a)


def rotate_about_axes(vectors: np.ndarray, axes: np.ndarray, angles: np.ndarray) -> np.ndarray:
    """Rotate each row of ``vectors`` about the matching unit axis (Rodrigues).

    Args:
        vectors: (N, 3) vectors
        axes: (N, 3) unit rotation axes
        angles: (N,) angles in radians, right-hand rule

    Returns:
        Rotated (N, 3) vectors
    """
    angles = np.asarray(angles, dtype=float)[:, None]
    cos_a = np.cos(angles)
    sin_a = np.sin(angles)
    k_dot_v = np.sum(axes * vectors, axis=1, keepdims=True)
    return vectors * cos_a + np.cross(axes, vectors) * sin_a + axes * k_dot_v * (1.0 - cos_a)


def smooth_circular(values: np.ndarray, half_window: int) -> np.ndarray:
    """Centered moving average that wraps around the ends.

    Each output is the mean of the ``2 * half_window + 1`` neighbors
    (indices taken modulo N).
    """
    values = np.asarray(values, dtype=float)
    n = len(values)
    size = 2 * half_window + 1
    # Window may be wider than the loop; wrap-mode take handles that
    padded = np.take(values, np.arange(-half_window, n + half_window), mode="wrap")
    sums = np.concatenate([[0.0], np.cumsum(padded)])
    return (sums[size:] - sums[:-size]) / size


def _normalize_rows(vectors: np.ndarray) -> np.ndarray:
    return vectors / np.linalg.norm(vectors, axis=1, keepdims=True)


def _project_unit(vector: np.ndarray, tangent: np.ndarray) -> np.ndarray | None:
    """Unit component of ``vector`` perpendicular to ``tangent``, or None if degenerate."""
    projected = vector - tangent * float(vector @ tangent)
    length = float(np.linalg.norm(projected))
    if not math.isfinite(length) or length < _MIN_PROJECTED_LENGTH:
        return None
    return projected / length


def _fallback_normal(tangent: np.ndarray) -> np.ndarray:
    for axis in _FALLBACK_AXES:
        normal = _project_unit(axis, tangent)
        if normal is not None:
            return normal
    # Unreachable for a unit tangent: it cannot be parallel to all three axes
    raise ValueError(f"Cannot build a normal for tangent {tangent}")
