"""
Track - Generated loop track and its read-only query surface.

Contains:
- Sampled frames (positions, tangents, normals, binormals, bank)
- Placed tunnels and boost pads
- Lookups by loop parameter t and by world position

A TrackModel never changes after construction. Regenerating a track
builds a new model; holders swap their reference instead of mutating.
"""

import math
from dataclasses import dataclass
from typing import NamedTuple, Sequence, Tuple

import numpy as np

from looptrack.track.curve import CentripetalCatmullRom
from looptrack.track.features import (
    BoostPadInfo,
    BoostPadSegment,
    TunnelInfo,
    TunnelSegment,
    wrap_t,
)
from looptrack.track.frames import FrameSamples
from looptrack.track.options import TrackOptions

CHECKPOINT_COUNT = 16


@dataclass(frozen=True)
class TrackSample:
    """Frame and bank at one cached sample. Arrays are private copies."""
    position: np.ndarray
    tangent: np.ndarray
    normal: np.ndarray
    binormal: np.ndarray
    bank_radians: float

    @property
    def up(self) -> np.ndarray:
        """Track surface up direction (the banked normal)."""
        return self.normal


class FrenetFrame(NamedTuple):
    """Orientation at a sample."""
    normal: np.ndarray
    binormal: np.ndarray
    tangent: np.ndarray


class TrackModel:
    """Complete generated track.

    Built once by ``generate()``; every accessor is read-only and safe
    to call from several threads.

    Usage:
        track = generate(TrackOptions(seed=7))
        sample = track.sample_by_t(0.25)
        t = track.get_closest_t(ship_position)
        info = track.get_tunnel_at_t(t, lateral_offset=1.5)
    """

    def __init__(
        self,
        options: TrackOptions,
        curve: CentripetalCatmullRom,
        frames: FrameSamples,
        tunnels: Sequence[TunnelSegment] = (),
        boost_pads: Sequence[BoostPadSegment] = (),
    ):
        """Assemble a track from generated parts.

        Args:
            options: Options the track was generated from
            curve: Fitted centerline
            frames: Sampled frames along the centerline
            tunnels: Placed tunnels
            boost_pads: Placed boost pads
        """
        self._options = options
        self._curve = curve
        self._frames = frames
        self._tunnels: Tuple[TunnelSegment, ...] = tuple(tunnels)
        self._boost_pads: Tuple[BoostPadSegment, ...] = tuple(boost_pads)
        self._samples = frames.count

    @property
    def options(self) -> TrackOptions:
        return self._options

    @property
    def curve(self) -> CentripetalCatmullRom:
        """Fitted centerline curve."""
        return self._curve

    @property
    def control_points(self) -> np.ndarray:
        """Control polygon of the centerline (read-only)."""
        return self._curve.control_points

    @property
    def length(self) -> float:
        """Total track length in meters."""
        return self._curve.length

    @property
    def width(self) -> float:
        """Track width in meters."""
        return self._options.width

    @property
    def sample_count(self) -> int:
        """Number of cached samples N."""
        return self._samples

    @property
    def bounding_radius(self) -> float:
        """Distance from the origin enclosing the track plus a width/elevation margin."""
        return self._frames.bounding_radius

    @property
    def positions(self) -> np.ndarray:
        return self._frames.positions

    @property
    def tangents(self) -> np.ndarray:
        return self._frames.tangents

    @property
    def normals(self) -> np.ndarray:
        return self._frames.normals

    @property
    def binormals(self) -> np.ndarray:
        return self._frames.binormals

    @property
    def bank_radians(self) -> np.ndarray:
        return self._frames.bank

    @property
    def seam_angle(self) -> float:
        """Twist (radians) removed to close the transported frame."""
        return self._frames.seam_angle

    @property
    def degenerate_samples(self) -> int:
        """Samples whose frame was recovered from a numerical degeneracy."""
        return self._frames.degenerate_samples

    @property
    def tunnels(self) -> Tuple[TunnelSegment, ...]:
        return self._tunnels

    @property
    def boost_pads(self) -> Tuple[BoostPadSegment, ...]:
        return self._boost_pads

    @property
    def checkpoint_count(self) -> int:
        """Number of evenly spaced lap checkpoints."""
        return CHECKPOINT_COUNT

    def checkpoint_ts(self) -> np.ndarray:
        """Loop parameters of the lap checkpoints."""
        return np.arange(CHECKPOINT_COUNT) / CHECKPOINT_COUNT

    def index_at_t(self, t: float) -> int:
        """Cached sample index for loop parameter ``t`` (wrapped)."""
        return int(math.floor(wrap_t(t) * self._samples)) % self._samples

    def sample_by_t(self, t: float) -> TrackSample:
        """Get the cached sample nearest below ``t``.

        Args:
            t: Loop parameter; any real value, wrapped into [0, 1)

        Returns:
            Copy of the cached sample
        """
        i = self.index_at_t(t)
        f = self._frames
        return TrackSample(
            position=f.positions[i].copy(),
            tangent=f.tangents[i].copy(),
            normal=f.normals[i].copy(),
            binormal=f.binormals[i].copy(),
            bank_radians=float(f.bank[i]),
        )

    def get_frenet_frame(self, t: float) -> FrenetFrame:
        """Get (normal, binormal, tangent) at ``t`` using the sample lookup."""
        i = self.index_at_t(t)
        f = self._frames
        return FrenetFrame(
            normal=f.normals[i].copy(),
            binormal=f.binormals[i].copy(),
            tangent=f.tangents[i].copy(),
        )

    def get_point_at_t(self, t: float) -> np.ndarray:
        """Exact centerline position at ``t`` (evaluated on the curve)."""
        return self._curve.point_at(wrap_t(t))

    def get_closest_t(self, position: Sequence[float]) -> float:
        """Loop parameter of the cached sample closest to a world position.

        Scans every sample, O(N).

        Args:
            position: World (x, y, z)

        Returns:
            index / N of the closest sample
        """
        d = self._frames.positions - np.asarray(position, dtype=float)
        best = int(np.argmin(np.einsum("ij,ij->i", d, d)))
        return best / self._samples

    def world_to_track_coords(self, position: Sequence[float]) -> Tuple[float, float]:
        """Convert a world position to track coordinates.

        Args:
            position: World (x, y, z)

        Returns:
            Tuple of (t, lateral_offset); the offset is measured along
            the closest sample's binormal, positive to the binormal side.
        """
        t = self.get_closest_t(position)
        i = self.index_at_t(t)
        offset = np.asarray(position, dtype=float) - self._frames.positions[i]
        return t, float(offset @ self._frames.binormals[i])

    def get_tunnel_at_t(self, t: float, lateral_offset: float = 0.0) -> TunnelInfo:
        """Check whether ``t`` lies inside a tunnel.

        Args:
            t: Loop parameter, wrapped into [0, 1)
            lateral_offset: Sideways offset from the centerline in meters

        Returns:
            TunnelInfo; ``in_tunnel`` is False when no tunnel contains t
        """
        t = wrap_t(t)
        for tunnel in self._tunnels:
            if tunnel.contains(t):
                half_width = self.width / 2
                alignment = max(0.0, 1.0 - abs(lateral_offset) / half_width)
                return TunnelInfo(
                    in_tunnel=True,
                    progress=tunnel.progress_at(t),
                    center_alignment=alignment,
                    tunnel=tunnel,
                )
        return TunnelInfo()

    def get_boost_pad_at_t(self, t: float) -> BoostPadInfo:
        """Check whether ``t`` lies on a boost pad.

        Returns:
            BoostPadInfo carrying the configured boost duration on a hit
        """
        t = wrap_t(t)
        for pad in self._boost_pads:
            if pad.contains(t):
                return BoostPadInfo(
                    on_pad=True,
                    boost_duration=self._options.boost_pads.boost_duration,
                    pad=pad,
                )
        return BoostPadInfo()

    def get_state(self) -> dict:
        """Get a JSON-safe summary of the track."""
        return {
            "options": self._options.get_state(),
            "length_m": self.length,
            "width_m": self.width,
            "samples": self._samples,
            "control_points": len(self.control_points),
            "bounding_radius_m": self.bounding_radius,
            "seam_angle_deg": math.degrees(self.seam_angle),
            "max_bank_deg": math.degrees(float(np.max(np.abs(self.bank_radians)))),
            "degenerate_samples": self.degenerate_samples,
            "tunnels": [tunnel.get_state() for tunnel in self._tunnels],
            "boost_pads": [pad.get_state() for pad in self._boost_pads],
        }
