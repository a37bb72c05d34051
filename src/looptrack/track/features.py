"""
Track features - Tunnels and boost pads placed along the loop.

Defines:
- Tunnel and boost pad segments over the cyclic parameter t in [0, 1)
- Hit-test results for gameplay queries
- SegmentPlacer: randomized tunnel placement and exact boost pad tiling

A segment whose start is greater than its end crosses the 0/1 seam.
"""

import logging
import math
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Tuple

from looptrack.track.options import BoostPadOptions, TunnelOptions
from looptrack.track.rng import SeededRandom

logger = logging.getLogger(__name__)


class TunnelType(Enum):
    """Visual style of a tunnel, chosen at placement time."""
    RINGS = "rings"
    WORMHOLE = "wormhole"


def wrap_t(t: float) -> float:
    """Normalize a loop parameter into [0, 1), wrapping negatives up."""
    t = math.fmod(t, 1.0)
    if t < 0.0:
        t += 1.0
    # fmod(-1e-18, 1) + 1 rounds to exactly 1.0
    return 0.0 if t >= 1.0 else t


def loop_distance(a: float, b: float, total_length: float) -> float:
    """Shortest distance in meters between two loop parameters."""
    diff = abs(a - b)
    return min(diff, 1.0 - diff) * total_length


@dataclass(frozen=True)
class TunnelSegment:
    """An enclosed stretch of track."""
    start_t: float
    end_t: float
    length_meters: float
    tunnel_type: TunnelType = TunnelType.RINGS

    @property
    def wraps(self) -> bool:
        """True if the tunnel crosses the 0/1 seam."""
        return self.start_t > self.end_t

    @property
    def length_t(self) -> float:
        """Tunnel length as a fraction of the loop."""
        if self.wraps:
            return (1.0 - self.start_t) + self.end_t
        return self.end_t - self.start_t

    def ranges(self) -> List[Tuple[float, float]]:
        """Covered parameter ranges, split at the seam."""
        if self.wraps:
            return [(self.start_t, 1.0), (0.0, self.end_t)]
        return [(self.start_t, self.end_t)]

    def contains(self, t: float) -> bool:
        t = wrap_t(t)
        if self.wraps:
            return t >= self.start_t or t <= self.end_t
        return self.start_t <= t <= self.end_t

    def progress_at(self, t: float) -> float:
        """Fraction of the tunnel travelled at ``t``: 0 at entry, 1 at exit.

        Args:
            t: Loop parameter, assumed inside the tunnel

        Returns:
            Progress in [0, 1]
        """
        t = wrap_t(t)
        span = self.length_t
        if span <= 0.0:
            return 0.0
        offset = t - self.start_t
        if offset < 0.0:
            offset += 1.0
        return min(1.0, max(0.0, offset / span))

    def overlaps(self, other: "TunnelSegment") -> bool:
        """Check if two tunnels share any stretch of track."""
        return any(
            a0 <= b1 and b0 <= a1
            for a0, a1 in self.ranges()
            for b0, b1 in other.ranges()
        )

    def get_state(self) -> dict:
        """Get tunnel state for serialization."""
        return {
            "start_t": self.start_t,
            "end_t": self.end_t,
            "length_m": self.length_meters,
            "type": self.tunnel_type.value,
        }


@dataclass(frozen=True)
class BoostPadSegment:
    """A speed boost zone starting at ``t``."""
    t: float
    length_t: float

    @property
    def end_t(self) -> float:
        """Unwrapped end parameter; may exceed 1."""
        return self.t + self.length_t

    def contains(self, t: float) -> bool:
        t = wrap_t(t)
        end = self.end_t
        if end <= 1.0:
            return self.t <= t <= end
        return t >= self.t or t <= end - 1.0

    def get_state(self) -> dict:
        """Get boost pad state for serialization."""
        return {"t": self.t, "length_t": self.length_t}


@dataclass(frozen=True)
class TunnelInfo:
    """Result of a tunnel hit test."""
    in_tunnel: bool = False
    progress: float = 0.0             # 0 at entry, 1 at exit
    center_alignment: float = 0.0     # 1 on the centerline, 0 at the edge
    tunnel: Optional[TunnelSegment] = None


@dataclass(frozen=True)
class BoostPadInfo:
    """Result of a boost pad hit test."""
    on_pad: bool = False
    boost_duration: float = 0.0       # seconds granted on a hit
    pad: Optional[BoostPadSegment] = None


class SegmentPlacer:
    """Places tunnels and boost pads along a loop of known length.

    Tunnel placement is randomized and best-effort: a tunnel that cannot
    find a start far enough from the others within its retry budget is
    skipped. Boost pads tile the loop exactly and use no randomness.

    Usage:
        placer = SegmentPlacer(total_length, rng=SeededRandom(seed))
        tunnels = placer.place_tunnels(TunnelOptions())
        pads = placer.place_boost_pads(BoostPadOptions())
    """

    def __init__(self, total_length: float, rng: SeededRandom | None = None):
        """Initialize placer.

        Args:
            total_length: Loop arc length in meters
            rng: Random source for tunnel placement
        """
        if total_length <= 0:
            raise ValueError(f"Loop length must be positive, got {total_length}")
        self.total_length = total_length
        self._rng = rng or SeededRandom()

    def place_tunnels(self, options: TunnelOptions | None = None) -> Tuple[TunnelSegment, ...]:
        """Place non-overlapping tunnels.

        Args:
            options: Tunnel options. Uses defaults if None.

        Returns:
            Placed tunnels in placement order; may be fewer than requested
        """
        opts = options or TunnelOptions()
        rng = self._rng
        requested = rng.integers(opts.count_min, opts.count_max + 1)

        placed: List[TunnelSegment] = []
        for _ in range(requested):
            tunnel = self._place_one(placed, opts)
            if tunnel is not None:
                placed.append(tunnel)

        if len(placed) < requested:
            logger.info(
                f"Placed {len(placed)} of {requested} tunnels "
                f"(min spacing {opts.min_spacing} m on a {self.total_length:.0f} m loop)"
            )
        return tuple(placed)

    def _place_one(self, placed: List[TunnelSegment], opts: TunnelOptions) -> Optional[TunnelSegment]:
        rng = self._rng
        for _ in range(opts.max_attempts):
            start_t = rng.random()
            if any(
                loop_distance(start_t, other.start_t, self.total_length) < opts.min_spacing
                for other in placed
            ):
                continue

            length = rng.uniform(opts.length_min, opts.length_max)
            if length >= self.total_length:
                continue
            end_t = math.fmod(start_t + length / self.total_length, 1.0)
            tunnel_type = (
                TunnelType.WORMHOLE
                if rng.random() < opts.wormhole_probability
                else TunnelType.RINGS
            )
            candidate = TunnelSegment(start_t, end_t, length, tunnel_type)
            if any(candidate.overlaps(other) for other in placed):
                continue
            return candidate
        return None

    def place_boost_pads(self, options: BoostPadOptions | None = None) -> Tuple[BoostPadSegment, ...]:
        """Tile boost pads evenly around the loop.

        ``count = floor(length / spacing)`` pads are spaced exactly
        ``length / count`` apart so the last gap equals all the others.

        Args:
            options: Boost pad options. Uses defaults if None.

        Returns:
            Pads ordered by start parameter
        """
        opts = options or BoostPadOptions()
        count = int(math.floor(self.total_length / opts.spacing))
        if count == 0:
            logger.info(
                f"Loop of {self.total_length:.0f} m is shorter than pad spacing "
                f"{opts.spacing} m, no boost pads placed"
            )
            return ()

        actual_spacing = self.total_length / count
        length_t = opts.length_meters / self.total_length
        return tuple(
            BoostPadSegment(t=i * actual_spacing / self.total_length, length_t=length_t)
            for i in range(count)
        )
