"""
Track options - Configuration for procedural loop generation.

Contains:
- TrackOptions: centerline shape, sampling resolution, banking
- TunnelOptions: randomized tunnel placement
- BoostPadOptions: evenly tiled boost pads
- TrackSource: procedural or hand-authored control points
"""

import math
import numbers
from dataclasses import dataclass, field, fields, asdict, replace
from enum import Enum
from typing import Any, Dict, Mapping, Tuple

from looptrack.track.errors import InvalidConfigurationError


class TrackSource(Enum):
    """Where control points come from."""
    PROCEDURAL = "procedural"
    CUSTOM = "custom"


@dataclass(frozen=True)
class TunnelOptions:
    """Configuration for tunnel placement."""
    count_min: int = 2
    count_max: int = 3
    length_min: float = 400.0          # meters
    length_max: float = 600.0          # meters
    min_spacing: float = 800.0         # meters between tunnel starts
    max_attempts: int = 100            # retries per tunnel before skipping it
    wormhole_probability: float = 0.5

    def __post_init__(self):
        _check_types(self)
        if self.count_min < 0 or self.count_max < self.count_min:
            raise InvalidConfigurationError(
                f"Invalid tunnel count range [{self.count_min}, {self.count_max}]"
            )
        if self.length_min <= 0 or self.length_max < self.length_min:
            raise InvalidConfigurationError(
                f"Invalid tunnel length range [{self.length_min}, {self.length_max}]"
            )
        if self.min_spacing < 0:
            raise InvalidConfigurationError("Tunnel min_spacing must be >= 0")
        if self.max_attempts < 1:
            raise InvalidConfigurationError("Tunnel max_attempts must be >= 1")
        if not 0.0 <= self.wormhole_probability <= 1.0:
            raise InvalidConfigurationError("wormhole_probability must be in [0, 1]")


@dataclass(frozen=True)
class BoostPadOptions:
    """Configuration for boost pad tiling."""
    spacing: float = 600.0             # target meters between pad starts
    length_meters: float = 40.0        # length of each pad zone
    boost_duration: float = 2.5        # seconds of boost granted on a hit

    def __post_init__(self):
        _check_types(self)
        if self.spacing <= 0:
            raise InvalidConfigurationError("Boost pad spacing must be > 0")
        if self.length_meters <= 0:
            raise InvalidConfigurationError("Boost pad length must be > 0")
        if self.boost_duration < 0:
            raise InvalidConfigurationError("Boost duration must be >= 0")


@dataclass(frozen=True)
class TrackOptions:
    """Track generation options.

    A given set of options (including ``seed``) always produces the same
    track.

    Usage:
        opts = TrackOptions(seed=7, sample_count=2400)
        opts = TrackOptions.from_dict({"seed": 7, "tunnels": {"count_max": 4}})
    """
    seed: int = 1337
    control_point_count: int = 72
    radius_min: float = 500.0          # inner radius of the loop envelope
    radius_max: float = 1600.0         # outer radius of the loop envelope
    elevation_amplitude: float = 320.0 # max vertical variation
    min_chord: float = 60.0            # min distance between raw control points
    control_point_smooth_passes: int = 10
    sample_count: int = 6000           # frame resolution N
    width: float = 24.0                # meters
    bank_max_deg: float = 36.0
    max_curvature: float = 0.003       # clamp for curvature-derived banking

    source: TrackSource = TrackSource.PROCEDURAL
    custom_points: Tuple[Tuple[float, float, float], ...] = ()

    tunnels: TunnelOptions = field(default_factory=TunnelOptions)
    boost_pads: BoostPadOptions = field(default_factory=BoostPadOptions)

    def __post_init__(self):
        if isinstance(self.source, str):
            try:
                object.__setattr__(self, "source", TrackSource(self.source))
            except ValueError:
                raise InvalidConfigurationError(f"Unknown track source {self.source!r}") from None
        if not isinstance(self.source, TrackSource):
            raise InvalidConfigurationError(f"Unknown track source {self.source!r}")
        if not isinstance(self.tunnels, TunnelOptions):
            raise InvalidConfigurationError(
                f"tunnels must be TunnelOptions, got {type(self.tunnels).__name__}"
            )
        if not isinstance(self.boost_pads, BoostPadOptions):
            raise InvalidConfigurationError(
                f"boost_pads must be BoostPadOptions, got {type(self.boost_pads).__name__}"
            )

        try:
            points = tuple(tuple(float(c) for c in p) for p in self.custom_points)
        except (TypeError, ValueError):
            raise InvalidConfigurationError("custom_points must be numeric xyz triples") from None
        object.__setattr__(self, "custom_points", points)
        if any(len(p) != 3 for p in self.custom_points):
            raise InvalidConfigurationError("custom_points must be xyz triples")

        _check_types(self)

        if self.control_point_count < 1:
            raise InvalidConfigurationError("control_point_count must be >= 1")
        if self.radius_min <= 0 or self.radius_max < self.radius_min:
            raise InvalidConfigurationError(
                f"Invalid radius range [{self.radius_min}, {self.radius_max}]"
            )
        if self.elevation_amplitude < 0:
            raise InvalidConfigurationError("elevation_amplitude must be >= 0")
        if self.min_chord < 0:
            raise InvalidConfigurationError("min_chord must be >= 0")
        if self.control_point_smooth_passes < 0:
            raise InvalidConfigurationError("control_point_smooth_passes must be >= 0")
        if self.sample_count < 4:
            raise InvalidConfigurationError("sample_count must be >= 4")
        if self.width <= 0:
            raise InvalidConfigurationError("width must be > 0")
        if self.bank_max_deg < 0:
            raise InvalidConfigurationError("bank_max_deg must be >= 0")
        if self.max_curvature < 0:
            raise InvalidConfigurationError("max_curvature must be >= 0")

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TrackOptions":
        """Build options from a plain mapping (e.g. parsed JSON).

        Args:
            payload: Option values keyed by field name. ``tunnels`` and
                ``boost_pads`` may be nested mappings.

        Returns:
            Validated options
        """
        if not isinstance(payload, Mapping):
            raise InvalidConfigurationError(
                f"Track options must be a mapping, got {type(payload).__name__}"
            )
        known = {f.name for f in fields(cls)}
        unknown = set(payload) - known
        if unknown:
            raise InvalidConfigurationError(f"Unknown track options: {sorted(unknown)}")

        values: Dict[str, Any] = dict(payload)
        if isinstance(values.get("tunnels"), Mapping):
            values["tunnels"] = _build_nested(TunnelOptions, values["tunnels"])
        if isinstance(values.get("boost_pads"), Mapping):
            values["boost_pads"] = _build_nested(BoostPadOptions, values["boost_pads"])
        return cls(**values)

    def get_state(self) -> dict:
        """Get options as a plain dictionary."""
        state = asdict(self)
        state["source"] = self.source.value
        state["custom_points"] = [list(p) for p in self.custom_points]
        return state

    @property
    def bank_max_rad(self) -> float:
        """Maximum banking angle in radians."""
        return math.radians(self.bank_max_deg)

    def with_seed(self, seed: int) -> "TrackOptions":
        """Copy of these options with a different seed."""
        return replace(self, seed=seed)


def _check_types(options) -> None:
    """Reject non-numeric values in int/float fields before range checks run."""
    for f in fields(options):
        value = getattr(options, f.name)
        if f.type in (int, "int"):
            expected, ok = "an integer", isinstance(value, numbers.Integral)
        elif f.type in (float, "float"):
            expected, ok = "a number", isinstance(value, numbers.Real)
        else:
            continue
        if not ok or isinstance(value, bool):
            raise InvalidConfigurationError(
                f"{type(options).__name__}.{f.name} must be {expected}, got {value!r}"
            )


def _build_nested(cls, payload: Mapping[str, Any]):
    known = {f.name for f in fields(cls)}
    unknown = set(payload) - known
    if unknown:
        raise InvalidConfigurationError(
            f"Unknown {cls.__name__} fields: {sorted(unknown)}"
        )
    return cls(**payload)

