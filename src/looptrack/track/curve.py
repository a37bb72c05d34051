"""
Curve - Closed centripetal Catmull-Rom spline with arc-length sampling.

The spline passes through every control point. Chord-based knot spacing
(square root of chord length) keeps it free of cusps and self
intersections near tight corners. Queries take an arc-length fraction
t in [0, 1), so equal steps in t are equal distances along the track.
"""

import numpy as np

from looptrack.track.errors import InvalidConfigurationError

# Knot spacing exponent: 0 = uniform, 0.5 = centripetal, 1 = chordal
CENTRIPETAL_ALPHA = 0.5

MIN_ARC_DIVISIONS = 200
ARC_DIVISIONS_PER_SAMPLE = 8

_KNOT_EPSILON = 1e-4


class CentripetalCatmullRom:
    """Closed Catmull-Rom curve with centripetal parameterization.

    Each span between consecutive control points is stored as cubic
    polynomial coefficients, so points and derivatives are evaluated in
    closed form.

    Usage:
        curve = CentripetalCatmullRom(points, arc_divisions=48000)
        p = curve.point_at(0.25)
        tan = curve.tangent_at(0.25)
        curve.length
    """

    def __init__(self, points: np.ndarray, arc_divisions: int = MIN_ARC_DIVISIONS):
        """Fit the curve.

        Args:
            points: Control polygon of shape (M, 3), M >= 4, implicitly closed
            arc_divisions: Number of chords in the arc-length table
        """
        pts = np.array(points, dtype=float)
        if pts.ndim != 2 or pts.shape[1] != 3 or len(pts) < 4:
            raise InvalidConfigurationError(
                f"Closed curve needs at least 4 xyz control points, got shape {pts.shape}"
            )

        self._points = pts
        self._points.setflags(write=False)
        self._coeffs = _centripetal_coefficients(pts, CENTRIPETAL_ALPHA)
        self._divisions = max(MIN_ARC_DIVISIONS, int(arc_divisions))
        self._build_arc_table()

    @property
    def control_points(self) -> np.ndarray:
        """Control polygon the curve interpolates (read-only)."""
        return self._points

    @property
    def length(self) -> float:
        """Total arc length in meters."""
        return self._total_length

    def _build_arc_table(self) -> None:
        u = np.arange(self._divisions + 1) / self._divisions
        pts = self._evaluate(u)
        chords = np.linalg.norm(np.diff(pts, axis=0), axis=1)
        self._arc_lengths = np.concatenate([[0.0], np.cumsum(chords)])
        self._total_length = float(self._arc_lengths[-1])

    def _span_params(self, u: np.ndarray):
        s = np.mod(u, 1.0) * len(self._coeffs)
        span = np.floor(s).astype(int)
        w = s - span
        span %= len(self._coeffs)
        return span, w

    def _evaluate(self, u: np.ndarray) -> np.ndarray:
        span, w = self._span_params(u)
        c = self._coeffs[span]
        w = w[:, None]
        return c[:, 0] + w * (c[:, 1] + w * (c[:, 2] + w * c[:, 3]))

    def _derivative(self, u: np.ndarray) -> np.ndarray:
        span, w = self._span_params(u)
        c = self._coeffs[span]
        w = w[:, None]
        return c[:, 1] + w * (2.0 * c[:, 2] + w * 3.0 * c[:, 3])

    def u_from_t(self, t) -> np.ndarray:
        """Map arc-length fractions to raw spline parameters.

        Args:
            t: Arc-length fraction(s); wrapped into [0, 1)

        Returns:
            Raw spline parameters in [0, 1)
        """
        t = np.mod(np.atleast_1d(np.asarray(t, dtype=float)), 1.0)
        target = t * self._total_length
        i = np.searchsorted(self._arc_lengths, target, side="right") - 1
        i = np.clip(i, 0, self._divisions - 1)
        start = self._arc_lengths[i]
        span = self._arc_lengths[i + 1] - start
        frac = np.divide(
            target - start, span, out=np.zeros_like(target), where=span > 0
        )
        return (i + frac) / self._divisions

    def points_at(self, t) -> np.ndarray:
        """Positions at arc-length fractions, shape (K, 3)."""
        return self._evaluate(self.u_from_t(t))

    def tangents_at(self, t) -> np.ndarray:
        """Unit tangents at arc-length fractions, shape (K, 3)."""
        u = self.u_from_t(t)
        d = self._derivative(u)
        norms = np.linalg.norm(d, axis=1)
        bad = ~(norms > 1e-12)
        if np.any(bad):
            # Stationary spline parameter: fall back to a central difference
            h = 0.5 / self._divisions
            d[bad] = self._evaluate(u[bad] + h) - self._evaluate(u[bad] - h)
            norms[bad] = np.linalg.norm(d[bad], axis=1)
        return d / norms[:, None]

    def point_at(self, t: float) -> np.ndarray:
        """Position at arc-length fraction ``t``."""
        return self.points_at(t)[0]

    def tangent_at(self, t: float) -> np.ndarray:
        """Unit tangent at arc-length fraction ``t``."""
        return self.tangents_at(t)[0]


def _centripetal_coefficients(points: np.ndarray, alpha: float) -> np.ndarray:
    """Cubic coefficients for every span of a closed non-uniform Catmull-Rom.

    Span i runs from points[i] to points[i + 1] and uses points[i - 1]
    and points[i + 2] as neighbors. Knot intervals are chord lengths
    raised to ``alpha``; the span is rescaled to a unit parameter.

    Returns:
        Array of shape (M, 4, 3) holding c0..c3 of
        p(w) = c0 + c1 w + c2 w^2 + c3 w^3, w in [0, 1]
    """
    p0 = np.roll(points, 1, axis=0)
    p1 = points
    p2 = np.roll(points, -1, axis=0)
    p3 = np.roll(points, -2, axis=0)

    def knot(a, b):
        return np.sum((b - a) ** 2, axis=1) ** (alpha * 0.5)

    dt0 = knot(p0, p1)
    dt1 = knot(p1, p2)
    dt2 = knot(p2, p3)

    # Coincident points would make the knot interval vanish
    dt1 = np.where(dt1 < _KNOT_EPSILON, 1.0, dt1)
    dt0 = np.where(dt0 < _KNOT_EPSILON, dt1, dt0)
    dt2 = np.where(dt2 < _KNOT_EPSILON, dt1, dt2)

    dt0 = dt0[:, None]
    dt1 = dt1[:, None]
    dt2 = dt2[:, None]

    m1 = (p1 - p0) / dt0 - (p2 - p0) / (dt0 + dt1) + (p2 - p1) / dt1
    m2 = (p2 - p1) / dt1 - (p3 - p1) / (dt1 + dt2) + (p3 - p2) / dt2
    m1 = m1 * dt1
    m2 = m2 * dt1

    c0 = p1
    c1 = m1
    c2 = -3.0 * p1 + 3.0 * p2 - 2.0 * m1 - m2
    c3 = 2.0 * p1 - 2.0 * p2 + m1 + m2
    return np.stack([c0, c1, c2, c3], axis=1)


def fit_closed_curve(control_points: np.ndarray, sample_count: int) -> CentripetalCatmullRom:
    """Fit a closed curve sized for ``sample_count`` frame samples.

    The arc-length table uses at least ``MIN_ARC_DIVISIONS`` chords and
    ``ARC_DIVISIONS_PER_SAMPLE`` chords per sample.
    """
    divisions = max(MIN_ARC_DIVISIONS, ARC_DIVISIONS_PER_SAMPLE * int(sample_count))
    return CentripetalCatmullRom(control_points, arc_divisions=divisions)
