"""Tests for parallel-transported, banked track frames."""

import math

import pytest
import numpy as np

from looptrack.track.curve import CentripetalCatmullRom, fit_closed_curve
from looptrack.track.frames import (
    FrameSampler,
    rotate_about_axes,
    seam_discrepancy,
    smooth_circular,
)
from looptrack.track.generator import generate
from looptrack.track.options import TrackOptions


FAST_OPTIONS = TrackOptions(
    seed=7,
    control_point_count=24,
    control_point_smooth_passes=3,
    sample_count=800,
)


def saddle_points(count: int = 24) -> np.ndarray:
    """Non-planar loop whose transported frame picks up twist."""
    a = np.arange(count) / count * 2 * math.pi
    return np.stack([np.cos(a) * 600.0, np.sin(2 * a) * 250.0, np.sin(a) * 400.0], axis=1)


def flat_circle(count: int = 16, radius: float = 1000.0) -> np.ndarray:
    a = np.arange(count) / count * 2 * math.pi
    return np.stack([np.cos(a) * radius, np.zeros(count), np.sin(a) * radius], axis=1)


@pytest.fixture(scope="module")
def track():
    return generate(FAST_OPTIONS)


def step_sizes(vectors: np.ndarray) -> np.ndarray:
    return np.linalg.norm(np.diff(vectors, axis=0), axis=1)


class TestHelpers:
    """Test rotation, smoothing and seam measurement helpers."""

    def test_rotate_about_axis(self):
        """Test a quarter turn about +x takes +y to +z."""
        out = rotate_about_axes(
            np.array([[0.0, 1.0, 0.0]]),
            np.array([[1.0, 0.0, 0.0]]),
            np.array([math.pi / 2]),
        )
        assert np.allclose(out, [[0.0, 0.0, 1.0]])

    def test_rotate_zero_angle(self):
        """Test zero rotation is the identity."""
        v = np.array([[0.3, -0.4, 0.5], [1.0, 2.0, 3.0]])
        axes = np.array([[0.0, 0.0, 1.0], [0.0, 1.0, 0.0]])
        assert np.allclose(rotate_about_axes(v, axes, np.zeros(2)), v)

    def test_smooth_circular_wraps(self):
        """Test the moving average wraps around both ends."""
        values = np.zeros(10)
        values[9] = 9.0
        out = smooth_circular(values, 1)
        assert out[0] == pytest.approx(3.0)
        assert out[8] == pytest.approx(3.0)
        assert out[9] == pytest.approx(3.0)
        assert np.allclose(out[1:8], 0.0)

    def test_smooth_circular_large_loop(self):
        """Test a wide window over many samples averages a ramp exactly."""
        n, w = 40000, 400
        values = np.arange(n, dtype=float)
        out = smooth_circular(values, w)
        assert out.shape == (n,)
        assert np.allclose(out[w:n - w], values[w:n - w], atol=1e-6)
        wrapped = (values[n - w:].sum() + values[:w + 1].sum()) / (2 * w + 1)
        assert out[0] == pytest.approx(wrapped, abs=1e-6)

    def test_smooth_circular_window_wider_than_loop(self):
        """Test a window longer than the loop still wraps sample by sample."""
        values = np.array([1.0, 2.0, 4.0, 8.0, 16.0])
        out = smooth_circular(values, 4)
        expected = [
            np.mean([values[(i + k) % 5] for k in range(-4, 5)]) for i in range(5)
        ]
        assert np.allclose(out, expected)

    def test_smooth_circular_preserves_mean(self):
        """Test smoothing keeps the average bank."""
        values = np.sin(np.arange(50) * 0.7)
        assert np.mean(smooth_circular(values, 4)) == pytest.approx(np.mean(values))

    def test_seam_discrepancy_sign(self):
        """Test the discrepancy is the signed angle from the first normal to the last."""
        tangents = np.tile([1.0, 0.0, 0.0], (4, 1))
        normals = np.tile([0.0, 1.0, 0.0], (4, 1))
        normals[-1] = [0.0, math.cos(0.3), math.sin(0.3)]
        assert seam_discrepancy(tangents, normals) == pytest.approx(0.3)

    def test_smoothing_window(self):
        """Test the smoothing window is 1% of N with a floor of 4."""
        curve = CentripetalCatmullRom(flat_circle())
        assert FrameSampler(curve, TrackOptions(sample_count=200)).smoothing_window == 4
        assert FrameSampler(curve, TrackOptions(sample_count=6000)).smoothing_window == 60


class TestTransport:
    """Test the parallel transport walk."""

    def test_degenerate_normals_recovered(self):
        """Test tangents parallel to the previous normal are recovered, not NaN."""
        sampler = FrameSampler(curve=None, options=FAST_OPTIONS)
        tangents = np.array([
            [0.0, 1.0, 0.0],   # parallel to world up
            [1.0, 0.0, 0.0],   # parallel to the recovered normal
            [0.0, 0.0, 1.0],
        ])
        normals, degenerate = sampler._transport_normals(tangents)
        assert degenerate == 2
        assert np.all(np.isfinite(normals))
        assert np.allclose(np.sum(normals * tangents, axis=1), 0.0)
        assert np.allclose(normals[2], [0.0, 1.0, 0.0])

    def test_non_finite_tangent_keeps_previous_normal(self):
        """Test a NaN tangent reuses the last valid normal."""
        sampler = FrameSampler(curve=None, options=FAST_OPTIONS)
        tangents = np.array([
            [1.0, 0.0, 0.0],
            [np.nan, 0.0, 0.0],
            [0.0, 0.0, 1.0],
        ])
        normals, degenerate = sampler._transport_normals(tangents)
        assert degenerate == 1
        assert np.allclose(normals[1], normals[0])
        assert np.allclose(normals[2], [0.0, 1.0, 0.0])

    def test_flat_loop_has_no_twist(self):
        """Test a flat loop keeps world up and needs no seam correction."""
        curve = fit_closed_curve(flat_circle(), 400)
        frames = FrameSampler(curve, TrackOptions(sample_count=400, bank_max_deg=0.0)).sample()
        assert frames.seam_angle == pytest.approx(0.0, abs=1e-9)
        assert np.allclose(frames.normals, [0.0, 1.0, 0.0])
        assert frames.degenerate_samples == 0


class TestFrames:
    """Test sampled frames on generated tracks."""

    def test_array_shapes(self, track):
        """Test every cached array has N rows."""
        n = FAST_OPTIONS.sample_count
        assert track.positions.shape == (n, 3)
        assert track.tangents.shape == (n, 3)
        assert track.normals.shape == (n, 3)
        assert track.binormals.shape == (n, 3)
        assert track.bank_radians.shape == (n,)

    def test_orthonormal(self, track):
        """Test each frame is orthonormal and right-handed."""
        for name in ("tangents", "normals", "binormals"):
            norms = np.linalg.norm(getattr(track, name), axis=1)
            assert np.allclose(norms, 1.0, atol=1e-9), name
        assert np.allclose(np.sum(track.tangents * track.normals, axis=1), 0.0, atol=1e-9)
        assert np.allclose(track.binormals, np.cross(track.tangents, track.normals), atol=1e-9)

    def test_all_finite(self, track):
        """Test no NaN leaks into the cached arrays."""
        for arr in (track.positions, track.tangents, track.normals, track.binormals, track.bank_radians):
            assert np.all(np.isfinite(arr))

    def test_seam_is_continuous(self, track):
        """Test the jump from the last sample to the first is no larger than ordinary steps."""
        for arr in (track.normals, track.binormals):
            interior = step_sizes(arr)
            seam = np.linalg.norm(arr[0] - arr[-1])
            assert seam <= 3.0 * interior.max() + 1e-9

    def test_seam_continuous_on_twisted_loop(self):
        """Test seam correction closes a loop with transport holonomy."""
        n = 1000
        curve = fit_closed_curve(saddle_points(), n)
        frames = FrameSampler(curve, TrackOptions(sample_count=n, bank_max_deg=0.0)).sample()
        for arr in (frames.normals, frames.binormals):
            interior = step_sizes(arr)
            seam = np.linalg.norm(arr[0] - arr[-1])
            assert seam <= 1.5 * interior.max() + 1e-9
            assert seam < 0.05

    def test_seam_correction_is_spread_evenly(self):
        """Test no sample gets a disproportionate twist."""
        n = 1000
        curve = fit_closed_curve(saddle_points(), n)
        frames = FrameSampler(curve, TrackOptions(sample_count=n, bank_max_deg=0.0)).sample()
        steps = step_sizes(frames.normals)
        tangent_steps = step_sizes(frames.tangents)
        # Each step is the tangent turn (plus its second-order twist) and |seam|/N
        bound = tangent_steps * (1.0 + tangent_steps) + abs(frames.seam_angle) / n
        assert np.all(steps <= bound + 1e-9)

    def test_bank_is_smoothed(self, track):
        """Test bank angles vary slowly and stay within the cap."""
        bank = track.bank_radians
        cap = math.radians(FAST_OPTIONS.bank_max_deg) * FAST_OPTIONS.max_curvature * 100
        assert np.all(np.abs(bank) <= cap + 1e-12)
        window = 2 * max(4, FAST_OPTIONS.sample_count // 100) + 1
        assert np.max(np.abs(np.diff(bank))) <= 2 * cap / window + 1e-12

    def test_flat_circle_banks_one_way(self):
        """Test a constant turn banks every sample the same way."""
        n = 400
        curve = fit_closed_curve(flat_circle(), n)
        frames = FrameSampler(curve, TrackOptions(sample_count=n)).sample()
        assert np.all(frames.bank < 0.0)
        assert np.allclose(frames.bank, frames.bank.mean(), rtol=0.15)

    def test_bank_applied_about_tangent(self):
        """Test banking tilts the normal by exactly the bank angle."""
        n = 400
        curve = fit_closed_curve(flat_circle(), n)
        frames = FrameSampler(curve, TrackOptions(sample_count=n)).sample()
        cos_tilt = frames.normals @ np.array([0.0, 1.0, 0.0])
        assert np.allclose(cos_tilt, np.cos(frames.bank), atol=1e-9)

    def test_bounding_radius(self, track):
        """Test the bounding radius covers every sample plus the margin."""
        furthest = np.max(np.linalg.norm(track.positions, axis=1))
        margin = FAST_OPTIONS.width * 4 + FAST_OPTIONS.elevation_amplitude
        assert track.bounding_radius == pytest.approx(furthest + margin)

    def test_arrays_read_only(self, track):
        """Test cached arrays cannot be modified."""
        with pytest.raises(ValueError):
            track.normals[0, 0] = 1.0
        with pytest.raises(ValueError):
            track.bank_radians[0] = 1.0


class TestDefaultOptionFrames:
    """Test frames on full-resolution tracks built from default options.

    Default shapes contain tight hairpins, so adjacent tangents can turn
    by large angles. Frames must stay orthonormal there and the seam must
    stay no rougher than the interior.
    """

    @pytest.fixture(scope="class", params=[1337, 7])
    def default_track(self, request):
        return generate(TrackOptions(seed=request.param))

    def test_orthonormal(self, default_track):
        """Test frames stay finite and orthonormal through hairpins."""
        t, n, b = default_track.tangents, default_track.normals, default_track.binormals
        assert np.all(np.isfinite(n)) and np.all(np.isfinite(b))
        assert np.allclose(np.linalg.norm(n, axis=1), 1.0, atol=1e-9)
        assert np.allclose(np.sum(t * n, axis=1), 0.0, atol=1e-9)
        assert np.allclose(np.cross(t, n), b, atol=1e-9)

    def test_seam_no_rougher_than_interior(self, default_track):
        """Test the normal step across the seam is small and within the interior range."""
        normals = default_track.normals
        seam_step = float(np.linalg.norm(normals[0] - normals[-1]))
        assert seam_step < 0.1
        assert seam_step <= np.max(step_sizes(normals))
