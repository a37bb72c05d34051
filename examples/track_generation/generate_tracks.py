#!/usr/bin/env python3
"""
Track Generation Example

This example demonstrates how to:
1. Generate a loop track with default options
2. Use seeds for reproducible tracks
3. Inspect frames, banking, tunnels and boost pads
4. Query the track the way a ship controller would

Run with: python generate_tracks.py
"""

import math

import numpy as np

from looptrack.track import TrackGenerator, TrackModel, TrackOptions, TunnelOptions


def generate_default_track() -> TrackModel:
    """Generate a track with default settings."""
    print("=" * 60)
    print("1. Default Track Generation")
    print("=" * 60)

    track = TrackGenerator().generate()

    print(f"\nLength: {track.length:.0f} m")
    print(f"Control points: {len(track.control_points)}")
    print(f"Samples: {track.sample_count}")
    print(f"Bounding radius: {track.bounding_radius:.0f} m")
    print(f"Seam twist removed: {math.degrees(track.seam_angle):.2f}°")

    return track


def generate_seeded_tracks():
    """Generate reproducible tracks using seeds."""
    print("\n" + "=" * 60)
    print("2. Seeded Track Generation (Reproducible)")
    print("=" * 60)

    generator = TrackGenerator(TrackOptions(sample_count=1200))

    track1 = generator.generate_with_seed(12345)
    track2 = generator.generate_with_seed(12345)

    print(f"\nTrack A length: {track1.length:.1f} m")
    print(f"Track B length: {track2.length:.1f} m")
    print(f"Same layout: {np.array_equal(track1.positions, track2.positions)}")

    track3 = generator.generate_with_seed(99999)
    print(f"\nDifferent seed length: {track3.length:.1f} m")


def generate_tunnel_heavy_track():
    """Generate a track with many closely spaced tunnels."""
    print("\n" + "=" * 60)
    print("3. Tunnel-Heavy Track")
    print("=" * 60)

    options = TrackOptions(
        seed=2024,
        sample_count=2400,
        tunnels=TunnelOptions(count_min=5, count_max=8, min_spacing=700.0),
    )
    track = TrackGenerator(options).generate()

    print(f"\nLength: {track.length:.0f} m")
    print(f"Tunnels placed: {len(track.tunnels)} (requested 5-8)")
    for tunnel in track.tunnels:
        wrap = " (wraps)" if tunnel.wraps else ""
        print(
            f"  {tunnel.tunnel_type.value:8s} t={tunnel.start_t:.3f}->{tunnel.end_t:.3f} "
            f"{tunnel.length_meters:.0f} m{wrap}"
        )


def inspect_banking(track: TrackModel):
    """Inspect bank angles along the track."""
    print("\n" + "=" * 60)
    print("4. Banking")
    print("=" * 60)

    bank_deg = np.degrees(track.bank_radians)
    print(f"\nMax left bank: {bank_deg.min():.2f}°")
    print(f"Max right bank: {bank_deg.max():.2f}°")
    print(f"Mean |bank|: {np.abs(bank_deg).mean():.2f}°")


def drive_a_lap(track: TrackModel):
    """Query the track like a ship moving along it."""
    print("\n" + "=" * 60)
    print("5. Driving a Lap")
    print("=" * 60)

    pad_hits = 0
    tunnel_samples = 0
    steps = 2000
    for k in range(steps):
        t = k / steps
        if track.get_boost_pad_at_t(t).on_pad:
            pad_hits += 1
        if track.get_tunnel_at_t(t, lateral_offset=2.0).in_tunnel:
            tunnel_samples += 1

    print(f"\nBoost pads: {len(track.boost_pads)}")
    print(f"Steps on a pad: {pad_hits}/{steps}")
    print(f"Steps in a tunnel: {tunnel_samples}/{steps}")

    # Recover track coordinates from a world position
    sample = track.sample_by_t(0.3)
    position = sample.position + sample.binormal * 5.0 + sample.up * 1.5
    t, lateral = track.world_to_track_coords(position)
    print(f"\nWorld point near t=0.3 maps to t={t:.4f}, lateral={lateral:.2f} m")


def main():
    default_track = generate_default_track()
    generate_seeded_tracks()
    generate_tunnel_heavy_track()

    inspect_banking(default_track)
    drive_a_lap(default_track)

    print("\n" + "=" * 60)
    print("Track generation examples complete!")
    print("=" * 60)


if __name__ == "__main__":
    main()
