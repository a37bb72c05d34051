"""
LoopTrack command line interface.

Generates a track and prints its summary as JSON.

Usage:
    looptrack                          # Default options
    looptrack --seed 42 --samples 2400
    looptrack --config track.json      # Options from a JSON file
    looptrack --output summary.json    # Write instead of print
    looptrack --log-level DEBUG        # Verbose generation log
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

from looptrack.track import InvalidConfigurationError, TrackOptions, generate

logger = logging.getLogger(__name__)


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="looptrack",
        description="Generate a procedural loop track and print its summary",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="JSON file with TrackOptions fields",
    )
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Random seed (overrides the config file)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=None,
        help="Frame sample count (overrides the config file)",
    )
    parser.add_argument(
        "--output",
        type=Path,
        default=None,
        help="Write the JSON summary to this file instead of stdout",
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Logging level (default: WARNING)",
    )
    return parser.parse_args(argv)


def load_options(args: argparse.Namespace) -> TrackOptions:
    """Build TrackOptions from the config file and command line overrides."""
    payload = {}
    if args.config is not None:
        payload = json.loads(args.config.read_text())
        if not isinstance(payload, dict):
            raise InvalidConfigurationError(f"Config file {args.config} must hold a JSON object")
    if args.seed is not None:
        payload["seed"] = args.seed
    if args.samples is not None:
        payload["sample_count"] = args.samples
    return TrackOptions.from_dict(payload)


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point."""
    args = parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        options = load_options(args)
        track = generate(options)
    except (OSError, json.JSONDecodeError) as e:
        logger.error(f"Cannot read config file {args.config}: {e}")
        return 2
    except InvalidConfigurationError as e:
        logger.error(f"Invalid track configuration: {e}")
        return 2

    summary = json.dumps(track.get_state(), indent=2)
    if args.output is not None:
        args.output.write_text(summary + "\n")
        logger.info(f"Wrote track summary to {args.output}")
    else:
        print(summary)
    return 0


if __name__ == "__main__":
    sys.exit(main())
