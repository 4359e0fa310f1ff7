#!/usr/bin/env python3
"""Batch flattening of cubic Bézier curves to polylines.

CLI tool that loads a curves.v1 YAML file, flattens every curve with the
adaptive subdivider and writes a polylines.v1 YAML file. Each curve's vertex
count and maximum deviation from the true curve are logged.

Usage:
    # Default options, output to stdout
    python scripts/flatten_curves.py --curves configs/curves_example.v1.yaml

    # Custom options and display scale, output to file
    python scripts/flatten_curves.py --curves curves.yaml \
        --config configs/subdivider.v1.yaml --scale 4 \
        --output outputs/polylines.yaml

    # Debug logging to a JSON log file
    python scripts/flatten_curves.py --curves curves.yaml --verbose \
        --log_file outputs/logs/flatten.log --json_logs

Scale:
    Per-curve `scale` in the curves file wins over --scale; both default to 1.
"""

import argparse
import logging
import sys
import time
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

sys.path.insert(0, str(Path(__file__).parent.parent))

from bezier_flatten.subdivision import make_subdivider
from bezier_flatten.utils import fs, geometry, logging_config, validators

logger = logging.getLogger(__name__)


def parse_args(argv=None):
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Flatten cubic Bézier curves to polylines",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument(
        '--curves',
        type=str,
        required=True,
        help='Path to curves.v1 YAML file'
    )
    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to subdivider.v1 YAML file (default: built-in defaults)'
    )
    parser.add_argument(
        '--scale',
        type=float,
        default=1.0,
        help='Display scale for curves without their own scale, default: 1.0'
    )
    parser.add_argument(
        '--output',
        type=str,
        default=None,
        help='Output polylines YAML path (default: print to stdout)'
    )
    parser.add_argument(
        '--deviation_samples',
        type=int,
        default=256,
        help='Curve samples for the max-deviation report, default: 256'
    )
    parser.add_argument('--verbose', action='store_true', help='Enable debug logging')
    parser.add_argument('--log_file', type=str, default=None, help='Also log to this file')
    parser.add_argument('--json_logs', action='store_true', help='JSON format for --log_file')
    args = parser.parse_args(argv)

    if args.scale <= 0:
        parser.error(f"--scale must be > 0, got {args.scale}")
    if args.deviation_samples < 2:
        parser.error(f"--deviation_samples must be >= 2, got {args.deviation_samples}")
    return args


def flatten_main(
    curves_path: Union[str, Path],
    config_path: Optional[Union[str, Path]] = None,
    scale: float = 1.0,
    output_path: Optional[Union[str, Path]] = None,
    deviation_samples: int = 256
) -> Dict[str, Any]:
    """Flatten every curve of a curves file.

    Parameters
    ----------
    curves_path : str or Path
        curves.v1 YAML file
    config_path : str or Path, optional
        subdivider.v1 YAML file; defaults apply when omitted
    scale : float
        Display scale for curves that don't set their own
    output_path : str or Path, optional
        Where to write the polylines.v1 YAML (atomically); skipped when None
    deviation_samples : int
        Curve samples used for the max-deviation report

    Returns
    -------
    dict
        {"polylines": PolylinesFileV1, "max_deviation": {id: float},
         "output_path": str or None, "elapsed_s": float}
    """
    if config_path is not None:
        config = validators.load_subdivider_config(config_path)
        logger.info(f"Loaded subdivider config: {config_path}")
    else:
        config = validators.SubdividerConfig()
        logger.info("Using default subdivider config")

    curves_file = validators.load_curves_file(curves_path)
    logger.info(f"Flattening {len(curves_file.curves)} curve(s) from {curves_path}")

    subdivider = make_subdivider(config)
    polylines = []
    deviations: Dict[str, float] = {}

    start_time = time.time()
    for curve in curves_file.curves:
        with logging_config.log_context(curve=curve.id):
            curve_scale = curve.scale if curve.scale is not None else scale
            ctrl = curve.bezier.as_tuple()
            points = subdivider.flatten(*ctrl, scale=curve_scale)

            deviation = geometry.max_deviation(points, *ctrl, samples=deviation_samples)
            deviations[curve.id] = deviation
            logger.info(
                f"{len(points)} points, length={geometry.polyline_length(points):.3f}, "
                f"max_deviation={deviation:.4f} at scale={curve_scale:g}"
            )

            polylines.append(validators.PolylineV1(id=curve.id, scale=curve_scale, points=points))
    elapsed = time.time() - start_time

    result = validators.PolylinesFileV1(subdivider=config, polylines=polylines)

    if output_path is not None:
        fs.atomic_yaml_dump(result.to_yaml_dict(), output_path)
        logger.info(f"Saved polylines: {output_path}")

    logger.info(f"Flattening completed in {elapsed:.3f}s")

    return {
        'polylines': result,
        'max_deviation': deviations,
        'output_path': str(output_path) if output_path is not None else None,
        'elapsed_s': elapsed,
    }


def main(argv=None):
    """Main entry point."""
    args = parse_args(argv)

    log_level = "DEBUG" if args.verbose else "INFO"
    logging_config.setup_logging(
        log_level=log_level,
        log_file=args.log_file,
        json=args.json_logs,
        context={"app": "flatten"}
    )
    logging_config.install_excepthook()

    try:
        result = flatten_main(
            args.curves,
            config_path=args.config,
            scale=args.scale,
            output_path=args.output,
            deviation_samples=args.deviation_samples
        )
    except (FileNotFoundError, ValueError, yaml.YAMLError) as e:
        logger.error(str(e))
        return 1
    finally:
        logging_config.pop_context()

    if args.output is None:
        sys.stdout.write(fs.dump_yaml_str(result['polylines'].to_yaml_dict()))

    return 0


if __name__ == '__main__':
    sys.exit(main())
