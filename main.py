"""
Face Detection CLI Entrypoint.

Responsibility:
    Parse command-line arguments, configure the application, run the
    detector once over a single image and print the JSON result.

Usage:
    python main.py --in photo.jpg
    python main.py --in photo.jpg --bbox 0.25,0,0.5,1 --pretty
    python main.py --in photo.jpg --fq 5 --fs 60 --debug
    python main.py --in photo.jpg --config my_config.yaml

Exit codes:
    0  success (including "no faces found") or --version
    1  configuration or resource error
    2  usage error (argparse)

This module is the executable entry point. It should not be imported
by other modules.
"""

import argparse
import logging
import sys
import time

import yaml

# Configure logging before importing local modules
logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    datefmt="%H:%M:%S",
)
logger = logging.getLogger("main")

from facedetect import __version__
from facedetect.config import load_config
from facedetect.detector import Detector
from facedetect.errors import ConfigError, ResourceError
from facedetect.input_handler import load_image
from facedetect.output_handler import OutputHandler


def parse_args(argv=None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="facedetect",
        description="Detect frontal faces and pupils in an image and print them as JSON.",
    )

    parser.add_argument(
        "-i", "--in",
        dest="source",
        type=str,
        help="Image file to search (required).",
    )
    parser.add_argument(
        "--bbox",
        type=str,
        help="Bounding box limiting the search, in normalized coordinates "
             "x,y,w,h (default: 0,0,1,1).",
    )
    parser.add_argument(
        "--fq",
        type=float,
        help="Min face quality to accept the face (default: 1.0).",
    )
    parser.add_argument(
        "--fs",
        type=float,
        help="Min face size in pixels to accept the face (default: 40).",
    )
    parser.add_argument(
        "--iou",
        type=float,
        help="Intersection over union threshold for cluster detection (default: 0.15).",
    )
    parser.add_argument(
        "--pretty",
        action="store_true",
        default=None,
        help="Pretty-print the JSON output.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        default=None,
        help="Write a debug.jpg with face and eye overlays.",
    )
    parser.add_argument(
        "--config",
        type=str,
        help="Path to YAML configuration file.",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"FaceDetect v{__version__}",
    )

    return parser.parse_args(argv)


def _cli_overrides(args: argparse.Namespace) -> dict:
    return {
        "input": {"source": args.source, "bbox": args.bbox},
        "detection": {
            "quality_threshold": args.fq,
            "size_threshold": args.fs,
            "iou_threshold": args.iou,
        },
        "output": {"pretty": args.pretty, "debug": args.debug},
    }


def main(argv=None) -> int:
    """Run one detection pass and return the process exit code."""
    args = parse_args(argv)

    # 1. Load Configuration (CLI args > ENV > YAML > Defaults)
    try:
        config = load_config(args.config, overrides=_cli_overrides(args))
        if not config.input.source:
            raise ConfigError(
                "Missing image file, use --in <image.jpg>. See usage help with -h."
            )
    except (OSError, ValueError, yaml.YAMLError) as e:
        logger.error("Configuration error: %s", e)
        return 1

    # 2. Initialize Components
    try:
        detector = Detector(config)
        image = load_image(config.input.source)
        output_handler = OutputHandler(config.output)
    except ResourceError as e:
        logger.error("Initialization failed: %s", e)
        return 1

    # 3. Detect and report
    start_time = time.perf_counter()
    try:
        if config.output.debug:
            found, overlay = detector.detect_with_overlay(image)
            output_handler.save_debug_image(overlay)
        else:
            found = detector.detect(image)
        output_handler.emit(found)
    except ResourceError as e:
        logger.error("Output failed: %s", e)
        return 1

    elapsed = time.perf_counter() - start_time
    logger.info("Processing finished. Faces: %d. Elapsed: %.3fs.", len(found), elapsed)
    return 0


if __name__ == "__main__":
    sys.exit(main())
