"""Command line interface.

Usage:
    python -m cellfinder IMAGE [--mode auto|uniform|freeform|lineform|tiles|isolated]
                               [--grid RxC] [--config FILE.yaml] [--preset NAME]
                               [--out DIR] [--trim N] [--debug]
"""

from __future__ import annotations

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

import yaml

from .config import PRESETS, DetectorConfig
from .detector import STRATEGIES, CellDetector
from .errors import CellDetectionError
from .image_utils import load_rgba, save_rgba
from .split import crop_cells, split_by_bounds


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cellfinder",
        description="Detect the rectangular cells of an image",
    )
    parser.add_argument("image", help="Image file to analyse")
    parser.add_argument("--mode", default="auto", choices=["auto"] + list(STRATEGIES),
                        help="Detection strategy (default: auto, best scoring)")
    parser.add_argument("--grid", type=str, default=None,
                        help="Grid for the uniform strategy, e.g. 4x4, 3x3 or a preset id")
    parser.add_argument("--config", type=str, default=None,
                        help="Path to detection configuration YAML file")
    parser.add_argument("--preset", type=str, default=None, choices=sorted(PRESETS),
                        help="Named configuration preset (ignored with --config)")
    parser.add_argument("--out", type=str, default=None,
                        help="Directory to write one PNG per cell")
    parser.add_argument("--trim", type=int, default=None,
                        help="Pixels cropped from each cell edge (default: suggested trim)")
    parser.add_argument("--debug", action="store_true",
                        help="Enable detection debug logging")
    return parser


def load_config(args: argparse.Namespace) -> DetectorConfig:
    if args.config:
        config = DetectorConfig.from_yaml(args.config)
    elif args.preset:
        config = PRESETS[args.preset].copy()
    else:
        config = DetectorConfig()
    config.debug = config.debug or args.debug
    return config


def export_cells(image, candidate, out_dir: str, trim: Optional[int]) -> List[str]:
    """Write the candidate's cells as cell_NN.png files; returns the paths."""
    os.makedirs(out_dir, exist_ok=True)
    trim = candidate.suggested_trim if trim is None else trim
    if candidate.x_bounds is not None and candidate.y_bounds is not None and candidate.mode == "uniform":
        crops = split_by_bounds(image, candidate.x_bounds, candidate.y_bounds, trim)
    else:
        crops = crop_cells(image, candidate.cells, trim)
    paths = []
    for idx, crop in enumerate(crops):
        path = os.path.join(out_dir, f"cell_{idx:02d}.png")
        save_rgba(path, crop)
        paths.append(path)
    return paths


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.debug:
        logging.basicConfig(level=logging.DEBUG, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    try:
        config = load_config(args)
        image = load_rgba(args.image)
    except CellDetectionError as e:
        print(f"error: {e}", file=sys.stderr)
        return 2
    except (OSError, yaml.YAMLError) as e:
        # Unreadable file or malformed YAML config
        print(f"error: {e}", file=sys.stderr)
        return 2

    detector = CellDetector(config)
    result = detector.run(image, mode=args.mode, grid=args.grid)
    if not result.success:
        print(f"error: {result.error_kind}: {result.error_message}", file=sys.stderr)
        return 2

    payload = result.candidate.to_dict()
    payload["elapsedMs"] = round(result.elapsed_ms, 1)
    if args.out:
        try:
            payload["files"] = export_cells(image, result.candidate, args.out, args.trim)
        except CellDetectionError as e:
            print(f"error: {e}", file=sys.stderr)
            return 2
    print(json.dumps(payload, indent=2))
    return 0
