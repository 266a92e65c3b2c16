#!/usr/bin/env python3
"""
geoviewer - Prepare a model for display

Load a model with its texture files, apply geo projection and normalization,
and write a display-ready GLB plus a JSON sidecar with geo bounds.

Usage:
    geoviewer-prepare model.obj --textures textures/ -o out/model.glb
    geoviewer-prepare site.glb --geo --axis-mapping 0 2 1 --exaggeration 3 -o out/site.glb
    python -m geoviewer.prepare site.glb --config view.json
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Dict, List, Optional

from .common.config import Config
from .common.errors import GeoViewerError, InvalidMapping
from .common.io import save_model
from .session import ViewerState

logger = logging.getLogger(__name__)


def build_config(args: argparse.Namespace) -> Config:
    """
    Merge a JSON config file (if any) with command line overrides.

    Raises:
        InvalidMapping: if the resulting axis mapping is invalid
    """
    config = Config.from_json(args.config) if args.config else Config()

    changes: Dict = {}
    if args.axis_mapping is not None:
        changes["axis_mapping"] = args.axis_mapping
    if args.exaggeration is not None:
        changes["vertical_exaggeration"] = args.exaggeration
    if args.flip_z_scale:
        changes["flip_z_scale"] = True
    if args.flip_vertical:
        changes["flip_vertical"] = True
    if args.geo:
        changes["geo_mode_enabled"] = True
    if args.target_size is not None:
        changes["target_size"] = args.target_size

    return config.replace(**changes)


def prepare(
    model_path: Path,
    texture_paths: List[Path],
    config: Config,
    output: Optional[Path] = None
) -> dict:
    """
    Load, transform and optionally save one model.

    Args:
        model_path: Model file
        texture_paths: Texture files and directories
        config: Configuration
        output: Output GLB path, or None to skip writing

    Returns:
        Summary dictionary
    """
    viewer = ViewerState(config)
    try:
        session = viewer.open(model_path, texture_paths)
        metadata = session.metadata(config)
        if output is not None:
            save_model(session.model, output, metadata)
        return metadata.to_dict()
    finally:
        viewer.close()


def main(argv: Optional[List[str]] = None):
    parser = argparse.ArgumentParser(
        description="geoviewer - Prepare a model for display"
    )
    parser.add_argument(
        "model",
        type=Path,
        help="Model file (glb, gltf, obj, ply, stl, ...)"
    )
    parser.add_argument(
        "--textures", "-t",
        type=Path,
        nargs="*",
        default=[],
        help="Texture files or directories to resolve references against"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        default=None,
        help="JSON config file"
    )
    parser.add_argument(
        "--geo",
        action="store_true",
        help="Treat raw coordinates as lon/lat/height and project to local meters"
    )
    parser.add_argument(
        "--axis-mapping", "-a",
        nargs=3,
        type=int,
        metavar=("LON", "LAT", "HEIGHT"),
        default=None,
        help="Raw axis index (0=x, 1=y, 2=z) for lon, lat and height"
    )
    parser.add_argument(
        "--exaggeration", "-e",
        type=float,
        default=None,
        help="Vertical exaggeration"
    )
    parser.add_argument(
        "--flip-z-scale",
        action="store_true",
        help="Negate the up axis"
    )
    parser.add_argument(
        "--flip-vertical",
        action="store_true",
        help="Negate the up axis (composes with --flip-z-scale)"
    )
    parser.add_argument(
        "--target-size",
        type=float,
        default=None,
        help="Largest dimension after normalization"
    )
    parser.add_argument(
        "--output", "-o",
        type=Path,
        default=None,
        help="Output GLB path"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging"
    )

    args = parser.parse_args(argv)

    # Setup logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        config = build_config(args)
    except InvalidMapping as e:
        logger.error(f"Invalid axis mapping: {e}")
        sys.exit(2)

    logger.info(f"Model: {args.model}")
    logger.info(f"Geo mode: {config.geo_mode_enabled} ({config.axis_mapping.describe()})")

    try:
        summary = prepare(args.model, args.textures, config, args.output)
    except GeoViewerError as e:
        logger.error(f"Load failed: {e}")
        sys.exit(1)

    print(json.dumps(summary, indent=2))


if __name__ == "__main__":
    main()
