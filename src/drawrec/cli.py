#!/usr/bin/env python3
"""
Drawing Recognizer - command line entry point.

Usage:
    drawrec match query.json --library drawings/ --model model.onnx
    drawrec match query.json --library drawings/ --model model.onnx --workers 4 --output result.json
    drawrec encode query.json --output features.npy
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

import numpy as np

from .config import RecognizerConfig, SamplingPolicy
from .embedder import OnnxEmbedder
from .errors import DrawingError, EmbeddingError
from .io import DrawingRecord, load_drawing, load_library
from .matcher import DrawingMatcher

logger = logging.getLogger(__name__)


def build_config(args: argparse.Namespace) -> RecognizerConfig:
    """Config from --config (if given) with command line overrides."""
    config = RecognizerConfig.from_json(args.config) if args.config else RecognizerConfig()

    if getattr(args, "library", None):
        config.library_dir = args.library
    if getattr(args, "model", None):
        config.model_path = args.model
    if args.policy:
        config.sampling_policy = SamplingPolicy(args.policy)
    if getattr(args, "workers", None):
        config.max_workers = args.workers

    return config


def load_query(path: Path) -> Optional[DrawingRecord]:
    """Read the query drawing, logging (not raising) on failure."""
    try:
        return load_drawing(path)
    except (OSError, DrawingError) as e:
        logger.error(f"Failed to load query {path}: {e}")
        return None


def run_match(args: argparse.Namespace, config: RecognizerConfig) -> int:
    if config.model_path is None:
        logger.error("No model given (--model or model_path in config)")
        return 1

    query = load_query(args.query)
    if query is None:
        return 1

    library = load_library(config.library_dir, config.set_first_as_origin_on_load)

    try:
        embedder = OnnxEmbedder(config.model_path, embedding_dim=config.embedding_dim)
    except (ImportError, EmbeddingError) as e:
        logger.error(f"Failed to load model {config.model_path}: {e}")
        return 1

    with embedder:
        matcher = DrawingMatcher(library, embedder, config, progress=not args.verbose)
        result = matcher.match(query.points)

    print(result.label)

    if args.output:
        summary = {
            "query": str(args.query),
            "config": config.to_dict(),
            **result.to_dict()
        }
        try:
            args.output.parent.mkdir(parents=True, exist_ok=True)
            with open(args.output, 'w') as f:
                json.dump(summary, f, indent=2)
        except OSError as e:
            logger.error(f"Failed to write summary {args.output}: {e}")
            return 1
        logger.info(f"Summary saved: {args.output}")

    return 0


def run_encode(args: argparse.Namespace, config: RecognizerConfig) -> int:
    record = load_query(args.query)
    if record is None:
        return 1

    matcher = DrawingMatcher(None, None, config)
    try:
        features = matcher.featurize(record.points, config.query_seed)
    except DrawingError as e:
        logger.error(f"Failed to encode {args.query}: {e}")
        return 1

    try:
        args.output.parent.mkdir(parents=True, exist_ok=True)
        np.save(args.output, features)
    except OSError as e:
        logger.error(f"Failed to write features {args.output}: {e}")
        return 1
    logger.info(f"Saved {features.shape} feature matrix: {args.output}")
    return 0


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Drawing Recognizer - match 3D drawings against a reference library"
    )
    parser.add_argument(
        "--config", "-c",
        type=Path,
        help="JSON config file"
    )
    parser.add_argument(
        "--policy", "-p",
        choices=[p.value for p in SamplingPolicy],
        help="Resampling policy"
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Verbose logging"
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    match_parser = subparsers.add_parser("match", help="Find the closest reference drawing")
    match_parser.add_argument("query", type=Path, help="Query drawing (.json)")
    match_parser.add_argument(
        "--library", "-l",
        type=Path,
        help="Folder of reference drawings"
    )
    match_parser.add_argument(
        "--model", "-m",
        type=Path,
        help="ONNX embedding model"
    )
    match_parser.add_argument(
        "--workers", "-w",
        type=int,
        help="Threads used to embed references"
    )
    match_parser.add_argument(
        "--output", "-o",
        type=Path,
        help="Write a JSON summary with per-reference scores"
    )

    encode_parser = subparsers.add_parser("encode", help="Write the feature matrix of a drawing")
    encode_parser.add_argument("query", type=Path, help="Drawing (.json)")
    encode_parser.add_argument(
        "--output", "-o",
        type=Path,
        required=True,
        help="Output .npy file"
    )

    args = parser.parse_args(argv)

    # Setup logging
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(asctime)s - %(levelname)s - %(message)s'
    )

    try:
        config = build_config(args)
    except (OSError, TypeError, ValueError) as e:
        logger.error(f"Failed to load config {args.config}: {e}")
        return 1

    if args.command == "match":
        return run_match(args, config)
    return run_encode(args, config)


if __name__ == "__main__":
    sys.exit(main())
