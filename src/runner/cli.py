# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.

"""PheroSeg command line.

Runs an ant-colony segmentation of one image and writes the archived
attempts as labelled, contour, overlaid and colourized images.
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional

from pheroseg.pareto import Attempt
from runner.imageio import load_rgb, save_rgb
from runner.logging_config import setup_logging
from runner.pipeline import SegmentationPipeline
from runner.render import (colorized_regions, contour_image, labeled_regions,
                           overlayed_contour, visualize_pheromones)

logger = logging.getLogger(__name__)

OBJECTIVES = {
    "m": "multi", "multi": "multi", "multiple": "multi",
    "s": "single", "single": "single",
    "c": "combined", "combined": "combined",
}


def _objective(value: str) -> str:
    try:
        return OBJECTIVES[value.lower()]
    except KeyError:
        raise argparse.ArgumentTypeError(f"Unknown objective {value!r}") from None


def _positive_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from None
    if n < 1:
        raise argparse.ArgumentTypeError("must be a positive integer")
    return n


def _non_negative_int(value: str) -> int:
    try:
        n = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"{value!r} is not an integer") from None
    if n < 0:
        raise argparse.ArgumentTypeError("must not be negative")
    return n


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pheroseg",
        description="Run an ant-colony algorithm to find a good segmentation "
                    "of the image at the given path.")
    parser.add_argument("image", type=Path, help="input image")
    parser.add_argument("results", type=Path, help="directory for the result images")
    parser.add_argument("-d", "--detailed", action="store_true",
                        help="export pheromone images of every intermediate step")
    parser.add_argument("-e", "--eval-steps", "--evaluate-steps", dest="eval_steps",
                        action="store_true",
                        help="consider each intermediate step for evaluation")
    parser.add_argument("-o", "--objective", type=_objective, default="multi",
                        help="[m]ulti, [s]ingle or [c]ombined objective optimization")
    parser.add_argument("-s", "--seed", type=_non_negative_int, default=None,
                        help="integer seed, otherwise a random one is used")
    parser.add_argument("-t", "--timeout", type=_non_negative_int, default=None,
                        help="stop generating new attempts after SECS seconds")
    parser.add_argument("-p", "--parallel", type=_positive_int, default=None,
                        help="run NUM worker threads in parallel")
    parser.add_argument("-v", "--verbose", action="store_true", help="debug logging")
    return parser


def write_results(results: Path, image, attempts: List[Attempt], threshold: float) -> None:
    outputs = {
        "type_0_labels": lambda a: labeled_regions(a.segmentation),
        "type_1_segments": lambda a: contour_image(a.pheromones, threshold),
        "type_2_segments": lambda a: overlayed_contour(image, a.pheromones, threshold),
        "type_3_segments": lambda a: colorized_regions(image, a.pheromones, threshold)[0],
    }
    for folder, render in outputs.items():
        target = results / folder
        target.mkdir(parents=True, exist_ok=True)
        for i, attempt in enumerate(attempts):
            save_rgb(target / f"{i}-{attempt.stat_info()}.png", render(attempt))


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(logging.DEBUG if args.verbose else logging.INFO)

    try:
        image = load_rgb(args.image)
    except (FileNotFoundError, ValueError) as e:
        parser.error(str(e))

    args.results.mkdir(parents=True, exist_ok=True)
    detailed = args.results / "detailed"
    on_step = None
    if args.detailed:
        detailed.mkdir(parents=True, exist_ok=True)

        def on_step(attempt, step, channels):
            save_rgb(detailed / f"{attempt}-step{step}.png", visualize_pheromones(channels))
            if len(channels) > 1:
                for i, channel in enumerate(channels):
                    save_rgb(detailed / f"{attempt}-step{step}-pheromone{i}.png",
                             visualize_pheromones([channel]))

    pipeline = SegmentationPipeline(args.objective, parallelity=args.parallel)
    try:
        archive = pipeline.run(image, seed=args.seed, timeout=args.timeout,
                               evaluate_every_step=args.eval_steps, on_step=on_step)
        attempts = archive.drain()
        write_results(args.results, image, attempts,
                      float(pipeline.params["contour_threshold"]))
    except Exception:
        logger.exception("Segmentation failed")
        return 1

    logger.info("Wrote %d attempt(s) to %s", len(attempts), args.results)
    return 0


if __name__ == "__main__":
    sys.exit(main())
