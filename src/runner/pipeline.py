# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.

"""PheroSeg Segmentation Pipeline.

Wraps the core modules into a configurable batch run: independent
attempts of a fixed number of colony steps, each scored and offered to
a Pareto archive, until a soft timeout expires.
"""

import logging
import time
from typing import Callable, Dict, List, Optional

import numpy as np

from pheroseg.ants import color_terms
from pheroseg.colony import initialize_pheromones, run_colony_step
from pheroseg.colors import DISTANCES
from pheroseg.contours import DegenerateInput
from pheroseg.pareto import Attempt, ParetoArchive
from pheroseg.pheromones import PheromoneChannel
from pheroseg.rules import RuleSet, create_rules

logger = logging.getLogger(__name__)

StepCallback = Callable[[int, int, List[PheromoneChannel]], None]


# ---------------------------------------------------------------------------
# Objective mode presets
# ---------------------------------------------------------------------------

MODE_PRESETS: Dict[str, dict] = {
    "multi": {
        "name": "Multi Objective",
        "description": "Three pheromone channels, one per objective, normalized each step",
        "objective": "multi",
        "ants_per_global_update": 40,
        "steps_per_attempt": 50,
        "contour_threshold": 0.33,
        "feedback_threshold": 0.25,
        "distance": "euclidean",
    },
    "single": {
        "name": "Single Objective",
        "description": "One weighted-sum pheromone channel",
        "objective": "single",
        "ants_per_global_update": 40,
        "steps_per_attempt": 50,
        "contour_threshold": 0.33,
        "feedback_threshold": 0.25,
        "distance": "euclidean",
    },
    "combined": {
        "name": "Combined Feedback",
        "description": "Two channels with contour feedback and return-to-origin ants",
        "objective": "combined",
        "ants_per_global_update": 40,
        "steps_per_attempt": 50,
        "contour_threshold": 0.33,
        "feedback_threshold": 0.25,
        "distance": "euclidean",
    },
}


class SegmentationPipeline:
    """Attempts loop with a soft timeout and a Pareto archive of results."""

    def __init__(self, mode: str = "multi", parallelity: Optional[int] = None):
        self.mode = mode
        self.params: dict = {}
        self.parallelity = parallelity
        self.set_mode(mode)

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def set_mode(self, mode: str):
        if mode not in MODE_PRESETS:
            raise ValueError(f"Unknown mode {mode!r}, expected one of {sorted(MODE_PRESETS)}")
        self.mode = mode
        self.params = {k: v for k, v in MODE_PRESETS[mode].items()}

    def update_params(self, **kwargs):
        for k, v in kwargs.items():
            if k in self.params:
                self.params[k] = v

    @property
    def distance(self):
        return DISTANCES[self.params["distance"]]

    # ------------------------------------------------------------------
    # Stages
    # ------------------------------------------------------------------

    @staticmethod
    def check_image(image: np.ndarray) -> None:
        """Require an RGB uint8 image of at least 3×3 pixels."""
        if image.ndim != 3 or image.shape[2] != 3 or image.dtype != np.uint8:
            raise DegenerateInput(
                f"expected an RGB uint8 image, got {image.dtype} of shape {image.shape}")
        h, w = image.shape[:2]
        if h < 3 or w < 3:
            raise DegenerateInput(f"image of {w}x{h} pixels is too small to segment")

    def build_rules(self, image: np.ndarray) -> RuleSet:
        h, w = image.shape[:2]
        p = self.params
        return create_rules(
            w, h,
            parallelity=self.parallelity,
            mode=p["objective"],
            ants_per_global_update=int(p["ants_per_global_update"]),
            feedback_threshold=float(p["feedback_threshold"]),
        )

    def evaluate(self, image: np.ndarray, channels: List[PheromoneChannel], **meta) -> Attempt:
        return Attempt.evaluate(image, channels,
                                threshold=float(self.params["contour_threshold"]),
                                distance=self.distance, **meta)

    def run_attempt(self, rng: np.random.Generator, image: np.ndarray, rules: RuleSet,
                    archive: ParetoArchive, index: int,
                    evaluate_every_step: bool = False,
                    on_step: Optional[StepCallback] = None,
                    colors: Optional[np.ndarray] = None) -> List[PheromoneChannel]:
        """Run one attempt from fresh pheromones and offer it to ``archive``."""
        if colors is None:
            colors = color_terms(image)
        channels = initialize_pheromones(rng, image, rules)
        for step in range(int(self.params["steps_per_attempt"])):
            run_colony_step(rng, image, rules, channels, colors)
            if on_step is not None:
                on_step(index, step, channels)
            if evaluate_every_step:
                archive.insert(self.evaluate(image, channels, attempt=index, step=step))
        if not evaluate_every_step:
            archive.insert(self.evaluate(image, channels, attempt=index))
        return channels

    # ------------------------------------------------------------------
    # Main entry point
    # ------------------------------------------------------------------

    def run(self, image: np.ndarray,
            seed: Optional[int] = None,
            timeout: Optional[float] = None,
            evaluate_every_step: bool = False,
            on_step: Optional[StepCallback] = None) -> ParetoArchive:
        """Segment ``image`` and return the archive of non-dominated attempts.

        The timeout is soft: it is checked only after a whole attempt, and
        without a timeout exactly one attempt runs.
        """
        self.check_image(image)
        rng = np.random.default_rng(seed)
        rules = self.build_rules(image)
        logger.info("Segmenting %dx%d image in %s mode: %r",
                    image.shape[1], image.shape[0], self.mode, rules)

        colors = color_terms(image)
        archive = ParetoArchive()
        t0 = time.perf_counter()
        attempt = 0
        while True:
            self.run_attempt(rng, image, rules, archive, attempt,
                             evaluate_every_step=evaluate_every_step, on_step=on_step,
                             colors=colors)
            elapsed = time.perf_counter() - t0
            logger.info("Attempt %d done after %.1fs, archive holds %d",
                        attempt, elapsed, len(archive))
            attempt += 1
            if timeout is None or elapsed >= timeout:
                break
        return archive
