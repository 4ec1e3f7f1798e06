# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania
#
# PARETO FRONT SWEEP
# ==================
# Every synthetic shape x objective mode x seed runs one attempt with
# per-step evaluation; the union of attempts per shape goes into one
# Pareto archive. Figures show the three pairwise objective projections
# with archived attempts highlighted.

import sys
from pathlib import Path

# --------------- path bootstrap ---------------
_ROOT = Path(__file__).resolve().parents[2]
sys.path.insert(0, str(_ROOT / "src"))
FIGURES_DIR = _ROOT / "experiments" / "figures"
FIGURES_DIR.mkdir(parents=True, exist_ok=True)

# --------------- imports ----------------------
import numpy as np
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt

import time

from pheroseg.ants import color_terms
from pheroseg.colony import initialize_pheromones, run_colony_step
from pheroseg.pareto import Attempt, ParetoArchive
from pheroseg.rules import create_rules
from pheroseg.shapes import SHAPES
from runner.render import colorized_regions

# ============================================================
# GLOBAL SETTINGS
# ============================================================
SIZE = 24
SEEDS = [0, 1, 2]
MODES = ["single", "multi", "combined"]
STEPS = 12
ANTS = 16
PARALLELITY = 4
THRESHOLD = 0.33

SWEEP_SHAPES = ["split", "circle_square", "checker"]
MODE_COLORS = {"single": "tab:blue", "multi": "tab:orange", "combined": "tab:green"}

PROJECTIONS = [
    ("edge_value", "connectivity_measure"),
    ("edge_value", "overall_deviation"),
    ("connectivity_measure", "overall_deviation"),
]


# ============================================================
# SWEEP
# ============================================================
def sweep_shape(img: np.ndarray) -> tuple:
    """Run every mode and seed on one image.

    Returns:
        (all_attempts, archive)
    """
    h, w = img.shape[:2]
    colors = color_terms(img)
    attempts = []
    archive = ParetoArchive()
    for mode in MODES:
        rules = create_rules(w, h, parallelity=PARALLELITY, mode=mode,
                             ants_per_global_update=ANTS)
        for seed in SEEDS:
            rng = np.random.default_rng(seed)
            channels = initialize_pheromones(rng, img, rules)
            for step in range(STEPS):
                run_colony_step(rng, img, rules, channels, colors)
                attempt = Attempt.evaluate(img, channels, THRESHOLD,
                                           mode=mode, seed=seed, step=step)
                attempts.append(attempt)
                archive.insert(attempt)
    return attempts, archive


# ============================================================
# MAIN
# ============================================================
if __name__ == "__main__":
    t_start = time.time()

    print("=" * 70, flush=True)
    print("PHEROSEG PARETO SWEEP", flush=True)
    print("=" * 70, flush=True)
    print(f"  size={SIZE} modes={MODES} seeds={SEEDS} steps={STEPS} "
          f"ants={ANTS} parallelity={PARALLELITY}", flush=True)

    results = {}
    for shape_name in SWEEP_SHAPES:
        img = SHAPES[shape_name](SIZE)
        t0 = time.time()
        attempts, archive = sweep_shape(img)
        results[shape_name] = (img, attempts, archive)
        print(f"  {shape_name:>14s}: {len(attempts):4d} attempts, "
              f"front={len(archive):3d}  ({time.time() - t0:.1f}s)", flush=True)
        for member in archive:
            print(f"      {member.meta['mode']:>8s} seed={member.meta['seed']} "
                  f"step={member.meta['step']:2d}  {member.stat_info()}", flush=True)

    # --- Fig 1: objective projections per shape ---
    n_shapes = len(SWEEP_SHAPES)
    fig1, axes1 = plt.subplots(n_shapes, len(PROJECTIONS),
                               figsize=(4 * len(PROJECTIONS), 3.5 * n_shapes),
                               squeeze=False)
    for row, shape_name in enumerate(SWEEP_SHAPES):
        _, attempts, archive = results[shape_name]
        front = list(archive)
        for col, (xk, yk) in enumerate(PROJECTIONS):
            ax = axes1[row, col]
            for mode in MODES:
                pts = [(getattr(a, xk), getattr(a, yk))
                       for a in attempts if a.meta["mode"] == mode]
                if pts:
                    xs, ys = zip(*pts)
                    ax.scatter(xs, ys, s=10, alpha=0.5,
                               color=MODE_COLORS[mode], label=mode)
            if front:
                ax.scatter([getattr(a, xk) for a in front],
                           [getattr(a, yk) for a in front],
                           s=40, facecolors="none", edgecolors="black",
                           label="archive")
            ax.set_xlabel(xk)
            ax.set_ylabel(yk)
            if col == 0:
                ax.set_title(shape_name, fontsize=9)
            if row == 0 and col == len(PROJECTIONS) - 1:
                ax.legend(fontsize=7)
    fig1.suptitle("Objective projections (archived attempts circled)",
                  fontsize=11, fontweight="bold")
    plt.tight_layout()
    fig1.savefig(str(FIGURES_DIR / "pareto_projections.png"),
                 dpi=150, bbox_inches="tight")
    plt.close(fig1)
    print("  [ok] pareto_projections.png", flush=True)

    # --- Fig 2: best-edge segmentation per shape ---
    fig2, axes2 = plt.subplots(2, n_shapes, figsize=(3 * n_shapes, 6), squeeze=False)
    for col, shape_name in enumerate(SWEEP_SHAPES):
        img, _, archive = results[shape_name]
        axes2[0, col].imshow(img)
        axes2[0, col].set_title(shape_name, fontsize=8)
        axes2[0, col].axis("off")
        front = list(archive)
        if front:
            best = max(front, key=lambda a: a.edge_value)
            seg_img, _ = colorized_regions(img, best.pheromones, THRESHOLD)
            axes2[1, col].imshow(seg_img)
            axes2[1, col].set_title(best.stat_info(), fontsize=6)
        axes2[1, col].axis("off")
    fig2.suptitle("Highest edge value in the archive", fontsize=11, fontweight="bold")
    plt.tight_layout()
    fig2.savefig(str(FIGURES_DIR / "pareto_best_segments.png"),
                 dpi=150, bbox_inches="tight")
    plt.close(fig2)
    print("  [ok] pareto_best_segments.png", flush=True)

    dt = time.time() - t_start
    print(f"\nTotal runtime: {dt:.1f}s", flush=True)
