# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Pheromone update policies and the validated colony rule set.

Policies form a closed set of small strategy objects. Per-channel
policies are called as ``policy(rng, image, channel, visited)``; combined
policies see every channel at once as ``policy(rng, image, channels,
visited)``. A ``RuleSet`` binds one policy per (phase, channel) and is
shared read-only by all colony workers.
"""

import os
from dataclasses import dataclass
from typing import Dict, Optional, Sequence, Set, Tuple

import numpy as np

from pheroseg.contours import contour_map
from pheroseg.geometry import Point
from pheroseg.pheromones import PheromoneChannel

INIT = "init"
LOCAL = "local"
GLOBAL = "global"
PHASES: Tuple[str, ...] = (INIT, LOCAL, GLOBAL)

MAX_CHANNELS = 3
MAX_CHANNELS_COMBINED = 2

MULTIPLICATIVE = "multiplicative"
ADDITIVE = "additive"


class InvalidConfiguration(ValueError):
    """Raised when a rule set is declared with unusable channel policies."""


# ============================================================
# PER-CHANNEL POLICIES
# ============================================================

@dataclass(frozen=True)
class NoOp:
    def __call__(self, rng, image, channel, visited) -> None:
        return None


@dataclass(frozen=True)
class IncrementVisited:
    """Deposit ``amount`` on every pixel the ant visited."""

    amount: float = 1.0

    def __call__(self, rng, image, channel: PheromoneChannel, visited) -> None:
        channel.increase(visited, self.amount)


@dataclass(frozen=True)
class ScaleVisited:
    """Scale the pheromone of every visited pixel by ``factor``."""

    factor: float = 0.5

    def __call__(self, rng, image, channel: PheromoneChannel, visited) -> None:
        channel.multiply(visited, self.factor)


@dataclass(frozen=True)
class NormalizeChannel:
    def __call__(self, rng, image, channel: PheromoneChannel, visited) -> None:
        channel.normalize()


@dataclass(frozen=True)
class Chain:
    """Apply several per-channel policies in order."""

    policies: Tuple = ()

    def __init__(self, *policies):
        object.__setattr__(self, "policies", tuple(policies))

    def __call__(self, rng, image, channel, visited) -> None:
        for policy in self.policies:
            policy(rng, image, channel, visited)


# ============================================================
# COMBINED (CROSS-CHANNEL) GLOBAL POLICIES
# ============================================================

@dataclass(frozen=True)
class NormalizeAll:
    def __call__(self, rng, image, channels: Sequence[PheromoneChannel], visited) -> None:
        for channel in channels:
            channel.normalize()


@dataclass(frozen=True)
class EdgeFeedback:
    """Reinforce pheromone along the contour the channels currently describe.

    Steps:
        1. Normalize every channel.
        2. Extract the contour of the summed channels at ``threshold``.
        3. The first channel gains ``boost`` on contour pixels (capped at 1.0),
           every other channel is damped by ``1 - boost`` there.
        4. Renormalize.
    """

    threshold: float = 0.25
    boost: float = 0.5

    def __call__(self, rng, image, channels: Sequence[PheromoneChannel], visited) -> None:
        for channel in channels:
            channel.normalize()
        if min(channels[0].shape) < 3:
            return
        edges = contour_map(channels, self.threshold) == 0.0
        first, rest = channels[0], channels[1:]
        first.data[edges] += self.boost
        first.clamp(1.0)
        for channel in rest:
            channel.data[edges] *= 1.0 - self.boost
        for channel in channels:
            channel.normalize()


# ============================================================
# RULE SET
# ============================================================

class RuleSet:
    """Validated, immutable configuration of a colony run.

    Args:
        max_ant_steps: Step budget of a single ant walk.
        ants_per_global_update: Ants simulated per colony step.
        parallelity: Worker count; defaults to the CPU count and collapses
            to 1 when it exceeds ``ants_per_global_update``.
        policies: Up to three layers ``[init, local, global]`` of per-channel
            policies (``None`` entries mean no-op). Missing leading layers
            default to no-op. With ``combined_global`` at most ``[init, local]``.
        combined_global: Optional single policy applied over all channels
            after each step, replacing the per-channel global layer.
        return_to_origin: Ants walk back to their start after reaching the target.
        pheromone_mode: ``"multiplicative"`` or ``"additive"`` weighting.

    Raises:
        InvalidConfiguration: On zero channels, too many layers or channels,
            unequal layer lengths, or non-positive parallelity.
    """

    def __init__(self,
                 max_ant_steps: int,
                 ants_per_global_update: int,
                 parallelity: Optional[int] = None,
                 policies: Optional[Sequence[Sequence]] = None,
                 combined_global=None,
                 return_to_origin: bool = False,
                 pheromone_mode: str = MULTIPLICATIVE):
        layers = [list(layer) for layer in (policies or [])]
        channels = len(layers[0]) if layers else 0
        max_layers = 2 if combined_global is not None else 3
        max_channels = MAX_CHANNELS_COMBINED if combined_global is not None else MAX_CHANNELS

        if channels <= 0:
            raise InvalidConfiguration("no pheromone channels declared")
        if len(layers) > max_layers:
            raise InvalidConfiguration(
                f"{len(layers)} policy layers given, at most {max_layers} allowed")
        if channels > max_channels:
            raise InvalidConfiguration(
                f"{channels} pheromone channels given, at most {max_channels} allowed")
        if any(len(layer) != channels for layer in layers):
            raise InvalidConfiguration("unequal amount of pheromone policies per layer")
        if pheromone_mode not in (MULTIPLICATIVE, ADDITIVE):
            raise InvalidConfiguration(f"unknown pheromone mode {pheromone_mode!r}")
        if ants_per_global_update < 1 or max_ant_steps < 0:
            raise InvalidConfiguration("ant count must be positive and step budget non-negative")

        while len(layers) < max_layers:
            layers.insert(0, [None] * channels)
        if combined_global is not None:
            layers.append([None] * channels)

        if parallelity is None:
            parallelity = os.cpu_count() or 1
        if parallelity < 1:
            raise InvalidConfiguration("parallelity must be at least 1")
        if parallelity > ants_per_global_update:
            parallelity = 1

        self.max_ant_steps = int(max_ant_steps)
        self.ants_per_global_update = int(ants_per_global_update)
        self.parallelity = int(parallelity)
        self.combined_global = combined_global
        self.return_to_origin = bool(return_to_origin)
        self.pheromone_mode = pheromone_mode
        self._table: Dict[Tuple[str, int], object] = {
            (phase, i): (policy if policy is not None else NoOp())
            for phase, layer in zip(PHASES, layers)
            for i, policy in enumerate(layer)
        }
        self._channels = channels

    @property
    def channels(self) -> int:
        return self._channels

    def policy(self, phase: str, channel: int):
        """Look up the policy bound to ``channel`` for ``phase``."""
        return self._table[(phase, channel)]

    def apply(self, phase: str, rng: np.random.Generator, image: np.ndarray,
              channels: Sequence[PheromoneChannel], visited: Set[Point]) -> None:
        for i, channel in enumerate(channels):
            self._table[(phase, i)](rng, image, channel, visited)

    def initialize(self, rng, image, channels, visited=frozenset()) -> None:
        self.apply(INIT, rng, image, channels, visited)

    def local_update(self, rng, image, channels, visited) -> None:
        self.apply(LOCAL, rng, image, channels, visited)

    def global_update(self, rng, image, channels, visited) -> None:
        if self.combined_global is not None:
            self.combined_global(rng, image, channels, visited)
        else:
            self.apply(GLOBAL, rng, image, channels, visited)

    def __repr__(self) -> str:
        return (f"RuleSet(channels={self.channels}, steps={self.max_ant_steps}, "
                f"ants={self.ants_per_global_update}, parallelity={self.parallelity}, "
                f"combined={self.combined_global is not None})")


# ============================================================
# PRESETS
# ============================================================

ANTS_PER_GLOBAL_UPDATE = 40


def _multi_objective() -> dict:
    return {
        "policies": [
            [None, None, None],
            [Chain(IncrementVisited(1.0), ScaleVisited(0.5)),
             Chain(IncrementVisited(1.0), ScaleVisited(0.1)),
             IncrementVisited(1.0)],
            [NormalizeChannel(), NormalizeChannel(), NormalizeChannel()],
        ],
    }


def _single_objective() -> dict:
    return {
        "policies": [
            [None],
            [IncrementVisited(1.0)],
            [NormalizeChannel()],
        ],
    }


def _combined_objective(feedback_threshold: float) -> dict:
    return {
        "policies": [
            [None, None],
            [Chain(IncrementVisited(1.0), ScaleVisited(0.5)), IncrementVisited(1.0)],
        ],
        "combined_global": EdgeFeedback(threshold=feedback_threshold),
        "return_to_origin": True,
        "pheromone_mode": ADDITIVE,
    }


def create_rules(width: int, height: int,
                 parallelity: Optional[int] = None,
                 mode: str = "multi",
                 ants_per_global_update: int = ANTS_PER_GLOBAL_UPDATE,
                 feedback_threshold: float = 0.25) -> RuleSet:
    """Build the rule set for an image of the given size and objective mode.

    Modes: ``"multi"`` (three channels), ``"single"`` (one channel) and
    ``"combined"`` (two channels with edge feedback and return walks).
    """
    if mode == "multi":
        preset = _multi_objective()
    elif mode == "single":
        preset = _single_objective()
    elif mode == "combined":
        preset = _combined_objective(feedback_threshold)
    else:
        raise InvalidConfiguration(f"unknown objective mode {mode!r}")
    return RuleSet((width * height) // 8, ants_per_global_update, parallelity, **preset)
