# -*- coding: utf-8 -*-
# Copyright (c) 2024-2026 Vasile Lucian Borbeleac / FRAGMERGENT TECHNOLOGY S.R.L.
# Cluj-Napoca, Romania

"""Colony step coordinator: run a batch of ants across worker threads.

One colony step:
    1. Split ``ants_per_global_update`` ants into ``parallelity`` shards
    2. Fork one generator per shard from the parent stream, in shard order
    3. Each worker runs its shard sequentially on a private channel clone,
       applying the local update after every ant
    4. Merge each shard into a scratch set as soon as it finishes: pheromone
       deltas are added, visited pixels are unioned
    5. Once every shard succeeded, add the scratch deltas to the channels
       and apply the global update once

Merging is addition and set union, so the merged state does not depend
on the order in which workers finish.
"""

import logging
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Set

import numpy as np

from pheroseg.ants import Ant, color_terms
from pheroseg.geometry import Point
from pheroseg.pheromones import PheromoneChannel, clone_channels, zeros_like_channels
from pheroseg.rules import RuleSet

logger = logging.getLogger(__name__)

_SEED_BOUND = 2 ** 63


class ColonyStepError(RuntimeError):
    """A worker failed; the whole colony step is void."""


@dataclass
class ShardResult:
    """Contribution of one worker: per-channel deltas and visited pixels."""

    index: int
    deltas: List[np.ndarray]
    visited: Set[Point] = field(default_factory=set)
    ants: int = 0


def initialize_pheromones(rng: np.random.Generator, image: np.ndarray,
                          rules: RuleSet) -> List[PheromoneChannel]:
    """Fresh zeroed channels for ``image`` with the init policies applied."""
    h, w = image.shape[:2]
    channels = [PheromoneChannel.zeros(w, h) for _ in range(rules.channels)]
    rules.initialize(rng, image, channels, frozenset())
    return channels


def partition_ants(total: int, parallelity: int) -> List[int]:
    """Shard sizes: ``total // parallelity`` each, the last shard takes the rest."""
    sizes = []
    left = total
    for i in range(parallelity):
        ants = left
        if i < parallelity - 1:
            ants = min(ants, total // parallelity)
        sizes.append(ants)
        left -= ants
    return sizes


def fork_generators(rng: np.random.Generator, n: int) -> List[np.random.Generator]:
    """Derive ``n`` independent generators by drawing seeds from ``rng`` in order."""
    return [np.random.default_rng(int(rng.integers(_SEED_BOUND))) for _ in range(n)]


def run_ant_shard(rng: np.random.Generator, image: np.ndarray, rules: RuleSet,
                  channels: Sequence[PheromoneChannel], n_ants: int,
                  index: int = 0, colors: Optional[np.ndarray] = None) -> ShardResult:
    """Run ``n_ants`` ants one after another on a private clone of ``channels``.

    Local updates after each ant are visible to the following ants of
    this shard only.

    Returns:
        ShardResult with the change of every channel relative to ``channels``.
    """
    h, w = image.shape[:2]
    if colors is None:
        colors = color_terms(image)
    local = clone_channels(channels)
    visited: Set[Point] = set()
    for _ in range(n_ants):
        ant = Ant.spawn(rng, w, h)
        ant_visited = ant.run(rng, image, rules, local, colors)
        rules.local_update(rng, image, local, ant_visited)
        visited |= ant_visited
    deltas = [mine.data - base.data for mine, base in zip(local, channels)]
    return ShardResult(index=index, deltas=deltas, visited=visited, ants=n_ants)


def merge_shard(channels: Sequence[PheromoneChannel], visited: Set[Point],
                shard: ShardResult) -> None:
    """Add a shard's deltas into ``channels`` and its pixels into ``visited``."""
    for channel, delta in zip(channels, shard.deltas):
        channel.data += delta
    visited |= shard.visited


def run_colony_step(rng: np.random.Generator, image: np.ndarray, rules: RuleSet,
                    channels: List[PheromoneChannel],
                    colors: Optional[np.ndarray] = None) -> Set[Point]:
    """Run one batch of ants across worker threads and update ``channels`` in place.

    Args:
        rng: Parent generator; consumed for the shard generators and the
            global update.
        image: RGB uint8 image of shape (h, w, 3).
        rules: Shared, read-only rule set.
        channels: Authoritative pheromone channels, mutated in place.
        colors: ``color_terms(image)``, computed here when omitted.

    Returns:
        Union of the pixels visited by every ant of this step.

    Raises:
        ColonyStepError: If any worker raised; ``channels`` are left untouched.
    """
    shards = partition_ants(rules.ants_per_global_update, rules.parallelity)
    generators = fork_generators(rng, len(shards))
    if colors is None:
        colors = color_terms(image)
    snapshot = clone_channels(channels)
    pending = zeros_like_channels(channels)
    total_visited: Set[Point] = set()

    with ThreadPoolExecutor(max_workers=len(shards),
                            thread_name_prefix="colony") as pool:
        futures = {
            pool.submit(run_ant_shard, g, image, rules, snapshot, n, i, colors): i
            for i, (g, n) in enumerate(zip(generators, shards))
        }
        for future in as_completed(futures):
            index = futures[future]
            try:
                shard = future.result()
            except Exception as e:
                for waiting in futures:
                    waiting.cancel()
                raise ColonyStepError(f"colony worker {index} failed: {e}") from e
            merge_shard(pending, total_visited, shard)
            logger.debug("merged shard %d (%d ants, %d pixels)",
                         index, shard.ants, len(shard.visited))

    for channel, delta in zip(channels, pending):
        channel.add(delta)
    rules.global_update(rng, image, channels, total_visited)
    return total_visited
