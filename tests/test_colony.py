# -*- coding: utf-8 -*-
"""Tests for PheroSeg rule sets, ant walks and the colony step coordinator."""

import os
import sys
import threading
import time
from pathlib import Path

# Allow imports from src/
_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(_ROOT / "src"))

import numpy as np
import pytest

from pheroseg.ants import Ant, AntState, color_terms
from pheroseg.colony import (ColonyStepError, ShardResult, fork_generators,
                             initialize_pheromones, merge_shard, partition_ants,
                             run_ant_shard, run_colony_step)
from pheroseg.geometry import Point, image_rectangle
from pheroseg.pheromones import PheromoneChannel, clone_channels
from pheroseg.rules import (ADDITIVE, Chain, EdgeFeedback, IncrementVisited,
                            InvalidConfiguration, NoOp, NormalizeAll,
                            NormalizeChannel, RuleSet, ScaleVisited, create_rules)
from pheroseg.shapes import SHAPES


class Boom:
    def __call__(self, rng, image, channel, visited):
        raise RuntimeError("boom")


class FailFirstCaller:
    """Local policy: the first caller raises once another caller has deposited."""

    def __init__(self):
        self._lock = threading.Lock()
        self._calls = 0
        self._deposited = threading.Event()

    def __call__(self, rng, image, channel, visited):
        with self._lock:
            first = self._calls == 0
            self._calls += 1
        if first:
            self._deposited.wait(timeout=5.0)
            time.sleep(0.2)
            raise RuntimeError("late failure")
        channel.increase(visited, 1.0)
        self._deposited.set()


class CountingGlobal:
    def __init__(self):
        self.calls = []

    def __call__(self, rng, image, channels, visited):
        self.calls.append(set(visited))


def _rules(**kwargs) -> RuleSet:
    params = dict(max_ant_steps=20, ants_per_global_update=8, parallelity=1,
                  policies=[[IncrementVisited(1.0)], [NoOp()]])
    params.update(kwargs)
    return RuleSet(**params)


# ============================================================
# rules.py
# ============================================================

class TestRuleSetValidation:
    def test_zero_channels(self):
        with pytest.raises(InvalidConfiguration):
            RuleSet(10, 4, 1, policies=[])
        with pytest.raises(InvalidConfiguration):
            RuleSet(10, 4, 1, policies=[[]])

    def test_too_many_layers(self):
        layer = [NoOp()]
        with pytest.raises(InvalidConfiguration):
            RuleSet(10, 4, 1, policies=[layer, layer, layer, layer])

    def test_too_many_channels(self):
        with pytest.raises(InvalidConfiguration):
            RuleSet(10, 4, 1, policies=[[NoOp()] * 4])

    def test_unequal_layers(self):
        with pytest.raises(InvalidConfiguration):
            RuleSet(10, 4, 1, policies=[[NoOp(), NoOp()], [NoOp()]])

    def test_combined_limits(self):
        with pytest.raises(InvalidConfiguration):
            RuleSet(10, 4, 1, policies=[[None], [None], [None]],
                    combined_global=NormalizeAll())
        with pytest.raises(InvalidConfiguration):
            RuleSet(10, 4, 1, policies=[[None] * 3], combined_global=NormalizeAll())

    def test_missing_layers_default_to_noop(self):
        rules = RuleSet(10, 4, 1, policies=[[NormalizeChannel()]])
        assert rules.channels == 1
        assert rules.policy("init", 0) == NoOp()
        assert rules.policy("local", 0) == NoOp()
        assert rules.policy("global", 0) == NormalizeChannel()

    def test_parallelity(self):
        assert RuleSet(10, 4, 8, policies=[[None]]).parallelity == 1
        assert RuleSet(10, 4, 4, policies=[[None]]).parallelity == 4
        default = RuleSet(10, 10_000, None, policies=[[None]]).parallelity
        assert default == (os.cpu_count() or 1)
        with pytest.raises(InvalidConfiguration):
            RuleSet(10, 4, 0, policies=[[None]])

    def test_unknown_pheromone_mode(self):
        with pytest.raises(InvalidConfiguration):
            RuleSet(10, 4, 1, policies=[[None]], pheromone_mode="sideways")


class TestPresets:
    def test_multi(self):
        rules = create_rules(16, 8, parallelity=2, mode="multi")
        assert rules.channels == 3
        assert rules.max_ant_steps == 16
        assert rules.ants_per_global_update == 40
        assert rules.policy("local", 2) == IncrementVisited(1.0)
        assert not rules.return_to_origin

    def test_single(self):
        rules = create_rules(8, 8, parallelity=1, mode="single")
        assert rules.channels == 1

    def test_combined(self):
        rules = create_rules(8, 8, parallelity=1, mode="combined", feedback_threshold=0.2)
        assert rules.channels == 2
        assert rules.return_to_origin
        assert rules.pheromone_mode == ADDITIVE
        assert rules.combined_global == EdgeFeedback(threshold=0.2)

    def test_unknown_mode(self):
        with pytest.raises(InvalidConfiguration):
            create_rules(8, 8, mode="triple")


class TestPolicies:
    def test_chain_order(self):
        ch = PheromoneChannel.zeros(3, 3)
        Chain(IncrementVisited(1.0), ScaleVisited(0.5))(None, None, ch, {Point(1, 1)})
        assert ch[Point(1, 1)] == 0.5
        assert ch.data.sum() == 0.5

    def test_edge_feedback(self):
        ring = np.zeros((10, 10))
        ring[2:8, 2:8] = 1.0
        filled = ring.copy()
        ring[3:7, 3:7] = 0.0
        edge_ch, region_ch = PheromoneChannel(ring), PheromoneChannel(filled)
        EdgeFeedback(threshold=0.25, boost=0.5)(None, None, [edge_ch, region_ch], set())
        assert edge_ch[Point(2, 2)] == 1.0
        assert region_ch[Point(2, 2)] == 0.5
        assert region_ch[Point(4, 4)] == 1.0
        assert region_ch[Point(0, 0)] == 0.0

    def test_initialize_applies_init_layer(self):
        fill = lambda rng, image, channel, visited: channel.add_scalar(1.0)
        rules = RuleSet(5, 2, 1, policies=[[fill], [None], [None]])
        image = SHAPES["solid"](5)
        channels = initialize_pheromones(np.random.default_rng(0), image, rules)
        assert len(channels) == 1
        np.testing.assert_array_equal(channels[0].data, np.ones((5, 5)))


# ============================================================
# ants.py
# ============================================================

class TestColorTerms:
    def test_matches_pixelwise_distance(self):
        image = SHAPES["circle_square"](8)
        terms = color_terms(image)
        assert terms.shape == (8, 8, 8)
        for (x, y) in [(0, 0), (3, 4), (7, 7), (5, 0)]:
            for rank, q in enumerate(Point(x, y).neighbours()):
                if 0 <= q.x < 8 and 0 <= q.y < 8:
                    diff = np.abs(image[y, x].astype(float) - image[q.y, q.x].astype(float)).sum()
                    assert terms[y, x, rank] == pytest.approx(1.0 / (128.0 + diff))
                else:
                    assert terms[y, x, rank] == 0.0

    def test_non_square_and_single_pixel(self):
        assert color_terms(np.zeros((2, 5, 3), dtype=np.uint8)).shape == (2, 5, 8)
        assert not color_terms(np.zeros((1, 1, 3), dtype=np.uint8)).any()

    def test_precomputed_weights_match(self):
        image = SHAPES["textured_object"](9)
        ch = PheromoneChannel(np.random.default_rng(1).random((9, 9)))
        ant = Ant(Point(4, 3), Point(0, 8))
        ant.visited.add(Point(3, 4))
        for mode in ("multiplicative", "additive"):
            np.testing.assert_allclose(
                ant.neighbour_weights(image, [ch], mode, color_terms(image)),
                ant.neighbour_weights(image, [ch], mode))


class TestAnt:
    def test_weights_zero_outside(self):
        image = SHAPES["solid"](6)
        ant = Ant(Point(0, 0), Point(5, 5))
        w = ant.neighbour_weights(image, [PheromoneChannel.zeros(6, 6)])
        # (1,0), (0,1), (1,1) are the only in-bounds neighbours of a corner
        assert np.all(w[[1, 2, 4, 6, 7]] == 0.0)
        assert np.all(w[[0, 3, 5]] > 0.0)

    def test_weights_prefer_target_and_unvisited(self):
        image = SHAPES["solid"](9)
        ant = Ant(Point(4, 4), Point(8, 4))
        w = ant.neighbour_weights(image, [])
        assert w[0] > w[1]
        ant.visited.add(Point(5, 4))
        assert ant.neighbour_weights(image, [])[0] == pytest.approx(w[0] * 0.01)

    def test_pheromone_attracts(self):
        image = SHAPES["solid"](5)
        ch = PheromoneChannel.zeros(5, 5)
        ch.increase([Point(2, 1)], 1.0)
        ant = Ant(Point(2, 2), Point(2, 2))
        for mode in ("multiplicative", "additive"):
            w = ant.neighbour_weights(image, [ch], mode)
            assert w[2] == w.max()

    def test_walk_stays_in_image(self):
        image = SHAPES["circle_square"](7)
        a, b = image_rectangle(7, 7)
        rules = _rules(max_ant_steps=40)
        rng = np.random.default_rng(4)
        for _ in range(20):
            ant = Ant.spawn(rng, 7, 7)
            visited = ant.run(rng, image, rules, [PheromoneChannel.zeros(7, 7)])
            assert ant.state is AntState.DONE
            assert all(p.is_within_rectangle(a, b) for p in visited)
            assert ant.position in visited
            assert len(visited) <= rules.max_ant_steps + 1

    def test_at_target_immediately_done(self):
        image = SHAPES["solid"](4)
        ant = Ant(Point(1, 1), Point(1, 1))
        assert ant.run(np.random.default_rng(0), image, _rules(), []) == {Point(1, 1)}
        assert ant.state is AntState.DONE

    def test_zero_budget(self):
        image = SHAPES["solid"](4)
        ant = Ant(Point(0, 0), Point(3, 3))
        visited = ant.run(np.random.default_rng(0), image, _rules(max_ant_steps=0), [])
        assert visited == {Point(0, 0)}
        assert ant.steps == 0

    def test_all_zero_weights_terminate(self):
        image = SHAPES["solid"](1)
        ant = Ant(Point(0, 0), Point(5, 5))
        visited = ant.run(np.random.default_rng(0), image, _rules(), [])
        assert visited == {Point(0, 0)}
        assert ant.state is AntState.DONE

    def test_return_to_origin(self):
        image = SHAPES["solid"](8)
        rules = _rules(max_ant_steps=2000, return_to_origin=True)
        ant = Ant(Point(0, 0), Point(3, 0))
        visited = ant.run(np.random.default_rng(2), image, rules, [])
        assert ant.state is AntState.DONE
        assert ant.target == Point(0, 0)
        assert ant.position == Point(0, 0)
        assert Point(3, 0) in visited

    def test_no_return_stops_at_target(self):
        image = SHAPES["solid"](8)
        ant = Ant(Point(0, 0), Point(3, 0))
        ant.run(np.random.default_rng(2), image, _rules(max_ant_steps=2000), [])
        assert ant.position == Point(3, 0)
        assert ant.target == Point(3, 0)


# ============================================================
# colony.py
# ============================================================

class TestPartition:
    @pytest.mark.parametrize("total,k,expected", [
        (40, 3, [13, 13, 14]),
        (40, 4, [10, 10, 10, 10]),
        (5, 5, [1, 1, 1, 1, 1]),
        (7, 1, [7]),
    ])
    def test_partition(self, total, k, expected):
        assert partition_ants(total, k) == expected


class TestForkGenerators:
    def test_reproducible(self):
        a = fork_generators(np.random.default_rng(9), 3)
        b = fork_generators(np.random.default_rng(9), 3)
        for ga, gb in zip(a, b):
            assert ga.integers(1 << 30) == gb.integers(1 << 30)

    def test_independent_streams(self):
        gens = fork_generators(np.random.default_rng(9), 3)
        draws = {int(g.integers(1 << 62)) for g in gens}
        assert len(draws) == 3


class TestMerge:
    def test_order_independent(self):
        base = [PheromoneChannel(np.full((3, 3), 0.25)), PheromoneChannel.zeros(3, 3)]
        s1 = ShardResult(0, [np.eye(3) * 0.5, np.ones((3, 3))], {Point(0, 0), Point(1, 1)})
        s2 = ShardResult(1, [np.full((3, 3), 0.125), np.eye(3) * 2.0], {Point(1, 1), Point(2, 0)})

        first, second = clone_channels(base), clone_channels(base)
        v1, v2 = set(), set()
        merge_shard(first, v1, s1)
        merge_shard(first, v1, s2)
        merge_shard(second, v2, s2)
        merge_shard(second, v2, s1)
        for a, b in zip(first, second):
            np.testing.assert_array_equal(a.data, b.data)
        assert v1 == v2 == {Point(0, 0), Point(1, 1), Point(2, 0)}

    def test_shard_returns_delta(self):
        image = SHAPES["solid"](6)
        channels = [PheromoneChannel(np.full((6, 6), 3.0))]
        shard = run_ant_shard(np.random.default_rng(1), image, _rules(), channels, 4)
        assert shard.ants == 4
        np.testing.assert_array_equal(channels[0].data, np.full((6, 6), 3.0))
        touched = {Point(int(x), int(y)) for y, x in zip(*np.nonzero(shard.deltas[0]))}
        assert touched == shard.visited


class TestColonyStep:
    def test_merged_pheromone_matches_visited(self):
        image = SHAPES["split"](8)
        rules = _rules(parallelity=3)
        channels = [PheromoneChannel.zeros(8, 8)]
        visited = run_colony_step(np.random.default_rng(5), image, rules, channels)
        marked = {Point(int(x), int(y)) for y, x in zip(*np.nonzero(channels[0].data))}
        assert marked == visited
        assert channels[0].data.sum() >= len(visited)

    def test_reproducible_for_seed(self):
        image = SHAPES["circle_square"](8)
        rules = create_rules(8, 8, parallelity=3, mode="multi", ants_per_global_update=9)
        results = []
        for _ in range(2):
            rng = np.random.default_rng(42)
            channels = initialize_pheromones(rng, image, rules)
            for _ in range(3):
                run_colony_step(rng, image, rules, channels)
            results.append(channels)
        for a, b in zip(*results):
            np.testing.assert_allclose(a.data, b.data, rtol=1e-9, atol=1e-12)

    def test_global_update_once_over_union(self):
        counter = CountingGlobal()
        rules = RuleSet(10, 6, 2, policies=[[None, None], [IncrementVisited(1.0), None]],
                        combined_global=counter)
        image = SHAPES["solid"](6)
        channels = [PheromoneChannel.zeros(6, 6), PheromoneChannel.zeros(6, 6)]
        visited = run_colony_step(np.random.default_rng(3), image, rules, channels)
        assert len(counter.calls) == 1
        assert counter.calls[0] == visited

    def test_normalized_after_step(self):
        image = SHAPES["split"](8)
        rules = create_rules(8, 8, parallelity=2, mode="multi", ants_per_global_update=6)
        rng = np.random.default_rng(0)
        channels = initialize_pheromones(rng, image, rules)
        run_colony_step(rng, image, rules, channels)
        for channel in channels:
            assert channel.max() == pytest.approx(1.0)
            assert channel.min() >= 0.0

    def test_combined_mode_step(self):
        image = SHAPES["circle_square"](10)
        rules = create_rules(10, 10, parallelity=2, mode="combined", ants_per_global_update=6)
        rng = np.random.default_rng(8)
        channels = initialize_pheromones(rng, image, rules)
        run_colony_step(rng, image, rules, channels)
        assert len(channels) == 2
        assert all(0.0 <= c.min() and c.max() <= 1.0 for c in channels)

    def test_worker_failure_is_fatal(self):
        rules = _rules(parallelity=2, policies=[[Boom()], [NoOp()]])
        image = SHAPES["solid"](5)
        channels = [PheromoneChannel.zeros(5, 5)]
        with pytest.raises(ColonyStepError) as info:
            run_colony_step(np.random.default_rng(0), image, rules, channels)
        assert isinstance(info.value.__cause__, RuntimeError)
        np.testing.assert_array_equal(channels[0].data, np.zeros((5, 5)))

    def test_failure_after_another_shard_finished(self):
        rules = RuleSet(10, 2, 2, policies=[[FailFirstCaller()], [None]])
        image = SHAPES["solid"](6)
        channels = [PheromoneChannel.zeros(6, 6)]
        with pytest.raises(ColonyStepError):
            run_colony_step(np.random.default_rng(0), image, rules, channels)
        assert channels[0].data.sum() == 0.0
