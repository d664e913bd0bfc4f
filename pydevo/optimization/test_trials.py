# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import numpy as np
import pydevo.common.typing as tp
from pydevo.common import testing
from . import trials


def _is_circular_block(mask: np.ndarray) -> bool:
    """Checks that the True values of the mask are contiguous (circularly)"""
    if mask.all():
        return True
    starts = np.logical_and(mask, ~np.roll(mask, 1))
    return int(np.sum(starts)) == 1


def test_registry() -> None:
    testing.printed_assert_equal(sorted(trials.registry), ["Parent", "SP95", "SP97"])
    assert trials.registry["SP97"] is trials.SP97
    assert repr(trials.registry["Parent"]) == "Parent"
    assert trials.registry.resolve(trials.SP95) is trials.SP95


@testing.parametrized(
    sp97=("SP97", 4),
    sp95=("SP95", 7),
    sp97_large=("SP97", 30),
)
def test_donors_are_distinct(name: str, population_size: int) -> None:
    strategy = trials.registry[name]
    rng = np.random.RandomState(12)
    for _ in range(500):
        target = rng.randint(population_size)
        donors = strategy.donors(target, population_size, rng)
        testing.assert_pairwise_distinct([target, *donors], err_msg=f"Failed for target {target}")
        assert all(0 <= d < population_size for d in donors)


def test_parent_donors_are_anchored() -> None:
    rng = np.random.RandomState(12)
    for _ in range(500):
        target = rng.randint(5)
        a, b, c = trials.Parent.donors(target, 5, rng)
        assert a == target
        testing.assert_pairwise_distinct([a, b, c])


@testing.parametrized(
    sp97=("SP97",),
    sp95=("SP95",),
    parent=("Parent",),
)
def test_forced_dimension(name: str) -> None:
    # with CR=0, exactly one dimension is mutated for every individual
    rng = np.random.RandomState(3)
    population = rng.normal(size=(10, 6))
    for _ in range(5):
        trial = trials.registry[name](population, 0.7, 0.0, rng)
        num_changes = np.sum(trial != population, axis=1)
        testing.printed_assert_equal(num_changes, np.ones(10))


@testing.parametrized(
    sp97=("SP97",),
    sp95=("SP95",),
    parent=("Parent",),
)
def test_full_crossover(name: str) -> None:
    rng = np.random.RandomState(4)
    population = rng.normal(size=(8, 5))
    trial = trials.registry[name](population, 0.5, 1.0, rng)
    assert np.all(trial != population)


@testing.parametrized(
    sp97=("SP97",),
    sp95=("SP95",),
    parent=("Parent",),
)
def test_trial_population_shape_and_input(name: str) -> None:
    rng = np.random.RandomState(5)
    population = rng.uniform(size=(6, 3))
    copied = np.array(population, copy=True)
    trial = trials.registry[name](population.tolist(), 0.8, 0.5, rng)
    assert trial.shape == (6, 3)
    np.testing.assert_array_equal(population, copied)


def test_sp97_values() -> None:
    population = np.random.RandomState(1).normal(size=(5, 4))
    weighting_factor = 0.8
    trial = trials.SP97(population, weighting_factor, 0.0, np.random.RandomState(7))
    # replay the same draws to recompute the expected mutation
    rng = np.random.RandomState(7)
    for i in range(5):
        a, b, c = trials.SP97.donors(i, 5, rng)
        forced = rng.randint(4)
        for k in range(4):
            if k != forced:
                rng.rand()
        expected = np.array(population[i], copy=True)
        expected[forced] = population[a, forced] + weighting_factor * (population[b, forced] - population[c, forced])
        np.testing.assert_almost_equal(trial[i], expected)


def test_parent_values() -> None:
    population = np.random.RandomState(1).normal(size=(5, 3))
    trial = trials.Parent(population, 0.5, 1.0, np.random.RandomState(9))
    rng = np.random.RandomState(9)
    for i in range(5):
        _, b, c = trials.Parent.donors(i, 5, rng)
        rng.randint(3)
        for _ in range(2):
            rng.rand()
        np.testing.assert_almost_equal(trial[i], population[i] + 0.5 * (population[b] - population[c]))


@testing.parametrized(
    small_cr=(0.2, 1.25),
    large_cr=(0.9, 5.7),
)
def test_sp95_blocks(crossover_constant: float, expected_mean_length: float) -> None:
    rng = np.random.RandomState(15)
    population = rng.normal(size=(40, 8))
    lengths: tp.List[int] = []
    for _ in range(10):
        trial = trials.SP95(population, 0.8, crossover_constant, rng)
        for changed in trial != population:
            assert _is_circular_block(changed), f"Non contiguous block {changed}"
            lengths.append(int(np.sum(changed)))
    # truncated geometric distribution of the block length
    np.testing.assert_allclose(np.mean(lengths), expected_mean_length, atol=0.5)
