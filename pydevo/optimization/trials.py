# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Trial population generation, following Storn & Price:

- "Differential Evolution - A simple and efficient adaptive scheme for global
  optimization over continuous spaces" (1995)
- "Differential Evolution - A Simple and Efficient Heuristic for Global
  Optimization over Continuous Spaces", Journal of Global Optimization 11:341-359 (1997)
"""

import numpy as np
import pydevo.common.typing as tp
from pydevo.common.decorators import Registry


registry: Registry["TrialStrategy"] = Registry()


def _draw_excluding(random_state: np.random.RandomState, size: int, excluded: tp.List[int]) -> int:
    """Uniformly draws an index in [0, size) which is not in excluded, by rejection.
    This never returns if size <= len(excluded).
    """
    index = excluded[0]
    while index in excluded:
        index = random_state.randint(size)
    return index


class TrialStrategy:
    """Generates a trial population from the current population.
    Subclasses implement :code:`_fill_trial` which overwrites the mutated dimensions
    of one trial vector (initialized as a copy of its parent).

    Note
    ----
    Donor selection requires a population of at least 4 individuals,
    smaller populations make it loop forever.
    """

    def __init__(self) -> None:
        self.name = self.__class__.__name__

    def __call__(
        self,
        population: tp.ArrayLike,
        weighting_factor: float,
        crossover_constant: float,
        random_state: np.random.RandomState,
    ) -> np.ndarray:
        """Returns a new trial population (the input population is not modified)

        Parameters
        ----------
        population: array-like of shape (NP, D)
            the population of the previous generation
        weighting_factor: float
            the weighting factor F applied to the donor difference
        crossover_constant: float
            the crossover constant CR
        random_state: np.random.RandomState
            the random state to pull all draws from
        """
        population = np.asarray(population, dtype=float)
        assert population.ndim == 2, f"Population must be 2-dimensional, got shape {population.shape}"
        trial = np.array(population, copy=True)
        for target in range(population.shape[0]):
            donors = self.donors(target, population.shape[0], random_state)
            self._fill_trial(trial[target], population, donors, weighting_factor, crossover_constant, random_state)
        return trial

    def donors(
        self, target: int, population_size: int, random_state: np.random.RandomState
    ) -> tp.Tuple[int, int, int]:
        """Draws the indices (a, b, c) of the mutation vector a + F * (b - c),
        all different from each other and from the target
        """
        a = _draw_excluding(random_state, population_size, [target])
        b = _draw_excluding(random_state, population_size, [target, a])
        c = _draw_excluding(random_state, population_size, [target, a, b])
        return a, b, c

    def _fill_trial(
        self,
        trial: np.ndarray,
        population: np.ndarray,
        donors: tp.Tuple[int, int, int],
        weighting_factor: float,
        crossover_constant: float,
        random_state: np.random.RandomState,
    ) -> None:
        raise NotImplementedError

    def set_name(self, name: str, register: bool = False) -> "TrialStrategy":
        """Set a new representation for the instance"""
        self.name = name
        if register:
            registry.register_name(name, self)
        return self

    def __repr__(self) -> str:
        return self.name


class BinomialTrial(TrialStrategy):
    """Binomial crossover ("rand/1/bin"): each dimension is taken from the mutation vector
    with probability CR, and one random dimension always is, so that the trial
    differs from its parent even for small CR.

    Parameters
    ----------
    self_anchored: bool
        if True, the first donor is the target itself (mutation anchored at the current
        position, as needed for DE-MCMC), otherwise it is a random individual.
    """

    def __init__(self, self_anchored: bool = False) -> None:
        super().__init__()
        self.self_anchored = self_anchored

    def donors(
        self, target: int, population_size: int, random_state: np.random.RandomState
    ) -> tp.Tuple[int, int, int]:
        if not self.self_anchored:
            return super().donors(target, population_size, random_state)
        b = _draw_excluding(random_state, population_size, [target])
        c = _draw_excluding(random_state, population_size, [target, b])
        return target, b, c

    def _fill_trial(
        self,
        trial: np.ndarray,
        population: np.ndarray,
        donors: tp.Tuple[int, int, int],
        weighting_factor: float,
        crossover_constant: float,
        random_state: np.random.RandomState,
    ) -> None:
        a, b, c = donors
        forced = random_state.randint(trial.size)
        for k in range(trial.size):
            if k == forced or random_state.rand() < crossover_constant:
                trial[k] = population[a, k] + weighting_factor * (population[b, k] - population[c, k])


class ExponentialTrial(TrialStrategy):
    """Exponential crossover ("rand/1/exp"): a contiguous (circular) block of dimensions
    is taken from the mutation vector. The block starts at a random dimension, and its length
    is extended while uniform draws are below CR, hence geometrically distributed.
    """

    def _fill_trial(
        self,
        trial: np.ndarray,
        population: np.ndarray,
        donors: tp.Tuple[int, int, int],
        weighting_factor: float,
        crossover_constant: float,
        random_state: np.random.RandomState,
    ) -> None:
        a, b, c = donors
        dim = trial.size
        start = random_state.randint(dim)
        length = 1
        while random_state.rand() < crossover_constant and length < dim:
            length += 1
        block = np.arange(start, start + length) % dim
        trial[block] = population[a, block] + weighting_factor * (population[b, block] - population[c, block])


SP97 = BinomialTrial().set_name("SP97", register=True)
SP95 = ExponentialTrial().set_name("SP95", register=True)
Parent = BinomialTrial(self_anchored=True).set_name("Parent", register=True)
