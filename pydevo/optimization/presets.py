# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import inspect
import logging
import numpy as np
import pydevo.common.typing as tp
from pydevo.common import errors
from pydevo.common.decorators import Registry
from . import base
from . import trials
from . import denials


logger = logging.getLogger(__name__)
registry: Registry["ConfiguredModel"] = Registry()


def random_population(
    pmin: tp.ArrayLike, pmax: tp.ArrayLike, population_size: int, random_state: np.random.RandomState
) -> np.ndarray:
    """Draws a population of parameters uniformly within [pmin, pmax)

    Raises
    ------
    ConfigurationError
        if the lower and upper bounds do not have the same length
    """
    lower, upper = (np.asarray(bound, dtype=float).ravel() for bound in (pmin, pmax))
    if lower.size != upper.size:
        raise errors.ConfigurationError(
            f"Initial population limit sizes don't match (pmin has size {lower.size} and pmax has size {upper.size})"
        )
    population = np.empty((population_size, lower.size))
    for i in range(population_size):
        for j in range(lower.size):
            population[i, j] = (upper[j] - lower[j]) * random_state.rand() + lower[j]
    return population


# pylint: disable=too-many-arguments
class ConfiguredModel:
    """Creates differential evolution models with a given configuration.

    Parameters
    ----------
    crossover_constant: float
        the crossover constant CR (expected in [0, 1])
    weighting_factor: float
        the weighting factor F (typically in (0, 2])
    trial_strategy: str
        name of the trial generation strategy among "SP97" (binomial crossover),
        "SP95" (exponential crossover) and "Parent" (binomial crossover anchored at the parent)
    denial_strategy: str
        name of the denial strategy, "Greedy" for optimization or "Metropolis" for MCMC sampling

    Note
    ----
    This provides a default repr which can be bypassed through set_name
    """

    def __init__(
        self,
        *,
        crossover_constant: float = 0.1,
        weighting_factor: float = 0.7,
        trial_strategy: str = "SP97",
        denial_strategy: str = "Greedy",
    ) -> None:
        trials.registry.resolve(trial_strategy)  # raises for unknown names
        denials.registry.resolve(denial_strategy)
        self.crossover_constant = crossover_constant
        self.weighting_factor = weighting_factor
        self.trial_strategy = trial_strategy
        self.denial_strategy = denial_strategy
        defaults = {
            x: y.default for x, y in inspect.signature(self.__class__.__init__).parameters.items() if x != "self"
        }
        # only print non defaults
        params = ", ".join(f"{x}={y!r}" for x, y in sorted(self.config().items()) if defaults[x] != y)
        self.name = f"{self.__class__.__name__}({params})"

    def config(self) -> tp.Dict[str, tp.Any]:
        return dict(
            crossover_constant=self.crossover_constant,
            weighting_factor=self.weighting_factor,
            trial_strategy=self.trial_strategy,
            denial_strategy=self.denial_strategy,
        )

    def __call__(
        self,
        pmin: tp.ArrayLike,
        pmax: tp.ArrayLike,
        population_size: int,
        parallel: bool,
        objective_function: tp.ObjectiveFunction,
        seed: tp.SeedLike = None,
    ) -> base.Model:
        """Creates a model with a population drawn uniformly within bounds, and computes its fitness

        Parameters
        ----------
        pmin: array-like
            minimum value of each parameter
        pmax: array-like
            maximum value of each parameter
        population_size: int
            number of individuals (at least 4)
        parallel: bool
            whether to compute the fitness of the individuals in parallel
        objective_function: callable
            the function to minimize
        seed: int, np.random.RandomState or None
            seed or random state for all the random draws of the model

        Raises
        ------
        ConfigurationError
            if pmin and pmax have different lengths
        """
        random_state = base.as_random_state(seed)
        population = random_population(pmin, pmax, population_size, random_state)
        logger.debug("Creating %s model with population of shape %s", self.name, population.shape)
        return base.Model(
            population,
            objective_function,
            parallel_mode=parallel,
            random_state=random_state,
            **self.config(),
        )

    def __repr__(self) -> str:
        return self.name

    def set_name(self, name: str, register: bool = False) -> "ConfiguredModel":
        """Set a new representation for the instance"""
        self.name = name
        if register:
            registry.register_name(name, self)
        return self

    def __eq__(self, other: tp.Any) -> tp.Any:
        if self.__class__ == other.__class__:
            if self.config() == other.config():
                return True
        return False


DE = ConfiguredModel().set_name("DE", register=True)
DEMCMC = ConfiguredModel(trial_strategy="Parent", denial_strategy="Metropolis").set_name(
    "DEMCMC", register=True
)


def initialize(
    pmin: tp.ArrayLike,
    pmax: tp.ArrayLike,
    population_size: int,
    parallel: bool,
    objective_function: tp.ObjectiveFunction,
    seed: tp.SeedLike = None,
) -> base.Model:
    """Returns a standard differential evolution model (CR=0.1, F=0.7, "SP97" trials, greedy denial)
    with a population of population_size parameters drawn uniformly between pmin and pmax.
    """
    return DE(pmin, pmax, population_size, parallel, objective_function, seed=seed)


def initialize_mcmc(
    pmin: tp.ArrayLike,
    pmax: tp.ArrayLike,
    population_size: int,
    parallel: bool,
    objective_function: tp.ObjectiveFunction,
    seed: tp.SeedLike = None,
) -> base.Model:
    """Returns a Markov chain Monte Carlo differential evolution model (CR=0.1, F=0.7, "Parent" trials,
    Metropolis denial) with a population of population_size parameters drawn uniformly between pmin and pmax.
    The objective function should be a chi-square statistic (sum of squared normalized residuals).
    """
    return DEMCMC(pmin, pmax, population_size, parallel, objective_function, seed=seed)
