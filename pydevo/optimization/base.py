# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import logging
import numpy as np
import pydevo.common.typing as tp
from pydevo.common import errors
from . import utils
from . import trials
from . import denials


logger = logging.getLogger(__name__)
_StepCallBack = tp.Callable[["Model"], None]


def as_random_state(seed: tp.SeedLike = None) -> np.random.RandomState:
    """Converts a seed into a random state.
    If no seed is provided, a new one is drawn from numpy's global random state.
    """
    if isinstance(seed, np.random.RandomState):
        return seed
    if seed is None:
        seed = np.random.randint(2**32, dtype=np.uint32)
    return np.random.RandomState(seed)


class Model:  # pylint: disable=too-many-instance-attributes
    """Differential evolution model, holding a population and its fitness.
    Each call to :code:`step()` runs one generation:

    - a trial population is generated from the current population by the trial strategy,
    - the fitness of the trial population is computed,
    - each trial replaces its parent, unless the denial strategy denies it.

    Parameters
    ----------
    population: array-like of shape (NP, D)
        the initial population of parameters
    objective_function: callable
        the function to minimize, taking a parameter vector (1-dimensional array) and returning a float
    crossover_constant: float
        the crossover constant CR (expected in [0, 1])
    weighting_factor: float
        the weighting factor F (typically in (0, 2])
    trial_strategy: str or TrialStrategy
        strategy (or its registered name: "SP97", "SP95" or "Parent") generating the trial population
    denial_strategy: str or DenialStrategy
        strategy (or its registered name: "Greedy" or "Metropolis") denying or accepting trials
    parallel_mode: bool
        whether the fitness of all individuals is computed concurrently in a thread pool
    max_workers: int or None
        maximum number of threads used in parallel mode (default: one per individual)
    executor: Executor or None
        executor used to dispatch fitness computations, instead of the internal thread pool
    random_state: int, np.random.RandomState or None
        random state (or seed) for all random draws of the model
    fitness: array-like of shape (NP,) or None
        fitness of the initial population, computed if not provided

    Note
    ----
    All configuration attributes can be updated between two steps.
    Trial strategies require a population of at least 4 individuals.
    """

    def __init__(
        self,
        population: tp.ArrayLike,
        objective_function: tp.ObjectiveFunction,
        *,
        crossover_constant: float = 0.1,
        weighting_factor: float = 0.7,
        trial_strategy: tp.Union[str, trials.TrialStrategy] = "SP97",
        denial_strategy: tp.Union[str, denials.DenialStrategy] = "Greedy",
        parallel_mode: bool = False,
        max_workers: tp.Optional[int] = None,
        executor: tp.Optional[tp.ExecutorLike] = None,
        random_state: tp.SeedLike = None,
        fitness: tp.Optional[tp.ArrayLike] = None,
    ) -> None:
        self._population = np.array(population, dtype=float)
        if self._population.ndim != 2:
            raise errors.DevoValueError(
                f"Population must be 2-dimensional (individuals x parameters), got shape {self._population.shape}"
            )
        self.objective_function = objective_function
        self.crossover_constant = crossover_constant
        self.weighting_factor = weighting_factor
        self.trial_strategy = trial_strategy  # type: ignore
        self.denial_strategy = denial_strategy  # type: ignore
        self.parallel_mode = parallel_mode
        self.max_workers = max_workers
        self.executor = executor
        self.random_state = as_random_state(random_state)
        self._num_generations = 0
        self._callbacks: tp.Dict[str, tp.List[_StepCallBack]] = {}
        if fitness is None:
            self._fitness = self._compute_fitness(self._population)
        else:
            self._fitness = np.array(fitness, dtype=float)
            if self._fitness.shape != (self.population_size,):
                raise errors.DevoValueError(
                    f"Expected fitness of shape {(self.population_size,)} but got {self._fitness.shape}"
                )
        logger.debug("Initialized %s with %s individuals of dimension %s", self, *self._population.shape)

    @property
    def trial_strategy(self) -> trials.TrialStrategy:
        """TrialStrategy: strategy generating the trial populations (can be set by registered name)"""
        return self._trial_strategy

    @trial_strategy.setter
    def trial_strategy(self, strategy: tp.Union[str, trials.TrialStrategy]) -> None:
        self._trial_strategy = trials.registry.resolve(strategy)

    @property
    def denial_strategy(self) -> denials.DenialStrategy:
        """DenialStrategy: strategy accepting or denying the trials (can be set by registered name)"""
        return self._denial_strategy

    @denial_strategy.setter
    def denial_strategy(self, strategy: tp.Union[str, denials.DenialStrategy]) -> None:
        self._denial_strategy = denials.registry.resolve(strategy)

    @property
    def population(self) -> np.ndarray:
        """np.ndarray: copy of the current population, of shape (NP, D)"""
        return np.array(self._population, copy=True)

    @property
    def fitness(self) -> np.ndarray:
        """np.ndarray: copy of the fitness of the current population, of shape (NP,)"""
        return np.array(self._fitness, copy=True)

    @property
    def population_size(self) -> int:
        return self._population.shape[0]

    @property
    def dimension(self) -> int:
        """int: Dimension of the parameter space."""
        return self._population.shape[1]

    @property
    def num_generations(self) -> int:
        """int: Number of completed steps."""
        return self._num_generations

    def _compute_fitness(self, population: np.ndarray) -> np.ndarray:
        return utils.evaluate_fitness(
            population,
            self.objective_function,
            parallel=self.parallel_mode,
            max_workers=self.max_workers,
            executor=self.executor,
        )

    def register_callback(self, name: str, callback: _StepCallBack) -> None:
        """Add a callback method called after each step.
        The callback is provided with the model, which can be useful for custom logging.

        Parameters
        ----------
        name: str
            name of the method to register the callback to (only "step" is available)
        callback: callable
            a callable taking the model as argument
        """
        if name not in ["step"]:
            raise errors.DevoValueError(f'Callbacks can only be registered on "step", not "{name}"')
        self._callbacks.setdefault(name, []).append(callback)

    def remove_all_callbacks(self) -> None:
        """Removes all registered callables"""
        self._callbacks = {}

    def step(self) -> None:
        """Steps forward one generation"""
        trial_population = self.trial_strategy(
            self._population, self.weighting_factor, self.crossover_constant, self.random_state
        )
        trial_fitness = self._compute_fitness(trial_population)
        num_accepted = 0
        for i, (old, new) in enumerate(zip(self._fitness, trial_fitness)):
            if not self.denial_strategy(float(old), float(new), self.random_state):
                self._population[i] = trial_population[i]
                self._fitness[i] = new
                num_accepted += 1
        self._num_generations += 1
        logger.debug(
            "Generation %s: accepted %s/%s trials", self._num_generations, num_accepted, self.population_size
        )
        for callback in self._callbacks.get("step", []):
            callback(self)

    def run(self, num_generations: int) -> None:
        """Runs a given number of generations (there is no other stopping criterion)"""
        for _ in range(num_generations):
            self.step()

    def best(self) -> tp.Tuple[np.ndarray, float]:
        """Returns the parameters with minimal fitness, and their fitness.
        The first one is returned in case of ties.
        """
        best_index = 0
        for i in range(1, self.population_size):
            if self._fitness[i] < self._fitness[best_index]:
                best_index = i
        return np.array(self._population[best_index], copy=True), float(self._fitness[best_index])

    def mean_std(self) -> tp.Tuple[np.ndarray, np.ndarray]:
        """Returns the mean and standard deviation of each parameter over the population.
        The standard deviation is the population one (normalized by NP, not NP - 1).

        Note
        ----
        The deviation is computed with two passes (mean first, then the mean squared deviation)
        rather than as sqrt(E[x^2] - E[x]^2), which can lose all precision (or even be nan)
        when values are large compared to their spread.
        """
        mean = np.mean(self._population, axis=0)
        std = np.sqrt(np.mean((self._population - mean) ** 2, axis=0))
        return mean, std

    def __repr__(self) -> str:
        return (
            f"Model(trial_strategy={self.trial_strategy}, denial_strategy={self.denial_strategy}, "
            f"crossover_constant={self.crossover_constant}, weighting_factor={self.weighting_factor}, "
            f"parallel_mode={self.parallel_mode})"
        )
