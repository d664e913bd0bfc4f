# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import warnings
from numbers import Real
from concurrent import futures
import numpy as np
import pydevo.common.typing as tp
from pydevo.common import errors


class DelayedJob:
    """Future-like object which delays computation"""

    def __init__(self, func: tp.Callable[..., tp.Any], *args: tp.Any, **kwargs: tp.Any) -> None:
        self.func = func
        self.args = args
        self.kwargs = kwargs
        self._result: tp.Optional[tp.Any] = None
        self._computed = False

    def done(self) -> bool:
        return True

    def result(self) -> tp.Any:
        if not self._computed:
            self._result = self.func(*self.args, **self.kwargs)
            self._computed = True
        return self._result


class SequentialExecutor:
    """Executor which run sequentially and locally
    (just calls the function and returns a DelayedJob)
    """

    def submit(self, fn: tp.Callable[..., tp.Any], *args: tp.Any, **kwargs: tp.Any) -> DelayedJob:
        return DelayedJob(fn, *args, **kwargs)


def _to_fitness(value: tp.Any) -> float:
    if not isinstance(value, (Real, float)):
        raise errors.DevoTypeError(
            f"Objective function must return a real value, but returned: {value} (type: {type(value)})."
        )
    return float(value)


def _check_fitness(fitness: np.ndarray) -> np.ndarray:
    bad = ~np.isfinite(fitness)
    if np.any(bad):
        warnings.warn(
            f"Objective function returned {fitness[bad].tolist()} for individuals {np.where(bad)[0].tolist()}",
            errors.BadLossWarning,
        )
    return fitness


def _pooled_fitness(
    population: np.ndarray, objective_function: tp.ObjectiveFunction, max_workers: tp.Optional[int]
) -> np.ndarray:
    """Evaluates all individuals in a thread pool, and waits for all of them.
    Upon failure, jobs which are not started yet are cancelled, running ones are
    waited for, and the failure of the first failed individual is raised.
    """
    num = population.shape[0]
    max_workers = num if max_workers is None else max_workers
    with futures.ThreadPoolExecutor(max_workers=max(1, min(max_workers, num))) as executor:
        jobs = [executor.submit(objective_function, population[i]) for i in range(num)]
        _, pending = futures.wait(jobs, return_when=futures.FIRST_EXCEPTION)
        for job in pending:
            job.cancel()
    failed = [job for job in jobs if not job.cancelled() and job.exception() is not None]
    if failed:
        raise failed[0].exception()  # type: ignore
    return np.array([_to_fitness(job.result()) for job in jobs], dtype=float)


def evaluate_fitness(
    population: tp.ArrayLike,
    objective_function: tp.ObjectiveFunction,
    parallel: bool = False,
    max_workers: tp.Optional[int] = None,
    executor: tp.Optional[tp.ExecutorLike] = None,
) -> np.ndarray:
    """Computes the fitness of each individual of the population

    Parameters
    ----------
    population: array-like of shape (NP, D)
        the individuals to evaluate
    objective_function: callable
        function to minimize, called on each individual (a 1-dimensional array).
        It must be safe to call it concurrently when evaluating in parallel.
    parallel: bool
        whether to evaluate all individuals concurrently in a thread pool
    max_workers: int or None
        maximum number of threads of the pool (defaults to one per individual)
    executor: Executor or None
        An executor object, with method :code:`submit(callable, *args, **kwargs)` and returning a Future-like object
        with methods :code:`done() -> bool` and :code:`result() -> float`. If provided, it is used
        to dispatch the evaluations instead of the internal thread pool and :code:`parallel` is ignored.

    Returns
    -------
    np.ndarray
        the fitness vector, with :code:`fitness[i] = objective_function(population[i])`

    Note
    ----
    Errors raised by the objective function are not handled and propagate to the caller.
    """
    population = np.asarray(population, dtype=float)
    if executor is not None:
        jobs = [executor.submit(objective_function, individual) for individual in population]
        fitness = np.array([_to_fitness(job.result()) for job in jobs], dtype=float)
    elif parallel:
        fitness = _pooled_fitness(population, objective_function, max_workers)
    else:
        fitness = np.array([_to_fitness(objective_function(individual)) for individual in population], dtype=float)
    return _check_fitness(fitness)
