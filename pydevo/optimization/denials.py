# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import math
import numpy as np
from pydevo.common.decorators import Registry


registry: Registry["DenialStrategy"] = Registry()


class DenialStrategy:
    """Decides whether a trial is denied (True: the parent is kept)
    or accepted (False: the trial replaces its parent)
    """

    def __init__(self) -> None:
        self.name = self.__class__.__name__

    def __call__(self, old_fitness: float, new_fitness: float, random_state: np.random.RandomState) -> bool:
        raise NotImplementedError

    def set_name(self, name: str, register: bool = False) -> "DenialStrategy":
        """Set a new representation for the instance"""
        self.name = name
        if register:
            registry.register_name(name, self)
        return self

    def __repr__(self) -> str:
        return self.name


class GreedyDenial(DenialStrategy):
    """Standard differential evolution selection: denies the trial unless
    it strictly improves the fitness (ties are denied)
    """

    def __call__(self, old_fitness: float, new_fitness: float, random_state: np.random.RandomState) -> bool:
        return bool(new_fitness >= old_fitness)


class MetropolisDenial(DenialStrategy):
    """Metropolis-Hastings selection, for fitness values which are chi-square statistics:
    the trial is accepted with probability min(1, exp((old - new) / 2)).

    Note
    ----
    A uniform value is drawn at each call, even when the trial is
    accepted for sure.
    """

    def __call__(self, old_fitness: float, new_fitness: float, random_state: np.random.RandomState) -> bool:
        half_diff = (old_fitness - new_fitness) / 2.0
        ratio = math.exp(half_diff) if half_diff < 0 else 1.0  # avoids overflows
        return bool(ratio <= random_state.rand())


Greedy = GreedyDenial().set_name("Greedy", register=True)
Metropolis = MetropolisDenial().set_name("Metropolis", register=True)
