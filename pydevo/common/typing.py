# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

"""Definitions of some convenient types.
"""
# pylint: disable=unused-import
# structures
from typing import Any as Any
from typing import Type as Type
from typing import TypeVar as TypeVar
from typing import Optional as Optional
from typing import Union as Union

# containers
from typing import Dict as Dict
from typing import Tuple as Tuple
from typing import List as List
from typing import Sequence as Sequence
from typing import MutableMapping as MutableMapping

# iterables
from typing import Iterator as Iterator
from typing import Iterable as Iterable

# others
from typing import Callable as Callable
from typing import Hashable as Hashable
from typing_extensions import Protocol

#
import numpy as _np


ArrayLike = Union[Tuple[float, ...], List[float], _np.ndarray]
ObjectiveFunction = Callable[[_np.ndarray], float]
SeedLike = Optional[Union[int, _np.random.RandomState]]


# %% Protocol definitions for executor typing

X = TypeVar("X", covariant=True)


class JobLike(Protocol[X]):
    # pylint: disable=pointless-statement

    def done(self) -> bool:
        ...

    def result(self) -> X:
        ...


class ExecutorLike(Protocol):
    # pylint: disable=pointless-statement, unused-argument

    def submit(self, fn: Callable[..., X], *args: Any, **kwargs: Any) -> JobLike[X]:
        ...
