# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

from .common import typing as typing
from .common import errors as errors
from .optimization import Model
from .optimization import trials as trials
from .optimization import denials as denials
from .optimization import presets as presets
from .optimization import callbacks as callbacks
from .optimization.presets import ConfiguredModel, initialize, initialize_mcmc
from .optimization.utils import evaluate_fitness


__all__ = [
    "Model",
    "ConfiguredModel",
    "initialize",
    "initialize_mcmc",
    "evaluate_fitness",
    "trials",
    "denials",
    "presets",
    "callbacks",
    "errors",
    "typing",
]


__version__ = "0.1.0"
