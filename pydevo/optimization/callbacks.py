# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import time
import logging
import pydevo.common.typing as tp
from . import base

global_logger = logging.getLogger(__name__)

# -------------------------------------------------------------------------------------


class StepPrinter:
    """Printer to register as "step" callback in a model, for printing
    the best individual regularly.

    Parameters
    ----------
    print_interval_steps: int
        max number of generations before performing another print
    print_interval_seconds: float
        max number of seconds before performing another print
    """

    def __init__(self, print_interval_steps: int = 1, print_interval_seconds: float = 60.0) -> None:
        assert print_interval_steps > 0
        assert print_interval_seconds > 0
        self._print_interval_steps = int(print_interval_steps)
        self._print_interval_seconds = print_interval_seconds
        self._next_step = self._print_interval_steps
        self._next_time = time.time() + print_interval_seconds

    def __call__(self, model: base.Model) -> None:
        if time.time() >= self._next_time or model.num_generations >= self._next_step:
            self._next_time = time.time() + self._print_interval_seconds
            self._next_step = model.num_generations + self._print_interval_steps
            parameters, fitness = model.best()
            print(f"After {model.num_generations} generations, best fitness is {fitness} for {parameters}")


# -------------------------------------------------------------------------------------


class StepLogger:
    """Logger to register as "step" callback in a model, for logging
    the best individual and the population statistics regularly.

    Parameters
    ----------
    logger:
        given logger that callback will use to log
    log_level:
        log level that logger will write to
    log_interval_steps: int
        max number of generations before performing another log
    log_interval_seconds:
        max number of seconds before performing another log
    """

    def __init__(
        self,
        *,
        logger: logging.Logger = global_logger,
        log_level: int = logging.INFO,
        log_interval_steps: int = 1,
        log_interval_seconds: float = 60.0,
    ) -> None:
        assert log_interval_steps > 0
        assert log_interval_seconds > 0
        self._logger = logger
        self._log_level = log_level
        self._log_interval_steps = int(log_interval_steps)
        self._log_interval_seconds = log_interval_seconds
        self._next_step = self._log_interval_steps
        self._next_time = time.time() + log_interval_seconds

    def __call__(self, model: base.Model) -> None:
        if time.time() >= self._next_time or model.num_generations >= self._next_step:
            self._next_time = time.time() + self._log_interval_seconds
            self._next_step = model.num_generations + self._log_interval_steps
            parameters, fitness = model.best()
            mean, std = model.mean_std()
            self._logger.log(
                self._log_level,
                "After %s generations, best fitness is %s for %s (population mean %s, std %s)",
                model.num_generations,
                fitness,
                parameters,
                mean,
                std,
            )


# -------------------------------------------------------------------------------------


class ProgressBar:
    """Progress bar to register as "step" callback in a model

    Parameters
    ----------
    total: int or None
        expected number of generations, if known
    """

    def __init__(self, total: tp.Optional[int] = None) -> None:
        self._progress_bar: tp.Any = None
        self._total = total

    def __call__(self, model: base.Model) -> None:
        if self._progress_bar is None:
            # pylint: disable=import-outside-toplevel
            try:
                from tqdm import tqdm  # Inline import to avoid additional dependency
            except ImportError as e:
                raise ImportError(
                    f"{self.__class__.__name__} requires tqdm which is not installed by default "
                    "(pip install tqdm)"
                ) from e
            self._progress_bar = tqdm(total=self._total)
        self._progress_bar.update(1)
        self._progress_bar.set_postfix(best=model.best()[1])

    def close(self) -> None:
        if self._progress_bar is not None:
            self._progress_bar.close()
            self._progress_bar = None
