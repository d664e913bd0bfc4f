# Copyright (c) Meta Platforms, Inc. and affiliates.
#
# This source code is licensed under the MIT license found in the
# LICENSE file in the root directory of this source tree.

import pytest
import numpy as np
from scipy import stats
import pydevo
import pydevo.common.typing as tp
from pydevo.common import errors
from pydevo.common import testing
from . import presets
from . import trials
from . import denials


def _parabola(x: np.ndarray) -> float:
    return float(3.0 + (x[0] - 1.0) ** 2 + (x[1] - 2.0) ** 2)


@testing.parametrized(
    same=([0.0, 0.0], [2.0, 5.0], False),
    empty=([], [], False),
    single=([1.0], [3.0], False),
    longer_pmax=([0.0], [1.0, 2.0], True),
    longer_pmin=([0.0, 0.0, 0.0], [1.0, 2.0], True),
    empty_pmin=([], [1.0], True),
)
def test_bounds_validation(pmin: tp.List[float], pmax: tp.List[float], error: bool) -> None:
    for initializer in [pydevo.initialize, pydevo.initialize_mcmc]:
        if error:
            with pytest.raises(errors.ConfigurationError):
                initializer(pmin, pmax, 8, False, lambda x: 0.0)
        else:
            model = initializer(pmin, pmax, 8, False, lambda x: 0.0)
            assert model.population.shape == (8, len(pmin))


def test_configuration_error_is_a_value_error() -> None:
    with pytest.raises(ValueError):
        presets.random_population([0.0], [1.0, 2.0], 4, np.random.RandomState(12))


def test_random_population() -> None:
    pmin, pmax = [0.0, -10.0, 3.0], [2.0, 5.0, 3.5]
    population = presets.random_population(pmin, pmax, 500, np.random.RandomState(12))
    assert population.shape == (500, 3)
    assert np.all(population >= pmin)
    assert np.all(population < pmax)
    np.testing.assert_allclose(np.mean(population, axis=0), [1.0, -2.5, 3.25], atol=0.5)


def test_presets() -> None:
    model = pydevo.initialize([0.0, 0.0], [2.0, 5.0], 15, False, _parabola, seed=12)
    assert model.crossover_constant == 0.1
    assert model.weighting_factor == 0.7
    assert model.trial_strategy is trials.SP97
    assert model.denial_strategy is denials.Greedy
    assert not model.parallel_mode
    model = pydevo.initialize_mcmc([0.0, 0.0], [2.0, 5.0], 15, True, _parabola, seed=12)
    assert model.crossover_constant == 0.1
    assert model.weighting_factor == 0.7
    assert model.trial_strategy is trials.Parent
    assert model.denial_strategy is denials.Metropolis
    assert model.parallel_mode


def test_initialize_computes_fitness() -> None:
    model = pydevo.initialize([0.0, 0.0], [2.0, 5.0], 15, True, _parabola, seed=12)
    np.testing.assert_array_equal(model.fitness, [_parabola(x) for x in model.population])


def test_configured_model() -> None:
    testing.printed_assert_equal(sorted(presets.registry), ["DE", "DEMCMC"])
    assert repr(presets.DE) == "DE"
    config = pydevo.ConfiguredModel(crossover_constant=0.4, trial_strategy="SP95")
    assert repr(config) == "ConfiguredModel(crossover_constant=0.4, trial_strategy='SP95')"
    assert pydevo.ConfiguredModel() == presets.DE
    assert pydevo.ConfiguredModel(trial_strategy="Parent", denial_strategy="Metropolis") == presets.DEMCMC
    assert config != presets.DE
    model = config([0.0, 0.0], [2.0, 5.0], 6, False, _parabola)
    assert model.crossover_constant == 0.4
    assert model.trial_strategy is trials.SP95
    with pytest.raises(errors.DevoValueError):
        pydevo.ConfiguredModel(denial_strategy="blublu")


def test_determinism() -> None:
    outputs = []
    for _ in range(2):
        model = pydevo.initialize([0.0, 0.0], [2.0, 5.0], 15, False, _parabola, seed=42)
        model.run(20)
        outputs.append((model.population, model.fitness))
    np.testing.assert_array_equal(outputs[0][0], outputs[1][0])
    np.testing.assert_array_equal(outputs[0][1], outputs[1][1])
    model = pydevo.initialize([0.0, 0.0], [2.0, 5.0], 15, False, _parabola, seed=43)
    assert np.any(model.population != outputs[0][0])


@testing.parametrized(**{f"seed{k}": (k,) for k in range(3)})
def test_parabola(seed: int) -> None:
    model = pydevo.initialize([0.0, 0.0], [2.0, 5.0], 15, False, _parabola, seed=seed)
    model.trial_strategy = "SP95"  # type: ignore
    model.crossover_constant = 0.4
    model.weighting_factor = 0.8
    model.run(50)
    params, fitness = model.best()
    np.testing.assert_almost_equal(fitness, 3.0, decimal=3)
    np.testing.assert_almost_equal(params, [1.0, 2.0], decimal=2)


def test_mcmc_linear_regression() -> None:
    rng = np.random.RandomState(12)
    x = 0.5 * np.arange(21)
    y = 2.0 * x + 3.0 + 0.5 * rng.normal(size=x.size)

    def chi2(params: np.ndarray) -> float:
        return float(np.sum((params[0] * x + params[1] - y) ** 2 / 0.25))

    model = pydevo.initialize_mcmc([0.0, 0.0], [10.0, 10.0], 500, True, chi2, seed=12)
    model.max_workers = 4
    model.weighting_factor = 0.9
    model.run(2000)
    mean, std = model.mean_std()
    # with a flat prior, the posterior is centered on the least squares estimate
    fit = stats.linregress(x, y)
    np.testing.assert_allclose(mean, [fit.slope, fit.intercept], atol=0.15)
    np.testing.assert_allclose(mean, [2.0, 3.0], atol=1.0)
    # and its standard deviations are the least squares standard errors (for a known noise level)
    sxx = np.sum((x - np.mean(x)) ** 2)
    expected_std = [0.5 / np.sqrt(sxx), 0.5 * np.sqrt(1.0 / x.size + np.mean(x) ** 2 / sxx)]
    assert np.all(std > 0)
    np.testing.assert_allclose(std, expected_std, rtol=0.5)
