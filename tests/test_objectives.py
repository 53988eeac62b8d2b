import numpy as np
import pytest

from crypto_frontier.core.errors import DegenerateVarianceError, DegenerateWeightsError
from crypto_frontier.core.objectives import (
    fitness_ratio,
    normalize_weights,
    population_fitness,
    portfolio_return,
    portfolio_stats,
    portfolio_variance,
    variance_gradient,
)


MEANS = np.array([0.01, 0.02, 0.03])
COV = np.array([
    [0.04, 0.01, 0.00],
    [0.01, 0.09, 0.02],
    [0.00, 0.02, 0.16],
])


def test_portfolio_return():
    assert portfolio_return(np.array([0.2, 0.3, 0.5]), MEANS) == pytest.approx(0.023)


def test_portfolio_variance_quadratic_form():
    w = np.array([0.2, 0.3, 0.5])
    manual = sum(w[i] * w[j] * COV[i, j] for i in range(3) for j in range(3))

    assert portfolio_variance(w, COV) == pytest.approx(manual)


def test_fitness_is_return_over_variance():
    w = np.array([0.2, 0.3, 0.5])

    assert fitness_ratio(w, MEANS, COV) == pytest.approx(
        portfolio_return(w, MEANS) / portfolio_variance(w, COV)
    )


def test_zero_variance_fitness_raises():
    w = np.array([0.5, 0.5, 0.0])

    with pytest.raises(DegenerateVarianceError):
        fitness_ratio(w, MEANS, np.zeros((3, 3)))


def test_degenerate_variance_is_arithmetic_error():
    assert issubclass(DegenerateVarianceError, ArithmeticError)
    assert issubclass(DegenerateWeightsError, ArithmeticError)


def test_population_fitness_matches_scalar_version():
    weights = np.array([
        [0.2, 0.3, 0.5],
        [1.0, 0.0, 0.0],
        [1 / 3, 1 / 3, 1 / 3],
    ])

    fitness = population_fitness(weights, MEANS, COV)

    expected = [fitness_ratio(w, MEANS, COV) for w in weights]
    np.testing.assert_allclose(fitness, expected)


def test_population_fitness_reports_degenerate_row():
    cov = np.diag([0.04, 0.0, 0.16])
    weights = np.array([
        [0.5, 0.5, 0.0],
        [0.0, 1.0, 0.0],
    ])

    with pytest.raises(DegenerateVarianceError, match="Individual 1"):
        population_fitness(weights, MEANS, cov)


def test_variance_gradient():
    w = np.array([0.2, 0.3, 0.5])

    np.testing.assert_allclose(variance_gradient(w, COV), 2 * COV @ w)


def test_normalize_vector_and_rows():
    np.testing.assert_allclose(normalize_weights(np.array([1.0, 3.0])), [0.25, 0.75])

    rows = normalize_weights(np.array([[1.0, 1.0], [2.0, 6.0]]))
    np.testing.assert_allclose(rows, [[0.5, 0.5], [0.25, 0.75]])


def test_normalize_zero_sum_raises():
    with pytest.raises(DegenerateWeightsError):
        normalize_weights(np.array([[0.5, 0.5], [0.0, 0.0]]))


def test_portfolio_stats():
    w = np.array([0.2, 0.3, 0.5])
    stats = portfolio_stats(w, MEANS, COV)

    assert stats["mean"] == pytest.approx(0.023)
    assert stats["std"] == pytest.approx(np.sqrt(stats["variance"]))
    assert stats["fitness"] == pytest.approx(stats["mean"] / stats["variance"])


def test_portfolio_stats_without_variance():
    stats = portfolio_stats(np.array([0.5, 0.5, 0.0]), MEANS, np.zeros((3, 3)))

    assert stats["variance"] == 0.0
    assert stats["std"] == 0.0
    assert stats["fitness"] is None
