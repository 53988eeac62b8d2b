import numpy as np
import pytest

from crypto_frontier.core.config import OptimizerConfig
from crypto_frontier.core.errors import DegenerateVarianceError
from crypto_frontier.core.genetic import GeneticOptimizer, GeneticResult, Individual, Population
from crypto_frontier.core.objectives import fitness_ratio

from tests.conftest import ScriptedRng


def make_optimizer(stats, seed=3, **kwargs):
    params = dict(population_size=40, generations=8, mutation_rate=0.05)
    params.update(kwargs)
    return GeneticOptimizer(
        stats.expected_returns,
        stats.cov_matrix,
        rng=np.random.default_rng(seed),
        asset_names=stats.asset_names,
        **params
    )


def assert_on_simplex(weights):
    weights = np.atleast_2d(weights)
    np.testing.assert_allclose(weights.sum(axis=1), 1.0, atol=1e-12)
    assert np.all(weights >= 0)


def test_initial_population_is_on_simplex(sample_stats):
    ga = make_optimizer(sample_stats)

    population = ga.initialize_population()

    assert population.weights.shape == (40, sample_stats.n_assets)
    assert population.fitness is None
    assert_on_simplex(population.weights)


def test_evaluate_sets_fitness_ratio(sample_stats):
    ga = make_optimizer(sample_stats)
    population = ga.evaluate(ga.initialize_population())

    for individual_weights, fitness in zip(population.weights, population.fitness):
        assert fitness == pytest.approx(
            fitness_ratio(individual_weights, sample_stats.expected_returns, sample_stats.cov_matrix)
        )


def test_selection_keeps_fitter_contestant(sample_stats):
    weights = np.eye(4)
    population = Population(weights, fitness=np.array([1.0, 4.0, 2.0, 3.0]))
    rng = ScriptedRng(integers=[
        [0, 2, 3, 0],
        [1, 3, 2, 0],
    ])
    ga = GeneticOptimizer(sample_stats.expected_returns, sample_stats.cov_matrix,
                          population_size=4, generations=1, rng=rng)

    selected = ga.select(population)

    np.testing.assert_array_equal(selected.fitness, [4.0, 3.0, 3.0, 1.0])
    np.testing.assert_array_equal(selected.weights, weights[[1, 3, 3, 0]])


def test_selection_tie_goes_to_second_draw(sample_stats):
    population = Population(np.eye(4), fitness=np.array([2.0, 2.0, 1.0, 1.0]))
    rng = ScriptedRng(integers=[[0, 0, 0, 0], [1, 1, 1, 1]])
    ga = GeneticOptimizer(sample_stats.expected_returns, sample_stats.cov_matrix,
                          population_size=4, generations=1, rng=rng)

    selected = ga.select(population)

    np.testing.assert_array_equal(selected.weights, np.tile(np.eye(4)[1], (4, 1)))


def test_selection_builds_a_new_population(sample_stats):
    ga = make_optimizer(sample_stats)
    population = ga.evaluate(ga.initialize_population())
    before = population.weights.copy()

    selected = ga.select(population)
    selected.weights[:] = 0.0

    assert selected is not population
    np.testing.assert_array_equal(population.weights, before)


def test_selection_requires_evaluation(sample_stats):
    ga = make_optimizer(sample_stats)

    with pytest.raises(ValueError):
        ga.select(ga.initialize_population())


def test_crossover_swaps_tail_from_cut_point(sample_stats):
    weights = np.array([
        [0.1, 0.2, 0.3, 0.4],
        [0.4, 0.3, 0.2, 0.1],
        [0.25, 0.25, 0.25, 0.25],
        [0.7, 0.1, 0.1, 0.1],
    ])
    rng = ScriptedRng(integers=[2, 0])
    ga = GeneticOptimizer(sample_stats.expected_returns, sample_stats.cov_matrix,
                          population_size=4, generations=1, rng=rng)

    population = Population(weights)
    ga.crossover(population)
    weights = population.weights

    np.testing.assert_array_equal(weights[0], [0.1, 0.2, 0.2, 0.1])
    np.testing.assert_array_equal(weights[1], [0.4, 0.3, 0.3, 0.4])
    # Cut point 0 swaps the whole vector
    np.testing.assert_array_equal(weights[2], [0.7, 0.1, 0.1, 0.1])
    np.testing.assert_array_equal(weights[3], [0.25, 0.25, 0.25, 0.25])


def test_crossover_leaves_unpaired_individual(sample_stats):
    weights = np.array([
        [0.1, 0.2, 0.3, 0.4],
        [0.4, 0.3, 0.2, 0.1],
        [0.25, 0.25, 0.25, 0.25],
    ])
    rng = ScriptedRng(integers=[1])
    ga = GeneticOptimizer(sample_stats.expected_returns, sample_stats.cov_matrix,
                          population_size=4, generations=1, rng=rng)

    population = Population(weights)
    ga.crossover(population)

    np.testing.assert_array_equal(population.weights[2], [0.25, 0.25, 0.25, 0.25])


def test_crossover_between_identical_individuals_is_noop(sample_stats):
    ga = make_optimizer(sample_stats)
    vector = np.array([0.1, 0.2, 0.3, 0.4])
    population = Population(np.tile(vector, (10, 1)))

    ga.crossover(population)

    np.testing.assert_array_equal(population.weights, np.tile(vector, (10, 1)))


def test_mutation_renormalizes(sample_stats):
    ga = make_optimizer(sample_stats, mutation_rate=1.0)
    population = ga.initialize_population()
    before = population.weights.copy()

    ga.mutate(population)

    assert_on_simplex(population.weights)
    assert not np.allclose(population.weights, before)
    assert population.fitness is None


def test_zero_mutation_rate_keeps_genes(sample_stats):
    ga = make_optimizer(sample_stats, mutation_rate=0.0)
    population = ga.initialize_population()
    before = population.weights.copy()

    ga.mutate(population)

    np.testing.assert_allclose(population.weights, before, rtol=1e-12)


def test_identical_population_without_mutation_is_unchanged(sample_stats):
    ga = make_optimizer(sample_stats, mutation_rate=0.0)
    vector = np.array([0.4, 0.3, 0.2, 0.1])
    population = ga.evaluate(Population(np.tile(vector, (40, 1))))

    population = ga.select(population)
    ga.crossover(population)
    ga.mutate(population)

    np.testing.assert_allclose(population.weights, np.tile(vector, (40, 1)), rtol=1e-12)


def test_weights_stay_on_simplex_through_generations(sample_stats):
    ga = make_optimizer(sample_stats, mutation_rate=0.2)
    population = ga.initialize_population()

    for _ in range(5):
        ga.evaluate(population)
        population = ga.select(population)
        ga.crossover(population)
        ga.mutate(population)
        assert_on_simplex(population.weights)


def test_run_records_best_fitness_each_generation(sample_stats):
    seen = []
    ga = make_optimizer(sample_stats, seed=21)

    result = ga.run(callback=lambda generation, best: seen.append((generation, best)))

    assert isinstance(result, GeneticResult)
    assert len(result.best_fitness_history) == 8
    assert [g for g, _ in seen] == list(range(8))
    assert [b for _, b in seen] == result.best_fitness_history

    # Generation 0 is the initial population, reproducible from the same seed
    replay = make_optimizer(sample_stats, seed=21)
    initial = replay.evaluate(replay.initialize_population())
    assert result.best_fitness_history[0] == pytest.approx(np.max(initial.fitness))


def test_run_returns_evaluated_best(sample_stats):
    result = make_optimizer(sample_stats).run()

    assert_on_simplex(result.weights)
    assert result.fitness == pytest.approx(
        fitness_ratio(result.weights, sample_stats.expected_returns, sample_stats.cov_matrix)
    )
    assert result.expected_return == pytest.approx(
        float(result.weights @ sample_stats.expected_returns)
    )
    assert result.generations == 8


def test_run_is_reproducible_with_seed(sample_stats):
    first = make_optimizer(sample_stats, seed=99).run()
    second = make_optimizer(sample_stats, seed=99).run()

    np.testing.assert_array_equal(first.weights, second.weights)
    assert first.best_fitness_history == second.best_fitness_history


def test_zero_variance_is_surfaced(sample_stats):
    ga = GeneticOptimizer(sample_stats.expected_returns, np.zeros((4, 4)),
                          population_size=10, generations=2,
                          rng=np.random.default_rng(0))

    with pytest.raises(DegenerateVarianceError):
        ga.run()


@pytest.mark.parametrize("kwargs", [
    {"population_size": 7},
    {"population_size": 0},
    {"generations": 0},
    {"mutation_rate": 1.5},
])
def test_invalid_parameters(sample_stats, kwargs):
    with pytest.raises(ValueError):
        make_optimizer(sample_stats, **kwargs)


def test_covariance_shape_mismatch(sample_stats):
    with pytest.raises(ValueError, match="doesn't match"):
        GeneticOptimizer(sample_stats.expected_returns, np.eye(3), population_size=4)


def test_asymmetric_covariance_is_symmetrized(sample_stats):
    cov = np.array(sample_stats.cov_matrix)
    cov[0, 1] += 0.5

    with pytest.warns(UserWarning, match="not symmetric"):
        ga = GeneticOptimizer(sample_stats.expected_returns, cov, population_size=4)

    np.testing.assert_array_equal(ga.cov_matrix, ga.cov_matrix.T)


def test_from_config(sample_stats):
    config = OptimizerConfig(asset_count=4, population_size=12, generations=3,
                             mutation_rate=0.1, seed=5)

    ga = GeneticOptimizer.from_config(sample_stats, config)

    assert ga.population_size == 12
    assert ga.generations == 3
    assert ga.mutation_rate == 0.1
    assert ga.asset_names == sample_stats.asset_names
    assert len(ga.run().best_fitness_history) == 3


def test_population_best_and_indexing():
    population = Population(np.eye(3), fitness=np.array([0.5, 2.0, 1.0]))

    best = population.best()

    assert isinstance(best, Individual)
    assert best.fitness == 2.0
    np.testing.assert_array_equal(best.weights, [0.0, 1.0, 0.0])
    assert len(population) == 3
    assert population[2].fitness == 1.0


def test_unevaluated_population_has_no_best():
    with pytest.raises(ValueError):
        Population(np.eye(2)).best()
