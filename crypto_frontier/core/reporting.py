"""
Result reporting.

Formats optimizer results as a text report and exports them as CSV or
as an Excel workbook with one sheet per table.
"""

from pathlib import Path
from typing import Dict, List, Optional, Union

import numpy as np
import pandas as pd

from crypto_frontier.core.genetic import GeneticResult
from crypto_frontier.core.gradient import GradientResult
from crypto_frontier.core.statistics import MarketStatistics


def format_weights(weights: np.ndarray, asset_names: List[str]) -> List[str]:
    """One '  name: weight (pct%)' line per asset."""
    return [f"  {name}: {w:.4f} ({w*100:.2f}%)" for name, w in zip(asset_names, weights)]


def summary_report(
    stats: MarketStatistics,
    genetic: Optional[GeneticResult] = None,
    gradient: Optional[GradientResult] = None,
    reference: Optional[Dict] = None
) -> str:
    """
    Generate a summary report of a run.

    Args:
        stats: Statistics the optimizers ran on
        genetic: Result of the genetic search, if it ran
        gradient: Result of the gradient search, if it ran
        reference: Optional {'weights': ..., 'stats': ...} from the
            constrained reference solver

    Returns:
        Formatted string report
    """
    lines = []
    lines.append("=" * 70)
    lines.append("WEEKLY PORTFOLIO OPTIMIZATION SUMMARY REPORT")
    lines.append("=" * 70)

    lines.append("\n--- Individual Asset Statistics (weekly) ---")
    lines.append(f"{'Asset':<12} {'Mean':>12} {'Std Dev':>12} {'Variance':>12}")
    lines.append("-" * 50)
    for name, row in stats.asset_table().iterrows():
        lines.append(f"{name:<12} {row['mean']:>12.6f} {row['std']:>12.6f} {row['variance']:>12.6f}")
    lines.append(f"\nReturn periods: {stats.n_periods}")

    if genetic is not None:
        lines.append("\n--- Genetic Search (maximum return/variance) ---")
        lines.append("Best Portfolio:")
        lines.extend(format_weights(genetic.weights, stats.asset_names))
        lines.append(f"Best Fitness: {genetic.fitness:.4f}")
        lines.append(f"Expected Return: {genetic.expected_return:.6f}")
        lines.append(f"Variance: {genetic.variance:.6f}")
        lines.append(f"Generations: {genetic.generations}")

    if gradient is not None:
        lines.append("\n--- Projected Gradient Descent (minimum variance) ---")
        lines.append("Optimized Portfolio Weights:")
        lines.extend(format_weights(gradient.weights, stats.asset_names))
        lines.append(f"Target Return: {gradient.target_return:.6f}")
        lines.append(f"Portfolio Return: {gradient.expected_return:.6f}")
        lines.append(f"Portfolio Variance: {gradient.variance:.6f}")
        status = "converged" if gradient.converged else "iteration cap reached"
        lines.append(f"Iterations: {gradient.iterations} ({status})")

    if reference is not None and reference.get('weights') is not None:
        ref_stats = reference['stats']
        lines.append("\n--- Constrained Reference (SLSQP) ---")
        lines.extend(format_weights(reference['weights'], stats.asset_names))
        lines.append(f"Portfolio Return: {ref_stats['mean']:.6f}")
        lines.append(f"Portfolio Variance: {ref_stats['variance']:.6f}")

    lines.append("\n" + "=" * 70)

    return "\n".join(lines)


def results_frame(
    asset_names: List[str],
    genetic: Optional[GeneticResult] = None,
    gradient: Optional[GradientResult] = None,
    reference: Optional[Dict] = None
) -> pd.DataFrame:
    """Weights of every method that ran, one column per method."""
    columns = {}
    if genetic is not None:
        columns['genetic'] = genetic.weights
    if gradient is not None:
        columns['gradient'] = gradient.weights
    if reference is not None and reference.get('weights') is not None:
        columns['reference'] = reference['weights']
    return pd.DataFrame(columns, index=pd.Index(asset_names, name='asset'))


def metrics_frame(
    genetic: Optional[GeneticResult] = None,
    gradient: Optional[GradientResult] = None,
    reference: Optional[Dict] = None
) -> pd.DataFrame:
    """Return, variance and fitness per method."""
    rows = {}
    if genetic is not None:
        rows['genetic'] = {
            'expected_return': genetic.expected_return,
            'variance': genetic.variance,
            'fitness': genetic.fitness,
        }
    if gradient is not None:
        rows['gradient'] = {
            'expected_return': gradient.expected_return,
            'variance': gradient.variance,
            'fitness': gradient.expected_return / gradient.variance if gradient.variance > 0 else np.nan,
            'target_return': gradient.target_return,
            'iterations': gradient.iterations,
            'converged': gradient.converged,
        }
    if reference is not None and reference.get('weights') is not None:
        ref_stats = reference['stats']
        rows['reference'] = {
            'expected_return': ref_stats['mean'],
            'variance': ref_stats['variance'],
            'fitness': ref_stats['fitness'] if ref_stats['fitness'] is not None else np.nan,
        }
    return pd.DataFrame.from_dict(rows, orient='index')


def export_results(
    path: Union[str, Path],
    stats: MarketStatistics,
    genetic: Optional[GeneticResult] = None,
    gradient: Optional[GradientResult] = None,
    reference: Optional[Dict] = None
) -> Path:
    """
    Write results to disk.

    A '.xlsx' path gets a workbook with Weights, Summary, AssetStats,
    Covariance and FitnessHistory sheets; any other suffix gets the
    weights table as CSV.

    Returns:
        The path written
    """
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)

    weights = results_frame(stats.asset_names, genetic, gradient, reference)

    if path.suffix.lower() == '.xlsx':
        with pd.ExcelWriter(path, engine='openpyxl') as writer:
            weights.to_excel(writer, sheet_name='Weights')
            metrics_frame(genetic, gradient, reference).to_excel(writer, sheet_name='Summary')
            stats.asset_table().to_excel(writer, sheet_name='AssetStats')
            stats.cov_frame().to_excel(writer, sheet_name='Covariance')
            if genetic is not None:
                history = pd.DataFrame(
                    {'best_fitness': genetic.best_fitness_history},
                    index=pd.RangeIndex(len(genetic.best_fitness_history), name='generation')
                )
                history.to_excel(writer, sheet_name='FitnessHistory')
    else:
        weights.to_csv(path)

    return path
