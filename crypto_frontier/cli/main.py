"""
Main Runner Script for Weekly Portfolio Optimization
====================================================

This script runs the full workflow:
1. Loading weekly closing prices (CoinMarketCap exports or sample data)
2. Computing weekly returns, expected returns and covariance
3. Genetic search for the maximum return/variance portfolio
4. Projected gradient descent for the minimum variance portfolio
5. Visualizing and exporting results

Usage:
    cf-optimize                                  # Load ./Historical_Last_13Month
    cf-optimize --data-dir path/to/exports       # Custom export directory
    cf-optimize --sample                         # Synthetic prices
    cf-optimize --method gradient                # Only the gradient search
    cf-optimize --seed 7 --export results.xlsx   # Reproducible run + workbook

Exit codes:
    0 success, 1 unexpected failure, 2 price data could not be loaded,
    3 the optimization hit a degenerate computation
"""

import sys
import argparse
import logging
import traceback
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from crypto_frontier.core.config import DEFAULT_DATA_DIR, OptimizerConfig
from crypto_frontier.core.errors import DataError
from crypto_frontier.core.genetic import GeneticOptimizer
from crypto_frontier.core.gradient import GradientDescentOptimizer
from crypto_frontier.core.loader import PriceLoader, generate_sample_prices
from crypto_frontier.core.reference import minimum_variance_for_target
from crypto_frontier.core.reporting import export_results, format_weights
from crypto_frontier.core.statistics import MarketStatistics, compute_statistics

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_LOAD_FAILED = 2
EXIT_COMPUTE_FAILED = 3


# =============================================================================
# LOGGING SETUP
# =============================================================================

def setup_logger(
    script_name: str = "crypto_frontier",
    log_dir: Optional[Path] = None
) -> logging.Logger:
    """
    Sets up a logger that writes to both file and console.

    Args:
        script_name: Name of the script (used in log filename)
        log_dir: Directory for log files (default: <project>/logs)

    Returns:
        Configured logger instance
    """
    if log_dir is None:
        log_dir = Path(__file__).parent.parent.parent / "logs"
    log_dir = Path(log_dir)
    log_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime("%Y_%m_%d_%H%M")
    log_filename = log_dir / f"log_{script_name}_{timestamp}.txt"

    logger = logging.getLogger(script_name)
    logger.setLevel(logging.INFO)
    logger.propagate = False

    # Clear existing handlers (prevent duplicates)
    if logger.hasHandlers():
        for handler in list(logger.handlers):
            handler.close()
        logger.handlers.clear()

    formatter = logging.Formatter(
        '%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

    file_handler = logging.FileHandler(log_filename, encoding='utf-8')
    file_handler.setLevel(logging.INFO)
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(logging.INFO)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    return logger


# =============================================================================
# ANALYSIS CLASS
# =============================================================================

class AnalysisCheckpoint:
    """
    Tracks the progress of a run so a failure can name its stage.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.steps_completed = {}
        self.start_time = datetime.now()
        self.current_step = None

    def start_step(self, step_name: str):
        """Mark a step as started."""
        self.current_step = step_name
        self.logger.info(f"[CHECKPOINT] Starting: {step_name}")

    def complete_step(self, step_name: str):
        """Mark a step as completed."""
        self.steps_completed[step_name] = True
        self.logger.info(f"[CHECKPOINT] Completed: {step_name}")

    def get_progress_summary(self) -> dict:
        """Get summary of analysis progress."""
        elapsed = (datetime.now() - self.start_time).total_seconds()
        return {
            'steps_completed': list(self.steps_completed.keys()),
            'current_step': self.current_step,
            'elapsed_seconds': elapsed
        }

    def log_final_report(self):
        """Log final analysis report."""
        summary = self.get_progress_summary()
        self.logger.info("=" * 60)
        self.logger.info("  ANALYSIS COMPLETE")
        self.logger.info("=" * 60)
        self.logger.info(f"  Steps completed: {len(summary['steps_completed'])}")
        self.logger.info(f"  Total time: {summary['elapsed_seconds']:.2f} seconds")
        self.logger.info("=" * 60)


# =============================================================================
# MAIN ANALYSIS FUNCTIONS
# =============================================================================

def load_statistics(
    config: OptimizerConfig,
    data_dir: Optional[str] = None,
    sample: bool = False,
    logger: Optional[logging.Logger] = None
) -> MarketStatistics:
    """
    Load the price table and derive its statistics.

    Raises:
        DataError: If prices cannot be loaded or fail validation
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    if sample:
        logger.info("Using synthetic sample prices")
        prices = generate_sample_prices(
            config.asset_names, config.period_count,
            seed=config.seed if config.seed is not None else 42
        )
    else:
        loader = PriceLoader(
            data_dir or DEFAULT_DATA_DIR,
            config.asset_names,
            config.period_count,
            logger=logger
        )
        prices = loader.load()
    logger.info("Data loaded successfully!")

    return compute_statistics(
        prices,
        asset_names=config.asset_names,
        expected_assets=config.asset_count,
        expected_periods=config.period_count
    )


def run_analysis(
    stats: MarketStatistics,
    config: OptimizerConfig,
    method: str = 'both',
    target_return: Optional[float] = None,
    compare_reference: bool = False,
    save_plots: bool = True,
    output_dir: Optional[Path] = None,
    export_path: Optional[str] = None,
    logger: Optional[logging.Logger] = None,
    checkpoint: Optional[AnalysisCheckpoint] = None
) -> dict:
    """
    Run the requested optimizers on precomputed statistics.

    Args:
        stats: Statistics of the price table
        config: Run configuration
        method: 'genetic', 'gradient' or 'both'
        target_return: Gradient target (default: mean expected return)
        compare_reference: Also solve the constrained problem with SLSQP
        save_plots: If True, save plots to output_dir
        output_dir: Directory for plots
        export_path: Optional .csv/.xlsx path for the results
        logger: Logger instance
        checkpoint: Progress tracker; its current_step names the stage a
            failure happened in

    Returns:
        Dictionary with 'genetic', 'gradient' and 'reference' results
        (None for methods that did not run)

    Raises:
        ArithmeticError: If an optimizer hits a degenerate computation
    """
    if logger is None:
        logger = logging.getLogger(__name__)

    if checkpoint is None:
        checkpoint = AnalysisCheckpoint(logger)
    results = {'stats': stats, 'genetic': None, 'gradient': None, 'reference': None}

    logger.info("=" * 70)
    logger.info("  WEEKLY MEAN-VARIANCE PORTFOLIO SEARCH")
    logger.info("=" * 70)
    logger.info(f"  Assets: {', '.join(stats.asset_names)}")
    logger.info(f"  Return periods: {stats.n_periods}")
    logger.info("=" * 70)

    logger.info("\n--- Individual Asset Statistics ---")
    logger.info(f"{'Asset':<12} {'Mean':>12} {'Std Dev':>12}")
    logger.info("-" * 40)
    for name, row in stats.asset_table().iterrows():
        logger.info(f"{name:<12} {row['mean']*100:>11.4f}% {row['std']*100:>11.4f}%")

    if method in ('genetic', 'both'):
        checkpoint.start_step("Genetic Search")
        optimizer = GeneticOptimizer.from_config(stats, config, logger=logger)
        genetic = optimizer.run()
        results['genetic'] = genetic

        logger.info("\nBest Portfolio:")
        for line in format_weights(genetic.weights, stats.asset_names):
            logger.info(line)
        logger.info(f"Best Fitness: {genetic.fitness:.4f}")
        logger.info(f"Expected Return: {genetic.expected_return:.6f}")
        logger.info(f"Variance: {genetic.variance:.6f}")
        checkpoint.complete_step("Genetic Search")

    if method in ('gradient', 'both'):
        checkpoint.start_step("Projected Gradient Descent")
        optimizer = GradientDescentOptimizer.from_config(stats, config, logger=logger)
        gradient = optimizer.optimize(target_return)
        results['gradient'] = gradient

        logger.info("\nOptimized Portfolio Weights:")
        for line in format_weights(gradient.weights, stats.asset_names):
            logger.info(line)
        logger.info(f"Portfolio Return: {gradient.expected_return:.6f}")
        logger.info(f"Portfolio Variance: {gradient.variance:.6f}")
        checkpoint.complete_step("Projected Gradient Descent")

        if compare_reference:
            checkpoint.start_step("Constrained Reference")
            ref_weights, ref_stats = minimum_variance_for_target(
                stats.expected_returns, stats.cov_matrix, gradient.target_return
            )
            if ref_weights is None:
                logger.warning(
                    f"Could not solve the constrained problem at target "
                    f"{gradient.target_return:.6f}"
                )
            else:
                results['reference'] = {'weights': ref_weights, 'stats': ref_stats}
                logger.info(f"Reference Variance: {ref_stats['variance']:.6f} "
                            f"(gradient: {gradient.variance:.6f})")
            checkpoint.complete_step("Constrained Reference")

    if save_plots:
        checkpoint.start_step("Generate Plots")
        save_result_plots(results, stats, output_dir or get_output_dir(), logger)
        checkpoint.complete_step("Generate Plots")

    if export_path:
        checkpoint.start_step("Export Results")
        written = export_results(
            export_path, stats,
            results['genetic'], results['gradient'], results['reference']
        )
        logger.info(f"Saved: {written}")
        checkpoint.complete_step("Export Results")

    checkpoint.log_final_report()
    return results


def get_output_dir() -> Path:
    """Get the output directory path."""
    package_root = Path(__file__).parent.parent.parent
    output_dir = package_root / "output"
    output_dir.mkdir(exist_ok=True)
    return output_dir


def save_result_plots(
    results: dict,
    stats: MarketStatistics,
    output_dir: Path,
    logger: logging.Logger
) -> List[Path]:
    """Save every figure for the methods that ran and return their paths."""
    import matplotlib
    matplotlib.use('Agg')
    import matplotlib.pyplot as plt

    from crypto_frontier.visualization import (
        plot_fitness_history,
        plot_portfolio_weights,
        plot_risk_return
    )

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    saved = []
    portfolios = {}

    genetic = results.get('genetic')
    if genetic is not None:
        path = output_dir / "fitness_history.png"
        plot_fitness_history(genetic.best_fitness_history, save_path=str(path))
        saved.append(path)

        path = output_dir / "genetic_weights.png"
        plot_portfolio_weights(genetic.weights, stats.asset_names,
                               title="Genetic Search Portfolio Weights",
                               save_path=str(path))
        saved.append(path)
        portfolios['Genetic'] = genetic.weights

    gradient = results.get('gradient')
    if gradient is not None:
        path = output_dir / "gradient_weights.png"
        plot_portfolio_weights(gradient.weights, stats.asset_names,
                               title="Projected Gradient Portfolio Weights",
                               save_path=str(path))
        saved.append(path)
        portfolios['Gradient'] = gradient.weights

    reference = results.get('reference')
    if reference is not None:
        portfolios['Reference (SLSQP)'] = reference['weights']

    if portfolios:
        path = output_dir / "risk_return.png"
        plot_risk_return(stats, portfolios, save_path=str(path))
        saved.append(path)

    plt.close('all')

    for path in saved:
        logger.info(f"Saved: {path.name}")
    return saved


# =============================================================================
# MAIN ENTRY POINT
# =============================================================================

def build_parser() -> argparse.ArgumentParser:
    defaults = OptimizerConfig()
    parser = argparse.ArgumentParser(
        description='Weekly mean-variance portfolio search (genetic and projected gradient)',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  cf-optimize                                       # ./Historical_Last_13Month
  cf-optimize --data-dir exports --method genetic
  cf-optimize --sample --seed 7 --export results.xlsx
        """
    )

    parser.add_argument('--data-dir', '-d', type=str, default=DEFAULT_DATA_DIR,
                        help=f'Directory of weekly CoinMarketCap exports (default: {DEFAULT_DATA_DIR})')
    parser.add_argument('--sample', action='store_true',
                        help='Use synthetic prices instead of loading files')
    parser.add_argument('--method', '-m', choices=['genetic', 'gradient', 'both'], default='both',
                        help='Optimizer(s) to run (default: both)')
    parser.add_argument('--periods', type=int, default=defaults.period_count,
                        help=f'Weekly prices per asset (default: {defaults.period_count})')
    parser.add_argument('--population-size', type=int, default=defaults.population_size,
                        help=f'Genetic population size, even (default: {defaults.population_size})')
    parser.add_argument('--generations', type=int, default=defaults.generations,
                        help=f'Genetic generations (default: {defaults.generations})')
    parser.add_argument('--mutation-rate', type=float, default=defaults.mutation_rate,
                        help=f'Per-gene mutation probability (default: {defaults.mutation_rate})')
    parser.add_argument('--seed', type=int, default=None,
                        help='Random seed for the genetic search (default: time based)')
    parser.add_argument('--learning-rate', type=float, default=defaults.learning_rate,
                        help=f'Gradient step size (default: {defaults.learning_rate})')
    parser.add_argument('--max-iterations', type=int, default=defaults.max_iterations,
                        help=f'Gradient iteration cap (default: {defaults.max_iterations})')
    parser.add_argument('--tolerance', type=float, default=defaults.tolerance,
                        help=f'Target return tolerance (default: {defaults.tolerance})')
    parser.add_argument('--target-return', type=float, default=None,
                        help='Gradient target return (default: mean expected return)')
    parser.add_argument('--compare-reference', action='store_true',
                        help='Also solve the constrained problem with SLSQP')
    parser.add_argument('--export', type=str, default=None,
                        help='Write results to a .csv or .xlsx file')
    parser.add_argument('--no-plots', action='store_true',
                        help='Disable plot generation')
    parser.add_argument('--output-dir', type=str, default=None,
                        help='Directory for plots (default: <project>/output)')
    parser.add_argument('--log-dir', type=str, default=None,
                        help='Directory for log files (default: <project>/logs)')
    return parser


def config_from_args(args: argparse.Namespace) -> OptimizerConfig:
    return OptimizerConfig(
        period_count=args.periods,
        population_size=args.population_size,
        generations=args.generations,
        mutation_rate=args.mutation_rate,
        learning_rate=args.learning_rate,
        max_iterations=args.max_iterations,
        tolerance=args.tolerance,
        seed=args.seed
    ).validate()


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the portfolio optimization script."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
    except ValueError as e:
        parser.error(str(e))

    logger = setup_logger("crypto_frontier", args.log_dir)
    logger.info(f"Configuration: {config}")
    checkpoint = AnalysisCheckpoint(logger)

    try:
        checkpoint.start_step("Load Data")
        stats = load_statistics(config, args.data_dir, args.sample, logger)
        checkpoint.complete_step("Load Data")
    except DataError as e:
        logger.error(f"Data loading failed: {e}")
        logger.error("Error loading data. No portfolio was computed.")
        return EXIT_LOAD_FAILED

    try:
        run_analysis(
            stats,
            config,
            method=args.method,
            target_return=args.target_return,
            compare_reference=args.compare_reference,
            save_plots=not args.no_plots,
            output_dir=Path(args.output_dir) if args.output_dir else None,
            export_path=args.export,
            logger=logger,
            checkpoint=checkpoint
        )
    except ArithmeticError as e:
        logger.error(f"Optimization failed during {checkpoint.current_step}: {e}")
        logger.error("No portfolio is recommended for this run.")
        return EXIT_COMPUTE_FAILED
    except Exception as e:
        logger.error(f"Analysis failed during {checkpoint.current_step}: {e}")
        logger.error(traceback.format_exc())
        return EXIT_FAILURE

    logger.info("Analysis completed successfully!")
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
