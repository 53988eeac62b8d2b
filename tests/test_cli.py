import pandas as pd
import pytest

from crypto_frontier.cli.main import (
    EXIT_COMPUTE_FAILED,
    EXIT_LOAD_FAILED,
    EXIT_OK,
    build_parser,
    config_from_args,
    main,
)
from crypto_frontier.core.config import DEFAULT_COINS
from crypto_frontier.core.loader import coin_file_path


FAST = ["--population-size", "20", "--generations", "3", "--seed", "4"]


def read_log(log_dir):
    logs = sorted(log_dir.glob("log_crypto_frontier_*.txt"))
    assert logs
    return logs[-1].read_text(encoding="utf-8")


def test_sample_run_exports_results(tmp_path):
    export = tmp_path / "weights.csv"

    code = main(["--sample", "--no-plots", "--log-dir", str(tmp_path / "logs"),
                 "--export", str(export)] + FAST)

    assert code == EXIT_OK
    frame = pd.read_csv(export, index_col=0)
    assert list(frame.columns) == ["genetic", "gradient"]
    assert list(frame.index) == list(DEFAULT_COINS)
    assert list((tmp_path / "logs").glob("log_crypto_frontier_*.txt"))


def test_sample_run_with_plots_and_reference(tmp_path):
    output = tmp_path / "plots"

    code = main(["--sample", "--compare-reference", "--output-dir", str(output),
                 "--log-dir", str(tmp_path)] + FAST)

    assert code == EXIT_OK
    names = {p.name for p in output.glob("*.png")}
    assert {"fitness_history.png", "genetic_weights.png",
            "gradient_weights.png", "risk_return.png"} <= names


def test_gradient_only_run(tmp_path):
    export = tmp_path / "weights.csv"

    code = main(["--sample", "--method", "gradient", "--no-plots",
                 "--log-dir", str(tmp_path), "--export", str(export)])

    assert code == EXIT_OK
    assert list(pd.read_csv(export, index_col=0).columns) == ["gradient"]


def test_missing_data_is_a_load_failure(tmp_path):
    code = main(["--data-dir", str(tmp_path / "nowhere"), "--no-plots",
                 "--log-dir", str(tmp_path)] + FAST)

    assert code == EXIT_LOAD_FAILED


def test_flat_prices_are_a_compute_failure(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    for coin in DEFAULT_COINS:
        rows = "\n".join(f"2024-01-{week:02d};100.0" for week in range(1, 6))
        coin_file_path(data_dir, coin).write_text(f"date;close\n{rows}\n", encoding="utf-8")

    code = main(["--data-dir", str(data_dir), "--periods", "5", "--method", "genetic",
                 "--no-plots", "--log-dir", str(tmp_path)] + FAST)

    assert code == EXIT_COMPUTE_FAILED
    log_text = read_log(tmp_path)
    assert "Optimization failed during Genetic Search" in log_text
    assert "Best Portfolio" not in log_text


def test_unreadable_exports_are_a_load_failure(tmp_path):
    data_dir = tmp_path / "data"
    data_dir.mkdir()
    for coin in DEFAULT_COINS:
        coin_file_path(data_dir, coin).mkdir()

    code = main(["--data-dir", str(data_dir), "--no-plots",
                 "--log-dir", str(tmp_path)] + FAST)

    assert code == EXIT_LOAD_FAILED
    log_text = read_log(tmp_path)
    assert "Could not read" in log_text
    assert "No portfolio was computed" in log_text


def test_invalid_config_is_rejected_by_parser(tmp_path):
    with pytest.raises(SystemExit):
        main(["--sample", "--population-size", "3", "--log-dir", str(tmp_path)])


def test_parser_defaults_build_default_config():
    config = config_from_args(build_parser().parse_args([]))

    assert config.population_size == 1000
    assert config.period_count == 60
    assert config.seed is None
