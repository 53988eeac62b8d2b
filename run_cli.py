"""
CLI entry point for the weekly portfolio search.

Usage:
    python run_cli.py                          # Load ./Historical_Last_13Month
    python run_cli.py --data-dir path/to/csvs  # Custom export directory
    python run_cli.py --sample                 # Synthetic prices
    python run_cli.py --method gradient        # Only gradient descent

For installed package, use: cf-optimize
"""

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent))

from crypto_frontier.cli.main import main

if __name__ == "__main__":
    sys.exit(main())
