#!/usr/bin/env python3
"""
Main script for running a bootstrap from the command line.
"""

# Pipeline overview:
# 1) Load a CSV dataset and bind the chosen built-in estimator to its columns.
# 2) Draw all resamples up front and apply the estimator to each one,
#    recording failures and timeouts as missing replicates.
# 3) Summarize the usable replicates into SE, confidence interval and p-value.
# 4) Export the summary and raw replicates to CSV, optionally with a histogram.

import logging
import os
import sys
import time

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s - %(levelname)s - %(message)s",
    handlers=[
        logging.StreamHandler(sys.stdout),
        logging.FileHandler("fitstats.log", mode="w"),
    ],
)

sys.path.insert(0, os.path.dirname(os.path.abspath(__file__)))

from fitstats.cli import main as cli_main


def main(argv=None):
    """Run the CLI and log total execution time."""
    start_time = time.time()
    logging.info("Initializing bootstrap pipeline")

    status = cli_main(argv)

    total_duration = time.time() - start_time
    logging.info(f"Total execution time: {total_duration:.2f} seconds")
    if status == 0:
        logging.info("Bootstrap pipeline completed successfully")
    else:
        logging.error("Bootstrap pipeline failed with exit code %d", status)
    return status


if __name__ == "__main__":
    sys.exit(main())
