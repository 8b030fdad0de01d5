"""
Centralized logging configuration.
"""

import logging
import sys

from drivesafe.config import DriveSafeConfig


def setup_logging(config: DriveSafeConfig) -> None:
    """Configure the root logger from the configured level."""
    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
