"""Logging setup for the command-line entry point."""

import logging
import sys

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "WARNING") -> None:
    """Configure root logging to standard error.

    Diagnostics go to stderr so they never mix with the output of an attached
    ssh or session-manager-plugin process. boto3 and botocore are capped at
    WARNING unless DEBUG is requested.

    Args:
        level: Log level name (e.g., "INFO", "DEBUG").
    """
    numeric_level = getattr(logging, level.upper(), logging.WARNING)
    logging.basicConfig(
        level=numeric_level,
        format=LOG_FORMAT,
        stream=sys.stderr,
        force=True,
    )
    if numeric_level > logging.DEBUG:
        for noisy in ("boto3", "botocore", "urllib3"):
            logging.getLogger(noisy).setLevel(logging.WARNING)
