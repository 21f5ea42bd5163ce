"""Logging setup shared by the API and the command-line scripts."""

import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once for the process.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR)
    """
    logging.basicConfig(level=level, format=LOG_FORMAT)
