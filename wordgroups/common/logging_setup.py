"""
Logging configuration shared by the CLI and the runner
"""

import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def configure_logging(level: int = logging.INFO):
    """Configure root logging once for the process."""
    logging.basicConfig(level=level, format=LOG_FORMAT, force=True)
