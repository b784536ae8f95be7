"""
Logging setup for the PharmaGuard service.

Importing this module configures the root logger once. Modules log through
``logging.getLogger(__name__)``.
"""
import logging
from typing import Optional

from pharmaguard.core.config import get_config

LOG_FORMAT = "%(asctime)s %(levelname)-8s [%(name)s] %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger; ``level`` defaults to the configured log level."""
    resolved = (level or get_config().log_level).upper()
    logging.basicConfig(level=resolved, format=LOG_FORMAT)
    logging.getLogger("pharmaguard").setLevel(resolved)


setup_logging()
