"""Process-wide logging setup shared by the API and the CLI scripts."""

import logging
import time

from inkwell.core.config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%SZ"


def configure_logging(settings: Settings) -> None:
    """Configure the root logger once; DEBUG=true forces debug level. Timestamps are UTC."""
    level = logging.DEBUG if settings.DEBUG else settings.LOG_LEVEL.upper()
    logging.Formatter.converter = time.gmtime
    logging.basicConfig(level=level, format=LOG_FORMAT, datefmt=LOG_DATEFMT)
