import sys
from typing import Optional

from loguru import logger


def setup_logging(log_level: Optional[str] = None, log_file: Optional[str] = None):
    """Setup logging configuration.

    Replaces loguru's default sink with a console sink, and adds a file sink
    when ``log_file`` is given. Importing the package never calls this.
    """
    from ..config.settings import config

    logging_config = config.extraction.logging
    level = log_level or logging_config.level

    logger.remove()
    logger.add(sys.stderr, level=level, format=logging_config.format)

    if log_file:
        logger.add(
            log_file,
            level=level,
            format="{time:YYYY-MM-DD HH:mm:ss} | {level} | {name} | {message}",
        )
        logger.debug(f"File logging enabled. Logs will be stored in {log_file}")
