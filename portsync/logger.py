import sys

from loguru import logger

from .config import Config


LOG_LEVEL = Config.LOG_LEVEL
LOG_PATH = Config.LOG_PATH
LOG_ROTATION = Config.LOG_ROTATION
LOG_RETENTION = Config.LOG_RETENTION


def setup_logging(
    level: str = LOG_LEVEL,
    log_path: str = LOG_PATH,
    rotation: str = LOG_ROTATION,
    retention: str = LOG_RETENTION,
):
    """Route log records to stderr and, when a path is given, to a rotating file."""
    logger.remove()

    # Log to console
    logger.add(
        sys.stderr,
        level=level.upper(),
    )

    # Log to a file
    if log_path:
        logger.add(
            log_path,
            rotation=rotation,
            retention=retention,
            level=level.upper(),
        )

    return logger
