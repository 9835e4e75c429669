import sys
from loguru import logger


def configure_logging(level: str = "INFO", log_file=None):
    """
    Swaps loguru's default sink for one at `level`.
    Optionally attaches a rotating file sink the same way the service boots its app log.
    Returns the sink ids so callers (tests mostly) can remove them again.
    """
    logger.remove()
    sink_ids = [logger.add(sys.stderr, level=level.upper())]

    if log_file is not None:
        sink_ids.append(logger.add(str(log_file), rotation="10 MB", retention="10 days", level=level.upper()))

    logger.debug(f"Logging configured at {level.upper()}")
    return sink_ids
