import sys

from loguru import logger


def configure_logging(level: str = "INFO", json_logs: bool = False) -> None:
    """Single stderr sink; JSON lines when json_logs is set."""
    logger.remove()
    logger.add(
        sys.stderr,
        level=level.upper(),
        serialize=json_logs,
        backtrace=False,
        diagnose=False,
    )
