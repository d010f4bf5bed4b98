"""Logging configuration for grocerylist using loguru."""
import sys
from pathlib import Path
from typing import Optional
from loguru import logger

from grocerylist.config.settings import get_settings, GroceryListSettings

LOG_FORMATS = {
    "detailed": (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<cyan>{extra[name]}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
        "<level>{message}</level> | "
        "<level>{extra}</level>"
    ),
    "simple": (
        "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
        "<level>{level: <8}</level> | "
        "<level>{message}</level>"
    ),
}


def configure_logging(settings: Optional[GroceryListSettings] = None) -> None:
    """
    Replace every loguru sink with the grocerylist console and file sinks.

    Args:
        settings: Settings to read levels and paths from (default: get_settings())
    """
    settings = settings or get_settings()
    log_format = LOG_FORMATS[settings.LOG_FORMAT]

    logger.remove()
    logger.configure(extra={"name": "grocerylist"})

    logger.add(
        sys.stderr,
        format=log_format,
        level=settings.LOG_LEVEL,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    if settings.LOG_FILE:
        Path(settings.LOG_FILE).parent.mkdir(parents=True, exist_ok=True)
        # Serialized records keep the bound ids of every ledger operation
        logger.add(
            settings.LOG_FILE,
            format=log_format,
            level=settings.LOG_LEVEL,
            rotation=f"{settings.LOG_ROTATION_SIZE_MB} MB",
            retention=f"{settings.LOG_RETENTION_DAYS} days",
            compression="zip",
            serialize=True,
            backtrace=True,
            diagnose=False,
            enqueue=True,
        )


configure_logging()


def get_logger(name: str):
    """Get a logger bound to a grocerylist component name.

    Args:
        name: Module ``__name__`` or class name of the caller.

    Returns:
        A logger instance bound with the given name.
    """
    if not name.startswith("grocerylist.") and name != "__main__":
        name = f"grocerylist.{name}"
    return logger.bind(name=name)
