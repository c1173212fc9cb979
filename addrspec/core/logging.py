import logging
import sys
from typing import Any

from loguru import logger

from addrspec.config import get_settings


class InterceptHandler(logging.Handler):
    """Intercept stdlib logging and redirect to loguru."""

    def emit(self, record: logging.LogRecord) -> None:
        # Get corresponding Loguru level if it exists
        try:
            level: str | int = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = logging.currentframe(), 2
        while frame and frame.f_code.co_filename == logging.__file__:
            frame = frame.f_back  # type: ignore[assignment]
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())


def _format_extra(record: dict[str, Any]) -> str:
    """Render bound fields after the message, skipping the logger name."""
    extra = {k: v for k, v in record["extra"].items() if k != "name"}
    if not extra:
        return ""
    return " | " + " ".join(f"{k}={v!r}" for k, v in extra.items())


def _production_format(record: dict[str, Any]) -> str:
    record["extra"]["_fields"] = _format_extra(record)
    return (
        "{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} | "
        "{message}{extra[_fields]}\n{exception}"
    )


def setup_logging() -> None:
    """Configure loguru for addrspec."""
    settings = get_settings()

    # Remove default handler
    logger.remove()

    # Console output with colors in debug, plain text otherwise
    if settings.debug:
        logger.add(
            sys.stderr,
            level="DEBUG",
            format=(
                "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
                "<level>{level: <8}</level> | "
                "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
                "<level>{message}</level> {extra}"
            ),
            backtrace=True,
            diagnose=True,
        )
    else:
        logger.add(
            sys.stderr,
            level=settings.log_level.upper(),
            format=_production_format,
            backtrace=True,
            diagnose=False,
        )

    # Intercept stdlib logging from libraries that use it
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)


def get_logger(name: str) -> Any:
    """Get a logger bound to a name."""
    return logger.bind(name=name)
