import inspect
import sys
from loguru import logger
import logging

from salon_booking.core.config import settings

class InterceptHandler(logging.Handler):
    def emit(self, record):
        # Get corresponding Loguru level if it exists
        try:
            level = logger.level(record.levelname).name
        except ValueError:
            level = record.levelno

        # Find caller from where originated the logged message
        frame, depth = inspect.currentframe(), 0
        while frame and (depth == 0 or frame.f_code.co_filename == logging.__file__):
            frame = frame.f_back
            depth += 1

        logger.opt(depth=depth, exception=record.exc_info).log(level, record.getMessage())

def setup_logging(level: str = None, error_log_file: str = None):
    level = level or settings.LOG_LEVEL
    error_log_file = error_log_file if error_log_file is not None else settings.ERROR_LOG_FILE

    logging.getLogger().handlers = [InterceptHandler()]

    logger.remove()

    logger.add(
        sys.stdout,
        level=level,
        format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
    )

    # Errors only, rotated on disk. Empty path disables the file sink.
    if error_log_file:
        logger.add(
            error_log_file,
            level="ERROR",
            rotation="10 MB",
            retention="1 month",
            compression="zip",
            format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}"
        )

    # Route stdlib logging (uvicorn, httpx, supabase) through loguru
    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)

    # Silence noisy libraries
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("hpack").setLevel(logging.WARNING)

__all__ = ["logger", "setup_logging"]
