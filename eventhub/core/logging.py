"""
Logging setup for EventHub using loguru.
"""
import sys
from loguru import logger
from eventhub.core.config import settings

logger.remove()

logger.add(
    sys.stdout,
    format="<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | <cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>",
    level="DEBUG" if settings.ENVIRONMENT == "development" else "INFO",
    colorize=settings.ENVIRONMENT != "test",
)

if settings.ENVIRONMENT == "production":
    logger.add(
        "logs/eventhub.log",
        rotation="100 MB",
        retention="14 days",
        compression="zip",
        format="{time:YYYY-MM-DD HH:mm:ss} | {level: <8} | {name}:{function}:{line} - {message}",
        level="INFO",
    )

__all__ = ["logger"]
