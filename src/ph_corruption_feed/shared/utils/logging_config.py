#!/usr/bin/env python3
"""
Logging configuration using Rich library for the aggregation engine
"""

import logging
from rich.console import Console
from rich.logging import RichHandler


# Global console instance for consistent styling
console = Console(stderr=True)

NOISY_LIBRARIES = [
    'aiohttp', 'asyncio', 'urllib3', 'httpx', 'httpcore',
    'google_genai', 'redis', 'uvicorn.access'
]


def setup_logging(level: str = "INFO", quiet_mode: bool = False) -> None:
    """
    Set up clean, developer-friendly logging using Rich.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        quiet_mode: If True, reduce noise from third-party libraries
    """
    root_logger = logging.getLogger()
    root_logger.handlers.clear()

    rich_handler = RichHandler(
        console=console,
        show_time=True,
        show_path=False,
        rich_tracebacks=True,
        markup=True,
        log_time_format="[%H:%M:%S]"
    )
    rich_handler.setFormatter(logging.Formatter(fmt="%(message)s", datefmt="[%X]"))

    root_logger.addHandler(rich_handler)
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if quiet_mode:
        for lib in NOISY_LIBRARIES:
            logging.getLogger(lib).setLevel(logging.ERROR)

    if level.upper() != "DEBUG":
        # Per-feed chatter is only useful when debugging
        logging.getLogger('ph_corruption_feed.backend.collectors').setLevel(logging.WARNING)
        logging.getLogger('ph_corruption_feed.shared.config').setLevel(logging.WARNING)


def log_step(logger: logging.Logger, step: str, details: str = ""):
    """Log a major pipeline step with Rich styling."""
    if details:
        logger.info(f"[green]✓[/green] [bold]{step}[/bold]: {details}")
    else:
        logger.info(f"[green]✓[/green] [bold]{step}[/bold]")


def log_warning(logger: logging.Logger, message: str):
    """Log a warning with Rich styling."""
    logger.warning(f"[yellow]⚠[/yellow] {message}")


def log_error(logger: logging.Logger, message: str):
    """Log an error with Rich styling."""
    logger.error(f"[red]✗[/red] {message}")
