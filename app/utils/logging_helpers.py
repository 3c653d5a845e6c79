"""
Structured logging helpers for consistent log formatting.

Provides utilities for structured, clean logging without excessive decorative separators.
"""
import logging


def log_section_start(logger: logging.Logger, section_name: str) -> None:
    """
    Log the start of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being started
    """
    logger.info(f"Starting: {section_name}")


def log_section_end(logger: logging.Logger, section_name: str) -> None:
    """
    Log the end of a processing section.

    Args:
        logger: Logger instance
        section_name: Name of the section being ended
    """
    logger.info(f"Completed: {section_name}")


def log_card_summary(logger: logging.Logger, kind: str, item_count: int, from_cache: bool) -> None:
    """
    Log the outcome of resolving one upstream source for a card.

    Args:
        logger: Logger instance
        kind: Source kind value (transit, events, tasks)
        item_count: Number of normalized items produced
        from_cache: Whether the payload came from the cache
    """
    origin = "cache" if from_cache else "upstream"
    logger.debug(f"Card data for {kind}: {item_count} items ({origin})")


def sanitize_url_for_logging(url: str) -> str:
    """Remove credentials from URL for safe logging."""
    if "://" not in url:
        return url
    try:
        protocol, rest = url.split("://", 1)
        if "@" in rest:
            rest = rest.split("@", 1)[1]
            return f"{protocol}://***:***@{rest}"
        return url
    except (ValueError, IndexError):
        return url
