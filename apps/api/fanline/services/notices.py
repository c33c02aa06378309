import logging

logger = logging.getLogger(__name__)


def notice(title: str, description: str, variant: str = "default") -> dict:
    """User-facing notification attached to a mutating response."""
    logger.info("notice: %s - %s", title, description)
    return {"title": title, "description": description, "variant": variant}


def iso(dt) -> str | None:
    return dt.isoformat() if dt is not None else None
