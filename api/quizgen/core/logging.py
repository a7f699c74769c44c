import logging
import sys
from typing import Optional


def setup_logging(level: str = "INFO") -> None:
    """
    Single stdout handler, pipe-separated fields.
    Unknown level names fall back to INFO.
    """
    numeric_level: Optional[int] = getattr(logging, level.upper(), None)
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    root = logging.getLogger()
    root.setLevel(numeric_level)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(numeric_level)

    formatter = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )
    handler.setFormatter(formatter)

    # Clear existing handlers to avoid duplicate logs in reloads
    root.handlers.clear()
    root.addHandler(handler)

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(max(numeric_level, logging.WARNING))


def excerpt(text: Optional[str], limit: int = 2000) -> str:
    """Shorten long upstream payloads before they go into a log line."""
    s = text or ""
    if len(s) <= limit:
        return s
    return f"{s[:limit]}...<{len(s) - limit} more chars>"
