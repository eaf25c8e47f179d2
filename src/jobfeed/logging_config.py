# src/jobfeed/logging_config.py
import logging

LOG_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"


def configure_logging(level: str = "INFO") -> None:
    """Configure root logging once; later calls are no-ops."""
    if logging.getLogger().handlers:
        # Already configured (e.g. by an embedding app or pytest)
        return
    logging.basicConfig(level=level, format=LOG_FORMAT)
