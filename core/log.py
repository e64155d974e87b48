import logging

from core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    """Configure the root logger once for the API process."""
    root = logging.getLogger()
    if root.handlers:
        root.setLevel(settings.LOG_LEVEL)
        return
    logging.basicConfig(level=settings.LOG_LEVEL, format=LOG_FORMAT)
