"""Process-wide logging setup."""

import logging

from crm.core.config import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
    # httpx logs every request at INFO, which drowns the pipeline steps
    logging.getLogger("httpx").setLevel(logging.WARNING)
