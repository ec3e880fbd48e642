"""Financial independence projection engine."""

import logging
from typing import Optional

from fi_engine.config import EngineSettings, get_global_settings

__version__ = "0.1.0"


def configure_logging(settings: Optional[EngineSettings] = None) -> None:
    """Configure the ``fi_engine`` logger from engine settings.

    Args:
        settings: Settings to read the log level from (global settings if omitted)
    """
    settings = settings or get_global_settings()
    logger = logging.getLogger("fi_engine")
    logger.setLevel(settings.log_level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(levelname)s %(name)s: %(message)s")
        )
        logger.addHandler(handler)
