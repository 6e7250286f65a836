import logging
from typing import Optional

from wirekv.config.settings import get_settings

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None):
    logging.basicConfig(
        level=(level or get_settings().LOG_LEVEL).upper(),
        format=LOG_FORMAT,
    )
