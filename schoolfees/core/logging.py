import logging
import sys
from typing import Optional

from schoolfees.core.config import settings

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"


def configure_logging(level: Optional[str] = None) -> None:
    """Install the stdout handler once; later calls only adjust the level."""
    logging.basicConfig(stream=sys.stdout, format=LOG_FORMAT)
    logging.getLogger().setLevel((level or settings.log_level).upper())
