import logging
from typing import Optional

from formbuilder.config import get_log_level


def setup_logging(level: Optional[str] = None) -> None:
    level_name = (level or get_log_level()).upper()
    lvl = getattr(logging, level_name, logging.INFO)

    logger = logging.getLogger()
    logger.setLevel(lvl)
    logger.handlers.clear()

    fmt = logging.Formatter(
        fmt="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
        datefmt="%Y-%m-%dT%H:%M:%S",
    )

    sh = logging.StreamHandler()
    sh.setLevel(lvl)
    sh.setFormatter(fmt)
    logger.addHandler(sh)

    logging.getLogger("multipart").setLevel(logging.WARNING)
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
