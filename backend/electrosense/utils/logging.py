import logging
import sys

from electrosense.config import settings


def get_logger(name: str) -> logging.Logger:
    """
    Return the `electrosense.<name>` logger, attaching the stdout handler once.
    """
    log = logging.getLogger(f"electrosense.{name}")
    log.setLevel(settings.LOG_LEVEL.upper())
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter(f"[{name.upper()}] %(levelname)s %(message)s"))
        log.addHandler(h)
    return log
