"""
Logging setup for the token service.
"""
import logging
import os
import sys

from ..config import Settings

LOG_FORMAT = "%(asctime)s %(levelname)s:%(name)s:%(message)s"


def configure_logging(settings: Settings) -> None:
    """
    Configure stdout logging and, when LOG_DIR is set, a log file.

    File logging is optional: if the directory cannot be created the service
    keeps logging to stdout only.
    """
    handlers = [logging.StreamHandler(sys.stdout)]

    if settings.LOG_DIR:
        try:
            os.makedirs(settings.LOG_DIR, exist_ok=True)
            handlers.append(logging.FileHandler(os.path.join(settings.LOG_DIR, "token_service.log")))
        except OSError as e:
            print(f"WARNING: Could not set up file logging: {e}", file=sys.stderr)

    logging.basicConfig(
        level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
        format=LOG_FORMAT,
        handlers=handlers,
        force=True,
    )
