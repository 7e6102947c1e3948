# userhub/app/core/logging.py
import logging

from pythonjsonlogger.json import JsonFormatter

from userhub.app.core.config import Settings

TEXT_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
JSON_FORMAT = "%(asctime)s %(levelname)s %(name)s %(message)s"


def setup_logging(settings: Settings) -> None:
    """
    Install a single stream handler on the root logger.

    JSON output keeps the `extra` fields passed to log calls (for example the
    rollback failure events), so they can be picked up by log shipping.
    Calling this twice replaces the handler instead of stacking a new one.
    """
    handler = logging.StreamHandler()
    if settings.LOG_JSON:
        handler.setFormatter(
            JsonFormatter(
                JSON_FORMAT,
                rename_fields={"levelname": "level", "asctime": "timestamp"},
            )
        )
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger()
    for existing in list(root.handlers):
        if getattr(existing, "_userhub", False):
            root.removeHandler(existing)
    handler._userhub = True
    root.addHandler(handler)
    root.setLevel(settings.LOG_LEVEL.upper())
