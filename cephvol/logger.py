"""Module with the cephvol logger and helpers to configure and feed it."""

import logging
from typing import Any

# Requests are handled on worker threads, so log lines carry the thread name
_FORMAT = "%(asctime)s - %(threadName)s - %(levelname)s - %(message)s"


def set_debug(enabled: bool) -> None:
    """Log everything in debug mode and only errors otherwise."""
    log.setLevel(logging.DEBUG if enabled else logging.ERROR)


def summarize(obj: Any, max_length: int = 255) -> str:
    """Return str(obj), cut off with an ellipsis beyond the given length."""
    text = str(obj)

    if len(text) > max_length:
        text = text[: max_length - 3] + "..."

    return text


log = logging.getLogger("cephvol")

_handler = logging.StreamHandler()
_handler.setFormatter(logging.Formatter(_FORMAT))
log.addHandler(_handler)
