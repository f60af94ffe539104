import logging
import sys
from typing import Union


class _LibraryNoiseFilter(logging.Filter):
    """Keep httpx/httpcore request lines out of the console unless something went wrong"""

    def filter(self, record: logging.LogRecord) -> bool:
        if record.name.startswith(("httpx", "httpcore")):
            return record.levelno >= logging.WARNING
        return True


def setup_logging(level: Union[int, str] = logging.INFO) -> None:
    """
    Configure root logging with one stderr handler.

    Call this once at startup; calling it again replaces the handler instead of duplicating it.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO

    root = logging.getLogger()
    root.setLevel(level)

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setLevel(level)
    ch.setFormatter(fmt)
    ch.addFilter(_LibraryNoiseFilter())
    root.addHandler(ch)

    logging.captureWarnings(True)
