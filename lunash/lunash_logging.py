import logging
import os
import sys
from typing import ClassVar, Optional, Union

_DEFAULT_FORMAT = "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
_DEFAULT_DATEFMT = "%Y-%m-%d %H:%M:%S"
_configured: Union[bool, str, int] = False


def _supports_color() -> bool:
    try:
        return sys.stderr.isatty() and os.getenv("NO_COLOR") is None
    except Exception:
        return False


class _LevelColorFormatter(logging.Formatter):
    COLORS: ClassVar[dict[str, str]] = {
        "DEBUG": "\x1b[37m",
        "INFO": "\x1b[32m",
        "WARNING": "\x1b[33m",
        "ERROR": "\x1b[31m",
        "CRITICAL": "\x1b[41m",
    }
    RESET: ClassVar[str] = "\x1b[0m"

    def __init__(self, fmt=None, datefmt=None, use_color=False):
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        levelname = record.levelname
        color = self.COLORS.get(levelname, "") if self.use_color else ""
        record.levelname_color = f"{color}{levelname}{self.RESET}" if color else levelname
        return super().format(record)


def configure_logging(level: Optional[Union[str, int]] = None, fmt: Optional[str] = None) -> Union[str, int]:
    """Configure the ``lunash`` logger hierarchy once, writing to stderr.

    Environment overrides:
    - `LUNASH_LOG_LEVEL`
    - `LUNASH_LOG_FORMAT`
    """
    global _configured

    if level is None:
        level = os.getenv("LUNASH_LOG_LEVEL", "WARNING")
    if isinstance(level, str):
        level = level.upper()

    if _configured and _configured == level:
        return level
    _configured = level

    use_color = _supports_color()
    if fmt is None:
        fmt = os.getenv("LUNASH_LOG_FORMAT")
    if fmt is None:
        fmt = _DEFAULT_FORMAT.replace("%(levelname)s", "%(levelname_color)s") if use_color else _DEFAULT_FORMAT

    root = logging.getLogger("lunash")
    root.setLevel(level)
    handler = next((h for h in root.handlers if isinstance(h, logging.StreamHandler)), None)
    if handler is None:
        handler = logging.StreamHandler(sys.stderr)
        root.addHandler(handler)
    handler.setLevel(level)
    handler.setFormatter(_LevelColorFormatter(fmt=fmt, datefmt=_DEFAULT_DATEFMT, use_color=use_color))
    root.propagate = False

    # Transport chatter stays out of script output
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    return level


def get_logger(name: str) -> logging.Logger:
    """Return a module-scoped logger under the ``lunash`` hierarchy."""
    return logging.getLogger(name)
