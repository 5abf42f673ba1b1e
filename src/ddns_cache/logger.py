# --- Standard library imports ---
import sys
import logging
from typing import TextIO

# --- Project imports ---
from .config import Config


# --- Custom log levels ---
TIMING = 25   # Between INFO (20) and WARNING (30)
logging.addLevelName(TIMING, "TIME")

def timing(self, message, *args, **kwargs):
    """Add `timing` method to Logger for TIMING-level logs."""
    if self.isEnabledFor(TIMING):
        self._log(TIMING, message, args, stacklevel=2, **kwargs)

logging.Logger.timing = timing

class TimingFilter(logging.Filter):
    """Drop TIMING records unless timing output was requested."""
    def __init__(self, enabled: bool):
        super().__init__()
        self.enabled = enabled

    def filter(self, record: logging.LogRecord) -> bool:
        return self.enabled or record.levelno != TIMING

# --- Level decorations ---
LOG_LEVEL_EMOJIS = {
    logging.DEBUG: "🧱",
    logging.INFO: "🟢",
    TIMING: "⚡️",
    logging.WARNING: "⚠️ ",
    logging.ERROR: "❌",
    logging.CRITICAL: "🔥",
}

SHORT_LEVEL_NAMES = {
    "WARNING": "WARN",
    "CRITICAL": "FATAL",
}

class EmojiFormatter(logging.Formatter):
    """Prefix each record with a level emoji and a short level name."""

    def format(self, record: logging.LogRecord) -> str:
        record.levelemoji = LOG_LEVEL_EMOJIS.get(record.levelno, "")
        record.levelshort = SHORT_LEVEL_NAMES.get(record.levelname, record.levelname)
        return super().format(record)

def resolve_level(level: int | str) -> int:
    """
    Map a level name such as "info" or "TIME" to its numeric value.

    Unknown names fall back to INFO rather than failing startup.
    """
    if isinstance(level, int):
        return level

    value = logging.getLevelName(str(level).strip().upper())
    return value if isinstance(value, int) else logging.INFO

# --- Public logging setup API ---
def setup_logging(
    level: int | str = logging.INFO,
    log_timing: bool | None = None,
    stream: TextIO | None = None,
) -> None:
    """
    Configure the root logger for the cache/seed tooling.

    Any previously installed handlers are replaced, so calling this again
    (e.g. on restart) never duplicates output. TIMING records are shown
    only when `log_timing` (default: Config.LOG_TIMING) is true.
    """
    if log_timing is None:
        log_timing = Config.LOG_TIMING

    root = logging.getLogger()
    root.setLevel(resolve_level(level))
    root.handlers.clear()

    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(EmojiFormatter(
        fmt="%(asctime)s %(levelemoji)s %(levelshort)-5s %(name)s → %(message)s",
        datefmt="%H:%M:%S",
    ))
    handler.addFilter(TimingFilter(enabled=log_timing))
    root.addHandler(handler)

def get_logger(name: str) -> logging.Logger:
    """Return a logger namespaced under the package."""
    return logging.getLogger(f"ddns_cache.{name}")

def tlog(
    logger: logging.Logger,
    emoji: str,
    subsystem: str,
    state: str,
    primary: str = "—--",
    meta: str | None = None,
) -> None:
    """
    Emit a standardized telemetry log "tlog" line.

    Format:
        SUBSYSTEM STATE PRIMARY | meta data
    """
    msg = f"{subsystem:<8} {state:<9} {primary:<28}"
    if meta:
        msg += f" | {meta}"

    logger.info(f"{emoji} {msg}", stacklevel=2)
