# --- Standard library imports ---
import os
import json
import math
import time
from datetime import datetime
from pathlib import Path
from typing import Optional

# --- Project imports ---
from .config import Config
from .logger import get_logger
from .models import CacheEntry, check_address


# --- Cache formats ---
FORMAT_JSON = "json"   # {"address": ..., "last_update": ...}, explicit timestamp
FORMAT_TEXT = "text"   # raw address, timestamp is the file mtime
CACHE_FORMATS = (FORMAT_JSON, FORMAT_TEXT)

# First-line read bound; a JSON entry with a maximal address is well under it
READ_LIMIT = 4 * Config.MAX_ADDRESS_LEN

logger = get_logger("cache")

def check_timestamp(value: float) -> float:
    """
    Validate an epoch timestamp before it is trusted as last_update.

    Raises:
        ValueError: if it is not finite or outside the platform time range
    """
    if not math.isfinite(value):
        raise ValueError(f"last_update is not finite: {value!r}")

    try:
        datetime.fromtimestamp(value)
    except (OverflowError, OSError, ValueError):
        raise ValueError(f"last_update out of range: {value!r}") from None
    return value

class CacheStore:
    """
    One cache file per alias, keyed by hostname.

    Layout:
        <cache_dir>/<alias-name>.cache     current per-alias entries
        <cache_dir>/<legacy_file>          pre-migration shared entry

    A missing or unreadable entry is a cache miss, never an error.
    Writes are best-effort and report failure via their return value.
    """

    def __init__(
        self,
        cache_dir: Path | str | None = None,
        fmt: str | None = None,
        legacy_file: str | None = None,
    ):
        self.cache_dir = Path(cache_dir) if cache_dir is not None else Config.CACHE_DIR
        self.fmt = (fmt or Config.CACHE_FORMAT).lower()
        if self.fmt not in CACHE_FORMATS:
            raise ValueError(
                f"Unknown cache format {self.fmt!r} (expected one of: {', '.join(CACHE_FORMATS)})"
            )
        self.legacy_path = self.cache_dir / (legacy_file or Config.LEGACY_CACHE_FILE)

    # --- Paths ---
    def path_for(self, name: str) -> Path:
        """
        Map an alias name to its cache file.

        Raises:
            ValueError: if the name cannot safely be used as a file name
        """
        if not name or name in (".", "..") or "/" in name or os.sep in name or "\0" in name:
            raise ValueError(f"Alias name is not usable as a cache key: {name!r}")

        path = self.cache_dir / Config.CACHE_FILE_TEMPLATE.format(name=name)
        if path == self.legacy_path:
            raise ValueError(f"Alias name collides with the legacy cache file: {name!r}")
        return path

    # --- Read ---
    def read(self, name: str) -> Optional[CacheEntry]:
        """
        Return the cached entry for `name`, or None on a miss.
        """
        return self._read_path(self.path_for(name))

    def load_legacy(self) -> Optional[CacheEntry]:
        """Return the shared pre-migration entry, if one is still on disk."""
        return self._read_path(self.legacy_path)

    def _read_path(self, path: Path) -> Optional[CacheEntry]:
        try:
            with open(path, "r", encoding="utf-8") as fp:
                line = fp.readline(READ_LIMIT)
                mtime = os.fstat(fp.fileno()).st_mtime
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning(f"Cache file {path} unreadable ({e.__class__.__name__}); treating as miss")
            return None

        try:
            if len(line) >= READ_LIMIT and not line.endswith("\n"):
                raise ValueError(f"first line exceeds {READ_LIMIT} characters")
            return self._decode(line.strip(), mtime)
        except ValueError as e:
            logger.warning(f"Cache file {path} is corrupt ({e}); treating as miss")
            return None

    def _decode(self, content: str, mtime: float) -> CacheEntry:
        if not content.startswith("{"):
            return CacheEntry(address=check_address(content), last_update=mtime)

        data = json.loads(content)   # JSONDecodeError is a ValueError
        if not isinstance(data, dict):
            raise ValueError("expected a JSON object")

        address = data.get("address", "")
        if not isinstance(address, str):
            raise ValueError("address is not a string")

        last_update = data.get("last_update")
        if not isinstance(last_update, (int, float)) or isinstance(last_update, bool):
            last_update = mtime

        return CacheEntry(
            address=check_address(address),
            last_update=check_timestamp(float(last_update)),
        )

    # --- Write ---
    def write(self, name: str, address: str, timestamp: float | None = None) -> bool:
        """
        Persist `address` for `name`, replacing any previous entry.

        The file mtime is set to `timestamp` (default: now) so that both
        formats report the same last_update on the next read.

        Returns:
            True on success, False if the entry could not be written.
        """
        return self._write_path(self.path_for(name), check_address(address), timestamp)

    def _write_path(self, path: Path, address: str, timestamp: float | None) -> bool:
        if timestamp is None:
            timestamp = time.time()

        try:
            timestamp = check_timestamp(timestamp)
        except ValueError as e:
            logger.error(f"Refusing to write cache file {path}: {e}")
            return False

        if self.fmt == FORMAT_JSON:
            content = json.dumps({"address": address, "last_update": timestamp})
        else:
            content = address

        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            with open(path, "w", encoding="utf-8") as fp:
                fp.write(content)
            os.utime(path, (timestamp, timestamp))
        except (OSError, ValueError, OverflowError) as e:
            logger.error(f"Failed writing cache file {path}: {e}")
            return False

        logger.debug(f"Cache file {path} updated → {address or '<empty>'}")
        return True

    def remove_legacy(self) -> bool:
        """
        Delete the shared pre-migration file.

        Returns:
            True if it is gone (removed now, or already absent).
        """
        try:
            self.legacy_path.unlink()
        except FileNotFoundError:
            return True
        except OSError as e:
            logger.error(f"Failed removing legacy cache file {self.legacy_path}: {e}")
            return False

        logger.info(f"Removed legacy cache file {self.legacy_path}")
        return True
