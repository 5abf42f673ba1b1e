# --- Standard library imports ---
import time
from typing import Iterable

# --- Project imports ---
from .cache import CacheStore
from .logger import get_logger
from .models import AliasRecord


logger = get_logger("writer")

def persist(alias: AliasRecord, store: CacheStore) -> bool:
    """
    Record a provider-confirmed address for `alias`.

    Call only after the provider accepted `alias.address`. On success the
    in-memory last_update is set to the timestamp written to disk, so the
    next comparison against the cache sees the same value a restart would.

    Returns:
        True if the cache entry was written, False otherwise.
    """
    now = time.time()

    try:
        written = store.write(alias.name, alias.address, timestamp=now)
    except ValueError as e:
        logger.error(f"Cannot persist alias {alias.name!r}: {e}")
        return False

    if not written:
        logger.warning(
            f"Cache not updated for {alias.name}; "
            f"IP# {alias.address} may be re-sent after a restart"
        )
        return False

    alias.last_update = now
    return True

def persist_all(aliases: Iterable[AliasRecord], store: CacheStore) -> list[str]:
    """
    Persist every alias independently.

    Returns:
        Names of the aliases whose cache entry could not be written.
    """
    return [alias.name for alias in aliases if not persist(alias, store)]
