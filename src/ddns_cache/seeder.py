# --- Standard library imports ---
import time
from enum import Enum, auto
from datetime import datetime
from typing import Iterable, Optional

# --- Project imports ---
from .cache import CacheStore
from .logger import get_logger, tlog
from .models import AliasRecord, CacheEntry, ProviderGroup, SeedSummary
from .utils import elapsed_ms


class InvalidContextError(ValueError):
    """Seeding was called without any provider configuration."""


class SeedState(Enum):
    """
    How one alias got its startup state.

    - CACHED:   per-alias cache entry, authoritative
    - MIGRATED: adopted from the legacy shared cache file
    - RESOLVED: live DNS answer, last_update unknown (0)
    - SKIPPED:  cache miss on a provider without a resolvable name
    - FAILED:   unusable name or failed lookup; address unknown
    """
    CACHED = auto()
    MIGRATED = auto()
    RESOLVED = auto()
    SKIPPED = auto()
    FAILED = auto()

    def __str__(self) -> str:
        return self.name

SEED_EMOJI = {
    SeedState.CACHED:   "🟢",
    SeedState.MIGRATED: "🟡",
    SeedState.RESOLVED: "🟡",
    SeedState.SKIPPED:  "⚪",
    SeedState.FAILED:   "🔴",
}

class Seeder:
    """
    Populate in-memory alias state at startup (or restart).

    At boot the client knows nothing about what it last sent to each
    provider. Sending an update "just in case" risks getting the account
    locked for abuse, so every alias is seeded with the address from its
    cache file, or failing that, from a live DNS lookup of the alias.

    Precedence per alias:
        1. current per-alias cache entry (no lookup)
        2. legacy shared cache entry (migrated into a per-alias entry)
        3. DNS resolution, unless the provider has no resolvable hostname

    Per-alias failures are logged and counted, never raised.
    """

    def __init__(self, store: CacheStore, resolver):
        self.store = store
        self.resolver = resolver
        self.logger = get_logger("seeder")
        self._migration_failed = False

    def seed(self, groups: Optional[Iterable[ProviderGroup]]) -> SeedSummary:
        """
        Run one seeding pass over every alias of every provider group.

        Raises:
            InvalidContextError: if `groups` is None (nothing to iterate)
        """
        if groups is None:
            raise InvalidContextError("seed() requires provider groups, got None")

        start = time.monotonic()
        summary = SeedSummary()
        self._migration_failed = False

        # Process-wide: once per pass, before the first lookup
        self.resolver.reset_cache()

        legacy = self.store.load_legacy()
        if legacy is not None:
            self.logger.info(
                f"Found legacy cache file {self.store.legacy_path} "
                f"(IP# {legacy.address or '<empty>'})"
            )

        seen: set[str] = set()
        for group in groups:
            for alias in group.aliases:
                if alias.name in seen:
                    self.logger.warning(
                        f"Alias {alias.name} configured more than once; entries share one cache file"
                    )
                seen.add(alias.name)

                state = self._seed_one(alias, group.nonslookup, legacy)
                self._count(summary, state)

        if legacy is not None:
            if self._migration_failed:
                self.logger.warning(
                    f"Keeping legacy cache file {self.store.legacy_path}: migration incomplete"
                )
            else:
                self.store.remove_legacy()

        self.logger.info(f"Seeded {summary.total} aliases ({summary})")
        self.logger.timing(f"Seed pass {'':<26} [{elapsed_ms(start):8.1f} ms]")
        return summary

    def _seed_one(
        self,
        alias: AliasRecord,
        nonslookup: bool,
        legacy: Optional[CacheEntry],
    ) -> SeedState:
        alias.reset()

        try:
            entry = self.store.read(alias.name)
        except ValueError as e:
            self.logger.error(f"Cannot seed alias {alias.name!r}: {e}")
            return SeedState.FAILED

        if entry is not None:
            self._apply(alias, entry)
            self.logger.info(f"Cached IP# {entry.address} from previous invocation.")
            self._log_last_update(alias)
            self._tlog(SeedState.CACHED, alias, f"ip={alias.address or '—'}")
            return SeedState.CACHED

        if legacy is not None:
            self._apply(alias, legacy)
            written = self.store.write(alias.name, legacy.address, timestamp=legacy.last_update)
            if not written:
                self._migration_failed = True
            self._log_last_update(alias)
            self._tlog(
                SeedState.MIGRATED, alias,
                f"ip={alias.address or '—'}" + ("" if written else " | write=failed"),
            )
            return SeedState.MIGRATED

        if nonslookup:
            self._tlog(SeedState.SKIPPED, alias, "cache miss, no hostname to resolve")
            return SeedState.SKIPPED

        # Try a DNS lookup of our last known IP#
        result = self.resolver.resolve(alias.name)
        if not result.success:
            self._tlog(SeedState.FAILED, alias, f"cache miss, resolve failed: {result.error}")
            return SeedState.FAILED

        try:
            alias.address = result.ip
        except ValueError as e:
            self.logger.warning(f"Discarding resolved address for {alias.name}: {e}")
            return SeedState.FAILED

        self._tlog(SeedState.RESOLVED, alias, f"cache miss, ip={alias.address}")
        return SeedState.RESOLVED

    @staticmethod
    def _apply(alias: AliasRecord, entry: CacheEntry) -> None:
        alias.address = entry.address
        alias.last_update = entry.last_update

    def _log_last_update(self, alias: AliasRecord) -> None:
        try:
            when = datetime.fromtimestamp(alias.last_update).strftime("%a %b %d %H:%M:%S %Y")
        except (OverflowError, OSError, ValueError):
            when = f"<invalid timestamp {alias.last_update!r}>"
        self.logger.info(f"Last update of {alias.name} on {when}")

    def _tlog(self, state: SeedState, alias: AliasRecord, meta: str) -> None:
        tlog(self.logger, SEED_EMOJI[state], "SEED", state.name, primary=alias.name, meta=meta)

    @staticmethod
    def _count(summary: SeedSummary, state: SeedState) -> None:
        bucket = state.name.lower()
        setattr(summary, bucket, getattr(summary, bucket) + 1)
