# --- Standard library imports ---
from dataclasses import dataclass, field
from typing import Iterable, Optional

# --- Project imports ---
from .config import Config


def check_address(address: str) -> str:
    """
    Validate an address string against MAX_ADDRESS_LEN.

    Overlong values are rejected, never truncated: a truncated IP is a
    different (wrong) IP.
    """
    if not isinstance(address, str):
        raise TypeError(f"address must be str, got {type(address).__name__}")

    if len(address) > Config.MAX_ADDRESS_LEN:
        raise ValueError(
            f"address exceeds {Config.MAX_ADDRESS_LEN} characters: {address[:16]!r}..."
        )
    return address


class AliasRecord:
    """
    In-memory state of one DNS record tracked for updates.

    - name:        hostname, immutable, keys the cache file
    - address:     last known IP ("" = unknown), length-bounded
    - last_update: epoch seconds of last confirmed update (0 = never)
    """

    __slots__ = ("_name", "_address", "last_update")

    def __init__(self, name: str, address: str = "", last_update: float = 0):
        self._name = name
        self._address = check_address(address)
        self.last_update = last_update

    @property
    def name(self) -> str:
        return self._name

    @property
    def address(self) -> str:
        return self._address

    @address.setter
    def address(self, value: str) -> None:
        self._address = check_address(value)

    def reset(self) -> None:
        """Forget any in-memory state before a (re)seed."""
        self._address = ""
        self.last_update = 0

    def __eq__(self, other) -> bool:
        if not isinstance(other, AliasRecord):
            return NotImplemented
        return (self.name, self.address, self.last_update) == (
            other.name, other.address, other.last_update
        )

    def __repr__(self) -> str:
        return (
            f"AliasRecord(name={self.name!r}, address={self.address!r}, "
            f"last_update={self.last_update!r})"
        )


@dataclass
class ProviderGroup:
    """Aliases updated through one provider/plugin identity."""
    provider: str
    aliases: list[AliasRecord] = field(default_factory=list)

    @property
    def nonslookup(self) -> bool:
        # No independently resolvable hostname, e.g. tunnelbroker
        return self.provider in Config.NO_HOSTNAME_PROVIDERS


@dataclass(frozen=True)
class CacheEntry:
    """One persisted record as found on disk."""
    address: str
    last_update: float


@dataclass(frozen=True)
class ResolutionResult:
    """Outcome of a single hostname lookup."""
    ip: Optional[str]
    success: bool
    elapsed_ms: float = 0.0
    error: Optional[str] = None


@dataclass
class SeedSummary:
    """Per-pass counters, one bucket per alias."""
    cached: int = 0
    migrated: int = 0
    resolved: int = 0
    skipped: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.cached + self.migrated + self.resolved + self.skipped + self.failed

    def __str__(self) -> str:
        return (
            f"cached={self.cached} migrated={self.migrated} "
            f"resolved={self.resolved} skipped={self.skipped} failed={self.failed}"
        )


def parse_provider_groups(text: str) -> list[ProviderGroup]:
    """
    Parse "provider:alias1,alias2;provider2:alias3" into ProviderGroups.

    Blank sections are ignored. A section without a provider separator,
    or an alias configured twice (anywhere), raises ValueError since both
    would otherwise share one cache file.
    """
    groups: list[ProviderGroup] = []
    seen: set[str] = set()

    for section in (text or "").split(";"):
        section = section.strip()
        if not section:
            continue

        provider, sep, names = section.partition(":")
        provider = provider.strip()
        if not sep or not provider:
            raise ValueError(f"Invalid provider section (expected provider:aliases): {section!r}")

        group = ProviderGroup(provider)
        for name in _split_names(names):
            if name in seen:
                raise ValueError(f"Alias configured more than once: {name}")
            seen.add(name)
            group.aliases.append(AliasRecord(name))

        groups.append(group)

    return groups

def _split_names(names: str) -> Iterable[str]:
    return (n.strip() for n in names.split(",") if n.strip())
