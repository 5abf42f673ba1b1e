# --- Standard library imports ---
import time
import ctypes
import ctypes.util
import socket
from functools import lru_cache
from typing import Callable, Optional

# --- Third-party imports ---
import requests

# --- Project imports ---
from .config import Config
from .logger import get_logger
from .models import ResolutionResult
from .utils import is_valid_ip, elapsed_ms


# Define the logger once for the entire module
logger = get_logger("resolver")

@lru_cache(maxsize=1)
def _load_res_init() -> Optional[Callable[[], int]]:
    """
    Locate the libc stub-resolver initializer, if the platform has one.

    glibc exports it as __res_init (res_init is a header macro); older
    systems keep it in libresolv.
    """
    for lib in (ctypes.util.find_library("c"), ctypes.util.find_library("resolv")):
        if not lib:
            continue
        try:
            handle = ctypes.CDLL(lib)
        except OSError:
            continue

        for symbol in ("__res_init", "res_init"):
            fn = getattr(handle, symbol, None)
            if fn is not None:
                fn.argtypes = []
                fn.restype = ctypes.c_int
                return fn
    return None

def _failure(hostname: str, start: float, reason: str) -> ResolutionResult:
    logger.warning(f"Failed resolving hostname {hostname}: {reason}")
    return ResolutionResult(
        ip=None, success=False, elapsed_ms=elapsed_ms(start), error=reason
    )


class SystemResolver:
    """
    Forward IPv4 lookups through the system resolver (getaddrinfo).

    Answers may pass through local caching layers such as nscd, so the
    seeding pass calls reset_cache() once before its first lookup.
    """

    name = "system"

    def reset_cache(self) -> bool:
        """
        Re-initialize the stub resolver so the next lookup re-reads
        resolv.conf and skips stale process-local state.

        Returns:
            True if the reset ran, False if unavailable or it failed.
        """
        res_init = _load_res_init()
        if res_init is None:
            logger.debug("res_init() not available on this platform; skipping resolver reset")
            return False

        rc = res_init()
        if rc != 0:
            logger.warning(f"res_init() failed (rc={rc}); lookups may see cached answers")
            return False

        logger.debug("Stub resolver re-initialized")
        return True

    def resolve(self, hostname: str) -> ResolutionResult:
        """
        Resolve `hostname` to a numeric IPv4 address.

        Never raises for lookup problems: failures come back as
        ResolutionResult(success=False, error=<resolver message>).
        """
        start = time.monotonic()

        try:
            infos = socket.getaddrinfo(
                hostname, None, family=socket.AF_INET, type=socket.SOCK_DGRAM
            )
        except (socket.gaierror, UnicodeError) as e:
            return _failure(hostname, start, getattr(e, "strerror", None) or str(e))

        if not infos:
            return _failure(hostname, start, "no address records returned")

        sockaddr = infos[0][4]
        try:
            address, _ = socket.getnameinfo(sockaddr, socket.NI_NUMERICHOST)
        except OSError as e:
            return _failure(hostname, start, getattr(e, "strerror", None) or str(e))

        result = ResolutionResult(ip=address, success=True, elapsed_ms=elapsed_ms(start))
        logger.info(f"Resolving hostname {hostname} → IP# {address}")
        logger.timing(f"Resolve {hostname:<28} [{result.elapsed_ms:8.1f} ms]")
        return result


class DohResolver:
    """
    Resolve A records over DNS-over-HTTPS (JSON API).

    Bypasses every local cache, so reset_cache() has nothing to do.
    """

    name = "doh"

    def __init__(self, url: str | None = None, timeout: int | None = None):
        self.url = url or Config.DOH_URL
        self.timeout = timeout if timeout is not None else Config.API_TIMEOUT
        self.headers = {"Accept": "application/dns-json"}

    def reset_cache(self) -> bool:
        return True

    def resolve(self, hostname: str) -> ResolutionResult:
        start = time.monotonic()
        params = {"name": hostname, "type": "A"}

        try:
            resp = requests.get(
                self.url,
                params=params,
                headers=self.headers,
                timeout=self.timeout,
            )
            resp.raise_for_status()
            data = resp.json()
        except requests.RequestException as e:
            return _failure(hostname, start, f"DoH request failed ({e.__class__.__name__})")
        except ValueError:
            return _failure(hostname, start, "DoH response was not valid JSON")

        answers = (data.get("Answer") if isinstance(data, dict) else None) or []

        # CNAME chains come back first; take the first A record
        ip = next(
            (a.get("data") for a in answers
             if isinstance(a, dict) and a.get("type") in (None, 1)),
            None,
        )
        if not ip:
            return _failure(hostname, start, "no A-record returned")
        if not is_valid_ip(ip):
            return _failure(hostname, start, f"invalid A-record {ip!r}")

        result = ResolutionResult(ip=ip, success=True, elapsed_ms=elapsed_ms(start))
        logger.info(f"Resolving hostname {hostname} → IP# {ip} (DoH)")
        logger.timing(f"DoH {hostname:<32} [{result.elapsed_ms:8.1f} ms]")
        return result


RESOLVERS = {
    SystemResolver.name: SystemResolver,
    DohResolver.name: DohResolver,
}

def make_resolver(kind: str | None = None):
    """
    Build the resolver selected by `kind` (default: Config.RESOLVER).

    Raises:
        ValueError: for an unknown resolver kind
    """
    kind = (kind or Config.RESOLVER).lower()
    try:
        return RESOLVERS[kind]()
    except KeyError:
        raise ValueError(
            f"Unknown resolver {kind!r} (expected one of: {', '.join(sorted(RESOLVERS))})"
        ) from None
