# --- Standard library imports ---
import os
from pathlib import Path

# --- Third-party imports ---
from dotenv import load_dotenv


# Load .env once
load_dotenv()

class Config:
    """Centralized config for cache layout, resolution and observability"""

    # --- Cache layout ---
    CACHE_DIR = Path(
        os.getenv("DDNS_CACHE_DIR", Path.home() / ".cache" / "ddns_cache")
    ).expanduser()
    CACHE_FILE_TEMPLATE = "{name}.cache"   # NOT user configurable
    LEGACY_CACHE_FILE = os.getenv("LEGACY_CACHE_FILE", "ddns.cache")
    CACHE_FORMAT = os.getenv("CACHE_FORMAT", "json").lower()   # json | text

    # --- Record limits (NOT user configurable) ---
    MAX_ADDRESS_LEN = 64

    # --- Resolution Policy ---
    RESOLVER = os.getenv("RESOLVER", "system").lower()   # system | doh
    DOH_URL = os.getenv("DOH_URL", "https://cloudflare-dns.com/dns-query")

    try:
        API_TIMEOUT = int(os.getenv("API_TIMEOUT", 8))
    except ValueError:
        API_TIMEOUT = 8

    # Providers without a resolvable hostname (tunnel endpoints etc.)
    NO_HOSTNAME_PROVIDERS = frozenset(
        p.strip()
        for p in os.getenv("NO_HOSTNAME_PROVIDERS", "ipv6tb@he.net").split(",")
        if p.strip()
    )

    # --- Providers & aliases ---
    # Format: "provider:alias1,alias2;provider2:alias3"
    DDNS_PROVIDERS = os.getenv("DDNS_PROVIDERS", "")

    # --- Observability Policy ---
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_TIMING = os.getenv("LOG_TIMING", "false").lower() == "true"
