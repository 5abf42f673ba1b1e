# --- Standard library imports ---
import sys

# --- Project imports ---
from .config import Config
from .cache import CacheStore
from .seeder import Seeder
from .resolver import make_resolver
from .models import parse_provider_groups
from .logger import get_logger, setup_logging


def main() -> int:
    """
    Seed every configured alias once and report the resulting state.

    Providers and aliases come from DDNS_PROVIDERS, e.g.
        DDNS_PROVIDERS="default@dyndns.org:home.example.com;ipv6tb@he.net:tunnel.example.com"

    Returns a non-zero exit code only for configuration errors; per-alias
    cache or resolution problems are logged and do not fail the run.
    """
    setup_logging(level=Config.LOG_LEVEL)
    logger = get_logger("main")
    logger.info("🚀 Seeding DDNS alias state")
    logger.debug(f"Python version: {sys.version}")

    try:
        groups = parse_provider_groups(Config.DDNS_PROVIDERS)
        store = CacheStore()
        resolver = make_resolver()
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 2

    if not groups:
        logger.warning("No providers configured (set DDNS_PROVIDERS)")
        return 0

    logger.info(f"Cache dir {store.cache_dir} | format={store.fmt} | resolver={resolver.name}")
    Seeder(store, resolver).seed(groups)

    for group in groups:
        for alias in group.aliases:
            logger.info(
                f"{group.provider:<20} {alias.name:<28} "
                f"ip={alias.address or '—'} last_update={alias.last_update:.0f}"
            )
    return 0

if __name__ == "__main__":
    sys.exit(main())
