import logging
import os
import time

from src.application.expiry_reaper import ExpiryReaper
from src.domain.expiry import ExpiryPolicy
from src.infrastructure.db.session import get_db_session
from src.infrastructure.settings import get_settings

logger = logging.getLogger(__name__)


def reap_once(policy: ExpiryPolicy) -> int:
    with get_db_session() as db:
        return ExpiryReaper(db, policy).release_expired_holds()


def main() -> None:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level)
    policy = ExpiryPolicy(ttl=settings.hold_ttl)

    # REAPER_RUN_ONCE=1 for cron-style runs.
    if os.getenv("REAPER_RUN_ONCE") == "1":
        released = reap_once(policy)
        print(f"Released {released} expired holds.")
        return

    logger.info(
        "Reaping holds older than %.0fs every %.0fs",
        settings.hold_ttl_seconds,
        settings.reaper_interval_seconds,
    )
    while True:
        reap_once(policy)
        time.sleep(settings.reaper_interval_seconds)


if __name__ == "__main__":
    main()
