import asyncio
import logging

from config import get_settings
from console import init_console
from database import init_db, close as db_close

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

async def main():
    """Fetch the marketplace once and log the moderation backlog."""
    try:
        settings = get_settings()
        logging.getLogger().setLevel(settings['log_level'])

        logger.info("Initializing database...")
        await init_db()

        console = init_console()
        snapshot = await console.refresh()
        for message in snapshot.diagnostics:
            logger.warning(message)
        if snapshot.fallback:
            logger.warning("Identity listing unavailable, showing sellers from their profiles only")

        summary = console.dashboard()
        logger.info(
            f"{summary.total_accounts} accounts "
            f"({summary.basic_users} users, {summary.sellers} sellers)"
        )
        logger.info(f"{summary.pending_sellers} sellers awaiting verification")
        logger.info(f"{summary.pending_listings} listings awaiting review")
        for account in summary.recent_accounts:
            logger.info(f"Recent: {account.email} [{account.type.value}] {account.status}")

    except Exception as e:
        logger.error(f"Fatal error: {e}")
        raise
    finally:
        await db_close()

if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        pass
