"""Entry point for the distribution worker daemon."""

import signal
import sys

from common.logging_config import setup_logging, set_correlation_id
from controller.account_pool import register_configured_accounts
from controller.config import STORAGE_ACCOUNTS
from controller.database import init_database
from controller.exceptions import ConfigurationError
from controller.service_locator import get_account_pool
from worker.distribution_worker import DistributionWorker

logger = setup_logging('worker')


def main() -> None:
    """Bootstrap the worker and block in its poll loop until signalled."""
    logger.info("Initializing distribution worker...")

    init_database()
    register_configured_accounts(STORAGE_ACCOUNTS)

    try:
        worker = DistributionWorker(get_account_pool())
    except ConfigurationError as e:
        logger.error(f"Invalid worker configuration: {e}")
        sys.exit(2)

    set_correlation_id(logger, worker.worker_id)

    def shutdown(signum, frame):
        logger.info(f"Received signal {signum}, finishing current job and stopping...")
        worker.stop()

    if sys.platform != 'win32':
        signal.signal(signal.SIGTERM, shutdown)
    signal.signal(signal.SIGINT, shutdown)

    worker.run_forever()
    logger.info("Worker shutdown complete")


if __name__ == "__main__":
    main()
