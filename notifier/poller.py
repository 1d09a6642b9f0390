"""
Poller process.

Runs one poll cycle over the configured repositories: clone what is
missing, look for new commits and email them. Meant to be started
periodically by an external scheduler such as cron.
"""

import asyncio
import sys
from typing import List

from notifier.config import ConfigurationError, settings
from notifier.models.poll_result import PollResult
from notifier.services.git_notifier import get_git_notifier
from notifier.services.mail_sender import get_mail_sender
from notifier.services.repository_config import (
    RepositoryValidationError,
    get_repository_config_service,
)
from notifier.utils.logging import setup_logging, get_logger
from notifier.utils.metrics import emit_metric

logger = get_logger(__name__)


async def main() -> List[PollResult]:
    """
    Poll every configured repository once.

    Returns:
        Per-repository results

    Raises:
        ConfigurationError: If sender/recipient addresses are missing
        RepositoryValidationError: If the repository list is invalid
    """
    mail_sender = get_mail_sender()
    repositories = get_repository_config_service().list_repositories()

    if not repositories:
        logger.warning("No repositories configured, nothing to poll")
        return []

    notifier = get_git_notifier(mail_sender=mail_sender)
    results = await notifier.poll(repositories)

    summary = notifier.metrics.get_metrics_summary()
    for status, count in summary["repository_outcomes"].items():
        emit_metric(f"repositories.{status}", count, cycle_id=summary["cycle_id"])
    if summary["duration_ms"] is not None:
        emit_metric("poll.duration_ms", summary["duration_ms"], cycle_id=summary["cycle_id"])

    return results


def run() -> None:
    """Console entry point."""
    setup_logging(settings.log_level.upper())
    logger.info("Poller starting...")

    try:
        asyncio.run(main())
    except (ConfigurationError, RepositoryValidationError) as e:
        logger.error(f"Invalid configuration: {e}")
        sys.exit(1)
    except KeyboardInterrupt:
        logger.info("Keyboard interrupt received")
        sys.exit(130)


if __name__ == "__main__":
    run()
