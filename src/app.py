"""
Main Application Entry Point.

Runs one stale pull request pass:
- Configuration loading and logging setup
- Watch-list parsing
- Open pull request lookup across all watched repositories
- Desktop notification of the aggregated result

The pass is meant to be triggered externally (cron, launchd, ...). Only
configuration errors make the process exit with a non-zero status.
"""

import asyncio
import sys
from typing import Optional

from config import ConfigurationError, Settings, load_settings, logger
from logger import LogManager
from analyzers.multi_repository import StaleReportAggregator
from miners.base import PullRequestSource
from miners.github_miner import GitHubMiner
from notifications.presenter import (
    DesktopNotificationPresenter,
    NotificationPresenter,
    notify_stale_report,
)
from watchlist import parse_watch_list


async def main(
    settings: Optional[Settings] = None,
    source: Optional[PullRequestSource] = None,
    presenter: Optional[NotificationPresenter] = None,
) -> int:
    """
    Execute one stale pull request pass.

    Args:
        settings (Optional[Settings]): Settings to use, loaded from the environment when None
        source (Optional[PullRequestSource]): Pull request source, GitHub when None
        presenter (Optional[NotificationPresenter]): Notification backend, desktop when None

    Returns:
        int: Process exit status

    Note:
        - Invalid watch-list entries are logged and skipped
        - Failed repositories are logged but don't stop execution
        - Notification failures are logged and don't change the exit status
    """
    if settings is None:
        try:
            settings = load_settings()
        except ConfigurationError as e:
            logger.critical({"message": "Cannot start prnotify", "error": str(e)})
            return 1

    LogManager(
        app_name=settings.app_name.lower(),
        log_dir=settings.log_dir,
        development=settings.dev,
        level=settings.log_level,
        syslog=settings.syslog,
    )

    watch_list = parse_watch_list(settings.repos_to_watch)
    for entry in watch_list.invalid_entries:
        logger.error(
            {
                "message": "Invalid repo name supplied. If repo name is "
                "github.com/owner/repo, supplied format is 'owner/repo'",
                "repo": entry,
            }
        )

    logger.info(
        {
            "message": "Starting prnotify, watching repos",
            "repos": [ref.full_name for ref in watch_list.valid_refs],
        }
    )

    if source is None:
        logger.debug("initializing github miner...")
        source = GitHubMiner(
            settings.github_api_token.get_secret_value(),
            base_url=settings.github_base_url,
        )

    aggregator = StaleReportAggregator(
        source, settings.stale_threshold, settings.max_workers
    )
    report = await aggregator.run(watch_list.valid_refs)

    logger.debug(
        {
            "message": "Stale pull requests",
            "stale_count": report.stale_count,
            "stale_urls": report.stale_urls,
            "failed_repositories": report.failed_repositories,
        }
    )

    if presenter is None:
        presenter = DesktopNotificationPresenter(
            settings.app_name, settings.notification_timeout_seconds
        )
    await notify_stale_report(presenter, report, settings.notify_when_empty)

    logger.info("application finished")
    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(asyncio.run(main()))


if __name__ == "__main__":
    run()
