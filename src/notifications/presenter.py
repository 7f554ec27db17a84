"""
Desktop Notification Module.

Presents the aggregated stale pull request report as a single desktop
notification. Notification failures are logged and never affect the run.
"""

import asyncio
import webbrowser
from abc import ABC, abstractmethod
from typing import Optional

from desktop_notifier import DEFAULT_SOUND, DesktopNotifier

from config import APP_NAME, logger
from analyzers.models import StaleReport

NOTIFICATION_TITLE = "Stale Pull Requests"
SUBTITLE_WITH_LINK = "Click to see newest stale PR"
SUBTITLE_EMPTY = "Nothing to review"

# Seconds to keep the process alive so a click on the notification can open the link
DEFAULT_WAIT_TIMEOUT = 60.0


class PresentationError(Exception):
    """Raised when a notification cannot be delivered."""


class NotificationPresenter(ABC):
    """Abstract base class for notification presenters."""

    @abstractmethod
    async def present(
        self, title: str, subtitle: str, body: str, link_url: Optional[str] = None
    ) -> None:
        """
        Show one notification.

        Args:
            title (str): Notification title
            subtitle (str): Secondary line
            body (str): Main message
            link_url (Optional[str]): URL opened when the notification is clicked

        Raises:
            PresentationError: If the notification cannot be delivered
        """
        pass


class DesktopNotificationPresenter(NotificationPresenter):
    """
    Presents notifications through the operating system's notification center.

    Click and dismiss callbacks are only dispatched while the event loop runs,
    so ``present`` waits for one of them, or for ``wait_timeout`` seconds,
    before returning when the notification carries a link.
    """

    def __init__(
        self, app_name: str = APP_NAME, wait_timeout: float = DEFAULT_WAIT_TIMEOUT
    ):
        self.notifier = DesktopNotifier(app_name=app_name)
        self.wait_timeout = wait_timeout

    async def present(
        self, title: str, subtitle: str, body: str, link_url: Optional[str] = None
    ) -> None:
        closed = asyncio.Event()
        on_clicked = None
        if link_url:

            def on_clicked() -> None:
                webbrowser.open(link_url)
                closed.set()

        try:
            await self.notifier.send(
                title=title,
                message=f"{body}\n{subtitle}" if subtitle else body,
                on_clicked=on_clicked,
                on_dismissed=closed.set,
                sound=DEFAULT_SOUND,
            )
        except Exception as e:
            raise PresentationError(f"Problem making notification: {e}") from e

        if link_url and self.wait_timeout > 0:
            try:
                await asyncio.wait_for(closed.wait(), self.wait_timeout)
            except asyncio.TimeoutError:
                logger.debug(
                    {
                        "message": "Notification not clicked, no longer waiting",
                        "wait_timeout_seconds": self.wait_timeout,
                    }
                )


def summary_message(stale_count: int) -> str:
    if stale_count == 1:
        return "There is 1 stale pull request"
    return f"There are {stale_count} stale pull requests"


async def notify_stale_report(
    presenter: NotificationPresenter,
    report: StaleReport,
    notify_when_empty: bool = False,
) -> bool:
    """
    Present the stale pull request report.

    Args:
        presenter (NotificationPresenter): Notification backend
        report (StaleReport): Aggregated report
        notify_when_empty (bool): Notify even if no pull request is stale

    Returns:
        bool: Whether a notification was delivered
    """
    if report.is_empty and not notify_when_empty:
        logger.info({"message": "No stale pull requests, skipping notification"})
        return False

    subtitle = SUBTITLE_EMPTY if report.is_empty else SUBTITLE_WITH_LINK
    try:
        await presenter.present(
            NOTIFICATION_TITLE,
            subtitle,
            summary_message(report.stale_count),
            report.representative_url,
        )
    except PresentationError as e:
        logger.error(
            {
                "message": "Problem making notification",
                "repo_urls": report.stale_urls,
                "error": str(e),
            }
        )
        return False

    return True
