"""
In-process sinks for notifications, navigation intents and URL opening
"""
import logging
import webbrowser
from typing import List, Tuple

logger = logging.getLogger(__name__)

NAVIGATION_DIRECTIONS = ('next', 'previous')


class LoggingNotificationSink:
    """Notification sink that writes notifications to the log"""

    def __init__(self):
        self.sent: List[Tuple[str, str]] = []

    def notify(self, title: str, body: str) -> None:
        self.sent.append((title, body))
        logger.info(f"[Notification] {title}: {body}")


class NavigationRecorder:
    """Collects navigation intents for the host to consume"""

    def __init__(self):
        self.intents: List[str] = []

    def emit(self, direction: str) -> None:
        if direction not in NAVIGATION_DIRECTIONS:
            raise ValueError(f"Unknown navigation direction: {direction}")
        self.intents.append(direction)
        logger.debug(f"Navigation intent: {direction}")

    def drain(self) -> List[str]:
        intents, self.intents = self.intents, []
        return intents


class BrowserUrlOpener:
    """Opens URLs with the system web browser"""

    def open(self, url: str, target: str = '_blank') -> None:
        # _self reuses the current window, everything else opens a new tab
        new = 0 if target == '_self' else 2
        if not webbrowser.open(url, new=new):
            raise RuntimeError(f"Could not open URL: {url}")
