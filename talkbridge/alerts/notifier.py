"""Warning and error surfaces for the host UI."""

import logging
from typing import Protocol

logger = logging.getLogger(__name__)


class Notifier(Protocol):
    """Shows messages to the user."""

    def warn(self, message: str) -> None:
        """Non-blocking warning; background sync keeps going."""
        ...

    def error(self, message: str, is_auth_error: bool = False) -> None:
        """Blocking error for an aborted user action."""
        ...


class LogNotifier:
    """Notifier for hosts without a UI: everything goes to the log."""

    def warn(self, message: str) -> None:
        logger.warning(message)

    def error(self, message: str, is_auth_error: bool = False) -> None:
        if is_auth_error:
            logger.error(f"Authentication problem: {message}")
        else:
            logger.error(message)
