"""User-facing notification sinks."""

from loguru import logger

_LEVELS = {
    "success": "SUCCESS",
    "error": "ERROR",
    "warning": "WARNING",
    "info": "INFO",
}


class LoggingNotifier:
    """Show notifications as log records."""

    def show(self, message: str, level: str = "success") -> None:
        logger.log(_LEVELS.get(level, "INFO"), message)


class CollectingNotifier:
    """Buffer notifications so a caller can hand them back with a response."""

    def __init__(self) -> None:
        self.messages: list[tuple[str, str]] = []

    def show(self, message: str, level: str = "success") -> None:
        self.messages.append((level, message))

    def drain(self) -> list[dict[str, str]]:
        """Return buffered messages and forget them."""
        out = [{"level": level, "message": message} for level, message in self.messages]
        self.messages.clear()
        return out
