"""Exception hierarchy for wap-bot.

Extraction and title errors are per-message and never leave the summarizer.
SlackOperationError aborts the current summarization; the event loop keeps running.
"""

from typing import Optional


class WapBotError(Exception):
    """Base class for every error raised by wap-bot."""


class ExtractionError(WapBotError):
    pass


class NoURLFoundError(ExtractionError):
    def __init__(self, message: str = "no URL found in text"):
        super().__init__(message)


class MultipleURLsFoundError(ExtractionError):
    def __init__(self, message: str = "multiple results found in string", matches=None):
        super().__init__(message)
        self.matches = list(matches or [])


class TitleError(WapBotError):
    pass


class RequestFailedError(TitleError):
    def __init__(self, message: str = "failed to fetch URL", status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NoTitleFoundError(TitleError):
    def __init__(self, message: str = "no title found in page"):
        super().__init__(message)


class RegistryMismatchError(WapBotError):
    """Extractor and resolver registries do not cover the same providers."""


class InvalidCommandError(WapBotError):
    def __init__(self, text: str = ""):
        super().__init__("invalid command type")
        self.text = text


class CancelledError(WapBotError):
    def __init__(self, operation: str):
        super().__init__(f"{operation}: cancelled")
        self.operation = operation


class SlackOperationError(WapBotError):
    """A Slack Web API call failed. Always chained to the underlying error."""

    def __init__(self, operation: str, channel: Optional[str] = None, thread_ts: Optional[str] = None, reason: str = ""):
        self.operation = operation
        self.channel = channel
        self.thread_ts = thread_ts
        self.reason = reason
        super().__init__(f"{operation}: {reason}" if reason else operation)
