import threading
from typing import Any, Callable, List, Optional

from slack_sdk import WebClient
from slack_sdk.errors import SlackApiError, SlackClientError
from tenacity import Retrying, retry_if_exception, stop_after_attempt, stop_when_event_set, wait_exponential

from ..errors import CancelledError, SlackOperationError
from ..log import get_logger
from ..schemas.links import SummaryArtifact, ThreadMessage

logger = get_logger("slack_client")

REPLIES_LIMIT = 1000


def _is_rate_limited(exc: BaseException) -> bool:
    return isinstance(exc, SlackApiError) and exc.response.get("error") == "ratelimited"


def _log_retry(retry_state):
    logger.warning(f"Slack rate limited, retrying (attempt {retry_state.attempt_number})...")


class SlackClientWrapper:
    """Web API calls the bot makes, with rate limit retries and error wrapping.

    Every failure is re-raised as SlackOperationError naming the operation, so the
    caller can log it with the channel/thread it was working on.
    """

    def __init__(self, client: WebClient, cancel: Optional[threading.Event] = None, retry_wait=None, attempts: int = 3):
        self.client = client
        self.cancel = cancel
        self.attempts = attempts
        self.retry_wait = retry_wait if retry_wait is not None else wait_exponential(multiplier=1, min=2, max=10)

    def _retrying(self) -> Retrying:
        stop = stop_after_attempt(self.attempts)
        if self.cancel is not None:
            stop = stop | stop_when_event_set(self.cancel)
        return Retrying(
            retry=retry_if_exception(_is_rate_limited),
            stop=stop,
            wait=self.retry_wait,
            before_sleep=_log_retry,
            reraise=True,
        )

    def _call(self, operation: str, method: Callable[..., Any], **kwargs):
        channel = kwargs.get("channel")
        thread_ts = kwargs.get("thread_ts") or kwargs.get("ts")
        if self.cancel is not None and self.cancel.is_set():
            raise CancelledError(operation)
        try:
            return self._retrying()(method, **kwargs)
        except SlackApiError as e:
            error = e.response.get("error", "unknown_error")
            logger.error(f"Slack API error in {operation}: {error}")
            raise SlackOperationError(operation, channel, thread_ts, reason=error) from e
        except (SlackClientError, OSError) as e:
            raise SlackOperationError(operation, channel, thread_ts, reason=str(e)) from e

    def post_ephemeral(self, channel_id: str, user_id: str, text: str):
        """Posts a message only ``user_id`` can see."""
        return self._call(
            "slack.post_ephemeral",
            self.client.chat_postEphemeral,
            channel=channel_id,
            user=user_id,
            text=text,
        )

    def get_thread_replies(self, channel_id: str, thread_ts: str, limit: int = REPLIES_LIMIT) -> List[ThreadMessage]:
        """
        Reads a thread, parent message included.
        Only the first page is read: threads longer than ``limit`` are truncated.
        """
        response = self._call(
            "slack.get_thread_replies",
            self.client.conversations_replies,
            channel=channel_id,
            ts=thread_ts,
            limit=limit,
        )
        messages = response.get("messages") or []
        if response.get("has_more"):
            logger.warning(f"Thread {channel_id}/{thread_ts} has more than {limit} replies, extra replies are ignored")
        return [ThreadMessage.model_validate(m) for m in messages if isinstance(m, dict)]

    def upload_artifact(self, artifact: SummaryArtifact):
        return self._call(
            "slack.upload_artifact",
            self.client.files_upload_v2,
            channel=artifact.channel,
            thread_ts=artifact.thread_ts,
            content=artifact.content,
            filename=artifact.filename,
            title=artifact.title,
            initial_comment=artifact.initial_comment,
        )
