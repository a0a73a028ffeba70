"""Socket Mode event dispatch and command routing.

One event is handled to completion before the next one is read. Nothing raised
while handling an event stops the loop; only the stop event or the end of the
stream does.
"""

import queue
import threading
from typing import Callable, Optional

from pydantic import ValidationError

from ..errors import CancelledError, InvalidCommandError, SlackOperationError, WapBotError
from ..log import ContextLogger, bind_logger, get_logger
from ..mlops.tracing import NULL_TRACER, MLflowTracer
from ..pipeline.summarize import ThreadSummarizer
from .client import REPLIES_LIMIT, SlackClientWrapper
from .events import APP_MENTION, CALLBACK_EVENT, AppMentionEvent, EventsApiPayload, EventType, InboundEvent

logger = get_logger("dispatcher")

# Substring of the mention text that triggers a summary
COMMAND_SUMMARIZE = "summarize"

THREAD_ONLY_NOTICE = "Bot is only usable in threads to summarize them"


class SlackEventDispatcher:
    def __init__(
        self,
        slack: SlackClientWrapper,
        summarizer: ThreadSummarizer,
        acknowledge: Callable[[str], None],
        tracer: Optional[MLflowTracer] = None,
        cancel: Optional[threading.Event] = None,
        replies_limit: int = REPLIES_LIMIT,
    ):
        self.slack = slack
        self.summarizer = summarizer
        self.acknowledge = acknowledge
        self.tracer = tracer or NULL_TRACER
        self.cancel = cancel
        self.replies_limit = replies_limit

    def run(self, events: "queue.Queue[Optional[InboundEvent]]", stop: threading.Event, poll_interval: float = 1.0):
        """Consumes ``events`` until ``stop`` is set or a ``None`` marks the end of the stream."""
        logger.info("Event loop started")
        while not stop.is_set():
            try:
                evt = events.get(timeout=poll_interval)
            except queue.Empty:
                continue

            if evt is None:
                logger.info("events channel closed")
                return

            try:
                self.handle_event(evt)
            except CancelledError as e:
                logger.info(f"Stopped handling {evt.type.value} event: {e}")
            except Exception:
                logger.exception(f"Unexpected error while handling {evt.type.value} event")
        logger.info("Event loop stopped")

    def handle_event(self, evt: InboundEvent):
        log = bind_logger(logger, event_type=evt.type.value)
        if evt.type is EventType.CONNECTING:
            log.debug("connection to slack socket")
        elif evt.type is EventType.CONNECTION_ERROR:
            log.warning("socket connection failed", extra={"fields": {"error": evt.data}})
        elif evt.type is EventType.CONNECTED:
            log.info("connected to slack socket")
        elif evt.type is EventType.HELLO:
            log.debug("greeting message received from slack connection")
        elif evt.type is EventType.DISCONNECT:
            log.info("slack requested a reconnect")
        elif evt.type is EventType.EVENTS_API:
            self.handle_events_api(evt, log)
        else:
            log.warning("not implemented event received", extra={"fields": {"raw_type": evt.raw_type}})

    def handle_events_api(self, evt: InboundEvent, log: Optional[ContextLogger] = None):
        log = log or bind_logger(logger, event_type=evt.type.value)
        try:
            payload = EventsApiPayload.model_validate(evt.data)
        except ValidationError:
            log.warning("ignored invalid events api data")
            return
        if not evt.envelope_id:
            log.warning("ignored events api data without envelope id")
            return

        # Slack expects the ack whatever happens next
        self.acknowledge(evt.envelope_id)

        if payload.type != CALLBACK_EVENT:
            return

        if payload.inner_type != APP_MENTION:
            log.warning("not implemented events api event received", extra={"fields": {"events_api_event_type": payload.inner_type}})
            return

        try:
            mention = AppMentionEvent.model_validate(payload.event)
        except ValidationError:
            log.warning("ignored invalid app_mention event")
            return

        log = log.bind(channel_id=mention.channel, thread_ts=mention.thread_ts, user_id=mention.user)
        try:
            self.handle_mention(mention, log)
        except CancelledError:
            raise
        except WapBotError as e:
            log.error("failed to handle event", extra={"fields": {"error": e, "cause": repr(e.__cause__) if e.__cause__ else None}})

    def handle_mention(self, event: AppMentionEvent, log: Optional[ContextLogger] = None):
        log = log or bind_logger(logger, channel_id=event.channel, thread_ts=event.thread_ts)
        if event.thread_ts == "":
            try:
                self.slack.post_ephemeral(event.channel, event.user, THREAD_ONLY_NOTICE)
            except SlackOperationError as e:
                raise SlackOperationError(
                    "dispatcher.handle_mention", event.channel, None,
                    reason=f"unable to post ephemeral notification text to user: {e.reason}",
                ) from e
            log.debug("mention outside of a thread, notified user")
            return

        if COMMAND_SUMMARIZE not in event.text:
            raise InvalidCommandError(event.text)

        self.summarize_thread(event.channel, event.thread_ts, log)

    def summarize_thread(self, channel_id: str, thread_ts: str, log: Optional[ContextLogger] = None):
        log = log or bind_logger(logger, channel_id=channel_id, thread_ts=thread_ts)
        log.debug("processing thread")
        with self.tracer.span("slack.summarize_thread", span_type="CHAIN", attributes={"channel_id": channel_id, "thread_ts": thread_ts}) as span:
            # SlackOperationError from the wrapper already names the call, channel and thread
            messages = self.slack.get_thread_replies(channel_id, thread_ts, limit=self.replies_limit)
            artifact = self.summarizer.summarize(messages, channel_id, thread_ts, cancel=self.cancel, log=log)
            self.slack.upload_artifact(artifact)
            self.tracer.set_attributes(span, {"message_count": len(messages), "row_count": artifact.row_count})
        log.info("summarized thread", extra={"fields": {"count": artifact.row_count, "size": artifact.size}})
