"""
Socket Mode connection for wap-bot.
Connects to Slack via WebSocket - no public URL needed - and turns every frame
into an InboundEvent on a queue consumed by the dispatcher.
"""
import json
import queue
from typing import Any, Dict, Optional

from slack_sdk import WebClient
from slack_sdk.socket_mode import SocketModeClient
from slack_sdk.socket_mode.request import SocketModeRequest
from slack_sdk.socket_mode.response import SocketModeResponse

from ..log import get_logger
from .events import EventType, InboundEvent

logger = get_logger("socket_listener")

_FRAME_TYPES = {
    "hello": EventType.HELLO,
    "disconnect": EventType.DISCONNECT,
    "events_api": EventType.EVENTS_API,
}


def frame_to_event(message: Dict[str, Any]) -> InboundEvent:
    """Translates one decoded Socket Mode frame."""
    raw_type = message.get("type")
    event_type = _FRAME_TYPES.get(raw_type, EventType.UNKNOWN)
    if event_type is EventType.EVENTS_API:
        request = SocketModeRequest.from_dict(message)
        if request is None:
            # No envelope to acknowledge: hand the raw frame over so the dispatcher drops it
            return InboundEvent(type=event_type, envelope_id=message.get("envelope_id"), data=message.get("payload"), raw_type=raw_type)
        return InboundEvent(type=event_type, envelope_id=request.envelope_id, data=request.payload, raw_type=raw_type)
    return InboundEvent(type=event_type, envelope_id=message.get("envelope_id"), data=message, raw_type=raw_type)


class SocketEventSource:
    """Owns the Socket Mode connection; the dispatcher only sees ``events`` and ``ack``.

    Frames are read from the raw ``on_message`` hook, which runs on the connection's
    receive thread in arrival order and also sees the ``disconnect`` frames the SDK
    consumes itself before its message listeners run.
    """

    def __init__(self, app_token: str, web_client: Optional[WebClient] = None, client: Optional[SocketModeClient] = None, trace_enabled: bool = False):
        self.events: "queue.Queue[Optional[InboundEvent]]" = queue.Queue()
        self.client = client or SocketModeClient(
            app_token=app_token,
            web_client=web_client,
            trace_enabled=trace_enabled,
            # No message listeners are registered, the worker pool stays idle
            concurrency=1,
            on_error_listeners=[self._on_error],
        )
        self.client.on_message_listeners.append(self._on_raw_message)

    def _on_raw_message(self, raw_message: str):
        message: Dict[str, Any] = {}
        if raw_message.startswith("{"):
            try:
                message = json.loads(raw_message)
            except ValueError:
                logger.warning(f"Dropped undecodable socket frame: {raw_message[:200]!r}")
                return
        if not isinstance(message, dict):
            message = {}
        self.events.put(frame_to_event(message))

    def _on_error(self, error: Exception):
        self.events.put(InboundEvent(type=EventType.CONNECTION_ERROR, data=error))

    def connect(self):
        self.events.put(InboundEvent(type=EventType.CONNECTING))
        try:
            self.client.connect()
        except Exception as e:
            self.events.put(InboundEvent(type=EventType.CONNECTION_ERROR, data=e))
            raise
        self.events.put(InboundEvent(type=EventType.CONNECTED))

    def ack(self, envelope_id: str):
        self.client.send_socket_mode_response(SocketModeResponse(envelope_id=envelope_id))

    def close(self):
        """Closes the connection and marks the end of the event stream."""
        try:
            self.client.close()
        finally:
            self.events.put(None)
