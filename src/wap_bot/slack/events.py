"""Socket Mode events as seen by the dispatcher.

InboundEvent is what the event source puts on the queue. Events API payloads are
validated into EventsApiPayload and, for mentions, AppMentionEvent.
"""

from enum import Enum
from typing import Any, Dict, Optional
from pydantic import BaseModel, ConfigDict

class EventType(str, Enum):
    CONNECTING = "connecting"
    CONNECTION_ERROR = "connection_error"
    CONNECTED = "connected"
    HELLO = "hello"
    DISCONNECT = "disconnect"
    EVENTS_API = "events_api"
    UNKNOWN = "unknown"

class InboundEvent(BaseModel):
    type: EventType
    envelope_id: Optional[str] = None
    data: Any = None
    # Frame type as received, kept for logging unknown frames
    raw_type: Optional[str] = None

class EventsApiPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: str
    event: Dict[str, Any]

    @property
    def inner_type(self) -> Optional[str]:
        return self.event.get("type")

class AppMentionEvent(BaseModel):
    model_config = ConfigDict(extra="ignore")

    channel: str
    user: str
    text: str = ""
    # Empty string means the mention was not posted in a thread
    thread_ts: str = ""
    ts: Optional[str] = None

CALLBACK_EVENT = "event_callback"
APP_MENTION = "app_mention"
