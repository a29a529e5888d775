"""Duplex transport built from an SSE push channel and inbound HTTP calls.

- Channel: one long-lived push stream per session
- HeartbeatScheduler: keepalive task owned by a channel
- Responder / ResponseReconciler: per-call push and acknowledge handles
"""

from .channel import Channel, ChannelResponse, SessionState
from .frames import Frame, FrameKind
from .heartbeat import DEFAULT_HEARTBEAT_INTERVAL, HeartbeatScheduler
from .responder import (
    Acknowledgment,
    MessageHandler,
    Responder,
    ResponderSealed,
    ResponseReconciler,
)

__all__ = [
    "Channel",
    "ChannelResponse",
    "SessionState",
    "Frame",
    "FrameKind",
    "HeartbeatScheduler",
    "DEFAULT_HEARTBEAT_INTERVAL",
    "Acknowledgment",
    "MessageHandler",
    "Responder",
    "ResponderSealed",
    "ResponseReconciler",
]
