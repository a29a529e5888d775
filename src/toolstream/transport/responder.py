"""Per-call responder and the reconciler that scopes it.

A message handler receives two distinct capabilities for an inbound call:
``push`` writes to the session's channel, ``acknowledge`` sets the body of
the call's own HTTP response. Neither can end the channel, and the
responder is sealed when the call completes so it cannot leak into a
later call.
"""

from __future__ import annotations

import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from .channel import Channel

logger = logging.getLogger(__name__)


def _default_body() -> dict[str, Any]:
    return {"status": "ok"}


@dataclass
class Acknowledgment:
    """The single response that concludes an inbound call."""

    body: Any = field(default_factory=_default_body)
    status_code: int = 200


class ResponderSealed(RuntimeError):
    """A responder was used after its call had completed."""


class Responder:
    """Handle given to a message handler for one inbound call."""

    def __init__(self, channel: Channel) -> None:
        self._channel = channel
        self._body: Any = None
        self._acknowledged = False
        self._sealed = False

    @property
    def session_id(self) -> str | None:
        """Id of the session the call is addressed to."""
        return self._channel.session_id

    @property
    def channel_open(self) -> bool:
        """True while pushes can still reach the session."""
        return not self._sealed and self._channel.is_open

    @property
    def acknowledged(self) -> bool:
        return self._acknowledged

    @property
    def sealed(self) -> bool:
        return self._sealed

    def push(self, payload: Any) -> None:
        """Send a message frame over the session's channel.

        Raises:
            ResponderSealed: If the call has already completed
            ChannelClosed: If the channel is gone
        """
        self._check_open("push")
        self._channel.push(payload)

    def acknowledge(self, body: Any) -> None:
        """Set the body of the call's acknowledgment.

        Only the first acknowledgment is kept.
        """
        self._check_open("acknowledge")
        if self._acknowledged:
            logger.warning(f"Ignoring repeated acknowledgment on session {self.session_id}")
            return
        self._body = body
        self._acknowledged = True

    def seal(self) -> Acknowledgment:
        """Close the responder and return the acknowledgment to send."""
        self._sealed = True
        if self._acknowledged:
            return Acknowledgment(body=self._body)
        return Acknowledgment()

    def _check_open(self, operation: str) -> None:
        if self._sealed:
            raise ResponderSealed(
                f"Cannot {operation} on session {self.session_id}: call already completed"
            )


# Handlers may be plain functions or coroutines:
#   async def handler(message: dict, responder: Responder) -> None
MessageHandler = Callable[[dict[str, Any], Responder], Awaitable[None] | None]


class ResponseReconciler:
    """Runs a message handler with a fresh responder scoped to one call."""

    async def reconcile(
        self,
        channel: Channel,
        handler: MessageHandler,
        message: dict[str, Any],
    ) -> Acknowledgment:
        """Invoke the handler and produce the call's acknowledgment.

        The responder is sealed whether the handler returns or raises;
        handler exceptions propagate to the caller.
        """
        responder = Responder(channel)
        try:
            result = handler(message, responder)
            if inspect.isawaitable(result):
                await result
        finally:
            acknowledgment = responder.seal()
        return acknowledgment
