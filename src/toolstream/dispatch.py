"""Inbound-call dispatcher.

Turns one ``POST`` into exactly one acknowledgment, routing the message to
the addressed session's handler.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

from .errors import HandlerFailure, MalformedMessage, MissingSessionId
from .registry import SessionRegistry
from .transport.responder import Acknowledgment, ResponseReconciler

logger = logging.getLogger(__name__)


@dataclass
class InboundCall:
    """One request/response exchange addressed to a session.

    ``body`` is either the raw request bytes or an already decoded message.
    """

    session_id: str | None
    body: bytes | dict[str, Any]

    def decode(self) -> dict[str, Any]:
        """Return the message as a JSON object.

        Raises:
            MalformedMessage: If the body is not a JSON object
        """
        if isinstance(self.body, dict):
            return self.body
        try:
            message = json.loads(self.body)
        except ValueError as e:
            raise MalformedMessage(f"Invalid JSON body: {e}") from e
        if not isinstance(message, dict):
            raise MalformedMessage("Message body must be a JSON object")
        return message


class IngressDispatcher:
    """Resolves inbound calls against the registry and runs their handlers."""

    def __init__(
        self,
        registry: SessionRegistry,
        reconciler: ResponseReconciler | None = None,
    ) -> None:
        self._registry = registry
        self._reconciler = reconciler or ResponseReconciler()

    async def dispatch(self, call: InboundCall) -> Acknowledgment:
        """Process one inbound call.

        Raises:
            MissingSessionId: No session id on the call
            MalformedMessage: Body is not a JSON object
            UnknownSession: Session id not registered
            HandlerFailure: The session's handler raised
        """
        if not call.session_id:
            raise MissingSessionId()
        message = call.decode()
        channel = self._registry.lookup(call.session_id)

        if channel.handler is None:
            logger.debug(f"Session {call.session_id} has no handler, acknowledging")
            return Acknowledgment()

        try:
            return await self._reconciler.reconcile(channel, channel.handler, message)
        except Exception as e:
            logger.exception(f"Error handling message for session {call.session_id}")
            raise HandlerFailure(call.session_id, e) from e
