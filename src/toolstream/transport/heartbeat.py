"""Periodic keepalive owned by a single channel."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from ..errors import ChannelClosed
from .frames import Frame

if TYPE_CHECKING:
    from .channel import Channel

logger = logging.getLogger(__name__)

DEFAULT_HEARTBEAT_INTERVAL = 30.0


class HeartbeatScheduler:
    """Writes a heartbeat frame to its channel every ``interval`` seconds.

    The task handle lives here and the channel cancels it in the same
    step that closes the channel, so no heartbeat fires after close.
    """

    def __init__(self, channel: Channel, interval: float = DEFAULT_HEARTBEAT_INTERVAL):
        if interval <= 0:
            raise ValueError("Heartbeat interval must be positive")
        self._channel = channel
        self.interval = interval
        self._task: asyncio.Task[None] | None = None

    @property
    def running(self) -> bool:
        """True while the heartbeat task is scheduled."""
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Schedule the heartbeat task on the running loop."""
        if self._task is not None:
            return
        self._task = asyncio.get_running_loop().create_task(
            self._run(), name=f"heartbeat-{self._channel.session_id}"
        )

    def cancel(self) -> None:
        """Cancel the task. Safe to call more than once."""
        if self._task is not None and not self._task.done():
            self._task.cancel()

    async def _run(self) -> None:
        while True:
            await asyncio.sleep(self.interval)
            if not self._channel.is_open:
                return
            try:
                self._channel.write_frame(Frame.heartbeat())
            except ChannelClosed:
                logger.debug(f"Heartbeat stopped for closed session {self._channel.session_id}")
                return
