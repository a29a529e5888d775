"""Helpers shared by the test modules."""

from __future__ import annotations

import asyncio
from collections.abc import AsyncIterator

UUID_PATTERN = r"[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}"


async def next_frame(frames: AsyncIterator[str], timeout: float = 2.0) -> str:
    """Read the next encoded frame from a channel's iterator."""
    return await asyncio.wait_for(anext(frames), timeout=timeout)


def frame_event(encoded: str) -> str:
    return encoded.split("\n", 1)[0].removeprefix("event: ")


def frame_data(encoded: str) -> str:
    lines = [line for line in encoded.split("\n") if line.startswith("data: ")]
    return "\n".join(line.removeprefix("data: ") for line in lines)
