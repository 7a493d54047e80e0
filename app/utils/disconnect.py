# app/utils/disconnect.py
from __future__ import annotations
from contextlib import suppress
from typing import Awaitable, TypeVar
import asyncio

from starlette.requests import Request

T = TypeVar("T")


class ClientDisconnected(Exception):
    """The caller went away before the work finished."""


async def run_unless_disconnected(request: Request, work: Awaitable[T], poll_interval: float = 0.1) -> T:
    """
    Await `work` while watching the client connection.
    If the client disconnects first, cancel the work (and any outbound call
    it is suspended on) and raise ClientDisconnected.
    """
    task = asyncio.ensure_future(work)
    try:
        while True:
            done, _ = await asyncio.wait({task}, timeout=poll_interval)
            if done:
                return task.result()
            if await request.is_disconnected():
                task.cancel()
                with suppress(asyncio.CancelledError):
                    await task
                raise ClientDisconnected()
    finally:
        if not task.done():
            task.cancel()
