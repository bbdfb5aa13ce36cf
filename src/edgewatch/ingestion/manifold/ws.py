"""Manifold WebSocket client - connect, subscribe, keepalive, staleness, reconnect."""

from __future__ import annotations

import asyncio
import itertools
import json
from typing import Any, Callable

import structlog
import websockets
from websockets.exceptions import ConnectionClosed, ConnectionClosedError

from edgewatch.ingestion.manifold.normalize import TOPICS, decode_frame
from edgewatch.models import Connected, Disconnected, StreamError, StreamEvent

log = structlog.get_logger(__name__)

SUBSCRIBE_TXID = 1
PING_TXID_START = 101


class StaleConnection(Exception):
    """No frame received within the inactivity window."""


async def _keepalive(ws: Any, interval: float) -> None:
    """Send a JSON ping every interval. A failed send propagates and ends the connection."""
    for txid in itertools.count(PING_TXID_START):
        await asyncio.sleep(interval)
        await ws.send(json.dumps({"type": "ping", "txid": txid}))


async def _read_frames(ws: Any, emit: Callable[[StreamEvent], None], stale_timeout: float) -> None:
    """Decode frames until the stream ends. Raises StaleConnection after stale_timeout of silence."""
    while True:
        try:
            raw = await asyncio.wait_for(ws.recv(), timeout=stale_timeout)
        except asyncio.TimeoutError:
            raise StaleConnection(f"WS stale - no message for {stale_timeout:.0f}s") from None
        event = decode_frame(raw)
        if event is not None:
            emit(event)


async def _listen(
    ws: Any,
    emit: Callable[[StreamEvent], None],
    *,
    ping_interval: float,
    stale_timeout: float,
) -> None:
    """Run keepalive and reader side by side; return when either finishes, re-raising its error."""
    ping_task = asyncio.create_task(_keepalive(ws, ping_interval))
    read_task = asyncio.create_task(_read_frames(ws, emit, stale_timeout))
    try:
        done, _ = await asyncio.wait({ping_task, read_task}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (ping_task, read_task):
            task.cancel()
        await asyncio.gather(ping_task, read_task, return_exceptions=True)
    for task in done:
        exc = task.exception()
        if exc is not None:
            raise exc


def _abort(ws: Any) -> None:
    """Drop the socket without a close handshake; a silent peer would never answer it."""
    transport = getattr(ws, "transport", None)
    if transport is not None:
        transport.abort()


async def connect_and_listen(
    ws_url: str,
    emit: Callable[[StreamEvent], None],
    *,
    ping_interval: float = 20.0,
    stale_timeout: float = 90.0,
    connect: Callable[..., Any] = websockets.connect,
) -> None:
    """
    One connection lifetime: open, subscribe, emit Connected, then read until the connection ends.
    Returns normally on a clean close; raises on transport errors and staleness.
    Staleness is reported and the socket aborted before the connection context exits.
    """
    async with connect(ws_url, ping_interval=None, close_timeout=5) as ws:
        sub = {"type": "subscribe", "txid": SUBSCRIBE_TXID, "topics": TOPICS}
        await ws.send(json.dumps(sub))
        log.info("ws_subscribed", url=ws_url, topics=TOPICS)
        emit(Connected())
        try:
            await _listen(ws, emit, ping_interval=ping_interval, stale_timeout=stale_timeout)
        except StaleConnection as e:
            log.warning("ws_stale", timeout=stale_timeout)
            emit(StreamError(message=str(e)))
            _abort(ws)
            raise


async def run_stream(
    ws_url: str,
    emit: Callable[[StreamEvent], None],
    *,
    ping_interval: float = 20.0,
    stale_timeout: float = 90.0,
    reconnect_delay: float = 3.0,
    connect: Callable[..., Any] = websockets.connect,
) -> None:
    """
    Stream Manifold events forever, calling emit(event) for each decoded event.
    Every connection exit emits Disconnected and reconnects after a fixed delay.
    Only cancellation ends the loop.
    """
    while True:
        try:
            await connect_and_listen(
                ws_url,
                emit,
                ping_interval=ping_interval,
                stale_timeout=stale_timeout,
                connect=connect,
            )
        except asyncio.CancelledError:
            log.info("ws_cancelled")
            raise
        except StaleConnection:
            # already reported by connect_and_listen
            pass
        except ConnectionClosedError as e:
            log.warning("ws_read_error", error=str(e))
            emit(StreamError(message=f"WS read error: {e}"))
        except ConnectionClosed:
            log.info("ws_closed")
        except Exception as e:
            log.warning("ws_error", error=str(e), delay=reconnect_delay)
            emit(StreamError(message=f"WS error: {e}"))
        emit(Disconnected())
        await asyncio.sleep(reconnect_delay)
