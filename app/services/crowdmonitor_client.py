# app/services/crowdmonitor_client.py
"""
CrowdMonitor client — requests one occupancy snapshot over the provider's WebSocket.

The channel lives for exactly one request:
  connect (protocol upgrade) → wait ~500 ms → send "all" → receive one JSON array → close

Endpoint: wss://badi-public.crowdmonitor.ch:9591/api
Payload:  [{"uid": "SSD-4", "maxspace": 500, "currentfill": "125", ...}, ...]
"""

import asyncio
from websockets import connect
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI, WebSocketException
from app.config import settings
from app.services.occupancy_service import OccupancyReading, parse_snapshot, utc_now
from app.utils.exceptions import ChannelError, UpgradeFailure, UpstreamTimeoutError
from app.utils.logger import get_logger

logger = get_logger(__name__)


async def _request_snapshot(ws, command: str, send_delay: float):
    """Send the snapshot command after the provider's expected pause and await one reply."""
    await asyncio.sleep(send_delay)
    await ws.send(command)
    return await ws.recv()


async def scrape_snapshot(
    url: str | None = None,
    timeout: float | None = None,
    send_delay: float | None = None,
    command: str | None = None,
) -> list[OccupancyReading]:
    """
    Fetch one snapshot and return readings for tracked pools.
    All-or-nothing: raises an IngestionError subclass and returns no readings on failure.
    """
    url = url or settings.CROWDMONITOR_WS_URL
    timeout = settings.SCRAPE_TIMEOUT_SECONDS if timeout is None else timeout
    send_delay = settings.SCRAPE_SEND_DELAY_SECONDS if send_delay is None else send_delay
    command = command or settings.SCRAPE_COMMAND

    logger.debug(f"📡 Connecting to CrowdMonitor: {url}")
    try:
        ws = await connect(url, open_timeout=timeout, close_timeout=2)
    except (InvalidHandshake, InvalidURI) as e:
        raise UpgradeFailure(f"WebSocket upgrade failed: {e}", url=url) from e
    except (OSError, asyncio.TimeoutError) as e:
        raise UpgradeFailure(f"WebSocket connection failed: {e!r}", url=url) from e

    try:
        message = await asyncio.wait_for(_request_snapshot(ws, command, send_delay), timeout=timeout)
        captured_at = utc_now()
    except asyncio.TimeoutError as e:
        raise UpstreamTimeoutError(f"WebSocket timeout after {timeout:g}s", timeout=timeout) from e
    except ConnectionClosed as e:
        raise ChannelError(f"WebSocket closed before snapshot arrived: {e}") from e
    except WebSocketException as e:
        raise ChannelError(f"WebSocket error: {e}") from e
    finally:
        await ws.close()

    readings = parse_snapshot(message, captured_at)
    logger.info(f"📥 Snapshot received at {captured_at.isoformat()} — {len(readings)} tracked pools")
    return readings
