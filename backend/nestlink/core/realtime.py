"""
Real-time notification delivery over Redis pub/sub.

Each profile has its own channel. The HTTP side publishes a notification
after the row is committed; WebSocket connections subscribe to their
profile's channel and forward what arrives.
"""
from contextlib import asynccontextmanager
from typing import AsyncIterator, Iterable, List, Optional, Set
import asyncio
import json
import redis
import redis.asyncio as aioredis
from redis.asyncio.client import PubSub
from fastapi import WebSocket, WebSocketDisconnect, status
from nestlink.core.config import settings
from nestlink.models.notification import Notification
import logging

logger = logging.getLogger(__name__)


def channel_for(profile_id) -> str:
    return f"notifications:{profile_id}"


class NotificationPublisher:
    """Publishes committed notifications; delivery problems never fail the caller"""

    def __init__(self, redis_url: Optional[str] = None, enabled: Optional[bool] = None):
        self.redis_url = redis_url or settings.REDIS_URL
        self.enabled = settings.REALTIME_ENABLED if enabled is None else enabled
        self._client: Optional[redis.Redis] = None

    @property
    def client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(self.redis_url, socket_connect_timeout=2, socket_timeout=2)
        return self._client

    def publish(self, notification: Notification) -> bool:
        if not self.enabled:
            return False
        try:
            self.client.publish(channel_for(notification.user_id), notification.model_dump_json())
            return True
        except redis.RedisError as e:
            logger.warning(f"Failed to publish notification {notification.id}: {e}")
            return False


class NotificationStream:
    """
    Tracks which notifications a connection has already delivered.

    The backlog sent on connect and the live channel can overlap, and Redis
    may redeliver after a reconnect; each id goes out at most once.
    """

    def __init__(self):
        self._seen: Set[str] = set()

    def accept(self, notification_id) -> bool:
        key = str(notification_id)
        if key in self._seen:
            return False
        self._seen.add(key)
        return True

    def merge(self, notifications: Iterable[Notification]) -> List[Notification]:
        return [n for n in notifications if self.accept(n.id)]

    def __len__(self) -> int:
        return len(self._seen)


@asynccontextmanager
async def subscribe_notifications(profile_id: str) -> AsyncIterator[PubSub]:
    """Subscribe to a profile's channel; messages published from here on are buffered until read"""
    client = aioredis.from_url(settings.REDIS_URL)
    pubsub = client.pubsub()
    try:
        await pubsub.subscribe(channel_for(profile_id))
        yield pubsub
    finally:
        try:
            await pubsub.unsubscribe()
        except redis.RedisError as e:
            logger.warning(f"Failed to unsubscribe from {channel_for(profile_id)}: {e}")
        await pubsub.aclose()
        await client.aclose()


async def relay_notifications(websocket: WebSocket, pubsub: PubSub, stream: NotificationStream) -> None:
    """Forward live notifications from a subscription until Redis goes away"""
    async for message in pubsub.listen():
        if message.get("type") != "message":
            continue
        try:
            payload = json.loads(message["data"])
        except (TypeError, ValueError):
            payload = None
        if not isinstance(payload, dict):
            logger.warning(f"Dropping malformed notification payload: {message.get('data')!r}")
            continue
        if stream.accept(payload.get("id")):
            await websocket.send_json(payload)


async def drain_client(websocket: WebSocket) -> None:
    # Client messages are ignored; receiving only detects the disconnect
    while True:
        await websocket.receive_text()


async def serve_notifications(websocket: WebSocket, pubsub: PubSub, stream: NotificationStream, profile_id: str) -> None:
    """
    Run the live relay until either side goes away.

    When the relay stops first the socket is closed with 1011 so the client
    reconnects and picks up the backlog again.
    """
    relay = asyncio.create_task(relay_notifications(websocket, pubsub, stream))
    receiver = asyncio.create_task(drain_client(websocket))
    done, pending = await asyncio.wait({relay, receiver}, return_when=asyncio.FIRST_COMPLETED)

    for task in pending:
        task.cancel()
    await asyncio.gather(*pending, return_exceptions=True)

    for task in done:
        error = task.exception()
        if error is None:
            continue
        if isinstance(error, WebSocketDisconnect):
            logger.info(f"Notification socket closed for {profile_id}")
        elif isinstance(error, redis.RedisError):
            logger.warning(f"Notification relay for {profile_id} stopped: {error}")
        else:
            logger.error(f"Notification socket for {profile_id} failed: {error}")

    if receiver not in done:
        try:
            await websocket.close(code=status.WS_1011_INTERNAL_ERROR)
        except RuntimeError as e:
            logger.info(f"Notification socket for {profile_id} already closed: {e}")


_publisher: Optional[NotificationPublisher] = None


def get_notification_publisher() -> NotificationPublisher:
    global _publisher
    if _publisher is None:
        _publisher = NotificationPublisher()
    return _publisher
