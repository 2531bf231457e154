"""Broadcasting of domain events to live subscribers.

The broadcaster hands events to a transport driver selected at startup. It is
fire-and-forget: delivery runs on a small worker pool, failures are logged and
never reach the code path that produced the event.
"""

from __future__ import annotations

import hashlib
import hmac
import json
import logging
import threading
import time
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, Protocol

import httpx
import redis

from infodot_engine.core.settings import Settings

logger = logging.getLogger(__name__)


class BroadcastError(RuntimeError):
    """Raised by transports when an event could not be handed over."""


@dataclass(frozen=True)
class BroadcastEvent:
    """Named event published on a private channel."""

    name: str
    channel: str
    payload: Mapping[str, Any] = field(default_factory=dict)


class BroadcastTransport(Protocol):
    """Driver contract: every driver receives the same payload shape."""

    def publish(self, channel: str, event_name: str, payload: Mapping[str, Any]) -> None: ...

    def close(self) -> None: ...


class NullTransport:
    """Discards every event."""

    def publish(self, channel: str, event_name: str, payload: Mapping[str, Any]) -> None:
        return None

    def close(self) -> None:
        return None


class LogTransport:
    """Writes events to the log; intended for local development."""

    def __init__(self, log: logging.Logger | None = None) -> None:
        self._log = log or logger

    def publish(self, channel: str, event_name: str, payload: Mapping[str, Any]) -> None:
        self._log.info(
            "broadcast %s on %s: %s",
            event_name,
            channel,
            json.dumps(dict(payload), sort_keys=True, default=str),
        )

    def close(self) -> None:
        return None


class RedisTransport:
    """Publishes onto Redis channels consumed by a self-hosted WebSocket server.

    The message envelope matches the one Laravel Echo Server expects.
    """

    def __init__(
        self,
        url: str | None = None,
        *,
        client: redis.Redis | None = None,
        socket_timeout: float = 1.0,
    ) -> None:
        if client is None:
            if url is None:
                raise ValueError("RedisTransport requires a url or a client")
            client = redis.Redis.from_url(
                url,
                socket_timeout=socket_timeout,
                socket_connect_timeout=socket_timeout,
            )
        self._redis = client

    def publish(self, channel: str, event_name: str, payload: Mapping[str, Any]) -> None:
        message = json.dumps({"event": event_name, "data": dict(payload), "socket": None})
        try:
            self._redis.publish(channel, message)
        except redis.RedisError as exc:
            raise BroadcastError(f"Redis publish failed: {exc}") from exc

    def close(self) -> None:
        self._redis.close()


@dataclass(frozen=True)
class PusherConfig:
    """Credentials for a Pusher-protocol HTTP API (Pusher or soketi)."""

    app_id: str
    key: str
    secret: str
    host: str
    timeout_seconds: float


class PusherTransport:
    """Publishes through the Pusher REST events API."""

    def __init__(self, config: PusherConfig, client: httpx.Client | None = None) -> None:
        self.config = config
        self._client = client or httpx.Client(
            base_url=config.host,
            timeout=httpx.Timeout(config.timeout_seconds),
        )

    def _signed_params(self, path: str, body: str) -> dict[str, str]:
        params = {
            "auth_key": self.config.key,
            "auth_timestamp": str(int(time.time())),
            "auth_version": "1.0",
            "body_md5": hashlib.md5(body.encode("utf-8")).hexdigest(),
        }
        query = "&".join(f"{name}={params[name]}" for name in sorted(params))
        string_to_sign = "\n".join(["POST", path, query])
        params["auth_signature"] = hmac.new(
            self.config.secret.encode("utf-8"),
            string_to_sign.encode("utf-8"),
            hashlib.sha256,
        ).hexdigest()
        return params

    def publish(self, channel: str, event_name: str, payload: Mapping[str, Any]) -> None:
        path = f"/apps/{self.config.app_id}/events"
        body = json.dumps(
            {"name": event_name, "channels": [channel], "data": json.dumps(dict(payload))}
        )
        try:
            response = self._client.post(
                path,
                params=self._signed_params(path, body),
                content=body,
                headers={"Content-Type": "application/json"},
            )
            response.raise_for_status()
        except httpx.HTTPError as exc:
            raise BroadcastError(f"Pusher publish failed: {exc}") from exc

    def close(self) -> None:
        self._client.close()


class EventBroadcaster:
    """Fire-and-forget publisher with an explicit lifecycle.

    ``publish`` enqueues delivery on a worker pool and returns. In blocking mode
    it waits for the delivery, but never longer than ``timeout_seconds``. At most
    ``max_pending`` deliveries wait or run at once; events beyond that are
    dropped with a warning.
    """

    def __init__(
        self,
        transport: BroadcastTransport,
        *,
        timeout_seconds: float = 1.0,
        max_workers: int = 2,
        max_pending: int = 1000,
        blocking: bool = False,
    ) -> None:
        self.transport = transport
        self.timeout_seconds = timeout_seconds
        self.blocking = blocking
        self.max_pending = max(1, max_pending)
        self._slots = threading.BoundedSemaphore(self.max_pending)
        self._executor = ThreadPoolExecutor(
            max_workers=max(1, max_workers),
            thread_name_prefix="broadcast",
        )

    def publish(self, event: BroadcastEvent) -> None:
        """Hand ``event`` to the transport. Never raises."""
        if not self._slots.acquire(blocking=False):
            logger.warning(
                "Broadcast of %s on %s dropped, %d deliveries already pending",
                event.name,
                event.channel,
                self.max_pending,
            )
            return
        try:
            future = self._executor.submit(self._deliver, event)
        except RuntimeError as exc:
            self._slots.release()
            logger.warning("Broadcast of %s dropped, broadcaster closed: %s", event.name, exc)
            return
        future.add_done_callback(lambda _: self._slots.release())

        if self.blocking:
            try:
                future.result(timeout=self.timeout_seconds)
            except FutureTimeoutError:
                logger.warning(
                    "Broadcast of %s on %s timed out after %.2fs",
                    event.name,
                    event.channel,
                    self.timeout_seconds,
                )

    def _deliver(self, event: BroadcastEvent) -> bool:
        try:
            self.transport.publish(event.channel, event.name, event.payload)
        except Exception as exc:
            logger.warning("Broadcast of %s on %s failed: %s", event.name, event.channel, exc)
            return False
        return True

    def close(self) -> None:
        """Drain pending deliveries and release the transport."""
        self._executor.shutdown(wait=True)
        try:
            self.transport.close()
        except Exception as exc:
            logger.warning("Closing broadcast transport failed: %s", exc)


def build_transport(config: Settings) -> BroadcastTransport:
    """Construct the transport selected by ``BROADCAST_DRIVER``."""
    if config.broadcast_driver == "redis":
        return RedisTransport(config.redis_url, socket_timeout=config.broadcast_timeout_seconds)
    if config.broadcast_driver == "pusher":
        if not (config.pusher_app_id and config.pusher_key and config.pusher_secret):
            raise ValueError("Pusher broadcasting requires PUSHER_APP_ID, PUSHER_KEY and PUSHER_SECRET")
        return PusherTransport(
            PusherConfig(
                app_id=config.pusher_app_id,
                key=config.pusher_key,
                secret=config.pusher_secret,
                host=config.pusher_host,
                timeout_seconds=config.broadcast_timeout_seconds,
            )
        )
    if config.broadcast_driver == "log":
        return LogTransport()
    return NullTransport()


def build_broadcaster(config: Settings) -> EventBroadcaster:
    return EventBroadcaster(
        build_transport(config),
        timeout_seconds=config.broadcast_timeout_seconds,
        max_workers=config.broadcast_workers,
        max_pending=config.broadcast_max_pending,
        blocking=config.broadcast_blocking,
    )
