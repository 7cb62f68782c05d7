"""Redis Pub/Sub publish side for delivery fan-out.

Every message on the channel is a JSON envelope ``{"event": ..., "data": ...}``.
"""
from __future__ import annotations

import json
from datetime import datetime
from typing import Any

import redis.asyncio as aioredis


def _json_default(o: object) -> Any:
    if isinstance(o, datetime):
        return o.isoformat()
    raise TypeError(f"{type(o).__name__} is not JSON serializable")


def encode_envelope(event_type: str, payload: dict[str, Any]) -> str:
    return json.dumps({"event": event_type, "data": payload}, default=_json_default)


def decode_envelope(raw: str | bytes) -> tuple[str, dict[str, Any]]:
    envelope = json.loads(raw)
    return envelope["event"], envelope["data"]


class RedisPubSubPublisher:
    """Implements application.ports.bus.EventPublisher."""

    def __init__(self, redis: aioredis.Redis) -> None:
        self._redis = redis

    async def publish(self, channel: str, event_type: str, payload: dict[str, Any]) -> None:
        await self._redis.publish(channel, encode_envelope(event_type, payload))
