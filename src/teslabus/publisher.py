"""Snapshot serialization and publishing."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping
from typing import Any

from teslabus._constants import JSON_CONTENT_TYPE
from teslabus._redact import redact_for_log
from teslabus.bus import MessageBus
from teslabus.exceptions import PublishError

_logger = logging.getLogger(__name__)


def serialize_snapshot(snapshot: Mapping[str, Any]) -> bytes:
    """Encode a snapshot as UTF-8 JSON."""
    try:
        return json.dumps(snapshot, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except (TypeError, ValueError) as exc:
        raise PublishError(f"Snapshot is not JSON serializable: {exc}") from exc


class SnapshotPublisher:
    """Publishes snapshots to one exchange under one routing key."""

    def __init__(
        self,
        bus: MessageBus,
        *,
        exchange_name: str,
        exchange_type: str,
        routing_key: str,
        content_type: str = JSON_CONTENT_TYPE,
    ) -> None:
        self._bus = bus
        self.exchange_name = exchange_name
        self.exchange_type = exchange_type
        self.routing_key = routing_key
        self.content_type = content_type

    async def declare(self) -> None:
        """Declare the durable target exchange."""
        await self._bus.declare_exchange(self.exchange_name, self.exchange_type, durable=True)

    async def publish(self, snapshot: Mapping[str, Any]) -> None:
        """Publish ``snapshot``.

        Raises
        ------
        PublishError
            The bus did not acknowledge the message.
        """
        body = serialize_snapshot(snapshot)
        if _logger.isEnabledFor(logging.DEBUG):
            _logger.debug(
                "Writing tesla sensors to service bus %s '%s/%s': %s",
                self.exchange_type,
                self.exchange_name,
                self.routing_key,
                redact_for_log(dict(snapshot)),
            )

        acked = await self._bus.publish(
            self.exchange_name,
            self.routing_key,
            body,
            content_type=self.content_type,
        )
        if not acked:
            raise PublishError("Failed to write vehicle info to service bus")
