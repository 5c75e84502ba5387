"""AMQP message-bus adapter."""

from __future__ import annotations

import logging
from typing import Protocol

import aio_pika
from aio_pika.abc import AbstractChannel, AbstractExchange, AbstractRobustConnection
from aio_pika.exceptions import AMQPError, ChannelInvalidStateError, DeliveryError
from pamqp.commands import Basic

from teslabus.exceptions import BusConnectionError, PublishError

_logger = logging.getLogger(__name__)


class MessageBus(Protocol):
    """Structural bus interface used by the publisher and the poller."""

    async def connect(self) -> None:
        ...

    async def declare_exchange(self, name: str, exchange_type: str, *, durable: bool = True) -> None:
        ...

    async def publish(self, exchange: str, routing_key: str, body: bytes, *, content_type: str) -> bool:
        ...

    async def close(self) -> None:
        ...


class AmqpBus:
    """aio-pika connection with a publisher-confirm channel.

    :meth:`publish` returns ``False`` only when the broker nacks the
    message. Messages are published non-mandatory, so an exchange with
    no bound queue still counts as delivered.
    """

    def __init__(self, connection_string: str) -> None:
        self._connection_string = connection_string
        self._connection: AbstractRobustConnection | None = None
        self._channel: AbstractChannel | None = None
        self._exchanges: dict[str, AbstractExchange] = {}

    async def connect(self) -> None:
        try:
            self._connection = await aio_pika.connect_robust(self._connection_string)
            self._channel = await self._connection.channel(publisher_confirms=True)
        except (AMQPError, OSError) as exc:
            raise BusConnectionError(f"Failed to connect to AMQP: {exc}") from exc

    async def declare_exchange(self, name: str, exchange_type: str, *, durable: bool = True) -> None:
        channel = self._require_channel()
        try:
            self._exchanges[name] = await channel.declare_exchange(name, exchange_type, durable=durable)
        except (AMQPError, ChannelInvalidStateError, ValueError) as exc:
            raise BusConnectionError(f"Failed to declare exchange {name!r} ({exchange_type}): {exc}") from exc

    async def publish(self, exchange: str, routing_key: str, body: bytes, *, content_type: str) -> bool:
        target = self._exchanges.get(exchange)
        if target is None:
            raise PublishError(f"Exchange {exchange!r} has not been declared")
        message = aio_pika.Message(body=body, content_type=content_type)
        try:
            confirmation = await target.publish(message, routing_key=routing_key, mandatory=False)
        except DeliveryError as exc:
            _logger.warning("Broker rejected message for %s/%s: %s", exchange, routing_key, exc)
            return False
        except (AMQPError, ChannelInvalidStateError, OSError) as exc:
            raise PublishError(f"Failed to publish to {exchange}/{routing_key}: {exc}") from exc
        if isinstance(confirmation, Basic.Nack):
            _logger.warning("Broker nacked message for %s/%s", exchange, routing_key)
            return False
        if isinstance(getattr(confirmation, "delivery", None), Basic.Return):
            _logger.debug("No queue bound for %s/%s, message dropped by broker", exchange, routing_key)
        return True

    async def close(self) -> None:
        self._exchanges.clear()
        self._channel = None
        if self._connection is not None:
            await self._connection.close()
            self._connection = None

    def _require_channel(self) -> AbstractChannel:
        if self._channel is None:
            raise BusConnectionError("Bus not connected. Call connect() first")
        return self._channel
