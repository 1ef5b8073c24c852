"""Publishing swipes to a message queue."""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from typing import Any, Iterator, Optional

import pika
import pika.exceptions

from swipesvc.domain import Swipe
from swipesvc.logger import ROOT_LOGGER, Secret


class PublisherError(Exception):
    """Talking to the message broker failed."""


@contextmanager
def _failure(message: str) -> Iterator[None]:
    try:
        yield
    except (pika.exceptions.AMQPError, ValueError) as exc:
        raise PublisherError(f"{message}: {exc}") from exc


def encode_swipe(swipe: Swipe) -> bytes:
    """JSON message body for a swipe: initiator, target and whether it is a like."""
    if swipe.init_resp is None:
        raise ValueError("swipe has no initiator response")
    message = {"init": str(swipe.init), "target": str(swipe.target), "like": swipe.init_resp}
    return json.dumps(message, separators=(",", ":")).encode("utf-8")


class SwipePublisher:
    """Sends swipes to a named queue over one broker channel."""

    def __init__(
        self, connection: Any, channel: Any, queue: str, log: Optional[logging.Logger] = None
    ) -> None:
        self._connection = connection
        self._channel = channel
        self.queue = queue
        self._log = log or logging.getLogger(ROOT_LOGGER).getChild("rabbit_repo")

    @classmethod
    def connect(cls, url: str, queue: str) -> "SwipePublisher":
        """Connect to the broker at ``url`` and declare ``queue``."""
        log = logging.getLogger(ROOT_LOGGER).getChild("rabbit_repo")
        log.info("connect to rabbit", extra={"fields": {"connection string": Secret(url)}})
        with _failure("failed to connect to Rabbit"):
            connection = pika.BlockingConnection(pika.URLParameters(url))
        with _failure("failed to open a channel"):
            channel = connection.channel()
        with _failure("failed to declare a queue"):
            channel.queue_declare(
                queue=queue, durable=False, exclusive=False, auto_delete=False, arguments=None
            )
        return cls(connection, channel, queue, log)

    def publish_swipe(self, swipe: Swipe) -> None:
        body = encode_swipe(swipe)
        with _failure("failed to publish swipe"):
            self._channel.basic_publish(
                exchange="",
                routing_key=self.queue,
                body=body,
                properties=pika.BasicProperties(content_type="application/json"),
                mandatory=False,
            )

    def close(self) -> None:
        """Close the channel, then the connection."""
        self._log.info("closing rabbit_repo")
        with _failure("failed to close amqp channel"):
            self._channel.close()
        with _failure("failed to close amqp connection"):
            self._connection.close()