"""PlayGame event subscriber feeding the leaderboard.

A producer task keeps a node log filter installed for the Settled, Staked and
Refunded topics, polls it, decodes each log and puts the typed record on a
bounded queue. A consumer task drains the queue in order and applies each
record to the LeaderboardStore.

When the filter is lost (node restart, filter expiry, connectivity) a fresh
one is installed. The subscription keeps no block cursor, so logs emitted
while it was down are not replayed.
"""

import asyncio
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from gamebridge.core.exceptions import EventHandlerError
from gamebridge.infrastructure.blockchain.client import ChainClient
from gamebridge.infrastructure.blockchain.events import ChainEvent, EventParser, to_hex
from gamebridge.services.leaderboard.store import LeaderboardStore

logger = logging.getLogger(__name__)


class ListenerState(str, Enum):
    """Event subscriber state."""

    STOPPED = "stopped"
    STARTING = "starting"
    RUNNING = "running"
    RECONNECTING = "reconnecting"


@dataclass
class SubscriberConfig:
    """Configuration for the event subscriber."""

    # PlayGame contract address
    contract_address: str

    # Filter polling interval in seconds
    poll_interval: float = 4.0

    # Capacity of the decoded event queue
    queue_size: int = 1000

    # Base re-subscribe delay (seconds), grows linearly per failed attempt
    reconnect_delay: float = 2.0

    # Upper bound for the re-subscribe delay (seconds)
    max_reconnect_delay: float = 60.0


@dataclass
class ListenerStats:
    """Statistics for the event subscriber."""

    state: ListenerState = ListenerState.STOPPED
    events_received: int = 0
    events_applied: int = 0
    decode_errors: int = 0
    handler_errors: int = 0
    reconnects: int = 0
    last_error: str = ""
    last_event_time: datetime | None = None
    started_at: datetime | None = None
    uptime_seconds: float = 0.0


class EventSubscriber:
    """Live PlayGame event subscription with per-event error containment."""

    def __init__(
        self,
        client: ChainClient,
        store: LeaderboardStore,
        config: SubscriberConfig,
        parser: EventParser | None = None,
    ):
        """Initialize event subscriber.

        Args:
            client: Chain client providing log filters
            store: Leaderboard receiving decoded events
            config: Subscriber configuration
            parser: Event parser (defaults to the built-in PlayGame ABI)
        """
        self.client = client
        self.store = store
        self.config = config
        self.parser = parser or EventParser()

        self._state = ListenerState.STOPPED
        self._stats = ListenerStats()
        self._queue: asyncio.Queue[ChainEvent] = asyncio.Queue(maxsize=config.queue_size)
        self._producer: asyncio.Task | None = None
        self._consumer: asyncio.Task | None = None
        self._filter_id: str | None = None
        self._stop_event = asyncio.Event()

    @property
    def state(self) -> ListenerState:
        """Get current subscriber state."""
        return self._state

    @property
    def stats(self) -> ListenerStats:
        """Get subscriber statistics."""
        self._stats.state = self._state
        if self._stats.started_at:
            self._stats.uptime_seconds = (
                datetime.now(timezone.utc) - self._stats.started_at
            ).total_seconds()
        return self._stats

    @property
    def queue_depth(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Start the producer and consumer tasks."""
        if self._producer is not None:
            logger.warning("Event subscriber is already running")
            return

        self._state = ListenerState.STARTING
        self._stop_event.clear()
        self._stats.started_at = datetime.now(timezone.utc)

        self._consumer = asyncio.create_task(self._consume_loop(), name="playgame-consumer")
        self._producer = asyncio.create_task(self._subscription_loop(), name="playgame-producer")
        logger.info(
            f"Event subscriber started for {self.config.contract_address} "
            f"({', '.join(e.value for e, _ in self.parser.topic_to_event.values())})"
        )

    async def stop(self) -> None:
        """Stop both tasks and drop the node filter."""
        if self._producer is None and self._consumer is None:
            return

        logger.info("Stopping event subscriber...")
        self._stop_event.set()

        for task in (self._producer, self._consumer):
            if task:
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass
        self._producer = None
        self._consumer = None

        await self._drop_filter()
        self._state = ListenerState.STOPPED
        logger.info("Event subscriber stopped")

    async def join(self) -> None:
        """Wait until every queued event has been applied."""
        await self._queue.join()

    async def ingest(self, logs: list[dict[str, Any]]) -> int:
        """Decode a batch of raw logs and queue them in order.

        Malformed logs are logged and skipped.

        Args:
            logs: Raw logs as reported by the node

        Returns:
            Number of events queued
        """
        queued = 0
        for log in logs:
            self._stats.events_received += 1
            try:
                event = self._decode(log)
            except EventHandlerError as e:
                self._stats.decode_errors += 1
                self._stats.last_error = e.message
                logger.error(
                    f"Skipping undecodable log: {e.message}",
                    extra={"tx_hash": e.tx_hash, "log_index": e.log_index},
                )
                continue

            await self._queue.put(event)
            queued += 1
        return queued

    def _decode(self, log: dict[str, Any]) -> ChainEvent:
        try:
            return self.parser.parse_log(log)
        except Exception as e:
            tx_hash = log.get("transactionHash")
            raise EventHandlerError(
                f"Failed to decode log: {e}",
                tx_hash=to_hex(tx_hash) if tx_hash else None,
                log_index=log.get("logIndex"),
            ) from e

    async def _subscription_loop(self) -> None:
        """Keep a log filter installed and forward its changes."""
        failures = 0

        while not self._stop_event.is_set():
            try:
                if self._filter_id is None:
                    self._filter_id = await self.client.create_log_filter(
                        self.config.contract_address, [self.parser.topics]
                    )
                    logger.info(f"Subscribed to PlayGame events (filter {self._filter_id})")
                    self._state = ListenerState.RUNNING
                    failures = 0

                logs = await self.client.get_filter_changes(self._filter_id)
                if logs:
                    await self.ingest(logs)
                await asyncio.sleep(self.config.poll_interval)

            except asyncio.CancelledError:
                raise

            except Exception as e:
                failures += 1
                await self._drop_filter()
                self._stats.reconnects += 1
                self._stats.last_error = str(e)
                self._state = ListenerState.RECONNECTING

                delay = min(
                    self.config.reconnect_delay * failures,
                    self.config.max_reconnect_delay,
                )
                logger.warning(
                    f"Event subscription dropped: {e}. Re-subscribing in {delay}s "
                    f"(attempt {failures}); events emitted meanwhile will be missed"
                )
                await asyncio.sleep(delay)

    async def _consume_loop(self) -> None:
        """Apply queued events to the leaderboard in arrival order."""
        while True:
            event = await self._queue.get()
            try:
                self._apply(event)
            except EventHandlerError as e:
                self._stats.handler_errors += 1
                self._stats.last_error = e.message
                logger.error(
                    f"Event handler error: {e.message}",
                    extra={"tx_hash": e.tx_hash, "log_index": e.log_index},
                )
            finally:
                self._queue.task_done()

    def _apply(self, event: ChainEvent) -> None:
        try:
            self.store.record(event)
        except Exception as e:
            raise EventHandlerError(
                f"Failed to apply {type(event).__name__}: {e}",
                tx_hash=event.tx_hash,
                log_index=event.log_index,
            ) from e

        self._stats.events_applied += 1
        self._stats.last_event_time = datetime.now(timezone.utc)

    async def _drop_filter(self) -> None:
        if self._filter_id is None:
            return
        filter_id, self._filter_id = self._filter_id, None
        try:
            await self.client.uninstall_filter(filter_id)
        except Exception as e:
            logger.warning(f"Failed to uninstall filter {filter_id}: {e}")
