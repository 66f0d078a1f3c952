"""Component health checks for the node, signer and event subscriber."""

import logging
import time
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, Field

from gamebridge.infrastructure.blockchain.client import ChainClient
from gamebridge.services.event_listener.subscriber import EventSubscriber, ListenerState
from gamebridge.services.matches.orchestrator import TransactionOrchestrator

logger = logging.getLogger(__name__)


class HealthStatus(str, Enum):
    """Health status levels."""

    HEALTHY = "HEALTHY"
    DEGRADED = "DEGRADED"
    UNHEALTHY = "UNHEALTHY"
    UNKNOWN = "UNKNOWN"


class ComponentHealth(BaseModel):
    """Health status of a component."""

    name: str = Field(..., description="Component name")
    status: HealthStatus = Field(..., description="Health status")
    message: str | None = Field(None, description="Status message")
    latency_ms: float | None = Field(None, description="Response latency in ms")
    last_check: datetime = Field(..., description="Last check timestamp")
    details: dict[str, Any] = Field(default_factory=dict, description="Additional details")


class SystemHealth(BaseModel):
    """Overall system health."""

    status: HealthStatus = Field(..., description="Overall status")
    version: str = Field(..., description="Application version")
    uptime_seconds: float = Field(..., description="Uptime in seconds")
    timestamp: datetime = Field(..., description="Check timestamp")
    components: list[ComponentHealth] = Field(..., description="Component statuses")


HealthCheck = Callable[[], Awaitable[ComponentHealth]]


class HealthChecker:
    """Runs registered component checks."""

    def __init__(self, version: str = "0.0.0"):
        self.version = version
        self._start_time = time.time()
        self._health_checks: dict[str, HealthCheck] = {}

    def register_check(self, name: str, check_fn: HealthCheck) -> None:
        """Register an async health check."""
        self._health_checks[name] = check_fn

    async def check_all(self) -> SystemHealth:
        """Run all health checks.

        Returns:
            System health status
        """
        components: list[ComponentHealth] = []
        overall_status = HealthStatus.HEALTHY

        for name, check_fn in self._health_checks.items():
            try:
                start = time.time()
                result = await check_fn()
                result.latency_ms = (time.time() - start) * 1000
            except Exception as e:
                logger.error(f"Health check {name} failed: {e}")
                result = ComponentHealth(
                    name=name,
                    status=HealthStatus.UNKNOWN,
                    message=str(e),
                    last_check=datetime.now(timezone.utc),
                )
            components.append(result)

            if result.status == HealthStatus.UNHEALTHY:
                overall_status = HealthStatus.UNHEALTHY
            elif (
                result.status in (HealthStatus.DEGRADED, HealthStatus.UNKNOWN)
                and overall_status != HealthStatus.UNHEALTHY
            ):
                overall_status = HealthStatus.DEGRADED

        return SystemHealth(
            status=overall_status,
            version=self.version,
            uptime_seconds=time.time() - self._start_time,
            timestamp=datetime.now(timezone.utc),
            components=components,
        )


def chain_check(client: ChainClient) -> HealthCheck:
    """Node reachability check."""

    async def check() -> ComponentHealth:
        healthy = await client.health_check()
        return ComponentHealth(
            name="chain",
            status=HealthStatus.HEALTHY if healthy else HealthStatus.UNHEALTHY,
            message="Node reachable" if healthy else "Node unreachable",
            last_check=datetime.now(timezone.utc),
        )

    return check


def signer_check(orchestrator: TransactionOrchestrator) -> HealthCheck:
    """Write operations are degraded, not broken, without a signing key."""

    async def check() -> ComponentHealth:
        enabled = orchestrator.signing_enabled
        return ComponentHealth(
            name="signer",
            status=HealthStatus.HEALTHY if enabled else HealthStatus.DEGRADED,
            message="Signing key configured" if enabled else "No signing key; writes disabled",
            last_check=datetime.now(timezone.utc),
            details={"address": orchestrator.signer.address} if enabled else {},
        )

    return check


def subscriber_check(subscriber: EventSubscriber | None) -> HealthCheck:
    """Event subscriber state check."""

    async def check() -> ComponentHealth:
        if subscriber is None:
            return ComponentHealth(
                name="event_listener",
                status=HealthStatus.DEGRADED,
                message="Event listener disabled",
                last_check=datetime.now(timezone.utc),
            )

        stats = subscriber.stats
        status = {
            ListenerState.RUNNING: HealthStatus.HEALTHY,
            ListenerState.STARTING: HealthStatus.HEALTHY,
            ListenerState.RECONNECTING: HealthStatus.DEGRADED,
        }.get(stats.state, HealthStatus.UNHEALTHY)

        return ComponentHealth(
            name="event_listener",
            status=status,
            message=stats.last_error or None,
            last_check=datetime.now(timezone.utc),
            details={
                "state": stats.state.value,
                "events_applied": stats.events_applied,
                "decode_errors": stats.decode_errors,
                "handler_errors": stats.handler_errors,
                "reconnects": stats.reconnects,
                "queue_depth": subscriber.queue_depth,
            },
        )

    return check
