"""System health service module."""

from gamebridge.services.health.checker import (
    ComponentHealth,
    HealthChecker,
    HealthStatus,
    SystemHealth,
    chain_check,
    signer_check,
    subscriber_check,
)

__all__ = [
    "ComponentHealth",
    "HealthChecker",
    "HealthStatus",
    "SystemHealth",
    "chain_check",
    "signer_check",
    "subscriber_check",
]
