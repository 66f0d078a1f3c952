"""Match lifecycle transaction orchestration."""

from gamebridge.services.matches.orchestrator import TransactionOrchestrator
from gamebridge.services.matches.schemas import (
    AttemptKind,
    AttemptState,
    CommitResultRequest,
    StartMatchRequest,
    TransactionAttempt,
    TransactionResponse,
)

__all__ = [
    "AttemptKind",
    "AttemptState",
    "CommitResultRequest",
    "StartMatchRequest",
    "TransactionAttempt",
    "TransactionOrchestrator",
    "TransactionResponse",
]
