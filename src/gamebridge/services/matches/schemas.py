"""Match lifecycle schemas."""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)


class AttemptKind(str, Enum):
    """Write operation driven by the orchestrator."""

    CREATE_MATCH = "create_match"
    COMMIT_RESULT = "commit_result"


class AttemptState(str, Enum):
    """Transaction attempt state.

    BUILT -> SUBMITTED -> CONFIRMED | FAILED | UNCONFIRMED. A BUILT attempt can
    also fail directly when the node refuses the submission. UNCONFIRMED
    means the outcome is unknown: the transaction may still be mined.
    """

    BUILT = "built"
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"
    UNCONFIRMED = "unconfirmed"


TERMINAL_STATES = frozenset(
    {AttemptState.CONFIRMED, AttemptState.FAILED, AttemptState.UNCONFIRMED}
)

_TRANSITIONS: dict[AttemptState, frozenset[AttemptState]] = {
    AttemptState.BUILT: frozenset({AttemptState.SUBMITTED, AttemptState.FAILED}),
    AttemptState.SUBMITTED: TERMINAL_STATES,
}


@dataclass
class TransactionAttempt:
    """One create-match or commit-result attempt. Never retried."""

    kind: AttemptKind
    params: dict[str, Any]
    state: AttemptState = AttemptState.BUILT
    tx_hash: str | None = None
    block_number: int | None = None
    error: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def is_terminal(self) -> bool:
        return self.state in TERMINAL_STATES

    def transition(self, new_state: AttemptState, error: str | None = None) -> None:
        """Move to a new state.

        Raises:
            RuntimeError: If the transition is not allowed
        """
        allowed = _TRANSITIONS.get(self.state, frozenset())
        if new_state not in allowed:
            raise RuntimeError(
                f"Invalid attempt transition {self.state.value} -> {new_state.value}"
            )

        previous = self.state
        self.state = new_state
        if error is not None:
            self.error = error
        if new_state in TERMINAL_STATES:
            self.finished_at = datetime.now(timezone.utc)

        logger.info(
            f"{self.kind.value} attempt {previous.value} -> {new_state.value}",
            extra={"tx_hash": self.tx_hash, "error": self.error},
        )


class StartMatchRequest(BaseModel):
    """Request to create a match on-chain."""

    model_config = ConfigDict(populate_by_name=True)

    match_id: str | None = Field(None, alias="matchId", description="Human-readable match id")
    p1: str | None = Field(None, description="Player 1 address")
    p2: str | None = Field(None, description="Player 2 address")
    stake: str | int | float | None = Field(
        None, description="Stake per player in GameToken units, e.g. \"0.1\""
    )


class CommitResultRequest(BaseModel):
    """Request to commit a match result on-chain."""

    model_config = ConfigDict(populate_by_name=True)

    match_id: str | None = Field(None, alias="matchId", description="Human-readable match id")
    winner: str | None = Field(None, description="Winner address")


class TransactionResponse(BaseModel):
    """Confirmed transaction."""

    model_config = ConfigDict(populate_by_name=True)

    tx_hash: str = Field(..., alias="txHash", description="Transaction hash")
    block_number: int | None = Field(None, alias="blockNumber", description="Block mined in")
