"""Match lifecycle API endpoints (operator only)."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends

from gamebridge.services.dependencies import get_orchestrator
from gamebridge.services.matches import (
    CommitResultRequest,
    StartMatchRequest,
    TransactionOrchestrator,
    TransactionResponse,
)

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/match", tags=["Matches"])


@router.post("/start", response_model=TransactionResponse)
async def start_match(
    request: StartMatchRequest,
    orchestrator: Annotated[TransactionOrchestrator, Depends(get_orchestrator)],
) -> TransactionResponse:
    """Create a match on PlayGame and wait for confirmation.

    Stake is given in GameToken units (18 decimals), e.g. "0.1".
    """
    attempt = await orchestrator.create_match(
        request.match_id, request.p1, request.p2, request.stake
    )
    return TransactionResponse(tx_hash=attempt.tx_hash, block_number=attempt.block_number)


@router.post("/result", response_model=TransactionResponse)
async def commit_result(
    request: CommitResultRequest,
    orchestrator: Annotated[TransactionOrchestrator, Depends(get_orchestrator)],
) -> TransactionResponse:
    """Commit the winner of a match and wait for confirmation."""
    attempt = await orchestrator.commit_result(request.match_id, request.winner)
    return TransactionResponse(tx_hash=attempt.tx_hash, block_number=attempt.block_number)
