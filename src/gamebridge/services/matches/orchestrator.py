"""Drives PlayGame match lifecycle transactions.

Each call builds a typed write call, submits it once through the chain
client, waits for the receipt and classifies the outcome. Nothing is retried:
resubmitting the same parameters against a settled match reverts on-chain,
so a caller that wants another try starts a new attempt.
"""

import logging
from collections import deque
from typing import Any

from eth_account.signers.local import LocalAccount
from web3 import Web3

from gamebridge.core.exceptions import (
    ConfigurationError,
    NetworkError,
    RevertError,
    ValidationError,
)
from gamebridge.infrastructure.blockchain.client import ChainClient
from gamebridge.infrastructure.blockchain.contracts import PLAYGAME_ABI
from gamebridge.infrastructure.blockchain.transaction import (
    CommitResultCall,
    CreateMatchCall,
    WriteCall,
)
from gamebridge.infrastructure.blockchain.units import (
    encode_bytes32_string,
    parse_units,
)
from gamebridge.services.matches.schemas import (
    AttemptKind,
    AttemptState,
    TransactionAttempt,
)

logger = logging.getLogger(__name__)


class TransactionOrchestrator:
    """Create-match and commit-result state machine."""

    def __init__(
        self,
        client: ChainClient,
        playgame_address: str,
        signer: LocalAccount | None = None,
        abi: list[dict[str, Any]] | None = None,
        stake_decimals: int = 18,
        confirmation_timeout: float | None = None,
        poll_interval: float | None = None,
        history_size: int = 100,
    ):
        """Initialize orchestrator.

        Args:
            client: Chain client used for submission and confirmation
            playgame_address: PlayGame contract address
            signer: Operator account; None disables write operations
            abi: PlayGame ABI (defaults to the built-in fragment)
            stake_decimals: GameToken decimals used to scale stakes
            confirmation_timeout: Receipt wait timeout (client default if None)
            poll_interval: Receipt polling interval (client default if None)
            history_size: Number of finished attempts kept for inspection
        """
        self.client = client
        self.playgame_address = playgame_address
        self.signer = signer
        self.abi = abi or PLAYGAME_ABI
        self.stake_decimals = stake_decimals
        self.confirmation_timeout = confirmation_timeout
        self.poll_interval = poll_interval
        self.attempts: deque[TransactionAttempt] = deque(maxlen=history_size)

    @property
    def signing_enabled(self) -> bool:
        return self.signer is not None

    async def create_match(
        self,
        match_id: str | None,
        player1: str | None,
        player2: str | None,
        stake: str | int | float | None,
    ) -> TransactionAttempt:
        """Create a match and wait for it to be mined.

        Args:
            match_id: Human-readable match id (at most 31 UTF-8 bytes)
            player1: First participant address
            player2: Second participant address
            stake: Stake in GameToken units as a decimal string

        Returns:
            The CONFIRMED attempt, carrying the transaction hash

        Raises:
            ConfigurationError: If no signing key is configured
            ValidationError: If any input is missing or malformed
            RevertError: If the node or contract rejects the transaction
            NetworkError: If the node is unreachable or the wait times out
        """
        self._require_signer()
        self._require_present(matchId=match_id, p1=player1, p2=player2, stake=stake)

        call = CreateMatchCall(
            contract_address=self.playgame_address,
            match_id=encode_bytes32_string(match_id),
            player1=self._to_address("p1", player1),
            player2=self._to_address("p2", player2),
            stake=parse_units(str(stake), self.stake_decimals),
            abi=self.abi,
        )
        attempt = TransactionAttempt(
            kind=AttemptKind.CREATE_MATCH,
            params={
                "match_id": match_id,
                "p1": call.player1,
                "p2": call.player2,
                "stake": call.stake,
            },
        )
        return await self._run(attempt, call)

    async def commit_result(
        self, match_id: str | None, winner: str | None
    ) -> TransactionAttempt:
        """Commit the winner of a match and wait for it to be mined.

        Raises:
            ConfigurationError: If no signing key is configured
            ValidationError: If any input is missing or malformed
            RevertError: If the node or contract rejects the transaction
            NetworkError: If the node is unreachable or the wait times out
        """
        self._require_signer()
        self._require_present(matchId=match_id, winner=winner)

        call = CommitResultCall(
            contract_address=self.playgame_address,
            match_id=encode_bytes32_string(match_id),
            winner=self._to_address("winner", winner),
            abi=self.abi,
        )
        attempt = TransactionAttempt(
            kind=AttemptKind.COMMIT_RESULT,
            params={"match_id": match_id, "winner": call.winner},
        )
        return await self._run(attempt, call)

    async def _run(self, attempt: TransactionAttempt, call: WriteCall) -> TransactionAttempt:
        """Submit a built call and drive the attempt to a terminal state."""
        self.attempts.append(attempt)

        try:
            pending = await self.client.submit(call, self.signer)
        except (RevertError, NetworkError) as e:
            # Not accepted by the node: nothing is pending on-chain
            attempt.transition(AttemptState.FAILED, error=str(e))
            raise
        except Exception as e:
            # Failed before reaching the node (encoding, signing)
            attempt.transition(AttemptState.FAILED, error=f"{type(e).__name__}: {e}")
            raise

        attempt.tx_hash = pending.tx_hash
        attempt.transition(AttemptState.SUBMITTED)

        try:
            receipt = await self.client.await_confirmation(
                pending,
                timeout=self.confirmation_timeout,
                poll_interval=self.poll_interval,
            )
        except RevertError as e:
            attempt.transition(AttemptState.FAILED, error=str(e))
            raise
        except NetworkError as e:
            # Timeout or lost connection after submission: may still be mined
            attempt.transition(AttemptState.UNCONFIRMED, error=str(e))
            raise
        except Exception as e:
            attempt.transition(AttemptState.UNCONFIRMED, error=f"{type(e).__name__}: {e}")
            raise

        attempt.block_number = receipt.block_number
        attempt.transition(AttemptState.CONFIRMED)
        return attempt

    def _require_signer(self) -> None:
        if self.signer is None:
            raise ConfigurationError(
                "Server not configured with a signing key; write operations are disabled"
            )

    @staticmethod
    def _require_present(**params: Any) -> None:
        missing = [
            name for name, value in params.items()
            if value is None or (isinstance(value, str) and not value.strip())
        ]
        if missing:
            raise ValidationError(f"Missing params: {', '.join(missing)}")

    @staticmethod
    def _to_address(name: str, value: str) -> str:
        if not Web3.is_address(value):
            raise ValidationError(f"Invalid address for {name}: {value}")
        return Web3.to_checksum_address(value)
