"""Write-call types, signer loading and transaction receipts.

Each PlayGame write operation has its own call type carrying the target
contract, the ABI used for encoding and the typed arguments.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, ClassVar

from eth_account import Account
from eth_account.signers.local import LocalAccount

from gamebridge.core.exceptions import ConfigurationError
from gamebridge.infrastructure.blockchain.contracts import PLAYGAME_ABI

logger = logging.getLogger(__name__)


class TransactionStatus(str, Enum):
    """On-chain execution status taken from a receipt."""

    SUCCESS = "success"
    FAILED = "failed"


@dataclass
class WriteCall(ABC):
    """A state-changing contract call."""

    function_name: ClassVar[str] = ""

    contract_address: str
    abi: list[dict[str, Any]] = field(default_factory=lambda: PLAYGAME_ABI, repr=False, kw_only=True)

    @abstractmethod
    def args(self) -> tuple:
        """Positional arguments for the contract function."""
        ...


@dataclass
class CreateMatchCall(WriteCall):
    """PlayGame.createMatch(bytes32 matchId, address p1, address p2, uint256 stake)."""

    function_name: ClassVar[str] = "createMatch"

    match_id: bytes
    player1: str
    player2: str
    stake: int

    def args(self) -> tuple:
        return (self.match_id, self.player1, self.player2, self.stake)


@dataclass
class CommitResultCall(WriteCall):
    """PlayGame.commitResult(bytes32 matchId, address winner)."""

    function_name: ClassVar[str] = "commitResult"

    match_id: bytes
    winner: str

    def args(self) -> tuple:
        return (self.match_id, self.winner)


@dataclass
class PendingTransaction:
    """Handle for a transaction accepted by the node but not yet mined."""

    tx_hash: str
    function_name: str
    nonce: int
    submitted_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@dataclass
class TransactionReceipt:
    """Mined transaction receipt."""

    tx_hash: str
    block_number: int
    gas_used: int
    status: TransactionStatus

    @classmethod
    def from_web3(cls, tx_hash: str, receipt: dict[str, Any]) -> "TransactionReceipt":
        """Build from a web3 receipt mapping."""
        return cls(
            tx_hash=tx_hash,
            block_number=int(receipt.get("blockNumber") or 0),
            gas_used=int(receipt.get("gasUsed") or 0),
            status=(
                TransactionStatus.SUCCESS
                if receipt.get("status") == 1
                else TransactionStatus.FAILED
            ),
        )

    @property
    def succeeded(self) -> bool:
        return self.status == TransactionStatus.SUCCESS


def load_signer(private_key: str | None) -> LocalAccount | None:
    """Create a local signer from a hex private key.

    Args:
        private_key: Private key (hex string with or without 0x); empty or None
            means no signer

    Returns:
        LocalAccount or None when no key is configured

    Raises:
        ConfigurationError: If the key is present but malformed
    """
    if not private_key:
        return None

    key = private_key if private_key.startswith("0x") else f"0x{private_key}"
    try:
        account: LocalAccount = Account.from_key(key)
    except (ValueError, TypeError) as e:
        raise ConfigurationError(f"Invalid signing key: {e}") from e

    logger.info(f"Signer loaded for address: {account.address}")
    return account