"""Event parsing for PlayGame contract logs."""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Union

from eth_abi import decode
from eth_utils import event_abi_to_log_topic
from web3 import Web3

from gamebridge.infrastructure.blockchain.contracts import PLAYGAME_ABI, find_abi_entry
from gamebridge.infrastructure.blockchain.units import decode_bytes32_string

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """PlayGame events consumed by the leaderboard."""

    SETTLED = "Settled"
    STAKED = "Staked"
    REFUNDED = "Refunded"


# Canonical signatures, used to check the loaded ABI matches the contract
EVENT_SIGNATURES = {
    EventType.SETTLED: "Settled(bytes32,address,uint256)",
    EventType.STAKED: "Staked(bytes32,address)",
    EventType.REFUNDED: "Refunded(bytes32)",
}


@dataclass(frozen=True)
class SettlementEvent:
    """A match was settled and the pool paid to the winner."""

    match_id: str
    winner: str
    amount: int
    block_number: int
    log_index: int
    tx_hash: str


@dataclass(frozen=True)
class StakeEvent:
    """A player locked their stake for a match."""

    match_id: str
    player: str
    block_number: int
    log_index: int
    tx_hash: str


@dataclass(frozen=True)
class RefundEvent:
    """A match was refunded."""

    match_id: str
    block_number: int
    log_index: int
    tx_hash: str


ChainEvent = Union[SettlementEvent, StakeEvent, RefundEvent]


def to_hex(value: Any) -> str:
    """Normalize bytes or hex strings to lowercase 0x-prefixed hex."""
    if isinstance(value, (bytes, bytearray)):
        return "0x" + bytes(value).hex()
    text = str(value).lower()
    return text if text.startswith("0x") else f"0x{text}"


def to_bytes(value: Any) -> bytes:
    """Normalize hex strings or bytes-like values to bytes."""
    if isinstance(value, (bytes, bytearray)):
        return bytes(value)
    text = str(value)
    return bytes.fromhex(text[2:] if text.startswith("0x") else text)


class EventParser:
    """Decodes raw PlayGame logs into typed event records.

    The indexed/non-indexed layout of each event comes from the ABI, so a
    Hardhat artifact can replace the built-in fragment.
    """

    def __init__(self, abi: list[dict[str, Any]] | None = None):
        """Initialize event parser.

        Args:
            abi: PlayGame ABI (defaults to the built-in fragment)
        """
        self.abi = abi or PLAYGAME_ABI
        self._build_topic_map()

    def _build_topic_map(self) -> None:
        """Build mapping from topic0 hash to (event type, event ABI)."""
        self.topic_to_event: dict[str, tuple[EventType, dict[str, Any]]] = {}
        for event_type, signature in EVENT_SIGNATURES.items():
            event_abi = find_abi_entry(self.abi, "event", event_type.value)
            topic = to_hex(event_abi_to_log_topic(event_abi))
            expected = to_hex(Web3.keccak(text=signature))
            if topic != expected:
                raise ValueError(
                    f"ABI for {event_type.value} does not match {signature}"
                )
            self.topic_to_event[topic] = (event_type, event_abi)

    @property
    def topics(self) -> list[str]:
        """Topic0 hashes of all handled events."""
        return list(self.topic_to_event)

    def parse_log(self, log: dict[str, Any]) -> ChainEvent:
        """Decode a single log entry.

        Args:
            log: Raw log entry from the node

        Returns:
            SettlementEvent, StakeEvent or RefundEvent

        Raises:
            ValueError: If the topic is unknown or the payload is malformed
        """
        topics = log.get("topics") or []
        if not topics:
            raise ValueError("Log has no topics")

        topic0 = to_hex(topics[0])
        if topic0 not in self.topic_to_event:
            raise ValueError(f"Unknown event topic: {topic0}")

        event_type, event_abi = self.topic_to_event[topic0]
        args = self._decode_args(event_abi, topics[1:], to_bytes(log.get("data") or b""))

        block_number = int(log.get("blockNumber") or 0)
        log_index = int(log.get("logIndex") or 0)
        tx_hash = to_hex(log.get("transactionHash") or b"")
        match_id = decode_bytes32_string(args[0])

        if event_type == EventType.SETTLED:
            return SettlementEvent(
                match_id=match_id,
                winner=Web3.to_checksum_address(args[1]),
                amount=int(args[2]),
                block_number=block_number,
                log_index=log_index,
                tx_hash=tx_hash,
            )
        elif event_type == EventType.STAKED:
            return StakeEvent(
                match_id=match_id,
                player=Web3.to_checksum_address(args[1]),
                block_number=block_number,
                log_index=log_index,
                tx_hash=tx_hash,
            )
        return RefundEvent(
            match_id=match_id,
            block_number=block_number,
            log_index=log_index,
            tx_hash=tx_hash,
        )

    def _decode_args(
        self, event_abi: dict[str, Any], indexed_topics: list, data: bytes
    ) -> list[Any]:
        """Decode event args in declaration order.

        Indexed args come from topics, the rest from the data payload.
        """
        inputs = event_abi.get("inputs", [])
        indexed = [i for i in inputs if i.get("indexed")]
        non_indexed = [i for i in inputs if not i.get("indexed")]

        if len(indexed_topics) != len(indexed):
            raise ValueError(
                f"{event_abi['name']} expects {len(indexed)} indexed topics, "
                f"got {len(indexed_topics)}"
            )

        topic_values = iter(
            decode([item["type"]], to_bytes(topic))[0]
            for item, topic in zip(indexed, indexed_topics)
        )
        data_values = iter(
            decode([i["type"] for i in non_indexed], data) if non_indexed else ()
        )

        return [
            next(topic_values) if item.get("indexed") else next(data_values)
            for item in inputs
        ]
