"""In-memory leaderboard aggregated from PlayGame events.

The leaderboard is an eventually-consistent projection of chain events.
Known limitations:

- No deduplication: a Settled event delivered twice is counted twice.
- No gap detection: events emitted while the subscription was down are
  never applied.
- No reorg handling: entries only ever grow.
"""

import logging
from dataclasses import replace

from web3 import Web3

from gamebridge.infrastructure.blockchain.events import (
    ChainEvent,
    RefundEvent,
    SettlementEvent,
    StakeEvent,
)
from gamebridge.services.leaderboard.schemas import LeaderboardEntry

logger = logging.getLogger(__name__)


class LeaderboardStore:
    """Owns all leaderboard entries, keyed by checksum address.

    Mutations are plain synchronous methods; callers on a single event loop
    are serialized without locking.
    """

    def __init__(self):
        self._entries: dict[str, LeaderboardEntry] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def record(self, event: ChainEvent) -> None:
        """Apply any decoded PlayGame event."""
        if isinstance(event, SettlementEvent):
            self.record_settlement(event)
        elif isinstance(event, StakeEvent):
            self.record_stake(event)
        elif isinstance(event, RefundEvent):
            self.record_refund(event)
        else:
            raise TypeError(f"Unsupported event record: {type(event).__name__}")

    def record_settlement(self, event: SettlementEvent) -> None:
        """Credit the winner with the payout, one win and one match played."""
        if event.amount < 0:
            raise ValueError(f"Negative payout in {event.tx_hash}: {event.amount}")

        entry = self._entries.get(event.winner)
        if entry is None:
            entry = LeaderboardEntry(address=event.winner)
            self._entries[event.winner] = entry

        entry.total_won += event.amount
        entry.wins += 1
        entry.matches_played += 1

        logger.info(
            f"Settled match {event.match_id} winner={event.winner} "
            f"amount={event.amount} total={entry.total_won}"
        )

    def record_stake(self, event: StakeEvent) -> None:
        """Stakes do not change aggregates."""
        logger.debug(f"Staked match {event.match_id} player={event.player}")

    def record_refund(self, event: RefundEvent) -> None:
        """Refunds do not change aggregates."""
        logger.info(f"Refunded match {event.match_id}")

    def get_entry(self, address: str) -> LeaderboardEntry:
        """Get a copy of an entry; unknown addresses get the zero entry.

        Valid addresses are matched in any letter case.
        """
        if Web3.is_address(address):
            address = Web3.to_checksum_address(address)
        entry = self._entries.get(address)
        return replace(entry) if entry else LeaderboardEntry(address=address)

    def top_n(self, n: int) -> list[LeaderboardEntry]:
        """Get up to n entries ordered by total won, highest first.

        Ties are ordered by address so the result is stable for a given state.
        """
        if n <= 0:
            return []

        ranked = sorted(
            self._entries.values(),
            key=lambda e: (-e.total_won, e.address.lower()),
        )
        return [replace(entry) for entry in ranked[:n]]
