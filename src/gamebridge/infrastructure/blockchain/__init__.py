"""Blockchain infrastructure module."""

from gamebridge.infrastructure.blockchain.client import ChainClient, Web3ChainClient
from gamebridge.infrastructure.blockchain.contracts import (
    ABILoader,
    encode_function_call,
    get_abi_loader,
)
from gamebridge.infrastructure.blockchain.events import (
    ChainEvent,
    EventParser,
    EventType,
    RefundEvent,
    SettlementEvent,
    StakeEvent,
)
from gamebridge.infrastructure.blockchain.transaction import (
    CommitResultCall,
    CreateMatchCall,
    PendingTransaction,
    TransactionReceipt,
    TransactionStatus,
    WriteCall,
    load_signer,
)
from gamebridge.infrastructure.blockchain.units import (
    decode_bytes32_string,
    encode_bytes32_string,
    format_units,
    parse_units,
)

__all__ = [
    # Client
    "ChainClient",
    "Web3ChainClient",
    # Contracts
    "ABILoader",
    "encode_function_call",
    "get_abi_loader",
    # Events
    "ChainEvent",
    "EventParser",
    "EventType",
    "RefundEvent",
    "SettlementEvent",
    "StakeEvent",
    # Transactions
    "CommitResultCall",
    "CreateMatchCall",
    "PendingTransaction",
    "TransactionReceipt",
    "TransactionStatus",
    "WriteCall",
    "load_signer",
    # Units
    "decode_bytes32_string",
    "encode_bytes32_string",
    "format_units",
    "parse_units",
]
