"""Builds unsigned TokenStore.buy transactions for client-side signing."""

from dataclasses import dataclass
from typing import Any

from web3 import Web3

from gamebridge.core.exceptions import ValidationError
from gamebridge.infrastructure.blockchain.contracts import (
    TOKENSTORE_ABI,
    encode_function_call,
)
from gamebridge.infrastructure.blockchain.units import parse_units


@dataclass(frozen=True)
class PurchaseTransaction:
    """Unsigned transaction fields a wallet needs to send."""

    to: str
    data: str
    value: int = 0
    amount: int = 0


class UnsignedTxBuilder:
    """Encodes purchase calls against the TokenStore contract.

    Holds no mutable state; the same inputs always produce the same output.
    """

    def __init__(self, tokenstore_address: str, abi: list[dict[str, Any]] | None = None):
        if not Web3.is_address(tokenstore_address):
            raise ValueError(f"Invalid TokenStore address: {tokenstore_address}")
        self.tokenstore_address = Web3.to_checksum_address(tokenstore_address)
        self.abi = abi or TOKENSTORE_ABI

    def build_purchase(self, human_amount: str, token_decimals: int) -> PurchaseTransaction:
        """Build an unsigned buy(amount) transaction.

        Args:
            human_amount: Decimal amount of the payment token, e.g. "1.5"
            token_decimals: Decimals of the payment token

        Returns:
            PurchaseTransaction with target address and call data

        Raises:
            ValidationError: If the amount is malformed, negative or too precise
        """
        if human_amount is None:
            raise ValidationError("Missing amount")
        amount = parse_units(human_amount, token_decimals)
        data = encode_function_call(self.abi, "buy", [amount])
        return PurchaseTransaction(to=self.tokenstore_address, data=data, amount=amount)
