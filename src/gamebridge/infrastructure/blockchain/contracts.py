"""Contract ABIs and call encoding.

Built-in ABI fragments cover the functions and events this service uses.
Hardhat artifacts (``{"abi": [...]}``) or raw ABI arrays placed in the
configured ``abi_dir`` take precedence over them.
"""

import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any

from eth_abi import decode
from web3 import Web3

logger = logging.getLogger(__name__)

DUMMY_ADDRESS = "0x0000000000000000000000000000000000000000"

PLAYGAME_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "createMatch",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "matchId", "type": "bytes32"},
            {"name": "p1", "type": "address"},
            {"name": "p2", "type": "address"},
            {"name": "stake", "type": "uint256"},
        ],
        "outputs": [],
    },
    {
        "type": "function",
        "name": "commitResult",
        "stateMutability": "nonpayable",
        "inputs": [
            {"name": "matchId", "type": "bytes32"},
            {"name": "winner", "type": "address"},
        ],
        "outputs": [],
    },
    {
        "type": "event",
        "name": "Settled",
        "anonymous": False,
        "inputs": [
            {"name": "matchId", "type": "bytes32", "indexed": True},
            {"name": "winner", "type": "address", "indexed": True},
            {"name": "amount", "type": "uint256", "indexed": False},
        ],
    },
    {
        "type": "event",
        "name": "Staked",
        "anonymous": False,
        "inputs": [
            {"name": "matchId", "type": "bytes32", "indexed": True},
            {"name": "player", "type": "address", "indexed": True},
        ],
    },
    {
        "type": "event",
        "name": "Refunded",
        "anonymous": False,
        "inputs": [
            {"name": "matchId", "type": "bytes32", "indexed": True},
        ],
    },
]

TOKENSTORE_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "buy",
        "stateMutability": "nonpayable",
        "inputs": [{"name": "usdtAmount", "type": "uint256"}],
        "outputs": [],
    },
]

ERC20_ABI: list[dict[str, Any]] = [
    {
        "type": "function",
        "name": "decimals",
        "stateMutability": "view",
        "inputs": [],
        "outputs": [{"name": "", "type": "uint8"}],
    },
    {
        "type": "function",
        "name": "balanceOf",
        "stateMutability": "view",
        "inputs": [{"name": "account", "type": "address"}],
        "outputs": [{"name": "", "type": "uint256"}],
    },
]

BUILTIN_ABIS: dict[str, list[dict[str, Any]]] = {
    "PlayGame": PLAYGAME_ABI,
    "TokenStore": TOKENSTORE_ABI,
    "GameToken": ERC20_ABI,
    "ERC20": ERC20_ABI,
}


class ABILoader:
    """Loads contract ABIs from a directory, falling back to built-in fragments."""

    def __init__(self, abi_dir: str | Path | None = None):
        """Initialize ABI loader.

        Args:
            abi_dir: Directory with ``<ContractName>.json`` files (optional)
        """
        self.abi_dir = Path(abi_dir) if abi_dir else None
        self._abis: dict[str, list[dict]] = {}
        self._load_all_abis()

    def _load_all_abis(self) -> None:
        """Load all ABIs from the ABI directory."""
        if self.abi_dir is None:
            return
        if not self.abi_dir.exists():
            logger.warning(f"ABI directory not found: {self.abi_dir}, using built-in ABIs")
            return

        for abi_file in self.abi_dir.glob("*.json"):
            try:
                with open(abi_file, "r", encoding="utf-8") as f:
                    data = json.load(f)
            except (OSError, json.JSONDecodeError) as e:
                logger.error(f"Failed to load ABI {abi_file}: {e}")
                continue

            abi = data if isinstance(data, list) else data.get("abi", [])
            if abi:
                self._abis[abi_file.stem] = abi
                logger.debug(f"Loaded ABI: {abi_file.stem} ({len(abi)} entries)")

        logger.info(f"Loaded {len(self._abis)} ABIs from {self.abi_dir}: {list(self._abis)}")

    def get_abi(self, contract_name: str) -> list[dict]:
        """Get ABI by contract name.

        Args:
            contract_name: Contract name (e.g., "PlayGame", "TokenStore")

        Returns:
            Contract ABI as list of dicts
        """
        if contract_name in self._abis:
            return self._abis[contract_name]
        if contract_name in BUILTIN_ABIS:
            return BUILTIN_ABIS[contract_name]
        raise ValueError(f"ABI not found for contract: {contract_name}")

    @property
    def playgame_abi(self) -> list[dict]:
        """Get PlayGame contract ABI."""
        return self.get_abi("PlayGame")

    @property
    def tokenstore_abi(self) -> list[dict]:
        """Get TokenStore contract ABI."""
        return self.get_abi("TokenStore")


@lru_cache(maxsize=8)
def get_abi_loader(abi_dir: str | None = None) -> ABILoader:
    """Get a cached ABI loader for the given directory."""
    return ABILoader(abi_dir)


_encoder = Web3()


def encode_function_call(
    abi: list[dict], function_name: str, args: list[Any] | tuple | None = None
) -> str:
    """Encode function call data.

    Args:
        abi: Contract ABI
        function_name: Name of the function to call
        args: Function arguments

    Returns:
        Hex-encoded call data (selector + arguments)
    """
    contract = _encoder.eth.contract(address=DUMMY_ADDRESS, abi=abi)
    func = contract.get_function_by_name(function_name)
    return func(*(args or []))._encode_transaction_data()


def decode_function_result(abi: list[dict], function_name: str, data: bytes) -> Any:
    """Decode the return data of a contract function.

    Args:
        abi: Contract ABI
        function_name: Name of the function
        data: Raw result data

    Returns:
        Decoded result (single value unwrapped)
    """
    func_abi = find_abi_entry(abi, "function", function_name)
    output_types = [o["type"] for o in func_abi.get("outputs", [])]
    if not output_types:
        return None

    decoded = decode(output_types, bytes(data))
    return decoded[0] if len(decoded) == 1 else decoded


def find_abi_entry(abi: list[dict], entry_type: str, name: str) -> dict[str, Any]:
    """Find a function or event definition in an ABI."""
    for item in abi:
        if item.get("type") == entry_type and item.get("name") == name:
            return item
    raise ValueError(f"{entry_type.capitalize()} {name} not found in ABI")
