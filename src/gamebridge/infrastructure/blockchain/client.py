"""Blockchain client owning the single node connection."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any

from eth_account.signers.local import LocalAccount
from web3 import AsyncHTTPProvider, AsyncWeb3, Web3
from web3.exceptions import ContractLogicError, TransactionNotFound, Web3RPCError

from gamebridge.core.config import get_settings
from gamebridge.core.exceptions import (
    ConfigurationError,
    ConfirmationTimeoutError,
    NetworkError,
    RevertError,
)
from gamebridge.infrastructure.blockchain.contracts import (
    decode_function_result,
    encode_function_call,
)
from gamebridge.infrastructure.blockchain.transaction import (
    PendingTransaction,
    TransactionReceipt,
    WriteCall,
)

logger = logging.getLogger(__name__)

# Errors that carry a definite answer from the node and must not be retried
_NO_RETRY = (ContractLogicError, TransactionNotFound)


class ChainClient(ABC):
    """Abstract base class for blockchain clients."""

    @abstractmethod
    async def get_block_number(self) -> int:
        """Get current block number."""
        ...

    @abstractmethod
    async def call(
        self,
        contract_address: str,
        abi: list[dict],
        function_name: str,
        args: list[Any] | None = None,
    ) -> Any:
        """Execute a read-only contract call and decode the result."""
        ...

    @abstractmethod
    async def submit(
        self, write_call: WriteCall, signer: LocalAccount | None
    ) -> PendingTransaction:
        """Sign and send a write call exactly once."""
        ...

    @abstractmethod
    async def await_confirmation(
        self,
        pending: PendingTransaction,
        timeout: float | None = None,
        poll_interval: float | None = None,
    ) -> TransactionReceipt:
        """Wait until a submitted transaction is mined."""
        ...

    @abstractmethod
    async def create_log_filter(self, address: str, topics: list[Any]) -> str:
        """Install a log filter on the node and return its id."""
        ...

    @abstractmethod
    async def get_filter_changes(self, filter_id: str) -> list[dict[str, Any]]:
        """Get logs matched by a filter since the previous poll."""
        ...

    @abstractmethod
    async def uninstall_filter(self, filter_id: str) -> bool:
        """Remove a log filter from the node."""
        ...

    async def health_check(self) -> bool:
        """Check if the node is reachable."""
        try:
            block_number = await self.get_block_number()
            return block_number >= 0
        except Exception:
            return False


class Web3ChainClient(ChainClient):
    """JSON-RPC client over one AsyncWeb3 HTTP connection.

    Reads are retried with linear backoff. Transaction submission is never
    retried: a resend could land the same operation twice.
    """

    def __init__(
        self,
        rpc_url: str | None = None,
        chain_id: int | None = None,
        request_timeout: float | None = None,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        gas_limit_multiplier: float | None = None,
        confirmation_timeout: float | None = None,
        confirmation_poll_interval: float | None = None,
    ):
        """Initialize chain client.

        Args:
            rpc_url: Node endpoint. If None, uses ``rpc_url`` from settings.
            chain_id: Chain ID. If None, uses settings or asks the node.
            request_timeout: Per-request timeout in seconds
            max_retries: Maximum attempts per read request
            retry_delay: Base delay between read retries in seconds
            gas_limit_multiplier: Multiplier for estimated gas
            confirmation_timeout: Default receipt wait timeout in seconds
            confirmation_poll_interval: Default receipt polling interval
        """
        settings = get_settings()
        self.rpc_url = rpc_url or settings.rpc_url
        self.chain_id = chain_id if chain_id is not None else settings.chain_id
        self.request_timeout = request_timeout or settings.rpc_timeout
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.gas_limit_multiplier = gas_limit_multiplier or settings.gas_limit_multiplier
        self.confirmation_timeout = confirmation_timeout or settings.confirmation_timeout
        self.confirmation_poll_interval = (
            confirmation_poll_interval or settings.confirmation_poll_interval
        )
        self._web3: AsyncWeb3 | None = None
        self._submit_lock = asyncio.Lock()

    @property
    def web3(self) -> AsyncWeb3:
        """Get or create the Web3 instance."""
        if self._web3 is None:
            self._web3 = AsyncWeb3(
                AsyncHTTPProvider(
                    self.rpc_url,
                    request_kwargs={"timeout": self.request_timeout},
                )
            )
        return self._web3

    async def _execute(self, method: str, *args: Any, retries: int | None = None) -> Any:
        """Execute a web3.eth method, retrying transient failures.

        Args:
            method: Web3 eth method name to call
            *args: Positional arguments for the method
            retries: Attempts for this call (defaults to ``max_retries``)

        Returns:
            Result from the Web3 method

        Raises:
            NetworkError: If all attempts fail
        """
        attempts = retries if retries is not None else self.max_retries
        last_error: Exception | None = None

        for attempt in range(attempts):
            try:
                web3_method = getattr(self.web3.eth, method)
                return await web3_method(*args)

            except _NO_RETRY:
                raise

            except Exception as e:
                last_error = e
                logger.warning(
                    f"RPC {self.rpc_url} {method} failed (attempt {attempt + 1}): {e}"
                )
                if attempt < attempts - 1:
                    await asyncio.sleep(self.retry_delay * (attempt + 1))

        raise NetworkError(
            f"RPC {method} failed after {attempts} attempts: {last_error}"
        ) from last_error

    async def get_block_number(self) -> int:
        """Get current block number."""
        return await self._execute("get_block_number")

    async def get_chain_id(self) -> int:
        """Get chain ID, asking the node once when not configured."""
        if self.chain_id is None:
            try:
                self.chain_id = await self.web3.eth.chain_id
            except Exception as e:
                raise NetworkError(f"Failed to read chain id: {e}") from e
        return self.chain_id

    async def call(
        self,
        contract_address: str,
        abi: list[dict],
        function_name: str,
        args: list[Any] | None = None,
    ) -> Any:
        """Call contract function (read-only).

        Args:
            contract_address: Contract address
            abi: Contract ABI
            function_name: Function name
            args: Function arguments

        Returns:
            Decoded function result

        Raises:
            RevertError: If the call reverts
            NetworkError: If the node cannot be reached
        """
        tx_params = {
            "to": Web3.to_checksum_address(contract_address),
            "data": encode_function_call(abi, function_name, args),
        }
        try:
            result = await self._execute("call", tx_params, "latest")
        except ContractLogicError as e:
            raise RevertError(_revert_reason(e)) from e
        return decode_function_result(abi, function_name, result)

    async def submit(
        self, write_call: WriteCall, signer: LocalAccount | None
    ) -> PendingTransaction:
        """Sign and send a contract write call.

        Args:
            write_call: Typed write call (target, ABI, arguments)
            signer: Local account used for signing

        Returns:
            PendingTransaction handle for confirmation waiting

        Raises:
            ConfigurationError: If no signer is configured
            RevertError: If gas estimation reverts or the node rejects the tx
            NetworkError: If the node cannot be reached
        """
        if signer is None:
            raise ConfigurationError(
                "No signing key configured; write operations are disabled"
            )

        function_name = write_call.function_name
        to_address = Web3.to_checksum_address(write_call.contract_address)
        data = encode_function_call(write_call.abi, function_name, write_call.args())

        # Nonce read and send must not interleave with another submission
        async with self._submit_lock:
            chain_id = await self.get_chain_id()
            nonce = await self._execute("get_transaction_count", signer.address, "pending")
            gas_price = await self._gas_price()

            try:
                estimated_gas = await self.web3.eth.estimate_gas(
                    {"from": signer.address, "to": to_address, "data": data, "value": 0}
                )
            except (ContractLogicError, Web3RPCError) as e:
                raise RevertError(_revert_reason(e)) from e
            except Exception as e:
                raise NetworkError(f"Gas estimation for {function_name} failed: {e}") from e

            gas_limit = int(estimated_gas * self.gas_limit_multiplier)
            tx = {
                "to": to_address,
                "data": data,
                "gas": gas_limit,
                "gasPrice": gas_price,
                "nonce": nonce,
                "chainId": chain_id,
                "value": 0,
            }
            signed_tx = signer.sign_transaction(tx)

            try:
                raw_hash = await self.web3.eth.send_raw_transaction(signed_tx.raw_transaction)
            except (ContractLogicError, Web3RPCError) as e:
                raise RevertError(_revert_reason(e)) from e
            except Exception as e:
                raise NetworkError(f"Sending {function_name} failed: {e}") from e

        tx_hash = Web3.to_hex(raw_hash)
        logger.info(
            f"Transaction sent: {tx_hash}, function: {function_name}, "
            f"contract: {to_address}, nonce: {nonce}, gas: {gas_limit}"
        )
        return PendingTransaction(tx_hash=tx_hash, function_name=function_name, nonce=nonce)

    async def await_confirmation(
        self,
        pending: PendingTransaction,
        timeout: float | None = None,
        poll_interval: float | None = None,
    ) -> TransactionReceipt:
        """Wait for a transaction receipt with timeout.

        Args:
            pending: Handle returned by submit
            timeout: Maximum wait time in seconds
            poll_interval: Polling interval in seconds

        Returns:
            Receipt of the successfully mined transaction

        Raises:
            RevertError: If the receipt reports failure
            ConfirmationTimeoutError: If not mined within the timeout; failed
                polls are logged and retried until then
        """
        timeout = timeout or self.confirmation_timeout
        poll_interval = poll_interval or self.confirmation_poll_interval

        # Request time counts against the timeout, not just the sleeps
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout

        while loop.time() < deadline:
            remaining = deadline - loop.time()
            try:
                receipt = await asyncio.wait_for(
                    self._execute("get_transaction_receipt", pending.tx_hash, retries=1),
                    timeout=remaining,
                )
            except TransactionNotFound:
                receipt = None
            except asyncio.TimeoutError:
                break
            except NetworkError as e:
                logger.warning(f"Receipt poll for {pending.tx_hash} failed: {e}")
                receipt = None

            if receipt and receipt.get("blockNumber") is not None:
                result = TransactionReceipt.from_web3(pending.tx_hash, dict(receipt))
                if not result.succeeded:
                    raise RevertError(
                        f"Transaction {pending.tx_hash} reverted in block {result.block_number}",
                        tx_hash=pending.tx_hash,
                    )
                return result

            await asyncio.sleep(max(0.0, min(poll_interval, deadline - loop.time())))

        raise ConfirmationTimeoutError(pending.tx_hash, timeout)

    async def create_log_filter(self, address: str, topics: list[Any]) -> str:
        """Install a log filter for a contract address and topic set."""
        log_filter = await self._execute(
            "filter",
            {"address": Web3.to_checksum_address(address), "topics": topics},
        )
        return log_filter.filter_id

    async def get_filter_changes(self, filter_id: str) -> list[dict[str, Any]]:
        """Poll a log filter once; a lost filter surfaces as NetworkError."""
        logs = await self._execute("get_filter_changes", filter_id, retries=1)
        return [dict(log) for log in logs]

    async def uninstall_filter(self, filter_id: str) -> bool:
        """Uninstall a log filter."""
        return await self._execute("uninstall_filter", filter_id, retries=1)

    async def _gas_price(self) -> int:
        # AsyncWeb3 exposes gas_price as an awaitable property
        try:
            return await self.web3.eth.gas_price
        except Exception as e:
            raise NetworkError(f"Failed to read gas price: {e}") from e


def _revert_reason(error: Exception) -> str:
    """Extract the node's reason string from a web3 error."""
    message = getattr(error, "message", None) or str(error)
    return message or error.__class__.__name__
