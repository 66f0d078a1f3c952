"""Tests for blockchain client layer."""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from eth_abi import encode
from web3.exceptions import ContractLogicError, TransactionNotFound

from gamebridge.core.config import Settings
from gamebridge.core.exceptions import (
    ConfigurationError,
    ConfirmationTimeoutError,
    NetworkError,
    RevertError,
)
from gamebridge.infrastructure.blockchain.client import ChainClient, Web3ChainClient
from gamebridge.infrastructure.blockchain.contracts import (
    ERC20_ABI,
    PLAYGAME_ABI,
    ABILoader,
    decode_function_result,
    encode_function_call,
)
from gamebridge.infrastructure.blockchain.transaction import (
    CommitResultCall,
    PendingTransaction,
    TransactionReceipt,
    TransactionStatus,
    load_signer,
)
from gamebridge.infrastructure.blockchain.units import encode_bytes32_string

TEST_PRIVATE_KEY = "0xac0974bec39a17e36ba4a6b4d238ff944bacb478cbed5efcae784d7bf4f2ff80"
TEST_SIGNER_ADDRESS = "0xf39Fd6e51aad88F6F4ce6aB8827279cffFb92266"
PLAYGAME_ADDRESS = "0x5FbDB2315678afecb367f032d93F642f64180aa3"
WINNER = "0x70997970C51812dc3A010C7d01b50e0d17dc79C8"
TX_HASH = "0x" + "ab" * 32


def awaitable(value):
    async def _value():
        return value

    return _value()


def make_client(**kwargs) -> Web3ChainClient:
    """Create a client whose web3.eth namespace is mocked."""
    params = {
        "rpc_url": "http://node.test:8545",
        "chain_id": 31337,
        "retry_delay": 0,
        "confirmation_timeout": 0.05,
        "confirmation_poll_interval": 0.01,
    }
    params.update(kwargs)
    with patch("gamebridge.infrastructure.blockchain.client.get_settings") as mock_settings:
        mock_settings.return_value = Settings(environment="testing")
        client = Web3ChainClient(**params)

    client._web3 = MagicMock()
    return client


def commit_call() -> CommitResultCall:
    return CommitResultCall(
        contract_address=PLAYGAME_ADDRESS,
        match_id=encode_bytes32_string("match-1"),
        winner=WINNER,
    )


class TestWeb3ChainClient:
    """Tests for Web3ChainClient."""

    def test_client_initialization(self):
        """Test client picks up defaults from settings."""
        with patch("gamebridge.infrastructure.blockchain.client.get_settings") as mock_settings:
            mock_settings.return_value = Settings(
                environment="testing", rpc_url="http://settings.test:8545", chain_id=5
            )

            client = Web3ChainClient()

            assert client.rpc_url == "http://settings.test:8545"
            assert client.chain_id == 5
            assert client.max_retries == 3
            assert client.gas_limit_multiplier == 1.2

    def test_client_is_chain_client_subclass(self):
        """Test Web3ChainClient is subclass of ChainClient."""
        assert issubclass(Web3ChainClient, ChainClient)

    @pytest.mark.asyncio
    async def test_health_check_success(self):
        """Test health check returns True when the node answers."""
        client = make_client()
        client._execute = AsyncMock(return_value=12345678)

        assert await client.health_check() is True

    @pytest.mark.asyncio
    async def test_health_check_failure(self):
        """Test health check returns False when the node fails."""
        client = make_client()
        client._execute = AsyncMock(side_effect=NetworkError("RPC Error"))

        assert await client.health_check() is False

    @pytest.mark.asyncio
    async def test_get_block_number(self):
        """Test get_block_number calls correct method."""
        client = make_client()
        client._execute = AsyncMock(return_value=12345678)

        assert await client.get_block_number() == 12345678
        client._execute.assert_called_once_with("get_block_number")

    @pytest.mark.asyncio
    async def test_execute_retries_then_fails(self):
        """Test transient read failures are retried, then surface as NetworkError."""
        client = make_client(max_retries=3)
        client.web3.eth.get_block_number = AsyncMock(side_effect=ConnectionError("refused"))

        with pytest.raises(NetworkError, match="after 3 attempts"):
            await client.get_block_number()

        assert client.web3.eth.get_block_number.await_count == 3

    @pytest.mark.asyncio
    async def test_execute_recovers(self):
        """Test a read succeeds after one transient failure."""
        client = make_client()
        client.web3.eth.get_block_number = AsyncMock(side_effect=[ConnectionError("x"), 7])

        assert await client.get_block_number() == 7

    @pytest.mark.asyncio
    async def test_get_chain_id_from_node(self):
        """Test chain id is read from the node once when not configured."""
        client = make_client(chain_id=None)
        client.web3.eth.chain_id = awaitable(1337)

        assert await client.get_chain_id() == 1337
        assert await client.get_chain_id() == 1337


class TestContractCalls:
    """Tests for read-only calls."""

    @pytest.mark.asyncio
    async def test_call_decodes_result(self):
        """Test call encodes the request and decodes the result."""
        client = make_client()
        client.web3.eth.call = AsyncMock(return_value=encode(["uint8"], [6]))

        result = await client.call(PLAYGAME_ADDRESS.lower(), ERC20_ABI, "decimals")

        assert result == 6
        tx_params, block = client.web3.eth.call.call_args.args
        assert tx_params["to"] == PLAYGAME_ADDRESS
        assert tx_params["data"] == encode_function_call(ERC20_ABI, "decimals")
        assert block == "latest"

    @pytest.mark.asyncio
    async def test_call_revert_not_retried(self):
        """Test a reverting call raises RevertError after one attempt."""
        client = make_client()
        client.web3.eth.call = AsyncMock(
            side_effect=ContractLogicError("execution reverted: nope")
        )

        with pytest.raises(RevertError, match="nope"):
            await client.call(PLAYGAME_ADDRESS, ERC20_ABI, "balanceOf", [WINNER])

        assert client.web3.eth.call.await_count == 1


class TestSubmit:
    """Tests for transaction submission."""

    def setup_method(self):
        """Set up test fixtures."""
        self.signer = load_signer(TEST_PRIVATE_KEY)
        self.client = make_client()
        eth = self.client.web3.eth
        eth.get_transaction_count = AsyncMock(return_value=7)
        eth.gas_price = awaitable(10**9)
        eth.estimate_gas = AsyncMock(return_value=100_000)
        eth.send_raw_transaction = AsyncMock(return_value=bytes.fromhex("ab" * 32))

    @pytest.mark.asyncio
    async def test_submit(self):
        """Test a write call is estimated, signed and sent once."""
        pending = await self.client.submit(commit_call(), self.signer)

        assert isinstance(pending, PendingTransaction)
        assert pending.tx_hash == TX_HASH
        assert pending.nonce == 7
        assert pending.function_name == "commitResult"

        eth = self.client.web3.eth
        eth.get_transaction_count.assert_awaited_once_with(TEST_SIGNER_ADDRESS, "pending")
        estimate = eth.estimate_gas.call_args.args[0]
        assert estimate["from"] == TEST_SIGNER_ADDRESS
        assert estimate["to"] == PLAYGAME_ADDRESS
        assert estimate["data"] == encode_function_call(
            PLAYGAME_ABI, "commitResult", commit_call().args()
        )
        eth.send_raw_transaction.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_submit_without_signer(self):
        """Test submission without a signer is a configuration error."""
        with pytest.raises(ConfigurationError):
            await self.client.submit(commit_call(), None)

        self.client.web3.eth.send_raw_transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_estimate_revert(self):
        """Test a reverting estimate never sends the transaction."""
        self.client.web3.eth.estimate_gas = AsyncMock(
            side_effect=ContractLogicError("execution reverted: match settled")
        )

        with pytest.raises(RevertError, match="match settled"):
            await self.client.submit(commit_call(), self.signer)

        self.client.web3.eth.send_raw_transaction.assert_not_called()

    @pytest.mark.asyncio
    async def test_send_failure_not_retried(self):
        """Test a failed send surfaces once as NetworkError."""
        self.client.web3.eth.send_raw_transaction = AsyncMock(
            side_effect=ConnectionError("reset by peer")
        )

        with pytest.raises(NetworkError, match="reset by peer"):
            await self.client.submit(commit_call(), self.signer)

        self.client.web3.eth.send_raw_transaction.assert_awaited_once()


class TestAwaitConfirmation:
    """Tests for receipt polling."""

    def setup_method(self):
        """Set up test fixtures."""
        self.client = make_client()
        self.pending = PendingTransaction(tx_hash=TX_HASH, function_name="commitResult", nonce=0)

    @pytest.mark.asyncio
    async def test_confirmed_after_polling(self):
        """Test a pending transaction is polled until mined."""
        self.client.web3.eth.get_transaction_receipt = AsyncMock(
            side_effect=[
                TransactionNotFound("not yet"),
                {"blockNumber": 55, "gasUsed": 42000, "status": 1},
            ]
        )

        receipt = await self.client.await_confirmation(self.pending)

        assert receipt.block_number == 55
        assert receipt.gas_used == 42000
        assert receipt.succeeded

    @pytest.mark.asyncio
    async def test_reverted(self):
        """Test a failed receipt raises RevertError carrying the hash."""
        self.client.web3.eth.get_transaction_receipt = AsyncMock(
            return_value={"blockNumber": 55, "gasUsed": 42000, "status": 0}
        )

        with pytest.raises(RevertError) as exc_info:
            await self.client.await_confirmation(self.pending)

        assert exc_info.value.tx_hash == TX_HASH

    @pytest.mark.asyncio
    async def test_timeout(self):
        """Test an unmined transaction times out with an unknown outcome."""
        self.client.web3.eth.get_transaction_receipt = AsyncMock(
            side_effect=TransactionNotFound("not yet")
        )

        with pytest.raises(ConfirmationTimeoutError) as exc_info:
            await self.client.await_confirmation(self.pending, timeout=0.03, poll_interval=0.01)

        error = exc_info.value
        assert isinstance(error, NetworkError)
        assert isinstance(error, TimeoutError)
        assert error.tx_hash == TX_HASH
        assert "outcome unknown" in error.message

    @pytest.mark.asyncio
    async def test_slow_node_bounded_by_timeout(self):
        """Test time spent in receipt requests counts against the timeout."""

        async def slow_receipt(tx_hash):
            await asyncio.sleep(0.3)
            raise TransactionNotFound("not yet")

        self.client.web3.eth.get_transaction_receipt = AsyncMock(side_effect=slow_receipt)
        loop = asyncio.get_running_loop()
        started = loop.time()

        with pytest.raises(ConfirmationTimeoutError):
            await self.client.await_confirmation(self.pending, timeout=0.5, poll_interval=0.1)

        assert loop.time() - started < 0.9

    @pytest.mark.asyncio
    async def test_failed_poll_not_retried_within_poll(self):
        """Test a failing receipt request is tried once per poll and polling continues."""
        self.client.web3.eth.get_transaction_receipt = AsyncMock(
            side_effect=[
                ConnectionError("reset"),
                {"blockNumber": 56, "gasUsed": 21000, "status": 1},
            ]
        )

        receipt = await self.client.await_confirmation(
            self.pending, timeout=1.0, poll_interval=0.01
        )

        assert receipt.block_number == 56
        assert self.client.web3.eth.get_transaction_receipt.await_count == 2


class TestLogFilters:
    """Tests for log filter primitives."""

    @pytest.mark.asyncio
    async def test_create_log_filter(self):
        """Test filter installation returns the node's filter id."""
        client = make_client()
        client.web3.eth.filter = AsyncMock(return_value=MagicMock(filter_id="0xabc"))

        filter_id = await client.create_log_filter(PLAYGAME_ADDRESS.lower(), [["0x01"]])

        assert filter_id == "0xabc"
        client.web3.eth.filter.assert_awaited_once_with(
            {"address": PLAYGAME_ADDRESS, "topics": [["0x01"]]}
        )

    @pytest.mark.asyncio
    async def test_get_filter_changes_lost_filter(self):
        """Test a lost filter fails fast as NetworkError."""
        client = make_client()
        client.web3.eth.get_filter_changes = AsyncMock(side_effect=ValueError("filter not found"))

        with pytest.raises(NetworkError, match="filter not found"):
            await client.get_filter_changes("0xabc")

        assert client.web3.eth.get_filter_changes.await_count == 1

    @pytest.mark.asyncio
    async def test_get_filter_changes(self):
        """Test filter changes are returned as plain dicts."""
        client = make_client()
        client.web3.eth.get_filter_changes = AsyncMock(return_value=[{"logIndex": 1}])

        assert await client.get_filter_changes("0xabc") == [{"logIndex": 1}]


class TestTransactionTypes:
    """Tests for signer loading and receipts."""

    def test_load_signer(self):
        """Test keys load with or without the 0x prefix."""
        assert load_signer(TEST_PRIVATE_KEY).address == TEST_SIGNER_ADDRESS
        assert load_signer(TEST_PRIVATE_KEY[2:]).address == TEST_SIGNER_ADDRESS

    def test_load_signer_empty(self):
        """Test an empty key disables signing."""
        assert load_signer("") is None
        assert load_signer(None) is None

    def test_load_signer_invalid(self):
        """Test a malformed key is a configuration error."""
        with pytest.raises(ConfigurationError):
            load_signer("0x1234")

    def test_write_call_is_abstract(self):
        """Test the base write call cannot be built without arguments."""
        from gamebridge.infrastructure.blockchain.transaction import WriteCall

        with pytest.raises(TypeError):
            WriteCall(contract_address=PLAYGAME_ADDRESS)

        assert commit_call().args() == (encode_bytes32_string("match-1"), WINNER)

    def test_receipt_from_web3(self):
        """Test receipt conversion."""
        receipt = TransactionReceipt.from_web3(
            TX_HASH, {"blockNumber": 9, "gasUsed": 21000, "status": 0}
        )

        assert receipt.status == TransactionStatus.FAILED
        assert not receipt.succeeded


class TestContracts:
    """Tests for ABI loading and encoding helpers."""

    def test_builtin_abis(self):
        """Test built-in ABIs are used without an ABI directory."""
        loader = ABILoader()

        assert loader.playgame_abi == PLAYGAME_ABI
        with pytest.raises(ValueError):
            loader.get_abi("Unknown")

    def test_load_artifacts(self, tmp_path):
        """Test Hardhat artifacts and raw arrays override built-ins."""
        custom = [{"type": "function", "name": "buy", "inputs": [], "outputs": []}]
        (tmp_path / "TokenStore.json").write_text(json.dumps({"abi": custom}))
        (tmp_path / "GameToken.json").write_text(json.dumps(ERC20_ABI))
        (tmp_path / "Broken.json").write_text("{not json")

        loader = ABILoader(tmp_path)

        assert loader.tokenstore_abi == custom
        assert loader.get_abi("GameToken") == ERC20_ABI
        assert loader.playgame_abi == PLAYGAME_ABI

    def test_missing_abi_dir(self, tmp_path):
        """Test a missing ABI directory falls back to built-ins."""
        loader = ABILoader(tmp_path / "missing")

        assert loader.playgame_abi == PLAYGAME_ABI

    def test_decode_function_result(self):
        """Test return data decoding."""
        data = encode(["uint256"], [10**30])

        assert decode_function_result(ERC20_ABI, "balanceOf", data) == 10**30
