"""Error taxonomy shared by the chain client, services and API layer."""


class GameBridgeError(Exception):
    """Base exception for all service errors."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(GameBridgeError, ValueError):
    """Raised when caller input is missing or malformed."""

    status_code = 400


class ConfigurationError(GameBridgeError):
    """Raised when an operation needs configuration that is absent (e.g. a signing key)."""

    status_code = 500


class NetworkError(GameBridgeError):
    """Raised when the node is unreachable or a request times out."""

    status_code = 503


class ConfirmationTimeoutError(NetworkError, TimeoutError):
    """Raised when a submitted transaction is not mined within the wait timeout.

    The transaction may still be mined later: the outcome is unknown, not failed.
    """

    status_code = 504

    def __init__(self, tx_hash: str, timeout: float):
        super().__init__(
            f"Transaction {tx_hash} not confirmed within {timeout}s; outcome unknown"
        )
        self.tx_hash = tx_hash
        self.timeout = timeout


class RevertError(GameBridgeError):
    """Raised when the contract or node rejects a transaction."""

    status_code = 409

    def __init__(self, reason: str, tx_hash: str | None = None):
        super().__init__(reason)
        self.reason = reason
        self.tx_hash = tx_hash


class EventHandlerError(GameBridgeError):
    """Raised inside the subscription loop when an event cannot be decoded or applied.

    Always caught and logged by the subscriber.
    """

    def __init__(self, message: str, tx_hash: str | None = None, log_index: int | None = None):
        super().__init__(message)
        self.tx_hash = tx_hash
        self.log_index = log_index
