"""Application configuration management using pydantic-settings."""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict

ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


class Settings(BaseSettings):
    """Application settings with environment variable support."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = Field(default="gamebridge", description="Application name")
    environment: Literal["development", "testing", "staging", "production"] = Field(
        default="development", description="Runtime environment"
    )
    debug: bool = Field(default=False, description="Debug mode flag")

    host: str = Field(default="0.0.0.0", description="Bind address for uvicorn")
    port: int = Field(default=3001, description="Bind port for uvicorn")

    # API
    api_v1_prefix: str = Field(default="/api/v1", description="API v1 prefix")
    allowed_origins: list[str] = Field(
        default=["*"],
        description="CORS allowed origins",
    )
    leaderboard_limit: int = Field(
        default=20, ge=1, description="Maximum entries returned by the leaderboard"
    )

    # Blockchain node
    rpc_url: str = Field(
        default="http://127.0.0.1:8545", description="JSON-RPC node endpoint"
    )
    rpc_timeout: float = Field(
        default=30.0, gt=0, description="Per-request RPC timeout in seconds"
    )
    chain_id: int | None = Field(
        default=None, description="Chain ID (read from the node when unset)"
    )
    private_key: str = Field(
        default="",
        description="Operator signing key; empty disables write operations",
    )
    abi_dir: str | None = Field(
        default=None,
        description="Directory of Hardhat artifacts overriding the built-in ABIs",
    )

    # Contract Addresses
    tokenstore_address: str = Field(
        default=ZERO_ADDRESS, description="TokenStore contract address"
    )
    playgame_address: str = Field(
        default=ZERO_ADDRESS, description="PlayGame contract address"
    )
    game_token_address: str = Field(
        default=ZERO_ADDRESS, description="GameToken contract address"
    )
    usdt_address: str = Field(
        default=ZERO_ADDRESS, description="Stable token used for purchases"
    )
    usdt_decimals: int = Field(default=6, ge=0, description="Stable token decimals")
    game_token_decimals: int = Field(
        default=18, ge=0, description="GameToken decimals (match stakes)"
    )

    # Transactions
    gas_limit_multiplier: float = Field(
        default=1.2, ge=1.0, description="Multiplier applied to estimated gas"
    )
    confirmation_timeout: float = Field(
        default=120.0, gt=0, description="Receipt wait timeout in seconds"
    )
    confirmation_poll_interval: float = Field(
        default=2.0, gt=0, description="Receipt polling interval in seconds"
    )

    # Event listener
    event_listener_enabled: bool = Field(
        default=True, description="Start the PlayGame event subscriber on startup"
    )
    event_poll_interval: float = Field(
        default=4.0, gt=0, description="Log filter polling interval in seconds"
    )
    event_queue_size: int = Field(
        default=1000, ge=1, description="Capacity of the decoded event queue"
    )
    reconnect_delay: float = Field(
        default=2.0, gt=0, description="Base delay before re-subscribing"
    )
    max_reconnect_delay: float = Field(
        default=60.0, gt=0, description="Upper bound for the re-subscribe delay"
    )

    # Logging
    log_level: str = Field(default="INFO", description="Logging level")

    @computed_field
    @property
    def signing_enabled(self) -> bool:
        """Whether write operations can be signed."""
        return bool(self.private_key)


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
