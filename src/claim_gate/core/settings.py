"""Application settings and configuration.

This module defines all configuration options for the Claim Gate service.
Settings are loaded from environment variables with sensible defaults.
"""

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# Chain identifiers for the networks the service is deployed against.
NETWORK_CHAIN_IDS: dict[str, int] = {
    "bsc": 56,
    "bscTestnet": 97,
    "hardhat": 31337,
}

ZERO_ADDRESS = "0x" + "00" * 20


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Values under "Claim limits" only seed the persisted claim configuration the
    first time it is read; afterwards the administrative endpoints own them.
    """

    # Application metadata
    app_name: str = Field(default="Claim Gate", alias="APP_NAME")
    app_version: str = Field(default="0.1.0", alias="APP_VERSION")
    debug: bool = Field(default=False, alias="DEBUG")
    log_level: str = Field(default="INFO", alias="LOG_LEVEL")

    # Security and authentication
    secret_key: str = Field(alias="SECRET_KEY")
    jwt_algorithm: str = Field(default="HS256", alias="JWT_ALGORITHM")
    access_token_expire_minutes: int = Field(default=60, alias="ACCESS_TOKEN_EXPIRE_MINUTES")

    # Database configuration
    database_url: str = Field(default="sqlite:///./claim_gate.db", alias="DATABASE_URL")
    test_database_url: str | None = Field(default=None, alias="TEST_DATABASE_URL")
    use_testing_database: bool = Field(default=False, alias="USE_TEST_DATABASE")
    sql_debug: bool = Field(default=False, alias="SQL_DEBUG")

    # Signature domain
    network: Literal["bsc", "bscTestnet", "hardhat"] = Field(default="hardhat", alias="NETWORK")
    chain_id_override: int | None = Field(default=None, alias="CHAIN_ID")
    purchase_verifier_address: str = Field(
        default="0x" + "11" * 20,
        alias="PURCHASE_VERIFIER_ADDRESS",
    )
    reward_verifier_address: str = Field(
        default="0x" + "22" * 20,
        alias="REWARD_VERIFIER_ADDRESS",
    )

    # Claim limits (initial values for the persisted configuration)
    authorized_signer: str = Field(default=ZERO_ADDRESS, alias="AUTHORIZED_SIGNER")
    reserve_address: str = Field(default=ZERO_ADDRESS, alias="RESERVE_ADDRESS")
    max_single_claim: int = Field(default=1_000, alias="MAX_SINGLE_CLAIM")
    max_daily_per_actor: int = Field(default=5_000, alias="MAX_DAILY_PER_ACTOR")
    cooldown_seconds: int = Field(default=0, alias="COOLDOWN_SECONDS")
    expiry_window_seconds: int = Field(default=3_600, alias="EXPIRY_WINDOW_SECONDS")

    # CORS configuration for web frontend access
    cors_origins: list[str] = Field(default=["*"], alias="CORS_ORIGINS")
    cors_allow_credentials: bool = Field(default=True, alias="CORS_ALLOW_CREDENTIALS")
    cors_allow_methods: list[str] = Field(
        default=["GET", "POST", "PUT", "OPTIONS"],
        alias="CORS_ALLOW_METHODS",
    )
    cors_allow_headers: list[str] = Field(default=["*"], alias="CORS_ALLOW_HEADERS")

    model_config = SettingsConfigDict(
        env_file=".env",
        validate_assignment=True,
        extra="ignore",
    )

    @property
    def chain_id(self) -> int:
        """Return the chain identifier bound into every signed claim."""
        if self.chain_id_override is not None:
            return self.chain_id_override
        return NETWORK_CHAIN_IDS[self.network]

    @property
    def database_url_sync(self) -> str:
        """Return a sync-compatible database URL for tooling.

        Converts asyncpg URLs to psycopg for synchronous database operations
        like Alembic migrations.
        """
        url = self.effective_database_url
        if url.startswith("postgresql+asyncpg"):
            return url.replace("postgresql+asyncpg", "postgresql+psycopg", 1)
        return url

    @property
    def effective_database_url(self) -> str:
        """Return the database URL respecting testing overrides."""
        if self.use_testing_database and self.test_database_url:
            return self.test_database_url
        return self.database_url


settings = Settings()  # type: ignore[call-arg]
