"""
Configuration settings for the ArbSentry cross-venue arbitrage bot.
Uses pydantic-settings for validation and environment variable loading.
"""

from enum import Enum
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class OperatingMode(str, Enum):
    """Bot operating modes."""
    SHADOW = "shadow"


class AzuroSettings(BaseSettings):
    """Settings for the Azuro venue (Polygon)."""

    subgraph_url: str = Field(default="", description="Azuro subgraph GraphQL endpoint")
    rpc_url: str = Field(default="", description="Polygon RPC used for live condition reads")
    lp_contract: str = "0x204e7371Ade792c5C006fb52711c50a7efC843ed"

    commission: float = 0.05  # 5% protocol margin

    # Discovery odds are haircut to approximate AMM slippage
    slippage_factor: float = 1.005
    conditions_limit: int = 100


class OvertimeSettings(BaseSettings):
    """Settings for the Overtime venue (Arbitrum)."""

    api_url: str = Field(default="", description="Overtime subgraph GraphQL endpoint")
    api_key: str = Field(default="", description="The Graph API key")
    rpc_url: str = Field(default="", description="Arbitrum RPC used for AMM quotes")
    sports_amm_contract: str = "0x170a5714112daEfF20E798B6e92e25B86Ea603C1"

    commission: float = 0.03  # 3% protocol fee
    markets_limit: int = 150


class GasSettings(BaseSettings):
    """Gas oracle settings."""

    polygon_rpc_url: str = "https://polygon-rpc.com"
    arbitrum_rpc_url: str = "https://arb1.arbitrum.io/rpc"

    estimated_gas_limit: int = 300_000
    cache_seconds: float = 15.0

    # Native token prices (USD) used to convert gas cost
    native_token_usd: dict = Field(default_factory=lambda: {
        "polygon": 1.05,
        "arbitrum": 3000.0,
        "bsc": 380.0,
    })

    # Returned when the RPC cannot be reached
    fallback_cost_usd: dict = Field(default_factory=lambda: {
        "polygon": 0.10,
        "arbitrum": 0.10,
        "bsc": 0.50,
    })


class MatchingSettings(BaseSettings):
    """Cross-venue event matching thresholds."""

    min_similarity: float = 0.45  # Dice score must be strictly above this
    max_time_gap_hours: float = 36.0


class EngineSettings(BaseSettings):
    """Discovery cycle and opportunity evaluation settings."""

    total_investment: float = 100.0  # USD staked across all legs
    discovery_interval_seconds: float = 30.0

    @field_validator("total_investment")
    @classmethod
    def _positive_investment(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("total_investment must be positive")
        return value


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore"
    )

    # Operating mode
    mode: OperatingMode = OperatingMode.SHADOW

    # Logging
    log_level: str = "INFO"
    log_dir: str = "logs"
    json_logs: bool = False

    # Sub-settings
    azuro: AzuroSettings = Field(default_factory=AzuroSettings)
    overtime: OvertimeSettings = Field(default_factory=OvertimeSettings)
    gas: GasSettings = Field(default_factory=GasSettings)
    matching: MatchingSettings = Field(default_factory=MatchingSettings)
    engine: EngineSettings = Field(default_factory=EngineSettings)


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get settings singleton."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings() -> Settings:
    """Reload settings from environment."""
    global _settings
    _settings = Settings()
    return _settings
