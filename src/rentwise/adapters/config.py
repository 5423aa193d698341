# src/rentwise/adapters/config.py
from typing import Any

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class AppConfig(BaseSettings):
    # App & logging
    ENV: str = Field(default="dev")
    LOG_LEVEL: str = Field(default="INFO")

    # -----------------------------
    # HUD Fair Market Rent (government index)
    # -----------------------------
    HUD_API_TOKEN: str | None = Field(default=None)
    HUD_BASE_URL: str = Field(default="https://www.huduser.gov/hudapi/public")

    # -----------------------------
    # Zillow Observed Rent Index (commercial index, CSV export)
    # -----------------------------
    ZORI_CSV_PATH: str = Field(default="data/raw/zori_metro.csv")

    # -----------------------------
    # RentCast integration (comparable listings)
    # -----------------------------
    RENTCAST_API_KEY: str | None = Field(default=None)
    RENTCAST_BASE_URL: str = Field(default="https://api.rentcast.io/v1")
    RENTCAST_MAX_RETRIES: int = Field(default=1)
    RENTCAST_BACKOFF_BASE_S: float = Field(default=0.5)

    # -----------------------------
    # Reconciler: static base weights + per-provider timeouts
    # -----------------------------
    WEIGHT_HUD: float = Field(default=0.45)
    WEIGHT_ZORI: float = Field(default=0.35)
    WEIGHT_LISTINGS: float = Field(default=0.20)

    TIMEOUT_HUD_S: float = Field(default=6.0)
    TIMEOUT_ZORI_S: float = Field(default=2.0)
    TIMEOUT_LISTINGS_S: float = Field(default=8.0)

    # -----------------------------
    # Outbound call budget (scoped rate limiter defaults)
    # -----------------------------
    RATE_MAX_CALLS_PER_MINUTE: int = Field(default=30)
    RATE_MIN_INTERVAL_S: float = Field(default=0.0)
    RATE_EMERGENCY_THRESHOLD: int = Field(default=100)
    RATE_EMERGENCY_COOLDOWN_S: float = Field(default=300.0)

    model_config = SettingsConfigDict(
        env_prefix="RENTWISE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore",
    )

    @field_validator(
        "WEIGHT_HUD",
        "WEIGHT_ZORI",
        "WEIGHT_LISTINGS",
        mode="before",
    )
    @classmethod
    def _to_non_negative_fraction(cls, v: Any) -> Any:
        if v is None:
            return v
        if isinstance(v, str):
            v = v.strip().replace("%", "")
        try:
            f = float(v)
        except Exception as err:
            raise ValueError("weight must be numeric or percent-like") from err
        if f > 1.0:
            f = f / 100.0
        if f < 0:
            raise ValueError("weight must be non-negative")
        return f

    @field_validator("TIMEOUT_HUD_S", "TIMEOUT_ZORI_S", "TIMEOUT_LISTINGS_S", mode="before")
    @classmethod
    def _timeout_positive(cls, v: Any) -> Any:
        f = float(v)
        if f <= 0:
            raise ValueError("provider timeouts must be > 0")
        return f

    def provider_weights(self) -> dict[str, float]:
        return {
            "hud_fmr": self.WEIGHT_HUD,
            "zori": self.WEIGHT_ZORI,
            "rentcast_listings": self.WEIGHT_LISTINGS,
        }

    def provider_timeouts(self) -> dict[str, float]:
        return {
            "hud_fmr": self.TIMEOUT_HUD_S,
            "zori": self.TIMEOUT_ZORI_S,
            "rentcast_listings": self.TIMEOUT_LISTINGS_S,
        }


config = AppConfig()
