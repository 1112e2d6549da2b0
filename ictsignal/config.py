"""ICT Signal Engine — application configuration.

Loads .env variables into a typed config object.
Validates required variables on startup.
"""

import os
from dataclasses import dataclass

from dotenv import load_dotenv


_REQUIRED_VARS = [
    "ALPHA_VANTAGE_API_KEY",
]


@dataclass(frozen=True)
class Config:
    """Typed configuration loaded from environment variables."""

    alpha_vantage_api_key: str
    assets: tuple[str, ...]
    signal_timeframe: str
    analysis_bar_limit: int
    rate_limit_seconds: float  # minimum spacing between provider calls
    fetch_max_retries: int
    fetch_retry_delay_seconds: float
    db_path: str
    log_level: str
    api_port: int

    @property
    def alpha_vantage_url(self) -> str:
        """Return the Alpha Vantage query endpoint."""
        return "https://www.alphavantage.co/query"


def load_config(env_path: str | None = None) -> Config:
    """Load configuration from environment variables.

    Raises ``ValueError`` with a message naming the missing variable when a
    required variable is absent.
    """
    load_dotenv(dotenv_path=env_path)

    missing = [v for v in _REQUIRED_VARS if not os.environ.get(v)]
    if missing:
        raise ValueError(
            f"Missing required environment variable(s): {', '.join(missing)}"
        )

    assets = tuple(
        a.strip().upper()
        for a in os.environ.get("ASSETS", "XAUUSD,NASDAQ").split(",")
        if a.strip()
    )

    return Config(
        alpha_vantage_api_key=os.environ["ALPHA_VANTAGE_API_KEY"],
        assets=assets,
        signal_timeframe=os.environ.get("SIGNAL_TIMEFRAME", "5min"),
        analysis_bar_limit=int(os.environ.get("ANALYSIS_BAR_LIMIT", "500")),
        rate_limit_seconds=float(os.environ.get("RATE_LIMIT_SECONDS", "12.0")),
        fetch_max_retries=int(os.environ.get("FETCH_MAX_RETRIES", "3")),
        fetch_retry_delay_seconds=float(
            os.environ.get("FETCH_RETRY_DELAY_SECONDS", "5.0")
        ),
        db_path=os.environ.get("DB_PATH", "data/ictsignal.db"),
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        api_port=int(os.environ.get("API_PORT", "8080")),
    )
