"""Alpha Vantage REST API async client.

Fetches intraday 5-minute bars for the supported assets.  Every request
passes through a shared ``RateLimiter`` and is retried on failure.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

import httpx

from ictsignal.config import Config
from ictsignal.feed.rate_limiter import RateLimiter
from ictsignal.strategy.models import Bar

logger = logging.getLogger("ictsignal.feed")

_MAX_RECORDS = 100


class MarketDataError(RuntimeError):
    """Raised when the quote provider returns no usable data."""


def _parse_timestamp(raw: str) -> datetime:
    """Parse an Alpha Vantage ``YYYY-MM-DD HH:MM:SS`` key as UTC."""
    ts = datetime.fromisoformat(raw)
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts.astimezone(timezone.utc)


def parse_time_series(
    data: dict,
    series_key: str,
    asset: str,
    with_volume: bool = True,
    max_records: int = _MAX_RECORDS,
) -> list[Bar]:
    """Convert an Alpha Vantage time-series payload into bars.

    Keeps the latest *max_records* entries and returns them oldest-first.

    Raises ``MarketDataError`` if *series_key* is missing.
    """
    series = data.get(series_key)
    if not series:
        raise MarketDataError(f"No data received for {asset} ({series_key})")

    bars = [
        Bar(
            timestamp=_parse_timestamp(ts),
            asset=asset,
            open=float(values["1. open"]),
            high=float(values["2. high"]),
            low=float(values["3. low"]),
            close=float(values["4. close"]),
            volume=int(float(values["5. volume"])) if with_volume else 0,
        )
        for ts, values in series.items()
    ]
    bars.sort(key=lambda b: b.timestamp, reverse=True)
    latest = bars[:max_records]
    latest.reverse()
    return latest


class AlphaVantageClient:
    """Async client wrapping the Alpha Vantage intraday endpoints.

    Args:
        config: Application configuration.
        rate_limiter: Shared limiter; one is built from
            ``config.rate_limit_seconds`` when omitted.
    """

    def __init__(
        self,
        config: Config,
        rate_limiter: Optional[RateLimiter] = None,
    ) -> None:
        self._config = config
        self._base_url = config.alpha_vantage_url
        self._api_key = config.alpha_vantage_api_key
        self._max_retries = config.fetch_max_retries
        self._retry_delay = config.fetch_retry_delay_seconds
        self._rate_limiter = rate_limiter or RateLimiter(config.rate_limit_seconds)

    # ── Retry helper ─────────────────────────────────────────────────────

    async def _request_with_retry(self, params: dict) -> dict:
        """GET the query endpoint with rate limiting and retry.

        HTTP errors, transport errors and provider error payloads
        (``"Error Message"``, ``"Note"``) are retried.  After the final
        attempt the failure is raised as ``MarketDataError``.
        """
        query = {**params, "apikey": self._api_key}
        last_exc: Optional[Exception] = None

        for attempt in range(1, self._max_retries + 1):
            try:
                await self._rate_limiter.acquire()
                async with httpx.AsyncClient() as client:
                    resp = await client.get(
                        self._base_url,
                        params=query,
                        timeout=30.0,
                    )
                resp.raise_for_status()
                data = resp.json()

                if "Error Message" in data:
                    raise MarketDataError(
                        f"Alpha Vantage error: {data['Error Message']}"
                    )
                if "Note" in data:
                    raise MarketDataError(f"Rate limit exceeded: {data['Note']}")
                return data

            except (httpx.HTTPError, MarketDataError, ValueError) as exc:
                last_exc = exc
                logger.warning(
                    "Alpha Vantage %s attempt %d/%d failed: %s",
                    params.get("function"), attempt, self._max_retries, exc,
                )
                if attempt < self._max_retries:
                    await asyncio.sleep(self._retry_delay)

        raise MarketDataError(
            f"Alpha Vantage request failed after {self._max_retries} attempt(s): "
            f"{last_exc}"
        ) from last_exc

    # ── Bars ─────────────────────────────────────────────────────────────

    async def fetch_xauusd(self) -> list[Bar]:
        """Fetch 5-minute XAU/USD bars (forex series, no volume)."""
        data = await self._request_with_retry({
            "function": "FX_INTRADAY",
            "from_symbol": "XAU",
            "to_symbol": "USD",
            "interval": "5min",
        })
        return parse_time_series(
            data, "Time Series FX (5min)", "XAUUSD", with_volume=False,
        )

    async def fetch_nasdaq(self) -> list[Bar]:
        """Fetch 5-minute NASDAQ composite bars."""
        data = await self._request_with_retry({
            "function": "TIME_SERIES_INTRADAY",
            "symbol": "IXIC",
            "interval": "5min",
        })
        return parse_time_series(data, "Time Series (5min)", "NASDAQ")

    async def fetch_asset(self, asset: str) -> list[Bar]:
        """Fetch bars for *asset* by name.

        Raises ``KeyError`` for unsupported assets.
        """
        fetchers = {
            "XAUUSD": self.fetch_xauusd,
            "NASDAQ": self.fetch_nasdaq,
        }
        if asset not in fetchers:
            raise KeyError(
                f"Unknown asset '{asset}'. Available: {', '.join(fetchers)}"
            )
        return await fetchers[asset]()
