"""ICT Signal Engine — orchestration.

Connects the market data feed, the bar and signal repositories, and the
signal generators.  Each asset's series is analysed independently, so
assets run concurrently in worker threads and results are collected in
configured asset order.
"""

import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from ictsignal.config import Config
from ictsignal.feed.alpha_vantage_client import AlphaVantageClient, MarketDataError
from ictsignal.repos.bar_repo import BarRepo
from ictsignal.repos.signal_repo import SignalRepo
from ictsignal.strategy.models import Bar, Signal
from ictsignal.strategy.registry import SignalGenerator, get_generator

logger = logging.getLogger("ictsignal.service")


async def analyze_assets(
    bars_by_asset: dict[str, list[Bar]],
    generator: SignalGenerator,
    now: datetime,
    timeframe: str,
) -> list[Signal]:
    """Run *generator* for every asset concurrently.

    Assets with no bars are skipped.  Output keeps the key order of
    *bars_by_asset*.
    """
    assets = [a for a, bars in bars_by_asset.items() if bars]

    results = await asyncio.gather(*(
        asyncio.to_thread(generator, asset, bars_by_asset[asset], now, timeframe)
        for asset in assets
    ))

    signals: list[Signal] = []
    for asset, asset_signals in zip(assets, results):
        logger.info("Generated %d %s signal(s).", len(asset_signals), asset)
        signals.extend(asset_signals)
    return signals


class SignalEngine:
    """Fetches bars, runs a signal generator, and stores the results.

    Args:
        config: Application configuration.
        feed: An ``AlphaVantageClient`` (or compatible duck-type / mock).
        bar_repo: Storage for fetched bars.
        signal_repo: Storage for emitted signals.
    """

    def __init__(
        self,
        config: Config,
        feed: Optional[AlphaVantageClient],
        bar_repo: BarRepo,
        signal_repo: SignalRepo,
    ) -> None:
        self._config = config
        self._feed = feed
        self._bar_repo = bar_repo
        self._signal_repo = signal_repo

    @property
    def assets(self) -> tuple[str, ...]:
        return self._config.assets

    async def refresh_market_data(self) -> int:
        """Fetch every configured asset and store the bars.

        An asset whose fetch fails is logged and skipped so the others
        are still stored.  Storage errors propagate.

        Returns:
            Number of bars fetched across all assets.
        """
        if self._feed is None:
            raise RuntimeError("No market data feed configured")

        fetched: list[Bar] = []
        for asset in self.assets:
            try:
                bars = await self._feed.fetch_asset(asset)
            except (MarketDataError, KeyError) as exc:
                logger.error("Failed to fetch %s: %s", asset, exc)
                continue
            logger.info("Fetched %d %s record(s).", len(bars), asset)
            fetched.extend(bars)

        if fetched:
            inserted = self._bar_repo.upsert_bars(fetched)
            logger.info("Stored %d new of %d fetched record(s).", inserted, len(fetched))
        return len(fetched)

    def load_bars(self) -> dict[str, list[Bar]]:
        """Most recent bars per configured asset, oldest first."""
        return {
            asset: self._bar_repo.get_bars(asset, limit=self._config.analysis_bar_limit)
            for asset in self.assets
        }

    async def generate_signals(
        self,
        generator_name: str = "entries",
        now: Optional[datetime] = None,
        store: bool = True,
    ) -> list[Signal]:
        """Analyse stored bars for every asset and persist the signals.

        The clock is read once here and shared by every asset.

        Raises ``KeyError`` for an unknown *generator_name*.
        """
        generator = get_generator(generator_name)
        now = now if now is not None else datetime.now(timezone.utc)

        signals = await analyze_assets(
            self.load_bars(), generator, now, self._config.signal_timeframe,
        )

        if store and signals:
            self._signal_repo.insert_signals(signals)
            logger.info("Stored %d %s signal(s).", len(signals), generator_name)
        return signals
