"""Tests for ictsignal.repos — SQLite storage of bars and signals."""

import sqlite3
from datetime import datetime, timedelta, timezone

import pytest

from ictsignal.repos.bar_repo import BarRepo
from ictsignal.repos.db import get_connection, init_db
from ictsignal.repos.signal_repo import SignalRepo
from ictsignal.strategy.models import Bar, Signal, Zone


_START = datetime(2025, 11, 14, 9, 30, tzinfo=timezone.utc)


@pytest.fixture
def db_path(tmp_path) -> str:
    path = str(tmp_path / "data" / "test.db")
    init_db(path)
    return path


def _bars(asset: str, n: int, offset: int = 0) -> list[Bar]:
    return [
        Bar(
            timestamp=_START + timedelta(minutes=5 * (offset + i)),
            asset=asset,
            open=100.0 + i, high=101.0 + i, low=99.0 + i, close=100.5 + i,
            volume=1000 + i,
        )
        for i in range(n)
    ]


def _signal(asset: str = "XAUUSD", strategy: str = "Bullish_Engulfing") -> Signal:
    return Signal(
        asset=asset,
        timeframe="5min",
        strategy=strategy,
        bias="bullish",
        entry_price=2405.0,
        stop_loss=2400.0,
        take_profit=2415.0,
        confidence=0.7,
        zones=(Zone(zone_type="discount", price=2401.0, strength=3),),
    )


class TestInitDb:
    def test_creates_tables_and_parent_dir(self, tmp_path):
        path = tmp_path / "nested" / "dir" / "signals.db"
        init_db(str(path))
        assert path.exists()
        conn = sqlite3.connect(str(path))
        try:
            names = {
                row[0] for row in conn.execute(
                    "SELECT name FROM sqlite_master WHERE type='table'"
                )
            }
        finally:
            conn.close()
        assert {"market_data", "trade_signals"} <= names

    def test_is_idempotent(self, db_path):
        BarRepo(db_path).upsert_bars(_bars("XAUUSD", 3))
        init_db(db_path)
        assert len(BarRepo(db_path).get_bars("XAUUSD")) == 3

    def test_connection_uses_row_factory(self, db_path):
        conn = get_connection(db_path)
        try:
            row = conn.execute("SELECT 1 AS one").fetchone()
        finally:
            conn.close()
        assert row["one"] == 1


class TestBarRepo:
    def test_insert_and_read_back(self, db_path):
        repo = BarRepo(db_path)
        assert repo.upsert_bars(_bars("NASDAQ", 5)) == 5

        bars = repo.get_bars("NASDAQ")
        assert len(bars) == 5
        assert bars[0] == _bars("NASDAQ", 5)[0]
        assert bars[0].timestamp.tzinfo is not None

    def test_duplicates_are_ignored(self, db_path):
        repo = BarRepo(db_path)
        repo.upsert_bars(_bars("NASDAQ", 5))
        assert repo.upsert_bars(_bars("NASDAQ", 7)) == 2
        assert len(repo.get_bars("NASDAQ")) == 7

    def test_same_timestamp_different_asset(self, db_path):
        repo = BarRepo(db_path)
        repo.upsert_bars(_bars("NASDAQ", 3))
        assert repo.upsert_bars(_bars("XAUUSD", 3)) == 3

    def test_get_bars_limit_returns_latest_ascending(self, db_path):
        repo = BarRepo(db_path)
        repo.upsert_bars(_bars("XAUUSD", 10))
        bars = repo.get_bars("XAUUSD", limit=4)
        assert [b.close for b in bars] == [106.5, 107.5, 108.5, 109.5]

    def test_get_bars_filters_asset(self, db_path):
        repo = BarRepo(db_path)
        repo.upsert_bars(_bars("XAUUSD", 3) + _bars("NASDAQ", 2, offset=10))
        assert {b.asset for b in repo.get_bars("NASDAQ")} == {"NASDAQ"}

    def test_empty_insert(self, db_path):
        assert BarRepo(db_path).upsert_bars([]) == 0

    def test_get_latest_newest_first(self, db_path):
        repo = BarRepo(db_path)
        repo.upsert_bars(_bars("XAUUSD", 5))
        rows = repo.get_latest(limit=2)
        assert len(rows) == 2
        assert rows[0]["timestamp"] > rows[1]["timestamp"]
        assert rows[0]["close"] == 104.5
        assert set(rows[0]) >= {"id", "timestamp", "asset", "open", "high", "low", "close", "volume"}


class TestSignalRepo:
    def test_insert_returns_ids(self, db_path):
        repo = SignalRepo(db_path)
        ids = repo.insert_signals([_signal(), _signal(strategy="Turtle_Soup_Bullish")])
        assert len(ids) == 2
        assert ids[1] > ids[0]

    def test_payload_round_trip(self, db_path):
        repo = SignalRepo(db_path)
        repo.insert_signals([_signal()])
        [row] = repo.get_signals()
        assert row["asset"] == "XAUUSD"
        assert row["timeframe"] == "5min"
        assert row["bias"] == "bullish"
        assert row["entry_price"] == 2405.0
        assert row["liquidity_zones"] == {
            "strategy": "Bullish_Engulfing",
            "confidence": 0.7,
            "zones": [{"type": "discount", "price": 2401.0, "strength": 3}],
        }
        assert row["created_at"]

    def test_newest_first_and_limit(self, db_path):
        repo = SignalRepo(db_path)
        repo.insert_signals([_signal(strategy="Bullish_Engulfing")])
        repo.insert_signals([_signal(strategy="Turtle_Soup_Bullish")])
        rows = repo.get_signals(limit=1)
        assert len(rows) == 1
        assert rows[0]["liquidity_zones"]["strategy"] == "Turtle_Soup_Bullish"

    def test_filter_by_asset(self, db_path):
        repo = SignalRepo(db_path)
        repo.insert_signals([_signal("XAUUSD"), _signal("NASDAQ")])
        rows = repo.get_signals(asset="NASDAQ")
        assert [r["asset"] for r in rows] == ["NASDAQ"]

    def test_empty_insert(self, db_path):
        assert SignalRepo(db_path).insert_signals([]) == []
