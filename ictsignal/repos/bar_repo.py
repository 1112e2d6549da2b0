"""Bar repository — SQLite storage for the market_data table."""

from datetime import datetime

from ictsignal.repos.db import get_connection
from ictsignal.strategy.models import Bar


class BarRepo:
    """Data access layer for OHLC bars.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    # ── Write ────────────────────────────────────────────────────────────

    def upsert_bars(self, bars: list[Bar]) -> int:
        """Insert bars, skipping any ``(timestamp, asset)`` already stored.

        Returns the number of rows actually inserted.
        """
        if not bars:
            return 0
        conn = get_connection(self._db_path)
        try:
            before = conn.total_changes
            conn.executemany(
                """
                INSERT OR IGNORE INTO market_data
                    (timestamp, asset, open, high, low, close, volume)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                [
                    (
                        b.timestamp.isoformat(), b.asset, b.open, b.high,
                        b.low, b.close, b.volume,
                    )
                    for b in bars
                ],
            )
            conn.commit()
            return conn.total_changes - before
        finally:
            conn.close()

    # ── Read ─────────────────────────────────────────────────────────────

    def get_bars(self, asset: str, limit: int = 500) -> list[Bar]:
        """Return the most recent *limit* bars for *asset*, oldest first."""
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                """
                SELECT timestamp, asset, open, high, low, close, volume
                FROM market_data
                WHERE asset = ?
                ORDER BY timestamp DESC
                LIMIT ?
                """,
                (asset, limit),
            ).fetchall()
        finally:
            conn.close()

        return [
            Bar(
                timestamp=datetime.fromisoformat(row["timestamp"]),
                asset=row["asset"],
                open=row["open"],
                high=row["high"],
                low=row["low"],
                close=row["close"],
                volume=row["volume"],
            )
            for row in reversed(rows)
        ]

    def get_latest(self, limit: int = 200) -> list[dict]:
        """Return the latest stored bars across all assets, newest first."""
        conn = get_connection(self._db_path)
        try:
            rows = conn.execute(
                """
                SELECT id, timestamp, asset, open, high, low, close, volume
                FROM market_data
                ORDER BY timestamp DESC, id DESC
                LIMIT ?
                """,
                (limit,),
            ).fetchall()
            return [dict(row) for row in rows]
        finally:
            conn.close()
