"""Signal repository — SQLite storage for the trade_signals table."""

import json
from datetime import datetime, timezone
from typing import Optional

from ictsignal.repos.db import get_connection
from ictsignal.strategy.models import Signal


class SignalRepo:
    """Data access layer for emitted signals.

    Strategy, confidence and zones travel in the JSON ``liquidity_zones``
    column; the repo does not interpret them.

    Args:
        db_path: Path to the SQLite database file.
    """

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    # ── Write ────────────────────────────────────────────────────────────

    def insert_signals(self, signals: list[Signal]) -> list[int]:
        """Insert every signal and return the new row ids in order."""
        if not signals:
            return []
        created_at = datetime.now(timezone.utc).isoformat()
        conn = get_connection(self._db_path)
        try:
            ids: list[int] = []
            for s in signals:
                cur = conn.execute(
                    """
                    INSERT INTO trade_signals
                        (asset, timeframe, bias, entry_price, stop_loss,
                         take_profit, liquidity_zones, created_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        s.asset, s.timeframe, s.bias, s.entry_price,
                        s.stop_loss, s.take_profit,
                        json.dumps(s.to_payload()), created_at,
                    ),
                )
                ids.append(cur.lastrowid)
            conn.commit()
            return ids
        finally:
            conn.close()

    # ── Read ─────────────────────────────────────────────────────────────

    def get_signals(self, limit: int = 50, asset: Optional[str] = None) -> list[dict]:
        """Return recent signals, newest first, with the payload decoded."""
        conn = get_connection(self._db_path)
        try:
            if asset:
                rows = conn.execute(
                    "SELECT * FROM trade_signals WHERE asset = ? "
                    "ORDER BY id DESC LIMIT ?",
                    (asset, limit),
                ).fetchall()
            else:
                rows = conn.execute(
                    "SELECT * FROM trade_signals ORDER BY id DESC LIMIT ?",
                    (limit,),
                ).fetchall()
        finally:
            conn.close()

        signals = []
        for row in rows:
            record = dict(row)
            raw = record.get("liquidity_zones")
            record["liquidity_zones"] = json.loads(raw) if raw else None
            signals.append(record)
        return signals
