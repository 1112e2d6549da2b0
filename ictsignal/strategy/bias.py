"""Directional bias — calendar-quarter structure and IPDA phase.

Quarter boundaries come from the evaluation clock (*now*), not from the
bars' own timestamps.  Re-running the same history on a different date
can therefore change the bias.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from ictsignal.strategy.models import Bar, Bias, PDArray


MIN_BIAS_BARS = 60


@dataclass(frozen=True)
class IPDAPhase:
    """Seasonal market-maker phase and the entries it allows."""

    should_buy: bool
    should_sell: bool
    phase: str  # "Q2_Markup", "Q3_Distribution" or "Neutral"


def _utc_now(now: Optional[datetime]) -> datetime:
    return now if now is not None else datetime.now(timezone.utc)


def _as_utc(ts: datetime) -> datetime:
    # Naive timestamps are read as UTC
    return ts.replace(tzinfo=timezone.utc) if ts.tzinfo is None else ts


def current_quarter(now: Optional[datetime] = None) -> int:
    """Calendar quarter (1–4) of *now*."""
    return (_utc_now(now).month - 1) // 3 + 1


def quarter_boundaries(now: Optional[datetime] = None) -> tuple[datetime, datetime, datetime]:
    """Ends of Q1, Q2 and Q3 (midnight UTC) for the year of *now*."""
    year = _utc_now(now).year
    return (
        datetime(year, 3, 31, tzinfo=timezone.utc),
        datetime(year, 6, 30, tzinfo=timezone.utc),
        datetime(year, 9, 30, tzinfo=timezone.utc),
    )


def quarterly_bias(bars: list[Bar], now: Optional[datetime] = None) -> Bias:
    """Classify bias against the Q2 high and Q3 low of the current year.

    Rules:
        - Fewer than 60 bars, or no bars inside the Q2 window → neutral.
        - Last close above the Q2 high → bullish.
        - Last close below the Q3 low → bearish.  Without Q3 bars the
          Q2 high stands in for the Q3 low.
        - Otherwise neutral.
    """
    if len(bars) < MIN_BIAS_BARS:
        return "neutral"

    q1_end, q2_end, q3_end = quarter_boundaries(now)

    q2_bars = [b for b in bars if q1_end < _as_utc(b.timestamp) <= q2_end]
    q3_bars = [b for b in bars if q2_end < _as_utc(b.timestamp) <= q3_end]

    if not q2_bars:
        return "neutral"

    q2_high = max(b.high for b in q2_bars)
    q3_low = min(b.low for b in q3_bars) if q3_bars else q2_high
    price = bars[-1].close

    if price > q2_high:
        return "bullish"
    if price < q3_low:
        return "bearish"
    return "neutral"


def ipda_phase(pd_array: PDArray, now: Optional[datetime] = None) -> IPDAPhase:
    """Q2 discount → markup (buy); Q3 premium → distribution (sell)."""
    quarter = current_quarter(now)

    if quarter == 2 and pd_array.zone == "discount":
        return IPDAPhase(should_buy=True, should_sell=False, phase="Q2_Markup")
    if quarter == 3 and pd_array.zone == "premium":
        return IPDAPhase(should_buy=False, should_sell=True, phase="Q3_Distribution")
    return IPDAPhase(should_buy=False, should_sell=False, phase="Neutral")
