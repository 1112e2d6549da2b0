"""Candle pattern detectors — pure functions over the tail of a bar series.

Every detector returns a neutral result when there are not enough bars;
none of them raise.
"""

from dataclasses import dataclass
from typing import Optional

from ictsignal.strategy.models import Bar, Direction, PDArray, Zone


DOJI_BODY_RATIO = 0.001
TURTLE_SOUP_LOOKBACK = 20
CRT_BARS = 6
CRT_MAX_RANGE_PCT = 0.005
SWEEP_BARS = 5
VOLUME_AVG_BARS = 20
VOLUME_SPIKE_MULT = 2.0


@dataclass(frozen=True)
class DirectionalPattern:
    """A pattern that may fire in either direction."""

    bullish: bool = False
    bearish: bool = False


@dataclass(frozen=True)
class PDEntry:
    """Outcome of the PD-array rejection / breakout check."""

    rejection: bool = False
    breakout: bool = False
    direction: Optional[Direction] = None


def detect_engulfing(bars: list[Bar]) -> DirectionalPattern:
    """Two-bar engulfing on the last two bars."""
    if len(bars) < 2:
        return DirectionalPattern()

    prev, cur = bars[-2], bars[-1]

    bullish = (
        prev.close < prev.open
        and cur.close > cur.open
        and cur.open < prev.close
        and cur.close > prev.open
    )
    bearish = (
        prev.close > prev.open
        and cur.close < cur.open
        and cur.open > prev.close
        and cur.close < prev.open
    )
    return DirectionalPattern(bullish=bullish, bearish=bearish)


def detect_doji(bar: Bar, body_ratio: float = DOJI_BODY_RATIO) -> bool:
    """Body no larger than *body_ratio* of the range.

    A bar with no range at all counts as a doji.
    """
    price_range = bar.high - bar.low
    if price_range == 0:
        return True
    return abs(bar.close - bar.open) / price_range <= body_ratio


def detect_turtle_soup(
    bars: list[Bar], lookback: int = TURTLE_SOUP_LOOKBACK,
) -> DirectionalPattern:
    """False breakout of the *lookback*-bar extreme.

    The reference window is the *lookback* bars before the final two.
    Bearish: the first of the two breaks above the window high and the
    second closes back below it.  Bullish is the mirror on lows.
    """
    if len(bars) < lookback + 2:
        return DirectionalPattern()

    recent = bars[-(lookback + 2):]
    reference = recent[:lookback]
    breakout, confirm = recent[-2], recent[-1]

    high_ref = max(b.high for b in reference)
    low_ref = min(b.low for b in reference)

    return DirectionalPattern(
        bullish=breakout.low < low_ref and confirm.close > low_ref,
        bearish=breakout.high > high_ref and confirm.close < high_ref,
    )


def detect_crt(
    bars: list[Bar],
    window: int = CRT_BARS,
    max_range_pct: float = CRT_MAX_RANGE_PCT,
) -> bool:
    """Tight consolidation: the last *window* bars span ≤ 0.5% of midpoint."""
    if len(bars) < window:
        return False

    recent = bars[-window:]
    range_high = max(b.high for b in recent)
    range_low = min(b.low for b in recent)
    midpoint = (range_high + range_low) / 2
    return (range_high - range_low) / midpoint <= max_range_pct


def detect_pd_entry(bars: list[Bar], pd_array: PDArray) -> PDEntry:
    """Rejection from, or breakout through, the PD levels.

    Rejection is checked before breakout; the first match wins.
    """
    if len(bars) < 3:
        return PDEntry()

    prev, cur = bars[-2], bars[-1]

    if pd_array.zone == "premium":
        if prev.high >= pd_array.premium and cur.close < prev.low:
            return PDEntry(rejection=True, direction="bearish")

    if pd_array.zone == "discount":
        if prev.low <= pd_array.discount and cur.close > prev.high:
            return PDEntry(rejection=True, direction="bullish")

    if cur.close > pd_array.premium:
        return PDEntry(breakout=True, direction="bullish")
    if cur.close < pd_array.discount:
        return PDEntry(breakout=True, direction="bearish")

    return PDEntry()


def _has_volume_spike(bars: list[Bar]) -> bool:
    # Averaged over a fixed 20 even when fewer bars exist
    avg_volume = sum(b.volume for b in bars[-VOLUME_AVG_BARS:]) / VOLUME_AVG_BARS
    return any(b.volume > avg_volume * VOLUME_SPIKE_MULT for b in bars[-SWEEP_BARS:])


def detect_liquidity_sweep(bars: list[Bar], pools: list[Zone]) -> bool:
    """Detect a sweep of any liquidity pool on the last five bars.

    A sweep needs all of:
        - a break: one of the first three bars trades through the pool,
        - a reversal: one of the last three bars closes back across it
          (above after a break below, below after a break above),
        - a volume spike: any of the five bars trades more than twice
          the 20-bar average volume.
    """
    if len(bars) < SWEEP_BARS:
        return False

    recent = bars[-SWEEP_BARS:]
    if not _has_volume_spike(bars):
        return False

    break_bars = recent[:3]
    reversal_bars = recent[-3:]

    for pool in pools:
        broke_below = any(b.low < pool.price for b in break_bars)
        broke_above = any(b.high > pool.price for b in break_bars)
        if not (broke_below or broke_above):
            continue
        reversed_back = any(
            (b.close > pool.price and broke_below)
            or (b.close < pool.price and broke_above)
            for b in reversal_bars
        )
        if reversed_back:
            return True

    return False
