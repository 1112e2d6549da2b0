"""Volatility indicators — True Range, ATR, volatility regime. Pure functions, no I/O."""

from dataclasses import dataclass

from ictsignal.strategy.models import Bar


# Recent window vs. the window immediately before it
RECENT_ATR_PERIOD = 14
PRIOR_ATR_PERIOD = 20
MIN_VOLATILITY_BARS = RECENT_ATR_PERIOD + PRIOR_ATR_PERIOD + 1


@dataclass(frozen=True)
class VolatilityState:
    """Snapshot of the current volatility regime."""

    is_high_volatility: bool
    current_atr: float
    average_atr: float


def true_range(bar: Bar, prev_bar: Bar) -> float:
    """True Range of *bar* given the bar before it.

    ``TR = max(high - low, |high - prev_close|, |low - prev_close|)``
    """
    return max(
        bar.high - bar.low,
        abs(bar.high - prev_bar.close),
        abs(bar.low - prev_bar.close),
    )


def calculate_atr(bars: list[Bar], period: int = 20) -> float:
    """Calculate the Average True Range over *period* bars.

    Requires at least ``period + 1`` bars (need a previous close for TR).
    Returns the simple average of the last *period* true ranges, or
    ``0.0`` when there is not enough data.
    """
    if period <= 0 or len(bars) < period + 1:
        return 0.0

    true_ranges = [
        true_range(bars[i], bars[i - 1])
        for i in range(len(bars) - period, len(bars))
    ]
    return sum(true_ranges) / period


def analyze_volatility(bars: list[Bar]) -> VolatilityState:
    """Compare recent ATR(14) against ATR(20) of the preceding bars.

    The 20-bar prior window ends where the 14-bar recent window starts,
    so the two never overlap.  Until both windows are full (35 bars) the
    regime is reported as low volatility; the ATRs are still returned.
    """
    current_atr = calculate_atr(bars, RECENT_ATR_PERIOD)
    average_atr = calculate_atr(bars[:-RECENT_ATR_PERIOD], PRIOR_ATR_PERIOD)
    enough_data = len(bars) >= MIN_VOLATILITY_BARS
    return VolatilityState(
        is_high_volatility=enough_data and current_atr > average_atr,
        current_atr=current_atr,
        average_atr=average_atr,
    )


def is_high_volatility(bars: list[Bar]) -> bool:
    """Return True if recent volatility exceeds the prior-period average."""
    return analyze_volatility(bars).is_high_volatility
