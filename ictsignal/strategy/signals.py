"""Entry signal synthesis — pure functions, no I/O.

Runs every pattern detector over one asset's bar series and turns each
detector that fires into its own ``Signal``.  Detectors are independent:
several strategies can fire on the same bar and all of them are emitted.

Nothing is emitted unless the series holds at least 60 bars and recent
volatility (ATR 14) exceeds the volatility of the bars before it (ATR 20).
"""

from datetime import datetime, timezone
from typing import Optional

from ictsignal.strategy.bias import ipda_phase, quarterly_bias
from ictsignal.strategy.indicators import calculate_atr, is_high_volatility
from ictsignal.strategy.models import (
    DEFAULT_TIMEFRAME,
    STRATEGY_CONFIDENCE,
    Bar,
    Direction,
    Signal,
    Zone,
)
from ictsignal.strategy.patterns import (
    detect_crt,
    detect_engulfing,
    detect_liquidity_sweep,
    detect_pd_entry,
    detect_turtle_soup,
)
from ictsignal.strategy.zones import (
    analyze_pd_arrays,
    calculate_pd_zones,
    identify_liquidity_pools,
)


MIN_SIGNAL_BARS = 60
ENTRY_ATR_PERIOD = 20
SWEEP_ATR_BARS = 14
SL_ATR_MULT = 1.5
TP_ATR_MULT = 3.0


def risk_levels(entry_price: float, direction: Direction, atr: float) -> tuple[float, float]:
    """Return ``(stop_loss, take_profit)`` at 1.5 × / 3 × ATR from entry."""
    if direction == "bullish":
        return entry_price - atr * SL_ATR_MULT, entry_price + atr * TP_ATR_MULT
    if direction == "bearish":
        return entry_price + atr * SL_ATR_MULT, entry_price - atr * TP_ATR_MULT
    raise ValueError(f"direction must be 'bullish' or 'bearish', got '{direction}'")


def _make_signal(
    asset: str,
    timeframe: str,
    strategy: str,
    direction: Direction,
    entry_price: float,
    atr: float,
    zones: tuple[Zone, ...],
) -> Signal:
    stop_loss, take_profit = risk_levels(entry_price, direction, atr)
    return Signal(
        asset=asset,
        timeframe=timeframe,
        strategy=strategy,
        bias=direction,
        entry_price=entry_price,
        stop_loss=stop_loss,
        take_profit=take_profit,
        confidence=STRATEGY_CONFIDENCE[strategy],
        zones=zones,
    )


def generate_entry_signals(
    asset: str,
    bars: list[Bar],
    now: Optional[datetime] = None,
    timeframe: str = DEFAULT_TIMEFRAME,
) -> list[Signal]:
    """Evaluate all entry strategies on the tail of *bars*.

    Args:
        asset: Asset identifier copied onto every signal.
        bars: Bar series for *asset*, oldest first.
        now: Evaluation time for the quarter-based bias and IPDA phase.
            Defaults to the current UTC time.
        timeframe: Label copied onto every signal.

    Returns:
        Zero or more signals, one per strategy that fired.
    """
    if len(bars) < MIN_SIGNAL_BARS:
        return []
    if not is_high_volatility(bars):
        return []

    now = now if now is not None else datetime.now(timezone.utc)

    price = bars[-1].close
    atr = calculate_atr(bars, ENTRY_ATR_PERIOD)
    bias = quarterly_bias(bars, now)
    pd_array = analyze_pd_arrays(bars)
    zones = tuple(calculate_pd_zones(bars))

    engulfing = detect_engulfing(bars)
    turtle_soup = detect_turtle_soup(bars)
    crt = detect_crt(bars)
    pd_entry = detect_pd_entry(bars, pd_array)
    ipda = ipda_phase(pd_array, now)

    fired: list[tuple[str, Direction]] = []

    if engulfing.bullish and bias != "bearish":
        fired.append(("Bullish_Engulfing", "bullish"))
    if engulfing.bearish and bias != "bullish":
        fired.append(("Bearish_Engulfing", "bearish"))

    if turtle_soup.bullish:
        fired.append(("Turtle_Soup_Bullish", "bullish"))
    if turtle_soup.bearish:
        fired.append(("Turtle_Soup_Bearish", "bearish"))

    # CRT only counts once price has left the range in the bias direction
    if crt and bias == "bullish" and price > pd_array.equilibrium:
        fired.append(("CRT_Breakout_Bullish", "bullish"))
    if crt and bias == "bearish" and price < pd_array.equilibrium:
        fired.append(("CRT_Breakout_Bearish", "bearish"))

    if pd_entry.rejection and pd_entry.direction:
        fired.append((f"PD_Array_Rejection_{pd_entry.direction}", pd_entry.direction))

    if ipda.should_buy and bias != "bearish":
        fired.append(("IPDA_Discount_Buy", "bullish"))
    if ipda.should_sell and bias != "bullish":
        fired.append(("IPDA_Premium_Sell", "bearish"))

    return [
        _make_signal(asset, timeframe, strategy, direction, price, atr, zones)
        for strategy, direction in fired
    ]


def generate_sweep_signal(
    asset: str,
    bars: list[Bar],
    now: Optional[datetime] = None,
    timeframe: str = DEFAULT_TIMEFRAME,
) -> Optional[Signal]:
    """Single liquidity-sweep signal in the direction of the quarterly bias.

    Requires a directional bias and a sweep of one of the series'
    liquidity pools.  Entry is taken at the discount level for a bullish
    bias and at the premium level for a bearish one, falling back to the
    last close when no PD levels exist.

    Returns ``None`` when there is no setup.
    """
    if len(bars) < MIN_SIGNAL_BARS:
        return None

    bias = quarterly_bias(bars, now)
    if bias == "neutral":
        return None

    pools = identify_liquidity_pools(bars)
    if not detect_liquidity_sweep(bars, pools):
        return None

    # Mean true range across the last 14 bars (13 ranges)
    atr = calculate_atr(bars[-SWEEP_ATR_BARS:], SWEEP_ATR_BARS - 1)
    if atr <= 0:
        return None

    pd_zones = calculate_pd_zones(bars)
    anchor = "discount" if bias == "bullish" else "premium"
    entry_price = next(
        (z.price for z in pd_zones if z.zone_type == anchor),
        bars[-1].close,
    )

    strategy = "Liquidity_Sweep_Bullish" if bias == "bullish" else "Liquidity_Sweep_Bearish"
    return _make_signal(
        asset, timeframe, strategy, bias, entry_price, atr, tuple(pools + pd_zones),
    )
