"""Structural zones — PD arrays and liquidity pools. Pure functions."""

from ictsignal.strategy.models import Bar, PDArray, Zone


PD_LOOKBACK = 20
POOL_TOLERANCE = 0.005  # 0.5% relative distance
POOL_SCAN_WINDOW = 10


def analyze_pd_arrays(bars: list[Bar], lookback: int = PD_LOOKBACK) -> PDArray:
    """Split the recent range into premium / equilibrium / discount.

    Uses the trailing *lookback* bars:

        discount    = low + 0.25 × range
        equilibrium = low + 0.50 × range
        premium     = low + 0.75 × range

    The current zone is ``premium`` when the last close is at or above
    the premium level, ``discount`` when at or below the discount level,
    and ``equilibrium`` otherwise.

    Returns all-zero levels in ``equilibrium`` when fewer than *lookback*
    bars are available.
    """
    if len(bars) < lookback:
        return PDArray(premium=0.0, equilibrium=0.0, discount=0.0,
                       current=0.0, zone="equilibrium")

    recent = bars[-lookback:]
    range_high = max(b.high for b in recent)
    range_low = min(b.low for b in recent)
    price_range = range_high - range_low

    premium = range_low + price_range * 0.75
    equilibrium = range_low + price_range * 0.5
    discount = range_low + price_range * 0.25
    current = bars[-1].close

    if current >= premium:
        zone = "premium"
    elif current <= discount:
        zone = "discount"
    else:
        zone = "equilibrium"

    return PDArray(
        premium=premium,
        equilibrium=equilibrium,
        discount=discount,
        current=current,
        zone=zone,
    )


def calculate_pd_zones(bars: list[Bar], lookback: int = PD_LOOKBACK) -> list[Zone]:
    """Return the PD levels as ``Zone`` objects (premium first).

    Empty when fewer than *lookback* bars are available.
    """
    if len(bars) < lookback:
        return []
    pd = analyze_pd_arrays(bars, lookback)
    return [
        Zone(zone_type="premium", price=pd.premium, strength=3),
        Zone(zone_type="equilibrium", price=pd.equilibrium, strength=2),
        Zone(zone_type="discount", price=pd.discount, strength=3),
    ]


def _equal_level_pools(levels: list[float], tolerance: float, window: int) -> list[Zone]:
    """Find levels that repeat within *tolerance* over the next *window* bars.

    The base bar counts once, so a pool needs at least one matching bar.
    """
    pools: list[Zone] = []
    n = len(levels)
    for i in range(1, n - 1):
        base = levels[i]
        count = 1
        # Reaches window - 1 bars past the base (9 with the default 10)
        for j in range(i + 1, min(i + window, n)):
            if abs(levels[j] - base) / base <= tolerance:
                count += 1
        if count >= 2:
            pools.append(Zone(zone_type="liquidity_pool", price=base, strength=count))
    return pools


def identify_liquidity_pools(
    bars: list[Bar],
    tolerance: float = POOL_TOLERANCE,
    window: int = POOL_SCAN_WINDOW,
) -> list[Zone]:
    """Detect equal highs and equal lows (resting liquidity).

    Highs and lows are scanned independently; high pools come first.
    Pools at nearly the same price are not merged.
    """
    highs = [b.high for b in bars]
    lows = [b.low for b in bars]
    return (
        _equal_level_pools(highs, tolerance, window)
        + _equal_level_pools(lows, tolerance, window)
    )
