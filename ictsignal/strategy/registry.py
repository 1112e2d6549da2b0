"""Generator registry — maps signal generator names to functions.

Every registered generator has the signature
``(asset, bars, now, timeframe) -> list[Signal]``.
"""

from datetime import datetime
from typing import Callable, Optional

from ictsignal.strategy.models import Bar, Signal
from ictsignal.strategy.signals import generate_entry_signals, generate_sweep_signal


SignalGenerator = Callable[[str, list[Bar], Optional[datetime], str], list[Signal]]


def _sweep_signals(
    asset: str,
    bars: list[Bar],
    now: Optional[datetime],
    timeframe: str,
) -> list[Signal]:
    signal = generate_sweep_signal(asset, bars, now=now, timeframe=timeframe)
    return [signal] if signal is not None else []


GENERATOR_REGISTRY: dict[str, SignalGenerator] = {
    "entries": generate_entry_signals,
    "ict": _sweep_signals,
}


def get_generator(name: str) -> SignalGenerator:
    """Look up a signal generator by registry key.

    Raises ``KeyError`` if the generator name is not registered.
    """
    if name not in GENERATOR_REGISTRY:
        raise KeyError(
            f"Unknown generator '{name}'. "
            f"Available: {', '.join(GENERATOR_REGISTRY.keys())}"
        )
    return GENERATOR_REGISTRY[name]
