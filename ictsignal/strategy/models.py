"""Strategy data models — typed representations for bars, zones, and signals."""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Literal


Bias = Literal["bullish", "bearish", "neutral"]
Direction = Literal["bullish", "bearish"]
ZoneKind = Literal["premium", "equilibrium", "discount"]


@dataclass(frozen=True)
class Bar:
    """A single OHLC bar for one asset."""

    timestamp: datetime
    asset: str
    open: float
    high: float
    low: float
    close: float
    volume: int = 0


@dataclass(frozen=True)
class Zone:
    """A structural price level (PD level or liquidity pool)."""

    zone_type: str  # "premium", "equilibrium", "discount" or "liquidity_pool"
    price: float
    strength: int

    def to_dict(self) -> dict:
        return {"type": self.zone_type, "price": self.price, "strength": self.strength}


@dataclass(frozen=True)
class PDArray:
    """Premium / equilibrium / discount levels and the current zone."""

    premium: float
    equilibrium: float
    discount: float
    current: float
    zone: ZoneKind


@dataclass(frozen=True)
class Signal:
    """A trade signal produced by the signal engine."""

    asset: str
    timeframe: str
    strategy: str
    bias: Direction
    entry_price: float
    stop_loss: float
    take_profit: float
    confidence: float
    zones: tuple[Zone, ...] = field(default_factory=tuple)

    def to_payload(self) -> dict:
        """Opaque payload stored alongside the signal row."""
        return {
            "strategy": self.strategy,
            "confidence": self.confidence,
            "zones": [z.to_dict() for z in self.zones],
        }

    def to_dict(self) -> dict:
        return {
            "asset": self.asset,
            "timeframe": self.timeframe,
            "strategy": self.strategy,
            "bias": self.bias,
            "entry_price": self.entry_price,
            "stop_loss": self.stop_loss,
            "take_profit": self.take_profit,
            "confidence": self.confidence,
        }


# ── Strategy metadata ────────────────────────────────────────────────────

STRATEGY_CONFIDENCE: dict[str, float] = {
    "Bullish_Engulfing": 0.7,
    "Bearish_Engulfing": 0.7,
    "Turtle_Soup_Bullish": 0.8,
    "Turtle_Soup_Bearish": 0.8,
    "CRT_Breakout_Bullish": 0.6,
    "CRT_Breakout_Bearish": 0.6,
    "PD_Array_Rejection_bullish": 0.75,
    "PD_Array_Rejection_bearish": 0.75,
    "IPDA_Discount_Buy": 0.85,
    "IPDA_Premium_Sell": 0.85,
    "Liquidity_Sweep_Bullish": 0.65,
    "Liquidity_Sweep_Bearish": 0.65,
}

DEFAULT_TIMEFRAME = "5min"
