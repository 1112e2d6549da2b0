"""Tests for the calendar-quarter bias and IPDA phase."""

from datetime import datetime, timedelta, timezone

import pytest

from ictsignal.strategy.bias import (
    current_quarter,
    ipda_phase,
    quarter_boundaries,
    quarterly_bias,
)
from ictsignal.strategy.models import Bar, PDArray


NOW = datetime(2025, 11, 15, 12, 0, tzinfo=timezone.utc)


def _make_bar(ts: datetime, o: float, h: float, l: float, c: float) -> Bar:
    return Bar(timestamp=ts, asset="XAUUSD", open=o, high=h, low=l, close=c, volume=0)


def _bias_bars(last_close: float, with_q3: bool = True) -> list[Bar]:
    """Q2 bars topping at 110, Q3 bars bottoming at 90, then Q4 bars."""
    bars = [
        _make_bar(datetime(2025, 5, 1, tzinfo=timezone.utc) + timedelta(days=i), 105, 110, 100, 105)
        for i in range(20)
    ]
    if with_q3:
        bars += [
            _make_bar(datetime(2025, 8, 1, tzinfo=timezone.utc) + timedelta(days=i), 95, 100, 90, 95)
            for i in range(20)
        ]
    q4_start = datetime(2025, 10, 1, tzinfo=timezone.utc)
    bars += [
        _make_bar(q4_start + timedelta(hours=i), 100, 101, 99, 100)
        for i in range(60 - len(bars) - 1)
    ]
    bars.append(_make_bar(q4_start + timedelta(days=10), last_close, last_close + 1,
                          last_close - 1, last_close))
    return bars


def _pd(zone: str) -> PDArray:
    return PDArray(premium=105.0, equilibrium=100.0, discount=95.0, current=100.0, zone=zone)


class TestQuarter:
    @pytest.mark.parametrize(
        "month, quarter",
        [(1, 1), (3, 1), (4, 2), (6, 2), (7, 3), (9, 3), (10, 4), (12, 4)],
    )
    def test_current_quarter(self, month, quarter):
        assert current_quarter(datetime(2025, month, 15, tzinfo=timezone.utc)) == quarter

    def test_boundaries_follow_now_year(self):
        q1, q2, q3 = quarter_boundaries(datetime(2031, 2, 1, tzinfo=timezone.utc))
        assert (q1.year, q1.month, q1.day) == (2031, 3, 31)
        assert (q2.month, q2.day) == (6, 30)
        assert (q3.month, q3.day) == (9, 30)


class TestQuarterlyBias:
    def test_bullish_above_q2_high(self):
        assert quarterly_bias(_bias_bars(112), NOW) == "bullish"

    def test_bearish_below_q3_low(self):
        assert quarterly_bias(_bias_bars(88), NOW) == "bearish"

    def test_neutral_inside_range(self):
        assert quarterly_bias(_bias_bars(100), NOW) == "neutral"

    def test_q2_high_stands_in_for_missing_q3(self):
        assert quarterly_bias(_bias_bars(108, with_q3=False), NOW) == "bearish"

    def test_insufficient_bars(self):
        assert quarterly_bias(_bias_bars(112)[1:], NOW) == "neutral"

    def test_no_q2_bars(self):
        bars = [b for b in _bias_bars(112) if b.timestamp.month != 5]
        bars = bars + bars[-1:] * (60 - len(bars))
        assert quarterly_bias(bars, NOW) == "neutral"

    def test_depends_on_evaluation_year(self):
        bars = _bias_bars(112)
        next_year = NOW.replace(year=2026)
        assert quarterly_bias(bars, NOW) == "bullish"
        assert quarterly_bias(bars, next_year) == "neutral"

    def test_q2_window_excludes_q1_end(self):
        bars = _bias_bars(112)
        q1_end_bar = _make_bar(datetime(2025, 3, 31, tzinfo=timezone.utc), 150, 200, 140, 150)
        assert quarterly_bias([q1_end_bar] + bars, NOW) == "bullish"

    def test_naive_timestamps_read_as_utc(self):
        naive = [
            Bar(b.timestamp.replace(tzinfo=None), b.asset, b.open, b.high, b.low, b.close, b.volume)
            for b in _bias_bars(112)
        ]
        assert quarterly_bias(naive, NOW) == "bullish"
        assert quarterly_bias(naive, NOW.replace(year=2026)) == "neutral"


class TestIPDAPhase:
    def test_q2_discount_is_markup(self):
        phase = ipda_phase(_pd("discount"), datetime(2025, 5, 1, tzinfo=timezone.utc))
        assert phase.should_buy is True
        assert phase.should_sell is False
        assert phase.phase == "Q2_Markup"

    def test_q3_premium_is_distribution(self):
        phase = ipda_phase(_pd("premium"), datetime(2025, 8, 1, tzinfo=timezone.utc))
        assert phase.should_sell is True
        assert phase.should_buy is False
        assert phase.phase == "Q3_Distribution"

    @pytest.mark.parametrize(
        "month, zone",
        [(5, "premium"), (8, "discount"), (5, "equilibrium"), (11, "discount"), (2, "premium")],
    )
    def test_neutral_otherwise(self, month, zone):
        phase = ipda_phase(_pd(zone), datetime(2025, month, 1, tzinfo=timezone.utc))
        assert not phase.should_buy and not phase.should_sell
        assert phase.phase == "Neutral"
