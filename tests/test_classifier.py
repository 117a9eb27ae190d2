"""Tests for per-position classification: open/closed, large, stale, dust, anomalies."""

from datetime import timedelta

import pytest

from config.thresholds import Thresholds
from ledger_core.classifier import classify, effective_price, position_age_days, rank_positions
from ledger_core.contracts import PositionClassification, PositionLabel, PositionState


def _state(**kw) -> PositionState:
    defaults = dict(instrument_id="tok-a", net_shares=10.0, cost_basis=5.0, last_price=0.5)
    defaults.update(kw)
    return PositionState(**defaults)


def test_open_position_values(thresholds, now) -> None:
    c = classify(_state(net_shares=20.0, cost_basis=11.0, last_price=0.6, last_fill_at=now), thresholds, now)
    assert c.is_open
    assert c.average_price == pytest.approx(0.55)
    assert c.effective_price == 0.6
    assert c.current_value == pytest.approx(12.0)
    assert c.unrealized_pnl == pytest.approx(1.0)
    assert c.unrealized_pnl_pct == pytest.approx(1.0 / 11.0 * 100.0)
    assert c.age_days == 0


def test_below_epsilon_is_closed(thresholds, now) -> None:
    c = classify(_state(net_shares=0.0005, cost_basis=0.0003, last_fill_at=now), thresholds, now)
    assert c.has(PositionLabel.CLOSED)
    assert not c.is_open
    assert not c.has(PositionLabel.DUST)


def test_zero_last_price_falls_back_to_average(thresholds, now) -> None:
    state = _state(net_shares=10.0, cost_basis=4.0, last_price=0.0, last_fill_at=now)
    c = classify(state, thresholds, now)
    assert c.has(PositionLabel.ZERO_PRICE)
    assert c.effective_price == pytest.approx(state.cost_basis / state.net_shares)
    assert c.current_value == pytest.approx(4.0)


def test_zero_price_and_zero_basis(thresholds, now) -> None:
    c = classify(_state(cost_basis=0.0, last_price=0.0, last_fill_at=now), thresholds, now)
    assert c.has(PositionLabel.ZERO_PRICE)
    assert c.current_value == 0.0
    assert c.unrealized_pnl_pct == 0.0


def test_effective_price_without_shares() -> None:
    assert effective_price(_state(net_shares=0.0, last_price=0.0)) == 0.0


class TestLarge:
    def test_at_threshold(self, thresholds, now) -> None:
        c = classify(_state(net_shares=100.0, cost_basis=40.0, last_price=0.5, last_fill_at=now), thresholds, now)
        assert c.current_value == pytest.approx(50.0)
        assert c.has(PositionLabel.LARGE)

    def test_below_threshold(self, thresholds, now) -> None:
        c = classify(_state(net_shares=99.0, last_price=0.5, last_fill_at=now), thresholds, now)
        assert not c.has(PositionLabel.LARGE)

    def test_custom_threshold(self, now) -> None:
        c = classify(_state(last_fill_at=now), Thresholds(large_position_usd=5.0), now)
        assert c.has(PositionLabel.LARGE)


class TestAge:
    @pytest.mark.parametrize("days,label", [
        (40, PositionLabel.STALE),
        (30, PositionLabel.STALE),
        (29, PositionLabel.NEAR_STALE),
        (25, PositionLabel.NEAR_STALE),
    ])
    def test_labels(self, thresholds, now, days: int, label: PositionLabel) -> None:
        c = classify(_state(last_fill_at=now - timedelta(days=days)), thresholds, now)
        assert c.has(label)
        assert c.age_days == days

    def test_young_position_has_no_age_label(self, thresholds, now) -> None:
        c = classify(_state(last_fill_at=now - timedelta(days=24)), thresholds, now)
        assert not c.has(PositionLabel.STALE)
        assert not c.has(PositionLabel.NEAR_STALE)

    def test_partial_days_round_down(self, now) -> None:
        state = _state(last_fill_at=now - timedelta(days=29, hours=23))
        assert position_age_days(state, now) == 29

    def test_missing_timestamp_is_never_stale(self, thresholds, now) -> None:
        c = classify(_state(last_fill_at=None), thresholds, now)
        assert c.has(PositionLabel.AGE_UNKNOWN)
        assert not c.has(PositionLabel.STALE)
        assert c.age_days is None

    def test_naive_now_treated_as_utc(self, thresholds, now) -> None:
        state = _state(last_fill_at=now - timedelta(days=31))
        assert position_age_days(state, now.replace(tzinfo=None)) == 31

    def test_closed_positions_get_no_age_labels(self, thresholds, now) -> None:
        c = classify(_state(net_shares=0.0, last_fill_at=now - timedelta(days=90)), thresholds, now)
        assert c.labels == frozenset({PositionLabel.CLOSED})


class TestAnomalies:
    def test_dust(self, thresholds, now) -> None:
        c = classify(_state(net_shares=0.05, cost_basis=0.02, last_price=0.5, last_fill_at=now), thresholds, now)
        assert c.has(PositionLabel.DUST)
        assert c.is_open

    def test_small_value_but_many_shares_is_not_dust(self, thresholds, now) -> None:
        c = classify(_state(net_shares=5.0, cost_basis=0.01, last_price=0.01, last_fill_at=now), thresholds, now)
        assert not c.has(PositionLabel.DUST)

    def test_negative_basis(self, thresholds, now) -> None:
        c = classify(_state(cost_basis=-1.0, last_fill_at=now), thresholds, now)
        assert c.has(PositionLabel.NEGATIVE_BASIS)
        assert c.unrealized_pnl_pct == 0.0

    def test_negative_shares(self, thresholds, now) -> None:
        c = classify(_state(net_shares=-5.0, cost_basis=-2.5), thresholds, now)
        assert c.has(PositionLabel.NEGATIVE_SHARES)
        assert c.has(PositionLabel.CLOSED)

    def test_tiny_negative_within_epsilon_is_not_flagged(self, thresholds, now) -> None:
        c = classify(_state(net_shares=-0.0001), thresholds, now)
        assert not c.has(PositionLabel.NEGATIVE_SHARES)

    def test_price_out_of_range(self, thresholds, now) -> None:
        c = classify(_state(last_price=1.5, last_fill_at=now), thresholds, now)
        assert c.has(PositionLabel.PRICE_OUT_OF_RANGE)


def test_classify_does_not_mutate_state(thresholds, now) -> None:
    state = _state(last_price=0.0, last_fill_at=now)
    before = state.copy()
    classify(state, thresholds, now)
    assert state == before


def test_rank_positions() -> None:
    def item(iid: str, value: float) -> PositionClassification:
        return PositionClassification(iid, frozenset(), 0.0, 0.0, value, 0.0, 0.0)

    ranked = rank_positions([item("b", 5.0), item("c", 9.0), item("a", 5.0)])
    assert [c.instrument_id for c in ranked] == ["c", "a", "b"]


def test_classification_is_repeatable(thresholds, now) -> None:
    state = _state(last_fill_at=now - timedelta(days=27))
    assert classify(state, thresholds, now) == classify(state, thresholds, now)
