"""Tests for the pure subscription lifecycle functions."""

from dataclasses import replace
from datetime import datetime, timedelta, timezone

import pytest

from app.domain import lifecycle
from app.domain.errors import (
    InvalidConfiguration,
    InvalidDateRange,
    InvalidStateTransition,
    OverlappingPause,
)
from app.domain.models import PausePeriod
from app.domain.models.subscription import add_months

NOW = datetime(2025, 3, 10, 9, 0, tzinfo=timezone.utc)


def days(n):
    return timedelta(days=n)


@pytest.fixture
def subscription():
    return lifecycle.create_subscription(
        user_id=1,
        name="Jane Doe",
        phone="081234567890",
        plan="diet",
        meal_types=["lunch", "breakfast"],
        delivery_days=["friday", "monday", "wednesday"],
        now=NOW,
    )


class TestCreateAndUpdate:
    def test_create_computes_price_and_normalizes(self, subscription):
        assert subscription.total_price == 774000
        assert subscription.meal_types == ("breakfast", "lunch")
        assert subscription.delivery_days == ("monday", "wednesday", "friday")
        assert subscription.status == "active"
        assert subscription.start_date == NOW

    def test_create_rejects_empty_meals(self):
        with pytest.raises(InvalidConfiguration):
            lifecycle.create_subscription(
                user_id=1,
                name="Jane",
                phone="081234567890",
                plan="diet",
                meal_types=[],
                delivery_days=["monday"],
                now=NOW,
            )

    def test_create_rejects_unknown_day(self):
        with pytest.raises(InvalidConfiguration):
            lifecycle.create_subscription(
                user_id=1,
                name="Jane",
                phone="081234567890",
                plan="diet",
                meal_types=["lunch"],
                delivery_days=["funday"],
                now=NOW,
            )

    def test_update_recomputes_price(self, subscription):
        updated = lifecycle.update_selection(
            subscription,
            plan="royal",
            meal_types=["dinner"],
            delivery_days=["saturday", "sunday"],
            now=NOW + days(1),
        )
        assert updated.total_price == 516000
        assert updated.updated_at == NOW + days(1)
        assert subscription.total_price == 774000

    def test_update_of_cancelled_rejected(self, subscription):
        cancelled = lifecycle.cancel(subscription, now=NOW)
        with pytest.raises(InvalidStateTransition):
            lifecycle.update_selection(
                cancelled, plan="diet", meal_types=["lunch"], delivery_days=["monday"], now=NOW
            )


class TestPause:
    def test_immediate_pause_sets_paused(self, subscription):
        paused = lifecycle.pause(subscription, start_date=NOW, end_date=NOW + days(7), reason="Travel", now=NOW)
        assert paused.status == "paused"
        assert len(paused.pause_periods) == 1
        assert paused.pause_periods[0].reason == "Travel"
        assert subscription.status == "active"

    def test_start_earlier_today_is_accepted(self, subscription):
        start = NOW.replace(hour=0)
        paused = lifecycle.pause(subscription, start_date=start, end_date=start + days(3), now=NOW)
        assert paused.status == "paused"

    def test_future_pause_is_only_scheduled(self, subscription):
        scheduled = lifecycle.pause(
            subscription, start_date=NOW + days(5), end_date=NOW + days(10), now=NOW
        )
        assert scheduled.status == "active"
        assert len(scheduled.pause_periods) == 1

    @pytest.mark.parametrize("length", [timedelta(0), -days(1)])
    def test_end_not_after_start_rejected(self, subscription, length):
        with pytest.raises(InvalidDateRange):
            lifecycle.pause(subscription, start_date=NOW + days(1), end_date=NOW + days(1) + length, now=NOW)

    def test_past_start_rejected(self, subscription):
        with pytest.raises(InvalidDateRange):
            lifecycle.pause(subscription, start_date=NOW - days(2), end_date=NOW + days(2), now=NOW)

    def test_span_over_ninety_days_rejected(self, subscription):
        now = datetime(2024, 12, 31, tzinfo=timezone.utc)
        with pytest.raises(InvalidDateRange):
            lifecycle.pause(
                subscription,
                start_date=datetime(2025, 1, 1, tzinfo=timezone.utc),
                end_date=datetime(2025, 4, 15, tzinfo=timezone.utc),
                now=now,
            )

    def test_exactly_ninety_days_allowed(self, subscription):
        paused = lifecycle.pause(subscription, start_date=NOW + days(1), end_date=NOW + days(91), now=NOW)
        assert len(paused.pause_periods) == 1

    def test_overlap_rejected_and_history_unchanged(self, subscription):
        first = lifecycle.pause(subscription, start_date=NOW + days(5), end_date=NOW + days(10), now=NOW)
        with pytest.raises(OverlappingPause):
            lifecycle.pause(first, start_date=NOW + days(8), end_date=NOW + days(12), now=NOW)
        assert len(first.pause_periods) == 1

    def test_enclosing_interval_is_an_overlap(self, subscription):
        first = lifecycle.pause(subscription, start_date=NOW + days(5), end_date=NOW + days(10), now=NOW)
        with pytest.raises(OverlappingPause):
            lifecycle.pause(first, start_date=NOW + days(4), end_date=NOW + days(11), now=NOW)

    def test_disjoint_pauses_accumulate(self, subscription):
        first = lifecycle.pause(subscription, start_date=NOW + days(5), end_date=NOW + days(10), now=NOW)
        second = lifecycle.pause(first, start_date=NOW + days(20), end_date=NOW + days(25), now=NOW)
        assert len(second.pause_periods) == 2

    def test_pause_when_already_paused_rejected(self, subscription):
        paused = lifecycle.pause(subscription, start_date=NOW, end_date=NOW + days(2), now=NOW)
        with pytest.raises(InvalidStateTransition):
            lifecycle.pause(paused, start_date=NOW + days(10), end_date=NOW + days(12), now=NOW)

    def test_activate_due_pause(self, subscription):
        scheduled = lifecycle.pause(subscription, start_date=NOW + days(5), end_date=NOW + days(10), now=NOW)
        assert lifecycle.activate_due_pause(scheduled, NOW + days(1)) is scheduled
        due = lifecycle.activate_due_pause(scheduled, NOW + days(6))
        assert due.status == "paused"


class TestCancelAndReactivate:
    def test_cancel_is_terminal(self, subscription):
        cancelled = lifecycle.cancel(subscription, reason="Moving abroad", now=NOW)
        assert cancelled.status == "cancelled"
        assert cancelled.cancellation_date == NOW
        assert cancelled.cancellation_reason == "Moving abroad"

        later = NOW + days(1)
        with pytest.raises(InvalidStateTransition):
            lifecycle.pause(cancelled, start_date=later, end_date=later + days(2), now=later)
        with pytest.raises(InvalidStateTransition):
            lifecycle.reactivate(cancelled, now=later)
        with pytest.raises(InvalidStateTransition):
            lifecycle.cancel(cancelled, reason="again", now=later)
        assert cancelled.cancellation_date == NOW
        assert cancelled.cancellation_reason == "Moving abroad"

    def test_cancel_paused_subscription(self, subscription):
        paused = lifecycle.pause(subscription, start_date=NOW, end_date=NOW + days(3), now=NOW)
        assert lifecycle.cancel(paused, now=NOW).status == "cancelled"

    def test_reactivate_active_rejected(self, subscription):
        with pytest.raises(InvalidStateTransition):
            lifecycle.reactivate(subscription, now=NOW)

    def test_reactivate_drops_only_current_period(self, subscription):
        past = PausePeriod(NOW - days(30), NOW - days(20), "holiday", NOW - days(40))
        current = PausePeriod(NOW - days(1), NOW + days(3), "sick", NOW - days(1))
        future = PausePeriod(NOW + days(30), NOW + days(35), None, NOW - days(1))
        paused = replace(subscription, status="paused", pause_periods=(past, current, future))

        active = lifecycle.reactivate(paused, now=NOW)
        assert active.status == "active"
        assert active.pause_periods == (past, future)

    def test_reactivate_keeps_past_only_period(self, subscription):
        past = PausePeriod(NOW - days(10), NOW - days(5), None, NOW - days(12))
        paused = replace(subscription, status="paused", pause_periods=(past,))
        active = lifecycle.reactivate(paused, now=NOW)
        assert active.status == "active"
        assert active.pause_periods == (past,)


class TestApplyStatus:
    def test_cancelled_maps_to_cancel(self, subscription):
        assert lifecycle.apply_status(subscription, "cancelled", now=NOW, reason="admin").status == "cancelled"

    def test_paused_requires_period(self, subscription):
        with pytest.raises(InvalidStateTransition):
            lifecycle.apply_status(subscription, "paused", now=NOW)

    def test_unknown_status(self, subscription):
        with pytest.raises(InvalidStateTransition):
            lifecycle.apply_status(subscription, "archived", now=NOW)


class TestDerivedQueries:
    def test_current_pause_and_billing_shift(self, subscription):
        paused = lifecycle.pause(subscription, start_date=NOW, end_date=NOW + days(7), now=NOW)
        assert paused.is_currently_paused(NOW + days(1))
        assert paused.current_pause_period(NOW + days(1)) == paused.pause_periods[0]
        assert paused.next_billing_date(NOW) == add_months(NOW, 1) + days(7)

    def test_scheduled_pause_is_not_current(self, subscription):
        scheduled = lifecycle.pause(subscription, start_date=NOW + days(5), end_date=NOW + days(10), now=NOW)
        assert not scheduled.is_currently_paused(NOW + days(6))
        assert scheduled.next_billing_date(NOW) == datetime(2025, 4, 10, 9, 0, tzinfo=timezone.utc)

    def test_pause_duration_is_a_timedelta(self):
        period = PausePeriod(start_date=NOW, end_date=NOW + days(7), reason=None, created_at=NOW)
        assert period.duration == timedelta(days=7)

    def test_cancelled_has_no_billing_date(self, subscription):
        assert lifecycle.cancel(subscription, now=NOW).next_billing_date(NOW) is None

    def test_add_months_clamps_to_month_end(self):
        assert add_months(datetime(2025, 1, 31), 1) == datetime(2025, 2, 28)
