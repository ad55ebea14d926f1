from datetime import timedelta

import pytest

import resolver
from helpers import DAY, UTC, at, item


MINUTE = 60 * 1000


def resolve(items, instant, **kwargs):
    return resolver.resolve(items, instant, tz=UTC, **kwargs)


def test_empty_schedule_returns_zero_state():
    state = resolve([], at(9, 0))

    assert state.active_item is None
    assert state.next_item is None
    assert state.progress == 0
    assert state.time_left_ms == 0
    assert state.is_overtime is False
    assert state.total_duration_ms == 0
    assert state.status == resolver.STATUS_IDLE


def test_before_first_item_nothing_is_active():
    first, second = item("09:00"), item("10:00")

    state = resolve([first, second], at(8, 30))

    assert state.active_item is None
    assert state.next_item == first
    assert state.status == resolver.STATUS_IDLE


def test_inferred_end_gives_half_progress():
    opening, keynote = item("09:00"), item("09:30")

    state = resolve([opening, keynote], at(9, 15))

    assert state.active_item == opening
    assert state.next_item == keynote
    assert state.progress == pytest.approx(0.5)
    assert state.time_left_ms == 15 * MINUTE
    assert state.total_duration_ms == 30 * MINUTE
    assert state.is_overtime is False
    assert state.status == resolver.STATUS_RUNNING


def test_explicit_end_time_progress():
    talk = item("09:00", "09:40")

    state = resolve([talk], at(9, 10))

    assert state.progress == pytest.approx(0.25)
    assert state.time_left_ms == 30 * MINUTE
    assert state.total_duration_ms == 40 * MINUTE
    assert state.is_overtime is False


def test_progress_stays_below_one_inside_the_interval():
    talk = item("09:00", "09:10")
    for second in range(0, 600, 37):
        state = resolve([talk], at(9, 0) + second * 1000)
        assert 0 <= state.progress < 1
        assert state.is_overtime is False


def test_inferred_end_is_exactly_next_start():
    first, second = item("09:00"), item("09:30")

    just_before = resolve([first, second], at(9, 29, 59))
    on_boundary = resolve([first, second], at(9, 30))

    assert just_before.active_item == first
    assert just_before.time_left_ms == 1000
    assert on_boundary.active_item == second


def test_last_item_defaults_to_sixty_minutes():
    closing = item("14:00")

    state = resolve([closing], at(14, 59, 59))

    assert state.active_item == closing
    assert state.total_duration_ms == 60 * MINUTE
    assert state.time_left_ms == 1000
    assert resolver.effective_end([closing], 0, DAY, UTC) == at(15, 0)


def test_overrun_reports_overtime_with_negative_time_left():
    talk = item("09:00", "09:10")

    state = resolve([talk], at(9, 10, 1))

    assert state.active_item == talk
    assert state.is_overtime is True
    assert state.progress == 1
    assert state.time_left_ms == -1000
    assert state.status == resolver.STATUS_OVERTIME


def test_overrun_holds_until_next_item_starts():
    talk, panel = item("09:00", "09:10"), item("09:30")

    during_gap = resolve([talk, panel], at(9, 20))
    after_gap = resolve([talk, panel], at(9, 30))

    assert during_gap.active_item == talk
    assert during_gap.is_overtime is True
    assert during_gap.time_left_ms == -10 * MINUTE
    assert during_gap.next_item == panel
    assert after_gap.active_item == panel
    assert after_gap.is_overtime is False


def test_degenerate_duration_is_immediate_overtime():
    broken = item("09:00", "08:50")

    state = resolve([broken], at(9, 0))

    assert state.active_item == broken
    assert state.is_overtime is True
    assert state.progress == 1
    assert state.total_duration_ms == -10 * MINUTE


def test_unsorted_input_is_sorted_without_mutation():
    keynote, opening = item("10:00", title="Keynote"), item("09:00", title="Opening")
    items = [keynote, opening]

    state = resolve(items, at(9, 30))

    assert state.active_item == opening
    assert state.next_item == keynote
    assert state.time_left_ms == 30 * MINUTE
    assert items == [keynote, opening]


def test_shared_start_time_first_in_input_order_wins():
    a = item("09:00", "09:30", title="A")
    b = item("09:00", "09:45", title="B")

    state = resolve([a, b], at(9, 10))

    assert state.active_item == a


def test_overlapping_items_earliest_start_wins():
    long_session = item("09:00", "11:00", title="Long")
    short_session = item("10:00", "10:30", title="Short")

    state = resolve([short_session, long_session], at(10, 15))

    assert state.active_item == long_session
    assert state.next_item is None


def test_resolution_is_idempotent():
    items = [item("09:00"), item("09:30", "09:50"), item("10:00")]

    assert resolve(items, at(9, 41, 7)) == resolve(items, at(9, 41, 7))


def test_anchor_day_controls_where_times_land():
    talk = item("09:00", "10:00")
    after_midnight = at(0, 30, day=DAY + timedelta(days=1))

    anchored_today = resolve([talk], after_midnight, day=DAY)
    anchored_tomorrow = resolve([talk], after_midnight)

    assert anchored_today.is_overtime is True
    assert anchored_tomorrow.active_item is None
    assert anchored_tomorrow.next_item == talk


def test_find_index_matches_by_id():
    items = resolver.sort_items([item("10:00"), item("09:00")])

    assert resolver.find_index(items, item("10:00")) == 1
    with pytest.raises(KeyError):
        resolver.find_index(items, item("11:00"))


def test_exact_end_of_last_item_is_not_yet_overtime():
    talk = item("09:00", "09:10")

    state = resolve([talk], at(9, 10))

    assert state.active_item == talk
    assert state.time_left_ms == 0
    assert state.progress == 1.0
    assert state.is_overtime is False
    assert state.status == resolver.STATUS_RUNNING
