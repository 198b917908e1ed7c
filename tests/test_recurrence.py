import datetime
import time

import pytest

from recurring_planner.services.recurrence_service import (
    LAST,
    CertainMonths,
    EveryNDays,
    MonthlyByDay,
    MonthlyByWeekday,
    Once,
    RecurrenceRule,
    Weekly,
    anchored,
    describe,
    expand,
    next_on_or_after,
    occurs_on,
    series_end,
)

D = datetime.date


def _days(start, end):
    day = start
    while day < end:
        yield day
        day += datetime.timedelta(days=1)


def test_every_two_days_window_matches_expected_dates():
    rule = RecurrenceRule(anchor=D(2026, 1, 1), pattern=EveryNDays(2))

    assert list(expand(rule, D(2026, 1, 1), D(2026, 1, 10))) == [
        D(2026, 1, 1),
        D(2026, 1, 3),
        D(2026, 1, 5),
        D(2026, 1, 7),
        D(2026, 1, 9),
    ]
    assert not occurs_on(rule, D(2026, 1, 4))


@pytest.mark.parametrize(
    "pattern",
    [
        EveryNDays(3),
        Weekly(frozenset({0, 2, 4})),
        Weekly(frozenset({1, 6}), interval=3),
        MonthlyByDay(frozenset({1, 15, 31})),
        MonthlyByWeekday(frozenset({2, LAST}), frozenset({1, 4})),
        CertainMonths(frozenset({2, 11}), frozenset({29, 30})),
        Once(),
    ],
)
def test_expand_agrees_with_occurs_on(pattern):
    rule = anchored(RecurrenceRule(anchor=D(2025, 12, 20), pattern=pattern))
    exceptions = frozenset({D(2026, 1, 7), D(2026, 2, 24)})
    start, end = D(2025, 12, 1), D(2026, 12, 1)

    expected = [day for day in _days(start, end) if occurs_on(rule, day, exceptions)]
    produced = list(expand(rule, start, end, exceptions))

    assert produced == expected
    assert produced == sorted(set(produced))


def test_weekday_set_membership_property():
    weekdays = frozenset({0, 3})
    rule = RecurrenceRule(anchor=D(2026, 1, 5), pattern=Weekly(weekdays), until=D(2026, 3, 1))
    exceptions = frozenset({D(2026, 1, 8)})

    for day in _days(D(2025, 12, 25), D(2026, 3, 10)):
        expected = (
            day.weekday() in weekdays
            and day >= rule.anchor
            and day not in exceptions
            and day <= rule.until
        )
        assert occurs_on(rule, day, exceptions) == expected


def test_empty_and_single_day_windows():
    rule = RecurrenceRule(anchor=D(2026, 1, 1), pattern=EveryNDays(2))

    assert list(expand(rule, D(2026, 1, 5), D(2026, 1, 5))) == []
    assert list(expand(rule, D(2026, 1, 5), D(2026, 1, 6))) == [D(2026, 1, 5)]
    assert list(expand(rule, D(2026, 1, 4), D(2026, 1, 5))) == []


def test_expansion_can_be_iterated_again():
    rule = RecurrenceRule(anchor=D(2026, 1, 1), pattern=Weekly(frozenset({0})))
    expansion = expand(rule, D(2026, 1, 1), D(2026, 2, 1))

    assert list(expansion) == list(expansion)
    assert D(2026, 1, 12) in expansion
    assert D(2026, 1, 13) not in expansion


def test_day_31_skips_short_months():
    rule = RecurrenceRule(anchor=D(2026, 1, 31), pattern=MonthlyByDay(frozenset({31})))
    produced = list(expand(rule, D(2026, 1, 1), D(2027, 1, 1)))

    assert {day.month for day in produced} == {1, 3, 5, 7, 8, 10, 12}
    assert all(day.day == 31 for day in produced)


def test_last_weekday_of_month():
    rule = RecurrenceRule(
        anchor=D(2026, 1, 1),
        pattern=MonthlyByWeekday(frozenset({LAST}), frozenset({1})),
    )

    assert list(expand(rule, D(2026, 1, 1), D(2026, 4, 1))) == [
        D(2026, 1, 27),
        D(2026, 2, 24),
        D(2026, 3, 31),
    ]


def test_every_other_week_skips_alternate_weeks():
    rule = RecurrenceRule(anchor=D(2026, 1, 5), pattern=Weekly(frozenset({0, 2, 4}), interval=2))

    assert list(expand(rule, D(2026, 1, 1), D(2026, 1, 26))) == [
        D(2026, 1, 5),
        D(2026, 1, 7),
        D(2026, 1, 9),
        D(2026, 1, 19),
        D(2026, 1, 21),
        D(2026, 1, 23),
    ]


def test_count_bound_and_exceptions_consume_slots():
    rule = RecurrenceRule(anchor=D(2026, 1, 1), pattern=EveryNDays(2), count=3)

    assert list(expand(rule, D(2026, 1, 1), D(2026, 2, 1))) == [D(2026, 1, 1), D(2026, 1, 3), D(2026, 1, 5)]
    assert series_end(rule) == D(2026, 1, 5)
    excepted = list(expand(rule, D(2026, 1, 1), D(2026, 2, 1), frozenset({D(2026, 1, 3)})))
    assert excepted == [D(2026, 1, 1), D(2026, 1, 5)]


def test_earlier_of_until_and_count_wins():
    rule = RecurrenceRule(anchor=D(2026, 1, 1), pattern=EveryNDays(1), until=D(2026, 1, 3), count=10)

    assert list(expand(rule, D(2026, 1, 1), D(2026, 2, 1))) == [D(2026, 1, 1), D(2026, 1, 2), D(2026, 1, 3)]
    assert next_on_or_after(rule, D(2026, 1, 4)) is None


def test_once_produces_only_the_anchor():
    rule = RecurrenceRule(anchor=D(2026, 3, 5), pattern=Once())

    assert list(expand(rule, D(2026, 1, 1), D(2027, 1, 1))) == [D(2026, 3, 5)]
    assert next_on_or_after(rule, D(2026, 3, 6)) is None


def test_leap_day_yearly_series_skips_to_next_leap_year():
    rule = RecurrenceRule(anchor=D(2024, 2, 29), pattern=CertainMonths(frozenset({2}), frozenset({29})))

    assert next_on_or_after(rule, D(2024, 3, 1)) == D(2028, 2, 29)
    # 2100 is not a leap year.
    assert next_on_or_after(rule, D(2096, 3, 1)) == D(2104, 2, 29)


def test_next_occurrence_on_ancient_series_is_fast():
    rule = RecurrenceRule(anchor=D(1700, 1, 4), pattern=Weekly(frozenset({2, 5}), interval=3))

    started = time.perf_counter()
    found = next_on_or_after(rule, D(2400, 6, 1))
    elapsed = time.perf_counter() - started

    assert found is not None
    assert found >= D(2400, 6, 1)
    assert occurs_on(rule, found)
    assert elapsed < 0.5


def test_exceptions_are_skipped_by_next_on_or_after():
    rule = RecurrenceRule(anchor=D(2026, 1, 1), pattern=EveryNDays(2))

    assert next_on_or_after(rule, D(2026, 1, 2), frozenset({D(2026, 1, 3)})) == D(2026, 1, 5)


def test_anchored_moves_anchor_to_first_pattern_date():
    rule = anchored(RecurrenceRule(anchor=D(2026, 1, 1), pattern=Weekly(frozenset({0}))))

    assert rule.anchor == D(2026, 1, 5)


def test_anchored_rejects_patterns_without_dates():
    assert anchored(RecurrenceRule(anchor=D(2026, 1, 1), pattern=CertainMonths(frozenset({2}), frozenset({30})))) is None
    assert (
        anchored(RecurrenceRule(anchor=D(2026, 2, 1), pattern=MonthlyByDay(frozenset({31})), until=D(2026, 2, 28)))
        is None
    )


def test_series_near_end_of_calendar_stops_cleanly():
    rule = RecurrenceRule(anchor=D(9999, 12, 20), pattern=EveryNDays(5))

    assert list(expand(rule, D(9999, 12, 1), D.max)) == [D(9999, 12, 20), D(9999, 12, 25), D(9999, 12, 30)]
    assert next_on_or_after(rule, D(9999, 12, 31)) is None


@pytest.mark.parametrize(
    "rule, text",
    [
        (RecurrenceRule(D(2026, 1, 1), EveryNDays(2)), "Every 2 days"),
        (RecurrenceRule(D(2026, 1, 1), Weekly(frozenset({0, 2, 4}))), "Every Mon, Wed, Fri"),
        (RecurrenceRule(D(2026, 1, 31), MonthlyByDay(frozenset({31}))), "Monthly on day 31"),
        (RecurrenceRule(D(2026, 1, 1), MonthlyByWeekday(frozenset({LAST}), frozenset({1}))), "Monthly on the last Tue"),
        (RecurrenceRule(D(2026, 3, 5), Once()), "Once on 2026-03-05"),
        (RecurrenceRule(D(2026, 1, 1), EveryNDays(1), count=5), "Every day for 5 occurrences"),
    ],
)
def test_describe(rule, text):
    assert describe(rule) == text
