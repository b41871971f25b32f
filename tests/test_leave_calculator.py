from datetime import date, datetime

import pytest

from hrportal.exceptions import InvalidDate, InvalidRange, LeaveCalculationError
from hrportal.models.leaves import Session
from hrportal.utils.leave_utils import calculate_leave_days, to_storage_datetime

S1 = "Session 1"
S2 = "Session 2"


def test_same_day_same_session_is_half_day():
    assert calculate_leave_days("2025-03-10", "2025-03-10", S1, S1) == 0.5
    assert calculate_leave_days("2025-03-10", "2025-03-10", S2, S2) == 0.5


def test_same_day_both_sessions_is_full_day():
    assert calculate_leave_days("2025-03-10", "2025-03-10", S1, S2) == 1


def test_same_day_second_to_first_session_counts_as_full_day():
    assert calculate_leave_days("2025-03-10", "2025-03-10", S2, S1) == 1


@pytest.mark.parametrize("from_session, to_session, expected", [
    (S1, S2, 3.0),
    (S2, S2, 2.5),
    (S1, S1, 2.5),
    (S2, S1, 2.0),
])
def test_multi_day_sessions(from_session, to_session, expected):
    assert calculate_leave_days("2025-03-10", "2025-03-12", from_session, to_session) == expected


def test_accepts_session_enum_and_date_objects():
    days = calculate_leave_days(date(2025, 3, 10), datetime(2025, 3, 11, 15, 30),
                                Session.SECOND_HALF, Session.SECOND_HALF)
    assert days == 1.5


def test_time_of_day_is_ignored():
    assert calculate_leave_days("2025-03-10T18:00:00", "2025-03-11T09:00:00Z", S1, S2) == 2


def test_spans_month_boundary():
    assert calculate_leave_days("2025-02-27", "2025-03-02", S1, S2) == 4


def test_end_before_start_raises_invalid_range():
    with pytest.raises(InvalidRange):
        calculate_leave_days("2025-03-12", "2025-03-10", S1, S2)


@pytest.mark.parametrize("bad", ["not-a-date", "2025-13-01", None, 12345])
def test_unparseable_date_raises_invalid_date(bad):
    with pytest.raises(InvalidDate):
        calculate_leave_days(bad, "2025-03-10", S1, S2)


def test_calculation_errors_are_value_errors():
    with pytest.raises(ValueError):
        calculate_leave_days("2025-03-12", "2025-03-10", S1, S2)
    assert issubclass(InvalidDate, LeaveCalculationError)


def test_result_is_never_below_half_day():
    for from_session in (S1, S2):
        for to_session in (S1, S2):
            for end in ("2025-03-10", "2025-03-11", "2025-03-20"):
                assert calculate_leave_days("2025-03-10", end, from_session, to_session) >= 0.5


def test_storage_datetime_is_naive_midnight():
    assert to_storage_datetime("2025-03-10") == datetime(2025, 3, 10)
    assert to_storage_datetime(date(2025, 3, 10)).tzinfo is None
