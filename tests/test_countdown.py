import pytest

from timed_exam.services.countdown import (
    TimeWarning, format_exam_time, format_pause_time, time_warning,
)


@pytest.mark.parametrize("ms,expected", [
    (0, "00:00:00"),
    (3_600_000, "01:00:00"),
    ((1 * 3600 + 30 * 60 + 45) * 1000, "01:30:45"),
    (125_000, "00:02:05"),
    ((12 * 3600 + 34 * 60 + 56) * 1000, "12:34:56"),
    (999, "00:00:00"),
    (-5_000, "00:00:00"),
])
def test_format_exam_time(ms: int, expected: str) -> None:
    assert format_exam_time(ms) == expected


@pytest.mark.parametrize("ms,expected", [
    (15 * 60 * 1000, "15:00"),
    (5 * 60 * 1000 + 30 * 1000, "05:30"),
    (0, "00:00"),
    (60 * 60 * 1000, "60:00"),
])
def test_format_pause_time(ms: int, expected: str) -> None:
    assert format_pause_time(ms) == expected


@pytest.mark.parametrize("ms,expected", [
    (11 * 60 * 1000, TimeWarning.NORMAL),
    (10 * 60 * 1000, TimeWarning.NORMAL),
    (9 * 60 * 1000 + 59_000, TimeWarning.RUNNING_OUT),
    (5 * 60 * 1000, TimeWarning.RUNNING_OUT),
    (4 * 60 * 1000 + 59_000, TimeWarning.CRITICAL),
    (0, TimeWarning.CRITICAL),
])
def test_time_warning(ms: int, expected: TimeWarning) -> None:
    assert time_warning(ms) == expected
