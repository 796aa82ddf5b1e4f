import pytest

from esb_planner.src.core.clock import format_clock, simulated_hour, trip_phase


def test_am_window_follows_progress():
    assert simulated_hour(0.0) == pytest.approx(5.0)
    assert simulated_hour(0.25) == pytest.approx(7.0)


def test_midday_adds_charging_time_up_to_window():
    assert simulated_hour(0.5, charging_elapsed_hours=1.5, at_school=True) == pytest.approx(10.5)
    assert simulated_hour(0.5, charging_elapsed_hours=5.0, at_school=True) == pytest.approx(12.0)


def test_pm_window_after_leaving_school():
    assert simulated_hour(0.75, charging_elapsed_hours=2.0) == pytest.approx(14.0)
    assert simulated_hour(1.0) == pytest.approx(16.0)


def test_trip_phase_thresholds():
    assert trip_phase(0.2) == "am"
    assert trip_phase(0.5) == "midday"
    assert trip_phase(0.8) == "pm"
    assert trip_phase(0.8, charging=True) == "midday"


@pytest.mark.parametrize("hours,expected", [
    (5.0, "5:00 AM"),
    (9.5, "9:30 AM"),
    (12.0, "12:00 PM"),
    (13.25, "1:15 PM"),
])
def test_format_clock(hours, expected):
    assert format_clock(hours) == expected
