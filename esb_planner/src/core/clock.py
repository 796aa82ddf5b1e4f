# src/core/clock.py
"""
Maps route progress (and mid-day charging time) onto a simulated clock.
  - 0% to 50% progress   -> AM window (5 AM to 9 AM)
  - at school, deadheading or charging -> 9 AM plus charging time, capped at the mid-day window
  - 50% to 100% progress -> PM window (12 PM to 4 PM)
Display only; nothing in the simulation branches on these values.
"""

from esb_planner.src.config.settings import TimeWindows


def simulated_hour(
    progress: float,
    charging_elapsed_hours: float = 0.0,
    at_school: bool = False,
    windows: TimeWindows = TimeWindows()
) -> float:
    if progress < 0.5 and not at_school:
        am_hours = windows.AM_TRIP_END - windows.AM_TRIP_START
        return windows.AM_TRIP_START + (progress / 0.5) * am_hours

    if at_school:
        window = windows.MIDDAY_END - windows.MIDDAY_START
        return windows.MIDDAY_START + min(charging_elapsed_hours, window)

    pm_progress = (min(progress, 1.0) - 0.5) / 0.5
    pm_hours = windows.PM_TRIP_END - windows.PM_TRIP_START
    return windows.PM_TRIP_START + pm_progress * pm_hours


def trip_phase(progress: float, charging: bool = False) -> str:
    if progress < 0.45:
        return "am"
    if progress < 0.55 or charging:
        return "midday"
    return "pm"


def format_clock(hours: float) -> str:
    h = int(hours)
    m = int((hours - h) * 60)
    period = "PM" if h >= 12 else "AM"
    display_hour = h - 12 if h > 12 else (12 if h == 0 else h)
    return f"{display_hour}:{m:02d} {period}"
