# src/simulation/event_queue.py
"""
Virtual-time event queue and output event stream.

The queue holds things the simulation must do at a future simulated time
(e.g. end a dwell). The event log is the append-only stream of what happened,
consumed by presentation layers.
"""

from dataclasses import dataclass, field
from enum import Enum
from itertools import count
from typing import List, Optional, Tuple
import heapq


class EventType(Enum):
    """Scheduled actions and emitted notifications"""
    # Scheduled
    RESUME_MOVING = "resume_moving"

    # Emitted
    DAY_STARTED = "day_started"
    STOP_ARRIVED = "stop_arrived"
    SCHOOL_ARRIVED = "school_arrived"
    CHARGING_REQUIRED = "charging_required"
    STATION_SELECTED = "station_selected"
    DEADHEAD_STARTED = "deadhead_started"
    CHARGER_REACHED = "charger_reached"
    CHARGING_STARTED = "charging_started"
    CHARGING_FINISHED = "charging_finished"
    RETURNED_TO_ROUTE = "returned_to_route"
    BUS_STRANDED = "bus_stranded"
    ROUTE_COMPLETED = "route_completed"
    DAY_COMPLETED = "day_completed"
    NIGHTLY_DECISION_REQUIRED = "nightly_decision_required"
    OVERNIGHT_CHARGED = "overnight_charged"
    WEEK_COMPLETED = "week_completed"


@dataclass
class SimulationEvent:
    """One scheduled or emitted occurrence, stamped with simulated time"""
    time: float  # simulated seconds since the start of the day
    event_type: EventType
    bus_id: str
    day: int = 0
    data: dict = field(default_factory=dict)  # Extra context (stop, station, amounts)

    def __repr__(self) -> str:
        return f"Event(t={self.time:.0f}, type={self.event_type.value}, bus={self.bus_id})"


class EventQueue:
    """
    Min-heap of pending events keyed on simulated time. Events due at the same
    time come out in the order they were scheduled.

        queue = EventQueue()
        queue.add_event(SimulationEvent(...))
        for event in queue.pop_due(now):
            ...
    """

    def __init__(self):
        self._heap: List[Tuple[float, int, SimulationEvent]] = []
        self._seq = count()

    def add_event(self, event: SimulationEvent) -> None:
        heapq.heappush(self._heap, (event.time, next(self._seq), event))

    def pop_due(self, now: float) -> List[SimulationEvent]:
        """Remove and return every event scheduled at or before `now`, in time order."""
        due = []
        while self._heap and self._heap[0][0] <= now:
            due.append(heapq.heappop(self._heap)[2])
        return due

    def peek_next_time(self) -> Optional[float]:
        return self._heap[0][0] if self._heap else None

    def size(self) -> int:
        return len(self._heap)

    def clear(self) -> None:
        self._heap.clear()

    def __repr__(self) -> str:
        return f"EventQueue(pending={len(self._heap)})"


class EventLog:
    """Append-only stream of emitted events."""

    def __init__(self):
        self.events: List[SimulationEvent] = []
        self._cursor = 0

    def emit(self, event: SimulationEvent) -> None:
        self.events.append(event)

    def drain(self) -> List[SimulationEvent]:
        """Events emitted since the previous drain."""
        new = self.events[self._cursor:]
        self._cursor = len(self.events)
        return new

    def of_type(self, event_type: EventType) -> List[SimulationEvent]:
        return [e for e in self.events if e.event_type == event_type]

    def __len__(self) -> int:
        return len(self.events)
