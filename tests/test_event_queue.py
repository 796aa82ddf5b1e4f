from esb_planner.src.simulation.event_queue import EventLog, EventQueue, EventType, SimulationEvent


def test_pop_due_in_time_then_schedule_order():
    queue = EventQueue()
    queue.add_event(SimulationEvent(30.0, EventType.RESUME_MOVING, "b", data={"n": 1}))
    queue.add_event(SimulationEvent(10.0, EventType.RESUME_MOVING, "z", data={"n": 2}))
    queue.add_event(SimulationEvent(10.0, EventType.RESUME_MOVING, "a", data={"n": 3}))

    assert queue.peek_next_time() == 10.0
    assert [e.data["n"] for e in queue.pop_due(20.0)] == [2, 3]
    assert queue.size() == 1
    assert queue.pop_due(29.9) == []
    assert [e.data["n"] for e in queue.pop_due(30.0)] == [1]
    assert queue.peek_next_time() is None


def test_event_log_drain_returns_only_new_events():
    log = EventLog()
    log.emit(SimulationEvent(0.0, EventType.DAY_STARTED, "bus-1"))
    assert len(log.drain()) == 1
    log.emit(SimulationEvent(5.0, EventType.STOP_ARRIVED, "bus-1"))
    drained = log.drain()
    assert [e.event_type for e in drained] == [EventType.STOP_ARRIVED]
    assert log.drain() == []
    assert len(log) == 2
