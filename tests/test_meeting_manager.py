from core.meeting_manager import MeetingManager
from core.request_queue import RequestQueue

from conftest import START_MS, make_request


def queue_of(*requests) -> RequestQueue:
    queue = RequestQueue()
    for request in requests:
        queue.enqueue(request)
    return queue


def test_start_promotes_request_out_of_queue():
    queue = queue_of(make_request("a"), make_request("b", duration=30))
    manager = MeetingManager(default_duration=15)

    meeting = manager.start(queue, "b", START_MS)

    assert meeting.knock_id == "b"
    assert meeting.started_at == START_MS
    assert meeting.estimated_duration == 30
    assert "b" not in queue
    assert manager.is_active


def test_start_falls_back_to_default_duration():
    queue = queue_of(make_request("a"))
    manager = MeetingManager(default_duration=15)

    assert manager.start(queue, "a", START_MS).estimated_duration == 15


def test_start_with_unknown_id_changes_nothing():
    queue = queue_of(make_request("a"))
    manager = MeetingManager(default_duration=15)

    assert manager.start(queue, "ghost", START_MS) is None
    assert not manager.is_active
    assert len(queue) == 1


def test_second_open_replaces_active_meeting():
    queue = queue_of(make_request("a"), make_request("b"))
    manager = MeetingManager(default_duration=15)
    manager.start(queue, "a", START_MS)

    manager.start(queue, "b", START_MS + 1000)

    assert manager.active.knock_id == "b"
    assert len(queue) == 0


def test_end_clears_meeting_once():
    queue = queue_of(make_request("a"))
    manager = MeetingManager(default_duration=15)
    manager.start(queue, "a", START_MS)

    assert manager.end().knock_id == "a"
    assert manager.end() is None
    assert manager.info() is None


def test_info_uses_wire_names():
    queue = queue_of(make_request("a"))
    manager = MeetingManager(default_duration=15)
    manager.start(queue, "a", START_MS)

    assert manager.info().dump() == {
        "employeeName": "Employee a",
        "knockId": "a",
        "startedAt": START_MS,
        "estimatedDuration": 15,
    }
