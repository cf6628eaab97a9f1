import pytest

from scrollstory.core.scroll_tracker import (
    ActiveEvent,
    ProgressEvent,
    ScrollTracker,
    StepGeometry,
    ViewportSignal,
)
from scrollstory.core.section_machine import SectionStateMachine
from scrollstory.core.sections import SectionRegistry
from scrollstory.core.state import VisualizationState


def _make_steps(n: int, height: float = 800.0):
    return [StepGeometry(index=i, top=i * height, height=height) for i in range(n)]


def _make_tracker(n: int = 5, height: float = 800.0, **kwargs) -> ScrollTracker:
    tracker = ScrollTracker(**kwargs)
    tracker.set_steps(_make_steps(n, height))
    return tracker


def test_first_signal_activates_top_step_and_reports_progress():
    tracker = _make_tracker()

    events = tracker.observe(ViewportSignal(scroll_top=0, viewport_height=1000))

    assert events == [ActiveEvent(0), ProgressEvent(0, 0.625)]
    assert tracker.current_index == 0


def test_same_position_only_reports_progress():
    tracker = _make_tracker()
    tracker.observe(ViewportSignal(0, 1000))

    events = tracker.observe(ViewportSignal(0, 1000))

    assert events == [ProgressEvent(0, 0.625)]


def test_scrolling_down_switches_active_step():
    tracker = _make_tracker()
    tracker.observe(ViewportSignal(0, 1000))

    events = tracker.observe(ViewportSignal(900, 1000))

    assert events[0] == ActiveEvent(1)
    assert events[1].index == 1
    assert events[1].progress == pytest.approx(0.75)


def test_below_threshold_emits_no_active():
    tracker = _make_tracker(threshold=0.9)

    events = tracker.observe(ViewportSignal(400, 1000))

    assert [type(e) for e in events] == [ProgressEvent]
    assert tracker.current_index is None


def test_tie_goes_to_step_on_the_reference_line():
    tracker = _make_tracker(n=3, height=400)

    events = tracker.observe(ViewportSignal(0, 1000))

    # steps 0 and 1 are both fully visible; the line at 500 sits in step 1
    assert events[0] == ActiveEvent(1)


def test_step_taller_than_viewport_can_activate():
    tracker = _make_tracker(n=2, height=2000)

    events = tracker.observe(ViewportSignal(500, 1000))

    assert events[0] == ActiveEvent(0)


def test_visibility_ratios():
    tracker = _make_tracker(n=3)
    ratios = tracker.visibility(ViewportSignal(0, 1000))
    assert ratios.tolist() == pytest.approx([1.0, 0.25, 0.0])


def test_steps_must_be_dense():
    tracker = ScrollTracker()
    with pytest.raises(ValueError):
        tracker.set_steps([StepGeometry(0, 0, 10), StepGeometry(2, 10, 10)])


def test_steps_are_sorted_by_index():
    tracker = ScrollTracker()
    tracker.set_steps([StepGeometry(1, 800, 800), StepGeometry(0, 0, 800)])
    assert [s.index for s in tracker.steps] == [0, 1]


def test_invalid_threshold_and_event_name():
    with pytest.raises(ValueError):
        ScrollTracker(threshold=0)
    with pytest.raises(ValueError):
        ScrollTracker().on("scroll", lambda *_: None)


def test_no_steps_no_events():
    assert ScrollTracker().observe(ViewportSignal(0, 1000)) == []


def test_reset_allows_same_step_to_fire_again():
    tracker = _make_tracker()
    tracker.observe(ViewportSignal(0, 1000))
    tracker.reset()

    events = tracker.observe(ViewportSignal(0, 1000))

    assert events[0] == ActiveEvent(0)


def test_listeners_receive_events_in_order():
    tracker = _make_tracker()
    received = []
    tracker.on("active", lambda i: received.append(("active", i)))
    tracker.on("progress", lambda i, p: received.append(("progress", i)))

    tracker.observe(ViewportSignal(0, 1000))

    assert received == [("active", 0), ("progress", 0)]


def test_jump_scroll_drives_every_section_through_the_machine():
    calls = []
    registry = SectionRegistry()
    for i in range(5):
        registry.add(lambda i=i: calls.append(i))
    machine = SectionStateMachine(registry, VisualizationState())

    tracker = _make_tracker()
    tracker.on("active", machine.activate)
    tracker.on("progress", machine.update)

    tracker.observe(ViewportSignal(0, 1000))
    tracker.observe(ViewportSignal(3200, 1000))

    assert calls == [0, 1, 2, 3, 4]
    assert machine.last_index == 4
