import threading

import pytest

from resultwall.core.sequencer import Sequencer, SequencerConfig
from resultwall.models.presentation import Phase, Readiness
from resultwall.models.record import ChangeEvent, EventKind

from conftest import StubGate


def test_starts_idle_with_empty_history(sequencer):
    view = sequencer.view()
    assert view.state.phase is Phase.IDLE
    assert sequencer.current_presentation() is None
    assert sequencer.history_snapshot() == ()
    assert sequencer.pump(0.0) is None


def test_record_without_image_goes_straight_to_presenting(sequencer, recorder, make_record, activate):
    activate(sequencer, make_record("a"))
    remaining = sequencer.pump(0.0)

    assert recorder.phases == [Phase.AWAITING_ASSET, Phase.PRESENTING]
    assert sequencer.current_presentation().record_id == "a"
    assert sequencer.view().readiness is Readiness.NO_ASSET
    assert remaining == 4.0


def test_full_cycle_publishes_every_transition(sequencer, recorder, make_record, activate):
    activate(sequencer, make_record("a"))
    sequencer.pump(0.0)
    sequencer.pump(4.0)
    sequencer.pump(5.0)

    assert recorder.phases == [
        Phase.AWAITING_ASSET,
        Phase.PRESENTING,
        Phase.COOLDOWN,
        Phase.IDLE,
    ]
    versions = [v.version for v in recorder.views]
    assert versions == sorted(set(versions))
    assert [r.record_id for r in sequencer.history_snapshot()] == ["a"]


def test_history_not_updated_while_presenting(sequencer, make_record, activate):
    activate(sequencer, make_record("a"))
    sequencer.pump(0.0)
    sequencer.pump(3.5)

    assert sequencer.view().state.phase is Phase.PRESENTING
    assert sequencer.history_snapshot() == ()

    sequencer.pump(4.0)
    assert sequencer.view().state.phase is Phase.COOLDOWN
    assert sequencer.current_presentation() is None
    assert [r.record_id for r in sequencer.history_snapshot()] == ["a"]


def test_arrivals_do_not_interrupt_presentation(sequencer, recorder, make_record, activate):
    activate(sequencer, make_record("a"))
    sequencer.pump(0.0)
    activate(sequencer, make_record("b"))
    sequencer.pump(1.0)
    sequencer.pump(4.0)
    sequencer.pump(4.5)

    assert sequencer.view().state.phase is Phase.COOLDOWN
    assert [r.record_id for r in recorder.presented] == ["a"]

    sequencer.pump(5.0)
    assert sequencer.current_presentation().record_id == "b"


def test_at_most_one_presentation_in_flight(sequencer, recorder, make_record, activate, drive):
    for i in range(6):
        activate(sequencer, make_record(f"r{i}"))
    drive(sequencer, 0.0, 40.0)

    presenting_runs = 0
    previous = None
    for view in recorder.views:
        phase = view.state.phase
        if phase is Phase.PRESENTING:
            # A new presentation only ever follows the readiness wait
            assert previous is Phase.AWAITING_ASSET
            presenting_runs += 1
        previous = phase
    assert presenting_runs == 6


def test_duplicate_activation_scenario(sequencer, recorder, make_record, activate, drive):
    activate(sequencer, make_record("s1", name="Old Name"))
    activate(sequencer, make_record("s2"))
    activate(sequencer, make_record("s1", name="New Name"))
    drive(sequencer, 0.0, 12.0)

    presented = recorder.presented
    assert [r.record_id for r in presented] == ["s1", "s2"]
    assert presented[0].name == "New Name"
    assert [r.record_id for r in sequencer.history_snapshot()] == ["s2", "s1"]


def test_order_preserved_for_distinct_records(sequencer, recorder, make_record, activate, drive):
    for record_id in ("A", "B", "C"):
        activate(sequencer, make_record(record_id))
    drive(sequencer, 0.0, 16.0)

    assert [r.record_id for r in recorder.presented] == ["A", "B", "C"]


def test_reactivating_history_entry_is_noop(sequencer, recorder, make_record, activate):
    sequencer.seed_history([make_record("h1"), make_record("h2")])
    recorder.views.clear()

    activate(sequencer, make_record("h2", name="Changed"))
    sequencer.pump(0.0)

    assert recorder.views == []
    assert sequencer.view().state.phase is Phase.IDLE
    assert [r.name for r in sequencer.history_snapshot()] == ["Student h1", "Student h2"]


def test_reactivating_in_flight_record_is_noop(sequencer, recorder, make_record, activate, drive):
    activate(sequencer, make_record("a"))
    sequencer.pump(0.0)
    activate(sequencer, make_record("a"))
    sequencer.pump(2.0)
    drive(sequencer, 2.5, 12.0)

    assert [r.record_id for r in recorder.presented] == ["a"]
    assert sequencer.view().state.phase is Phase.IDLE


def test_reactivating_after_presentation_is_noop(sequencer, recorder, make_record, activate, drive):
    activate(sequencer, make_record("a"))
    drive(sequencer, 0.0, 6.0)
    activate(sequencer, make_record("a"))
    drive(sequencer, 6.5, 14.0)

    assert [r.record_id for r in recorder.presented] == ["a"]


def test_history_keeps_ten_most_recent(sequencer, make_record, activate, drive):
    for i in range(13):
        activate(sequencer, make_record(f"r{i}"))
    drive(sequencer, 0.0, 66.0)

    history = [r.record_id for r in sequencer.history_snapshot()]
    assert len(history) == 10
    assert history == [f"r{i}" for i in range(12, 2, -1)]


def test_seeded_full_history_evicts_oldest(sequencer, make_record, activate, drive):
    seeded = [make_record(f"h{i}") for i in range(10)]
    sequencer.seed_history(seeded)

    activate(sequencer, make_record("new"))
    drive(sequencer, 0.0, 5.0)

    history = [r.record_id for r in sequencer.history_snapshot()]
    assert len(history) == 10
    assert history[0] == "new"
    assert "h9" not in history
    assert history[1:] == [f"h{i}" for i in range(9)]


def test_waits_for_image_before_presenting(make_record, activate):
    gate = StubGate(auto=None)
    seq = Sequencer(gate, config=SequencerConfig(presentation_sec=4.0, cooldown_sec=1.0))
    activate(seq, make_record("a", image_url="http://img/a.jpg"))

    seq.pump(0.0)
    seq.pump(3.0)
    assert seq.view().state.phase is Phase.AWAITING_ASSET
    assert seq.current_presentation() is None

    gate.futures["http://img/a.jpg"].set_result(Readiness.READY)
    assert seq.pump(3.5) == 4.0
    assert seq.current_presentation().record_id == "a"
    assert seq.view().readiness is Readiness.READY


def test_failed_image_still_presents(make_record, activate):
    gate = StubGate(auto=None)
    seq = Sequencer(gate)
    activate(seq, make_record("a", image_url="http://img/broken.jpg"))
    seq.pump(0.0)

    gate.futures["http://img/broken.jpg"].set_result(Readiness.FAILED)
    seq.pump(0.1)

    assert seq.view().state.phase is Phase.PRESENTING
    assert seq.view().readiness is Readiness.FAILED


def test_gate_exception_treated_as_failure(make_record, activate):
    gate = StubGate(auto=None)
    seq = Sequencer(gate)
    activate(seq, make_record("a", image_url="http://img/a.jpg"))
    seq.pump(0.0)

    gate.futures["http://img/a.jpg"].set_exception(RuntimeError("decoder crashed"))
    seq.pump(0.1)

    assert seq.view().state.phase is Phase.PRESENTING
    assert seq.view().readiness is Readiness.FAILED


def test_readiness_wait_is_bounded(make_record, activate):
    gate = StubGate(auto=None)
    seq = Sequencer(gate, config=SequencerConfig(asset_wait_timeout_sec=10.0))
    activate(seq, make_record("a", image_url="http://img/slow.jpg"))

    assert seq.pump(0.0) == 10.0
    seq.pump(9.5)
    assert seq.view().state.phase is Phase.AWAITING_ASSET

    seq.pump(10.0)
    assert seq.view().state.phase is Phase.PRESENTING
    assert seq.view().readiness is Readiness.NO_ASSET
    assert gate.futures["http://img/slow.jpg"].cancelled()


def test_deactivation_does_not_queue(sequencer, recorder, make_record):
    sequencer.submit(ChangeEvent(kind=EventKind.DEACTIVATED, record=make_record("a")))
    sequencer.pump(0.0)

    assert recorder.views == []
    assert sequencer.view().state.phase is Phase.IDLE


def test_malformed_payload_is_dropped(sequencer, recorder):
    accepted = sequencer.submit_payload({"kind": "activated", "record": {"name": "No Id"}})
    sequencer.pump(0.0)

    assert accepted is False
    assert recorder.views == []


def test_valid_payload_is_queued(sequencer):
    accepted = sequencer.submit_payload(
        {"kind": "activated", "record": {"id": "x1", "name": "Asha", "aplus": 9}}
    )
    sequencer.pump(0.0)

    assert accepted is True
    assert sequencer.current_presentation().score == 9


def test_failing_listener_does_not_stall(sequencer, make_record, activate):
    def broken(view):
        raise RuntimeError("render failed")

    sequencer.add_listener(broken)
    activate(sequencer, make_record("a"))
    sequencer.pump(0.0)
    sequencer.pump(4.0)

    assert sequencer.view().state.phase is Phase.COOLDOWN


def test_seed_rejected_while_running(make_record):
    seq = Sequencer(StubGate(), config=SequencerConfig(presentation_sec=0.01, cooldown_sec=0.01))
    seq.start()
    try:
        with pytest.raises(RuntimeError):
            seq.seed_history([make_record("a")])
    finally:
        seq.stop()


def test_background_thread_presents_in_order(make_record):
    seq = Sequencer(
        StubGate(),
        config=SequencerConfig(presentation_sec=0.02, cooldown_sec=0.01, asset_wait_timeout_sec=1.0),
    )
    done = threading.Event()

    def watch(view):
        if len(view.history) == 3:
            done.set()

    seq.add_listener(watch)
    seq.start()
    try:
        for record_id in ("a", "b", "c"):
            seq.submit(ChangeEvent(kind=EventKind.ACTIVATED, record=make_record(record_id, image_url=f"http://img/{record_id}")))
        assert done.wait(timeout=5.0)
    finally:
        seq.stop()

    assert [r.record_id for r in seq.history_snapshot()] == ["c", "b", "a"]
    assert not seq.running


def test_bad_submission_does_not_kill_thread(make_record):
    seq = Sequencer(
        StubGate(),
        config=SequencerConfig(presentation_sec=0.02, cooldown_sec=0.01, asset_wait_timeout_sec=1.0),
    )
    done = threading.Event()
    seq.add_listener(lambda view: done.set() if view.history else None)
    seq.start()
    try:
        seq.submit({"kind": "activated"})
        seq._inbox.put({"kind": "activated"})
        seq.submit(ChangeEvent(kind=EventKind.ACTIVATED, record=make_record("a")))
        assert done.wait(timeout=5.0)
        assert seq.running
    finally:
        seq.stop()

    assert [r.record_id for r in seq.history_snapshot()] == ["a"]


def test_stray_inbox_message_is_dropped(sequencer, make_record, activate):
    sequencer._inbox.put("not an event")
    activate(sequencer, make_record("a"))
    sequencer.pump(0.0)

    assert sequencer.current_presentation().record_id == "a"


def test_cancelled_readiness_presents_as_failure(make_record, activate):
    gate = StubGate(auto=None)
    seq = Sequencer(gate)
    activate(seq, make_record("a", image_url="http://img/a.jpg"))
    seq.pump(0.0)

    gate.futures["http://img/a.jpg"].cancel()
    seq.pump(0.1)

    assert seq.view().state.phase is Phase.PRESENTING
    assert seq.view().readiness is Readiness.FAILED


def test_stop_timeout_keeps_reporting_running(make_record):
    seq = Sequencer(StubGate(), config=SequencerConfig(presentation_sec=0.01, cooldown_sec=0.01))
    entered = threading.Event()
    release = threading.Event()

    def slow_render(view):
        if view.state.phase is Phase.PRESENTING:
            entered.set()
            release.wait(timeout=5.0)

    seq.add_listener(slow_render)
    seq.start()
    try:
        seq.submit(ChangeEvent(kind=EventKind.ACTIVATED, record=make_record("a")))
        assert entered.wait(timeout=5.0)

        seq.stop(timeout=0.05)
        assert seq.running
    finally:
        release.set()
        seq.stop()

    assert not seq.running
