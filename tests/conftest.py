import json
from concurrent.futures import Future

import pytest

from resultwall.core.asset_gate import resolved
from resultwall.core.sequencer import Sequencer, SequencerConfig
from resultwall.models.presentation import Phase, Readiness
from resultwall.models.record import ChangeEvent, EventKind, Record


class StubGate:
    """Readiness gate whose futures the test controls.

    auto=None leaves image futures pending until the test resolves them.
    """

    def __init__(self, auto=Readiness.READY):
        self.auto = auto
        self.futures = {}
        self.requested = []

    def request(self, image_url):
        if not image_url:
            return resolved(Readiness.NO_ASSET)
        self.requested.append(image_url)
        fut = Future()
        if self.auto is not None:
            fut.set_result(self.auto)
        self.futures[image_url] = fut
        return fut

    def shutdown(self):
        pass


class Recorder:
    """Gallery listener that keeps every published view."""

    def __init__(self):
        self.views = []

    def __call__(self, view):
        self.views.append(view)

    @property
    def phases(self):
        return [v.state.phase for v in self.views]

    @property
    def presented(self):
        return [v.state.record for v in self.views if v.state.phase is Phase.PRESENTING]


FAST = SequencerConfig(
    presentation_sec=4.0,
    cooldown_sec=1.0,
    asset_wait_timeout_sec=10.0,
    history_capacity=10,
)


@pytest.fixture
def stub_gate():
    return StubGate()


@pytest.fixture
def sequencer(stub_gate):
    return Sequencer(stub_gate, config=FAST, clock=lambda: 0.0)


@pytest.fixture
def recorder(sequencer):
    rec = Recorder()
    sequencer.add_listener(rec)
    return rec


@pytest.fixture
def make_record():
    def _make(record_id, name=None, image_url=None, school=None, score=None):
        return Record(
            record_id=record_id,
            name=name or f"Student {record_id}",
            school=school,
            score=score,
            image_url=image_url,
        )

    return _make


@pytest.fixture
def activate():
    def _activate(sequencer, record):
        sequencer.submit(ChangeEvent(kind=EventKind.ACTIVATED, record=record))

    return _activate


@pytest.fixture
def drive():
    def _drive(sequencer, start, end, step=0.5):
        """Pump the sequencer at fixed steps from start to end inclusive."""
        t = start
        while t <= end:
            sequencer.pump(t)
            t += step

    return _drive


@pytest.fixture
def results_file(tmp_path):
    path = tmp_path / "results.json"

    def _write(rows):
        path.write_text(json.dumps({"results": rows}))
        return path

    return _write


def result_row(result_id, active=False, created_at="2025-05-09T10:00:00+00:00", **fields):
    row = {
        "id": result_id,
        "name": f"Student {result_id}",
        "school": "GHSS Kottayam, Kottayam",
        "aplus": 10,
        "reg_no": f"REG{result_id}",
        "phone_number": None,
        "image_url": None,
        "active": active,
        "created_at": created_at,
        "updated_at": created_at,
    }
    row.update(fields)
    return row


@pytest.fixture
def row():
    return result_row
