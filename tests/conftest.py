"""
Pytest configuration and shared fixtures.
"""

import threading
from concurrent.futures import Executor, Future
from typing import Any, Dict, List

import pytest

from chemnames.logger import StructuredLogger, reset_logger
from chemnames.lookup import NameLookupClient
from chemnames.retry import RetryPolicy

BASE_URL = "https://pubchem.example/rest/pug/compound/smiles"


class FakeResponse:
    """Minimal stand-in for requests.Response."""

    def __init__(self, status_code: int = 200, payload: Any = None, invalid_json: bool = False):
        self.status_code = status_code
        self._payload = payload
        self._invalid_json = invalid_json

    def json(self):
        if self._invalid_json:
            raise ValueError("Expecting value: line 1 column 1 (char 0)")
        return self._payload


class FakeSession:
    """
    Records GET calls and replays scripted responses.

    Each script item is a FakeResponse or an exception instance to raise.
    The last item repeats once the script runs out.
    """

    def __init__(self, script: List[Any], gate: threading.Event = None):
        self.script = list(script)
        self.calls: List[Dict[str, Any]] = []
        self.gate = gate
        self.closed = False
        self._lock = threading.Lock()

    def get(self, url, timeout=None):
        with self._lock:
            self.calls.append({"url": url, "timeout": timeout})
            item = self.script.pop(0) if len(self.script) > 1 else self.script[0]
        if self.gate is not None:
            self.gate.wait(timeout=5)
        if isinstance(item, Exception):
            raise item
        return item

    def close(self):
        self.closed = True


class InlineExecutor(Executor):
    """Runs submitted work immediately on the calling thread."""

    def submit(self, fn, *args, **kwargs):
        future = Future()
        try:
            future.set_result(fn(*args, **kwargs))
        except Exception as e:
            future.set_exception(e)
        return future


def synonyms_payload(*names) -> Dict[str, Any]:
    return {"InformationList": {"Information": [{"CID": 2244, "Synonym": list(names)}]}}


@pytest.fixture
def quiet_logger(tmp_path) -> StructuredLogger:
    """Logger with console and file output disabled."""
    reset_logger()
    logger = StructuredLogger(name="chemnames-test", level="DEBUG", enable_console=False, enable_file=False)
    yield logger
    reset_logger()


@pytest.fixture
def no_sleep_policy():
    """Retry policy that records delays instead of sleeping."""
    delays: List[float] = []
    policy = RetryPolicy(max_attempts=3, base_delay=0.4, sleep=delays.append)
    policy.recorded_delays = delays
    return policy


@pytest.fixture
def make_client(quiet_logger):
    def _make(script, gate=None):
        session = FakeSession(script, gate=gate)
        client = NameLookupClient(base_url=BASE_URL, timeout=5, session=session, logger=quiet_logger)
        return client, session
    return _make


@pytest.fixture
def aspirin_payload() -> Dict[str, Any]:
    return synonyms_payload("CID 12345", "InChI=1S/C9H8O4/c1-6(10)13-8-5-3-2-4-7(8)9(11)12/h2-5H,1H3,(H,11,12)", "Aspirin", "50-78-2")


@pytest.fixture
def history_entries() -> List[Dict[str, Any]]:
    return [
        {"id": "gen-1", "smiles": "CC(=O)OC1=CC=CC=C1C(=O)O"},
        {"generation_id": "gen-2", "smi_string": "CCO"},
        {"id": "gen-3", "meta": {"ori_smiles": "C1=CC=CC=C1"}},
        {"id": "gen-4", "prompt": "no structure here"},
    ]
