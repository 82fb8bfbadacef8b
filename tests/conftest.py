# tests/conftest.py
import threading
import time
from typing import Dict, List, Optional

import pytest

from ocrpdf.config import SaveOptions
from ocrpdf.logger import reset_logging
from ocrpdf.ocr_backends.base import BaseOCREngine
from ocrpdf.progress import ProgressReporter


class StubHandle:
    def __init__(self, path: str):
        self.path = path


class StubEngine(BaseOCREngine):
    """
    In-memory engine. Counts jobs between load() and close() so tests can see
    how many were in flight at once.
    """

    def __init__(self, fail_load=(), fail_save=(), delay: float = 0.0, on_load=None):
        self.fail_load = set(fail_load)
        self.fail_save = set(fail_save)
        self.delay = delay
        self.on_load = on_load
        self._lock = threading.Lock()
        self.in_flight = 0
        self.max_in_flight = 0
        self.loaded: List[str] = []
        self.saved: Dict[str, str] = {}
        self.closed: List[str] = []
        self.options: Optional[SaveOptions] = None

    def _enter(self):
        with self._lock:
            self.in_flight += 1
            self.max_in_flight = max(self.max_in_flight, self.in_flight)

    def _leave(self):
        with self._lock:
            self.in_flight -= 1

    def load(self, path):
        self._enter()
        with self._lock:
            self.loaded.append(path)
        if self.on_load is not None:
            self.on_load(path)
        if self.delay:
            time.sleep(self.delay)
        if path in self.fail_load:
            self._leave()
            return None
        return StubHandle(path)

    def save(self, handle, output_path, options):
        self.options = options
        if handle.path in self.fail_save:
            return False
        with self._lock:
            self.saved[handle.path] = output_path
        return True

    def close(self, handle):
        with self._lock:
            self.closed.append(handle.path)
        self._leave()


class RecordingReporter(ProgressReporter):
    """Keeps every call instead of rendering."""

    def __init__(self):
        super().__init__()
        self.calls = []
        self.finished = []

    def start(self, total):
        self.calls.append(("start", total))

    def job_finished(self, result, completed, total):
        self.finished.append((result, completed, total, threading.current_thread().name))

    def finish(self, elapsed):
        self.calls.append(("finish", elapsed))


@pytest.fixture
def stub_engine():
    return StubEngine()


@pytest.fixture
def recorder():
    return RecordingReporter()


@pytest.fixture(autouse=True)
def _clean_package_logger():
    yield
    reset_logging()
